from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter, ValidationError

from bluectl.app.domain.events.documents import EventDocument
from bluectl.app.domain.events.messages import MESSAGE_VARIANTS, Message
from bluectl.app.domain.exceptions import DocumentDecodeError, MalformedMessageError

_document_adapter: TypeAdapter[EventDocument] = TypeAdapter(EventDocument)


def decode_document(raw: Any) -> EventDocument:
    """Decode a ``{"name": ..., "doc": ...}`` pair into its document variant."""
    try:
        return _document_adapter.validate_python(raw)
    except ValidationError as exc:
        raise DocumentDecodeError(raw) from exc


def decode_message(raw: Any) -> Message:
    """
    Decode an event feed envelope.

    The envelope has no type tag, so each variant in ``MESSAGE_VARIANTS`` is
    tried in turn and the first one that validates is returned.
    """
    for variant in MESSAGE_VARIANTS:
        try:
            return variant.model_validate(raw)  # type: ignore[return-value]
        except ValidationError:
            continue
    raise MalformedMessageError(raw)


def decode_frame(data: str | bytes) -> Message:
    """Decode the body of a pub/sub frame; payloads must be UTF-8 JSON."""
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        raw = json.loads(data)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedMessageError(data) from exc
    return decode_message(raw)
