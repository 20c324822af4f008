from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from bluectl.app.domain.models.worker_state import WorkerState


class StateChangeRequest(BaseModel):
    """Request to move the worker into ``new_state``."""

    new_state: WorkerState = Field(description="Target worker state.")
    reason: str | None = Field(
        default=None, description="Informational reason, recorded when aborting."
    )
    defer: bool | None = Field(
        default=None,
        description="Pause at the next checkpoint instead of immediately.",
    )

    def to_payload(self) -> dict[str, Any]:
        # Absent optional fields are omitted rather than sent as null.
        return self.model_dump(mode="json", exclude_none=True)
