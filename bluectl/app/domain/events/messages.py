from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, Field, model_validator

from bluectl.app.domain.events.documents import EventDocument
from bluectl.app.domain.models.worker_state import WorkerState


class StatusView(BaseModel):
    """Progress of one named axis, e.g. a moving motor."""

    display_name: str
    current: float | None = None
    initial: float | None = None
    target: float | None = None
    unit: str | None = None
    precision: int | None = None
    done: bool = False
    percentage: float | None = None
    time_elapsed: float | None = None
    time_remaining: float | None = None


class ProgressEvent(BaseModel):
    task_id: str = Field(description="Task the progress belongs to.")
    statuses: dict[str, StatusView] = Field(description="Progress keyed by axis name.")

    def correlation_id(self) -> str | None:
        return self.task_id

    def is_task_complete(self) -> bool:
        return False


class TaskStatus(BaseModel):
    task_id: str = Field(description="Task the status belongs to.")
    task_complete: bool = Field(description="The task has finished running.")
    task_failed: bool = Field(description="The task finished with an error.")


class WorkerEvent(BaseModel):
    """Worker state change, optionally carrying the status of the current task."""

    state: WorkerState
    task_status: TaskStatus | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def correlation_id(self) -> str | None:
        if self.task_status is None:
            return None
        return self.task_status.task_id

    def is_task_complete(self) -> bool:
        return self.task_status is not None and self.task_status.task_complete

    @property
    def task_failed(self) -> bool:
        return self.task_status is not None and self.task_status.task_failed


class DataEvent(BaseModel):
    """A run document produced while executing a task."""

    task_id: str = Field(description="Task that produced the document.")
    document: EventDocument

    @model_validator(mode="before")
    @classmethod
    def _nest_document(cls, data: Any) -> Any:
        # On the wire the document's name/doc pair sits beside task_id.
        if isinstance(data, dict) and "document" not in data and "name" in data:
            data = dict(data)
            data["document"] = {"name": data.pop("name"), "doc": data.pop("doc", None)}
        return data

    def correlation_id(self) -> str | None:
        return self.task_id

    def is_task_complete(self) -> bool:
        return False


Message = Union[ProgressEvent, WorkerEvent, DataEvent]

# Tried in order by the message decoder; the first variant that validates wins.
MESSAGE_VARIANTS: tuple[type[BaseModel], ...] = (ProgressEvent, WorkerEvent, DataEvent)
