from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from bluectl.app.domain.events.documents import ExitStatus


class RunResult(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class RunOutcome(BaseModel):
    """Final report for one submitted task."""

    task_id: str = Field(description="Identifier of the task that was run.")
    result: RunResult = Field(description="Whether the task succeeded.")
    exit_status: ExitStatus | None = Field(
        default=None, description="Exit status of the last stop document seen, if any."
    )
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.result is RunResult.SUCCESS
