from typing import Any

from pydantic import BaseModel, Field


class TaskRequest(BaseModel):
    name: str = Field(description="Name of the plan to run.")
    params: dict[str, Any] = Field(
        default_factory=dict, description="Plan parameters as a JSON object."
    )
    instrument_session: str = Field(
        description="Instrument session the run is recorded against."
    )


class TaskReference(BaseModel):
    """Identifier handed back by the worker when a task is created."""

    task_id: str = Field(description="Unique task identifier.")
