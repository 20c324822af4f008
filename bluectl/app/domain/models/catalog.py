from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DeviceProtocol(BaseModel):
    name: str = Field(description="Protocol the device satisfies.")
    types: list[str] = Field(default_factory=list, description="Generic type arguments.")

    def __str__(self) -> str:
        if not self.types:
            return self.name
        return f"{self.name}[{', '.join(self.types)}]"


class Device(BaseModel):
    name: str = Field(description="Device name.")
    protocols: list[DeviceProtocol] = Field(default_factory=list)


class DeviceList(BaseModel):
    devices: list[Device] = Field(default_factory=list)


class Plan(BaseModel):
    """A named, parameterized unit of work the worker can execute."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Plan name.")
    description: str | None = Field(default=None, description="Plan docstring.")
    schema_: dict[str, Any] = Field(
        default_factory=dict, alias="schema", description="JSON schema of the plan parameters."
    )


class PlanList(BaseModel):
    plans: list[Plan] = Field(default_factory=list)
