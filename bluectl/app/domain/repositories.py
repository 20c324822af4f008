from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import AsyncIterator, Protocol

from bluectl.app.domain.events.messages import Message
from bluectl.app.domain.models.catalog import Device, Plan
from bluectl.app.domain.models.environment import EnvironmentState, PythonEnvironment, SourceInfo
from bluectl.app.domain.models.state_change import StateChangeRequest
from bluectl.app.domain.models.task import TaskReference, TaskRequest
from bluectl.app.domain.models.worker_state import WorkerState


class WorkerApiRepository(Protocol):
    """Repository contract for the worker's request/response API."""

    async def create_task(self, request: TaskRequest) -> TaskReference:
        """Submit a task and return the identifier the worker assigned to it."""

    async def start_task(self, task: TaskReference) -> TaskReference:
        """Make ``task`` the worker's active task."""

    async def get_state(self) -> WorkerState:
        """Fetch the worker's current state."""

    async def set_state(self, request: StateChangeRequest) -> WorkerState:
        """Ask the worker to change state and return the state it acknowledged."""

    async def get_environment(self) -> EnvironmentState:
        """Fetch the worker's current environment."""

    async def delete_environment(self) -> EnvironmentState:
        """Tear down the worker's environment so that it reloads."""

    async def get_python_environment(
        self, name: str | None = None, source: SourceInfo | None = None
    ) -> PythonEnvironment:
        """List the packages installed in the worker's Python environment."""

    async def get_devices(self) -> list[Device]:
        """List every device the worker knows about."""

    async def get_device(self, name: str) -> Device:
        """Fetch a single device by name."""

    async def get_plans(self) -> list[Plan]:
        """List every plan the worker can run."""

    async def get_plan(self, name: str) -> Plan:
        """Fetch a single plan by name."""


class EventFeed(Protocol):
    """Ordered stream of decoded messages from the worker's event topic."""

    def __aiter__(self) -> AsyncIterator[Message]:
        """Iterate over messages in the order the broker delivered them."""


class EventFeedRepository(Protocol):
    """Repository contract for subscribing to the worker's event topic."""

    def open(
        self, stop_after_task: str | None = None
    ) -> AbstractAsyncContextManager[EventFeed]:
        """Subscribe to the topic; the subscription is live once the context is entered."""
