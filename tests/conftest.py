from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest

from bluectl.app.domain.exceptions import WorkerConnectionError
from bluectl.app.domain.models.catalog import Device, Plan
from bluectl.app.domain.models.environment import EnvironmentState, PythonEnvironment, SourceInfo
from bluectl.app.domain.models.state_change import StateChangeRequest
from bluectl.app.domain.models.task import TaskReference, TaskRequest
from bluectl.app.domain.models.worker_state import WorkerState
from bluectl.app.domain.repositories import WorkerApiRepository
from bluectl.app.infrastructure.streams.subscriber import TOPIC_WORKER_EVENTS, EventFeedSubscriber


class ScriptedPubSub:
    """In-memory stand-in for ``redis.asyncio.client.PubSub``."""

    def __init__(self, broker: StubBroker) -> None:
        self._broker = broker
        self._frames: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.channels: set[str] = set()
        self.closed = False
        self.receive_errors: list[Exception] = []

    async def subscribe(self, channel: str) -> None:
        if self._broker.refuse_connections:
            raise ConnectionRefusedError("broker unreachable")
        self.channels.add(channel)
        self._frames.put_nowait({"type": "subscribe", "channel": channel, "data": 1})

    async def unsubscribe(self, channel: str) -> None:
        self.channels.discard(channel)

    async def aclose(self) -> None:
        self.closed = True

    def deliver(self, channel: str, data: str | bytes) -> None:
        if channel in self.channels:
            self._frames.put_nowait({"type": "message", "channel": channel, "data": data})

    async def get_message(
        self, ignore_subscribe_messages: bool = False, timeout: float | None = 0.0
    ) -> dict[str, Any] | None:
        if self.receive_errors:
            raise self.receive_errors.pop(0)
        try:
            frame = await asyncio.wait_for(self._frames.get(), timeout)
        except asyncio.TimeoutError:
            return None
        if ignore_subscribe_messages and frame["type"] == "subscribe":
            return None
        return frame


class StubPubSubClient:
    def __init__(self, broker: StubBroker, name: str) -> None:
        self.name = name
        self.closed = False
        self._pubsub = ScriptedPubSub(broker)
        broker.pubsubs.append(self._pubsub)

    def pubsub(self) -> ScriptedPubSub:
        return self._pubsub

    async def close(self) -> None:
        self.closed = True


class StubBroker:
    """Fan-out broker: frames published while nobody is subscribed are lost."""

    def __init__(self) -> None:
        self.pubsubs: list[ScriptedPubSub] = []
        self.clients: list[StubPubSubClient] = []
        self.refuse_connections = False

    def connect(self) -> StubPubSubClient:
        client = StubPubSubClient(self, name=f"test-client-{len(self.clients) + 1}")
        self.clients.append(client)
        return client

    def publish(self, payload: Any, channel: str = TOPIC_WORKER_EVENTS) -> None:
        data = payload if isinstance(payload, (str, bytes)) else json.dumps(payload)
        for pubsub in self.pubsubs:
            if not pubsub.closed:
                pubsub.deliver(channel, data)


class StubWorkerApi(WorkerApiRepository):
    """In-memory worker API; ``on_start`` runs when a task is activated."""

    def __init__(self, task_id: str = "task-1") -> None:
        self.task_id = task_id
        self.calls: list[tuple[str, Any]] = []
        self.on_start: Callable[[TaskReference], None] | None = None
        self.create_error: Exception | None = None
        self.start_error: Exception | None = None
        self.state = WorkerState.IDLE
        self.environments: list[EnvironmentState] = []
        self.deleted_environment = EnvironmentState(environment_id="env-1", initialized=False)
        self.devices = [Device(name="stage_x", protocols=[])]
        self.plans = [Plan(name="count", description="Take readings")]

    async def create_task(self, request: TaskRequest) -> TaskReference:
        self.calls.append(("create_task", request))
        if self.create_error is not None:
            raise self.create_error
        return TaskReference(task_id=self.task_id)

    async def start_task(self, task: TaskReference) -> TaskReference:
        self.calls.append(("start_task", task))
        if self.start_error is not None:
            raise self.start_error
        if self.on_start is not None:
            self.on_start(task)
        return task

    async def get_state(self) -> WorkerState:
        self.calls.append(("get_state", None))
        return self.state

    async def set_state(self, request: StateChangeRequest) -> WorkerState:
        self.calls.append(("set_state", request))
        self.state = request.new_state
        return request.new_state

    async def get_environment(self) -> EnvironmentState:
        self.calls.append(("get_environment", None))
        if len(self.environments) > 1:
            return self.environments.pop(0)
        return self.environments[0]

    async def delete_environment(self) -> EnvironmentState:
        self.calls.append(("delete_environment", None))
        return self.deleted_environment

    async def get_python_environment(
        self, name: str | None = None, source: SourceInfo | None = None
    ) -> PythonEnvironment:
        self.calls.append(("get_python_environment", (name, source)))
        return PythonEnvironment(scratch_enabled=True)

    async def get_devices(self) -> list[Device]:
        return self.devices

    async def get_device(self, name: str) -> Device:
        return next(device for device in self.devices if device.name == name)

    async def get_plans(self) -> list[Plan]:
        return self.plans

    async def get_plan(self, name: str) -> Plan:
        return next(plan for plan in self.plans if plan.name == name)


def worker_event(
    task_id: str | None,
    *,
    state: str = "RUNNING",
    complete: bool = False,
    failed: bool = False,
    errors: list[str] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "state": state,
        "errors": errors or [],
        "warnings": warnings or [],
    }
    if task_id is not None:
        payload["task_status"] = {
            "task_id": task_id,
            "task_complete": complete,
            "task_failed": failed,
        }
    return payload


def progress_event(task_id: str, percentage: float = 0.5) -> dict[str, Any]:
    return {
        "task_id": task_id,
        "statuses": {
            "stage_x": {
                "display_name": "stage_x",
                "current": 1.0,
                "initial": 0.0,
                "target": 2.0,
                "unit": "mm",
                "precision": 2,
                "done": False,
                "percentage": percentage,
                "time_elapsed": 1.5,
                "time_remaining": 1.5,
            }
        },
    }


def start_document(task_id: str, uid: str = "run-1") -> dict[str, Any]:
    return {
        "task_id": task_id,
        "name": "start",
        "doc": {"uid": uid, "time": 1700000000.25, "scan_id": 7, "plan_name": "count"},
    }


def stop_document(task_id: str, exit_status: str = "success", run_start: str = "run-1") -> dict[str, Any]:
    return {
        "task_id": task_id,
        "name": "stop",
        "doc": {
            "uid": "stop-1",
            "run_start": run_start,
            "time": 1700000010.5,
            "exit_status": exit_status,
            "num_events": {"primary": 3},
        },
    }


@pytest.fixture
def broker() -> StubBroker:
    return StubBroker()


@pytest.fixture
def subscriber(broker: StubBroker) -> EventFeedSubscriber:
    return EventFeedSubscriber(
        broker.connect,  # type: ignore[arg-type]
        queue_size=10,
        poll_timeout=0.01,
        subscribe_timeout=1.0,
    )


@pytest.fixture
def worker_api() -> StubWorkerApi:
    return StubWorkerApi()


@pytest.fixture
def connection_error() -> Exception:
    return WorkerConnectionError("http://worker", "connection refused")
