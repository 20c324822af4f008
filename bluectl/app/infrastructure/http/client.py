from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from bluectl.app.domain.exceptions import (
    ResponseDecodeError,
    ServiceClientError,
    WorkerConnectionError,
)
from bluectl.app.domain.models.catalog import Device, DeviceList, Plan, PlanList
from bluectl.app.domain.models.environment import (
    EnvironmentState,
    PythonEnvironment,
    SourceInfo,
)
from bluectl.app.domain.models.state_change import StateChangeRequest
from bluectl.app.domain.models.task import TaskReference, TaskRequest
from bluectl.app.domain.models.worker_state import WorkerState
from bluectl.app.domain.repositories import WorkerApiRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _raise_for_status(resp: httpx.Response) -> None:
    try:
        resp.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ServiceClientError(
            status=resp.status_code, url=str(resp.request.url), body=resp.text
        ) from exc


def _decode(adapter: TypeAdapter[T], resp: httpx.Response) -> T:
    try:
        return adapter.validate_json(resp.content)
    except ValidationError as exc:
        raise ResponseDecodeError(str(resp.request.url), resp.text) from exc


class WorkerHttpClient(WorkerApiRepository):
    """
    Talks to the worker's JSON-over-HTTP API.

    Requests are never retried; transport failures, non-2xx responses and
    undecodable bodies all end the current command.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        logger.debug("Worker request", extra={"method": method, "path": path})
        try:
            resp = await self._client.request(method, path, json=json, params=params)
        except httpx.TransportError as exc:
            raise WorkerConnectionError(self._base_url, str(exc)) from exc
        _raise_for_status(resp)
        return resp

    async def create_task(self, request: TaskRequest) -> TaskReference:
        resp = await self._request("POST", "/tasks", json=request.model_dump(mode="json"))
        return _decode(TypeAdapter(TaskReference), resp)

    async def start_task(self, task: TaskReference) -> TaskReference:
        resp = await self._request("PUT", "/worker/task", json=task.model_dump(mode="json"))
        return _decode(TypeAdapter(TaskReference), resp)

    async def get_state(self) -> WorkerState:
        resp = await self._request("GET", "/worker/state")
        return _decode(TypeAdapter(WorkerState), resp)

    async def set_state(self, request: StateChangeRequest) -> WorkerState:
        resp = await self._request("PUT", "/worker/state", json=request.to_payload())
        return _decode(TypeAdapter(WorkerState), resp)

    async def get_environment(self) -> EnvironmentState:
        resp = await self._request("GET", "/environment")
        return _decode(TypeAdapter(EnvironmentState), resp)

    async def delete_environment(self) -> EnvironmentState:
        resp = await self._request("DELETE", "/environment")
        return _decode(TypeAdapter(EnvironmentState), resp)

    async def get_python_environment(
        self, name: str | None = None, source: SourceInfo | None = None
    ) -> PythonEnvironment:
        params: dict[str, str] = {}
        if name is not None:
            params["name"] = name
        if source is not None:
            params["source"] = source.value
        resp = await self._request("GET", "/python_environment", params=params)
        return _decode(TypeAdapter(PythonEnvironment), resp)

    async def get_devices(self) -> list[Device]:
        resp = await self._request("GET", "/devices")
        return _decode(TypeAdapter(DeviceList), resp).devices

    async def get_device(self, name: str) -> Device:
        resp = await self._request("GET", f"/devices/{name}")
        return _decode(TypeAdapter(Device), resp)

    async def get_plans(self) -> list[Plan]:
        resp = await self._request("GET", "/plans")
        return _decode(TypeAdapter(PlanList), resp).plans

    async def get_plan(self, name: str) -> Plan:
        resp = await self._request("GET", f"/plans/{name}")
        return _decode(TypeAdapter(Plan), resp)

    async def close(self) -> None:
        await self._client.aclose()
