from __future__ import annotations

import inject

from bluectl.app.domain.models.catalog import Device, Plan
from bluectl.app.domain.models.environment import PythonEnvironment, SourceInfo
from bluectl.app.domain.repositories import WorkerApiRepository


class CatalogService:
    """Read-only lookups of what the worker offers."""

    def __init__(self, api: WorkerApiRepository | None = None) -> None:
        self._api = api or inject.instance(WorkerApiRepository)

    async def devices(self, name: str | None = None) -> list[Device]:
        """Return every device, or just the one called ``name``."""
        if name is not None:
            return [await self._api.get_device(name)]
        return await self._api.get_devices()

    async def plans(self, name: str | None = None) -> list[Plan]:
        """Return every plan, or just the one called ``name``."""
        if name is not None:
            return [await self._api.get_plan(name)]
        return await self._api.get_plans()

    async def python_environment(
        self, name: str | None = None, source: SourceInfo | None = None
    ) -> PythonEnvironment:
        return await self._api.get_python_environment(name=name, source=source)
