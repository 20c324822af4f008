from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import inject

from bluectl.app.domain.exceptions import EnvironmentReloadError, EnvironmentReloadTimeoutError
from bluectl.app.domain.models.environment import EnvironmentState
from bluectl.app.domain.models.state_change import StateChangeRequest
from bluectl.app.domain.models.worker_state import WorkerState
from bluectl.app.domain.repositories import WorkerApiRepository

logger = logging.getLogger(__name__)

RELOAD_POLL_INTERVAL_SEC = 0.5


class WorkerControlService:
    """Changes the worker's run state and reloads its environment."""

    def __init__(
        self,
        api: WorkerApiRepository | None = None,
        *,
        poll_interval: float = RELOAD_POLL_INTERVAL_SEC,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api = api or inject.instance(WorkerApiRepository)
        self._poll_interval = poll_interval
        self._clock = clock

    async def get_state(self) -> WorkerState:
        return await self._api.get_state()

    async def set_state(
        self,
        target: WorkerState,
        reason: str | None = None,
        defer: bool | None = None,
    ) -> WorkerState:
        """Request a state change and return the state the worker acknowledged."""
        request = StateChangeRequest(new_state=target, reason=reason, defer=defer)
        state = await self._api.set_state(request)
        logger.info(
            "Worker state change requested",
            extra={"requested": target.value, "acknowledged": state.value},
        )
        return state

    async def pause(self, defer: bool = False) -> WorkerState:
        return await self.set_state(WorkerState.PAUSED, defer=defer)

    async def resume(self) -> WorkerState:
        return await self.set_state(WorkerState.RUNNING)

    async def stop(self) -> WorkerState:
        """Stop the current task, marking any ongoing run as a success."""
        return await self.set_state(WorkerState.STOPPING)

    async def abort(self, reason: str | None = None) -> WorkerState:
        """Abort the current task, marking any ongoing run as failed."""
        return await self.set_state(WorkerState.ABORTING, reason=reason)

    async def get_environment(self) -> EnvironmentState:
        return await self._api.get_environment()

    async def reload_environment(self, timeout: float | None = None) -> EnvironmentState:
        """
        Tear down the worker's environment and wait for a new one to load.

        Polls every ``poll_interval`` seconds until the worker reports an
        initialized environment with a new id. Raises
        ``EnvironmentReloadError`` as soon as the worker reports an error, and
        ``EnvironmentReloadTimeoutError`` once ``timeout`` seconds have passed.
        Without a timeout it polls indefinitely.
        """
        previous = await self._api.delete_environment()
        logger.info(
            "Environment reload requested",
            extra={"environment_id": previous.environment_id},
        )
        deadline = None if timeout is None else self._clock() + timeout

        while deadline is None or self._clock() < deadline:
            current = await self._api.get_environment()
            if current.error_message is not None:
                raise EnvironmentReloadError(current.environment_id, current.error_message)
            if current.initialized and current.environment_id != previous.environment_id:
                logger.info(
                    "Environment reloaded",
                    extra={"environment_id": current.environment_id},
                )
                return current
            await asyncio.sleep(self._poll_interval)

        raise EnvironmentReloadTimeoutError(timeout or 0.0)
