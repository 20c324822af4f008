from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Iterable
from enum import Enum

import inject

from bluectl.app.application.correlator import TaskCorrelator
from bluectl.app.domain.events.documents import ExitStatus, StopDoc
from bluectl.app.domain.events.messages import DataEvent, Message, WorkerEvent
from bluectl.app.domain.exceptions import FeedClosedError, TaskWaitTimeoutError, WorkerClientError
from bluectl.app.domain.models.run_outcome import RunOutcome, RunResult
from bluectl.app.domain.models.task import TaskReference, TaskRequest
from bluectl.app.domain.repositories import EventFeed, EventFeedRepository, WorkerApiRepository

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Message], None]


class RunPhase(str, Enum):
    CREATED = "CREATED"
    TASK_SUBMITTED = "TASK_SUBMITTED"
    SUBSCRIBED = "SUBSCRIBED"
    ACTIVATED = "ACTIVATED"
    DRAINING = "DRAINING"
    TERMINAL = "TERMINAL"
    REQUEST_ERROR = "REQUEST_ERROR"


def _extend_unique(target: list[str], items: Iterable[str]) -> None:
    for item in items:
        if item not in target:
            target.append(item)


class _OutcomeTracker:
    """Accumulates what the correlated messages say about the task's outcome."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        self.completed = False
        self._failed = False
        self._exit_status: ExitStatus | None = None
        self._errors: list[str] = []
        self._warnings: list[str] = []

    def observe(self, message: Message) -> None:
        if isinstance(message, WorkerEvent):
            _extend_unique(self._errors, message.errors)
            _extend_unique(self._warnings, message.warnings)
            if message.task_failed:
                self._failed = True
            if message.is_task_complete():
                self.completed = True
        elif isinstance(message, DataEvent) and isinstance(message.document, StopDoc):
            self._exit_status = message.document.doc.exit_status
            # A task may emit several runs; any unsuccessful one fails the task.
            if self._exit_status is not ExitStatus.SUCCESS:
                self._failed = True

    def outcome(self) -> RunOutcome:
        return RunOutcome(
            task_id=self.task_id,
            result=RunResult.FAILED if self._failed else RunResult.SUCCESS,
            exit_status=self._exit_status,
            errors=list(self._errors),
            warnings=list(self._warnings),
        )


class RunOrchestrator:
    """
    Submits a task and waits for the worker to finish it.

    The event feed is subscribed before the task is activated so that the
    first documents of the run cannot be missed. One orchestrator handles a
    single run.
    """

    def __init__(
        self,
        api: WorkerApiRepository | None = None,
        feed: EventFeedRepository | None = None,
    ) -> None:
        self._api = api or inject.instance(WorkerApiRepository)
        self._feed = feed or inject.instance(EventFeedRepository)
        self._phase = RunPhase.CREATED

    @property
    def phase(self) -> RunPhase:
        return self._phase

    def _transition(self, phase: RunPhase, task_id: str | None = None) -> None:
        logger.debug(
            "Run phase changed",
            extra={"from_phase": self._phase.value, "to_phase": phase.value, "task_id": task_id},
        )
        self._phase = phase

    async def run(
        self,
        request: TaskRequest,
        on_message: MessageCallback | None = None,
        timeout: float | None = None,
    ) -> RunOutcome:
        """
        Create the task, activate it and drain its events until it completes.

        ``timeout`` bounds the wait for completion; ``None`` waits forever.
        """
        if self._phase is not RunPhase.CREATED:
            raise RuntimeError("A RunOrchestrator can only run one task.")

        try:
            task = await self._api.create_task(request)
        except WorkerClientError:
            self._transition(RunPhase.REQUEST_ERROR)
            raise
        self._transition(RunPhase.TASK_SUBMITTED, task.task_id)
        logger.info("Task submitted", extra={"task_id": task.task_id, "plan": request.name})

        async with contextlib.AsyncExitStack() as stack:
            try:
                feed = await stack.enter_async_context(
                    self._feed.open(stop_after_task=task.task_id)
                )
            except WorkerClientError:
                self._transition(RunPhase.REQUEST_ERROR, task.task_id)
                raise
            self._transition(RunPhase.SUBSCRIBED, task.task_id)
            await self._activate(task)
            outcome = await self._wait_for_completion(task.task_id, feed, on_message, timeout)

        self._transition(RunPhase.TERMINAL, task.task_id)
        logger.info(
            "Task finished",
            extra={"task_id": task.task_id, "result": outcome.result.value},
        )
        return outcome

    async def _activate(self, task: TaskReference) -> None:
        try:
            await self._api.start_task(task)
        except WorkerClientError:
            self._transition(RunPhase.REQUEST_ERROR, task.task_id)
            raise
        self._transition(RunPhase.ACTIVATED, task.task_id)

    async def _wait_for_completion(
        self,
        task_id: str,
        feed: EventFeed,
        on_message: MessageCallback | None,
        timeout: float | None,
    ) -> RunOutcome:
        self._transition(RunPhase.DRAINING, task_id)
        try:
            return await asyncio.wait_for(self._drain(task_id, feed, on_message), timeout)
        except asyncio.TimeoutError as exc:
            raise TaskWaitTimeoutError(task_id, timeout or 0.0) from exc

    async def _drain(
        self, task_id: str, feed: EventFeed, on_message: MessageCallback | None
    ) -> RunOutcome:
        correlator = TaskCorrelator(task_id)
        tracker = _OutcomeTracker(task_id)
        async for message in correlator.correlate(feed):
            tracker.observe(message)
            if on_message is not None:
                on_message(message)
        if not tracker.completed:
            raise FeedClosedError(task_id)
        return tracker.outcome()
