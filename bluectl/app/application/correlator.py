from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator

from bluectl.app.domain.events.messages import Message, WorkerEvent


class TaskCorrelator:
    """
    Narrows the event feed down to the messages of one task.

    ``task_id=None`` accepts every message. Otherwise a message is kept only if
    its correlation id equals ``task_id``; messages that carry no id at all
    (worker events without a task status) are kept only when
    ``include_uncorrelated`` is set.
    """

    def __init__(self, task_id: str | None, *, include_uncorrelated: bool = False) -> None:
        self._task_id = task_id
        self._include_uncorrelated = include_uncorrelated

    @property
    def task_id(self) -> str | None:
        return self._task_id

    def matches(self, message: Message) -> bool:
        if self._task_id is None:
            return True
        message_id = message.correlation_id()
        if message_id is None:
            return self._include_uncorrelated
        return message_id == self._task_id

    def is_terminal(self, message: Message) -> bool:
        return isinstance(message, WorkerEvent) and message.is_task_complete()

    async def correlate(self, feed: AsyncIterable[Message]) -> AsyncIterator[Message]:
        """Yield matching messages, ending after the task's terminal event."""
        async for message in feed:
            if not self.matches(message):
                continue
            yield message
            if self._task_id is not None and self.is_terminal(message):
                return
