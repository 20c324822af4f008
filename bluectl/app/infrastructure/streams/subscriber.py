from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from redis.asyncio.client import PubSub
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from bluectl.app.domain.events.messages import Message
from bluectl.app.domain.exceptions import MalformedMessageError, WorkerConnectionError
from bluectl.app.infrastructure.streams.client import PubSubClient
from bluectl.app.infrastructure.streams.serializers import decode_frame

logger = logging.getLogger(__name__)

TOPIC_WORKER_EVENTS = "public/worker/event"
_END_OF_FEED = object()


class QueueFeed:
    """Bounded single-producer/single-consumer queue of decoded messages."""

    def __init__(self, maxsize: int) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._error: BaseException | None = None
        self._finished = False

    async def put(self, message: Message) -> None:
        await self._queue.put(message)

    async def finish(self, error: BaseException | None = None) -> None:
        self._error = error
        await self._queue.put(_END_OF_FEED)

    def __aiter__(self) -> QueueFeed:
        return self

    async def __anext__(self) -> Message:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _END_OF_FEED:
            self._finished = True
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item


class EventFeedSubscriber:
    """
    Subscribes to the worker's event topic and pumps decoded messages into a
    bounded queue read by exactly one consumer.

    Each call to ``open`` uses its own broker connection, released when the
    consumer leaves the context.
    """

    def __init__(
        self,
        client_factory: Callable[[], PubSubClient],
        *,
        topic: str = TOPIC_WORKER_EVENTS,
        queue_size: int = 10,
        poll_timeout: float = 1.0,
        subscribe_timeout: float = 5.0,
    ) -> None:
        self._client_factory = client_factory
        self._topic = topic
        self._queue_size = queue_size
        self._poll_timeout = poll_timeout
        self._subscribe_timeout = subscribe_timeout

    @property
    def topic(self) -> str:
        return self._topic

    @contextlib.asynccontextmanager
    async def open(self, stop_after_task: str | None = None) -> AsyncIterator[QueueFeed]:
        """
        Subscribe and yield the feed once the broker has confirmed the subscription.

        When ``stop_after_task`` is given the pump stops by itself after
        delivering the completion event of that task.
        """
        client = self._client_factory()
        pubsub = client.pubsub()
        try:
            await self._subscribe(pubsub)
            feed = QueueFeed(self._queue_size)
            pump = asyncio.create_task(self._pump(pubsub, feed, stop_after_task))
            try:
                yield feed
            finally:
                pump.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await pump
        finally:
            await self._release(pubsub, client)

    async def _subscribe(self, pubsub: PubSub) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._subscribe_timeout
        try:
            await pubsub.subscribe(self._topic)
            while loop.time() < deadline:
                frame = await pubsub.get_message(
                    ignore_subscribe_messages=False, timeout=self._poll_timeout
                )
                if frame is not None and frame.get("type") == "subscribe":
                    logger.info("Subscribed to event feed", extra={"topic": self._topic})
                    return
        except (RedisConnectionError, RedisTimeoutError, OSError) as exc:
            raise WorkerConnectionError("event broker", str(exc)) from exc
        raise WorkerConnectionError(
            "event broker", f"subscription to {self._topic!r} was not confirmed"
        )

    async def _pump(
        self, pubsub: PubSub, feed: QueueFeed, stop_after_task: str | None
    ) -> None:
        try:
            await self._receive(pubsub, feed, stop_after_task)
        except Exception as exc:
            logger.exception("Event feed pump failed", extra={"topic": self._topic})
            await feed.finish(exc)
        else:
            await feed.finish()

    async def _receive(
        self, pubsub: PubSub, feed: QueueFeed, stop_after_task: str | None
    ) -> None:
        while True:
            try:
                frame = await pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self._poll_timeout
                )
            except (RedisConnectionError, RedisTimeoutError) as exc:
                logger.warning(
                    "Event feed receive failed: %s",
                    exc,
                    extra={"topic": self._topic},
                )
                await asyncio.sleep(self._poll_timeout)
                continue

            if frame is None or frame.get("type") != "message":
                continue

            try:
                message = decode_frame(frame["data"])
            except MalformedMessageError as exc:
                logger.warning(
                    "Skipping malformed event feed message",
                    extra={"topic": self._topic, "payload": exc.payload},
                )
                continue

            # Blocks while the queue is full.
            await feed.put(message)

            if (
                stop_after_task is not None
                and message.is_task_complete()
                and message.correlation_id() == stop_after_task
            ):
                logger.debug(
                    "Task complete, stopping event feed pump",
                    extra={"task_id": stop_after_task},
                )
                return

    async def _release(self, pubsub: PubSub, client: PubSubClient) -> None:
        try:
            await pubsub.unsubscribe(self._topic)
            await pubsub.aclose()
        except RedisError as exc:
            logger.warning("Failed to unsubscribe from event feed: %s", exc)
        finally:
            await client.close()
