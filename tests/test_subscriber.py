import asyncio
import json
import logging

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from bluectl.app.domain.events.messages import DataEvent, ProgressEvent, WorkerEvent
from bluectl.app.domain.exceptions import WorkerConnectionError
from bluectl.app.infrastructure.streams.subscriber import TOPIC_WORKER_EVENTS, EventFeedSubscriber
from conftest import progress_event, start_document, worker_event


async def next_message(feed):
    return await asyncio.wait_for(anext(feed), timeout=1.0)


@pytest.mark.asyncio
async def test_subscription_is_live_when_feed_opens(broker, subscriber) -> None:
    async with subscriber.open() as feed:
        assert broker.pubsubs[0].channels == {TOPIC_WORKER_EVENTS}
        broker.publish(start_document("task-1"))

        message = await next_message(feed)

    assert isinstance(message, DataEvent)


@pytest.mark.asyncio
async def test_malformed_message_does_not_end_the_feed(broker, subscriber, caplog) -> None:
    caplog.set_level(logging.WARNING)
    async with subscriber.open() as feed:
        broker.publish(progress_event("task-1"))
        broker.publish("{not json")
        broker.publish({"unexpected": True})
        broker.publish(worker_event("task-1"))

        first = await next_message(feed)
        second = await next_message(feed)

    assert isinstance(first, ProgressEvent)
    assert isinstance(second, WorkerEvent)
    assert "Skipping malformed event feed message" in caplog.text


@pytest.mark.asyncio
async def test_messages_keep_broker_order(broker, subscriber) -> None:
    async with subscriber.open() as feed:
        for percentage in (0.1, 0.2, 0.3):
            broker.publish(progress_event("task-1", percentage=percentage))

        received = [await next_message(feed) for _ in range(3)]

    assert [m.statuses["stage_x"].percentage for m in received] == [0.1, 0.2, 0.3]


@pytest.mark.asyncio
async def test_pump_stops_after_awaited_task_completes(broker, subscriber) -> None:
    async with subscriber.open(stop_after_task="task-1") as feed:
        broker.publish(progress_event("task-1"))
        broker.publish(worker_event("task-2", complete=True))
        broker.publish(worker_event("task-1", complete=True))
        broker.publish(progress_event("task-1"))

        received = [message async for message in feed]

    assert len(received) == 3
    assert received[-1].correlation_id() == "task-1"
    assert received[-1].is_task_complete()


@pytest.mark.asyncio
async def test_full_queue_blocks_the_pump_without_losing_messages(broker) -> None:
    subscriber = EventFeedSubscriber(broker.connect, queue_size=2, poll_timeout=0.01)

    async with subscriber.open() as feed:
        for index in range(5):
            broker.publish(progress_event(f"task-{index}"))
        await asyncio.sleep(0.05)

        assert feed._queue.qsize() == 2

        received = [await next_message(feed) for _ in range(5)]

    assert [m.task_id for m in received] == [f"task-{index}" for index in range(5)]


@pytest.mark.asyncio
async def test_connection_released_when_consumer_leaves(broker, subscriber) -> None:
    async with subscriber.open() as feed:
        broker.publish(worker_event("task-1"))
        await next_message(feed)

    client = broker.clients[0]
    pubsub = broker.pubsubs[0]
    assert client.closed
    assert pubsub.closed
    assert pubsub.channels == set()


@pytest.mark.asyncio
async def test_each_subscription_uses_a_new_connection(broker, subscriber) -> None:
    async with subscriber.open():
        pass
    async with subscriber.open():
        pass

    assert [client.name for client in broker.clients] == ["test-client-1", "test-client-2"]


@pytest.mark.asyncio
async def test_receive_errors_are_logged_and_polling_continues(broker, subscriber, caplog) -> None:
    caplog.set_level(logging.WARNING)
    async with subscriber.open() as feed:
        broker.pubsubs[0].receive_errors.append(RedisConnectionError("connection lost"))
        broker.publish(worker_event("task-1"))

        message = await next_message(feed)

    assert isinstance(message, WorkerEvent)
    assert "Event feed receive failed" in caplog.text


@pytest.mark.asyncio
async def test_unreachable_broker_is_a_connection_error(broker, subscriber) -> None:
    broker.refuse_connections = True

    with pytest.raises(WorkerConnectionError):
        async with subscriber.open():
            pass

    assert broker.clients[0].closed


@pytest.mark.asyncio
async def test_non_utf8_frame_is_skipped(broker, subscriber, caplog) -> None:
    caplog.set_level(logging.WARNING)
    async with subscriber.open() as feed:
        broker.publish(progress_event("task-1"))
        broker.publish(b"\xff\xfe not utf8")
        broker.publish(json.dumps(worker_event("task-1")).encode("utf-8"))

        first = await next_message(feed)
        second = await next_message(feed)

    assert isinstance(first, ProgressEvent)
    assert isinstance(second, WorkerEvent)
    assert "Skipping malformed event feed message" in caplog.text


@pytest.mark.asyncio
async def test_unexpected_pump_failure_reaches_the_consumer(broker, subscriber) -> None:
    with pytest.raises(RuntimeError, match="parser crashed"):
        async with subscriber.open() as feed:
            broker.pubsubs[0].receive_errors.append(RuntimeError("parser crashed"))
            async for _ in feed:
                pass

    assert broker.clients[0].closed
    assert broker.pubsubs[0].closed
