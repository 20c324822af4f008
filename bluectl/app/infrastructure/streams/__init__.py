from bluectl.app.infrastructure.streams.client import PubSubClient
from bluectl.app.infrastructure.streams.serializers import (
    decode_document,
    decode_frame,
    decode_message,
)
from bluectl.app.infrastructure.streams.subscriber import EventFeedSubscriber, QueueFeed

__all__ = [
    "PubSubClient",
    "EventFeedSubscriber",
    "QueueFeed",
    "decode_document",
    "decode_frame",
    "decode_message",
]
