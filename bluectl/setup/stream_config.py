from pydantic import ConfigDict
from pydantic_settings import BaseSettings

from bluectl.app.infrastructure.streams.client import PubSubClient, client_name
from bluectl.app.infrastructure.streams.subscriber import TOPIC_WORKER_EVENTS, EventFeedSubscriber


class StreamSettings(BaseSettings):
    """Configuration for the worker event feed subscription."""
    REDIS_URL: str = "redis://localhost:6379/0"
    EVENT_TOPIC: str = TOPIC_WORKER_EVENTS
    QUEUE_SIZE: int = 10
    POLL_TIMEOUT_SECONDS: float = 1.0
    SUBSCRIBE_TIMEOUT_SECONDS: float = 5.0
    CLIENT_NAME_PREFIX: str = "bluectl"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_stream_settings() -> StreamSettings:
    return StreamSettings()


def build_event_feed(settings: StreamSettings | None = None) -> EventFeedSubscriber:
    """Create a subscriber that opens a fresh broker connection per subscription."""
    if settings is None:
        settings = StreamSettings()

    def _connect() -> PubSubClient:
        # Every connection identifies itself with a new client name.
        return PubSubClient(settings.REDIS_URL, name=client_name(settings.CLIENT_NAME_PREFIX))

    return EventFeedSubscriber(
        _connect,
        topic=settings.EVENT_TOPIC,
        queue_size=settings.QUEUE_SIZE,
        poll_timeout=settings.POLL_TIMEOUT_SECONDS,
        subscribe_timeout=settings.SUBSCRIBE_TIMEOUT_SECONDS,
    )
