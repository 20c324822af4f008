import inject

from bluectl.app.domain.repositories import EventFeedRepository, WorkerApiRepository
from bluectl.app.infrastructure.http.client import WorkerHttpClient
from bluectl.setup.api_config import ApiSettings, get_api_settings
from bluectl.setup.stream_config import StreamSettings, build_event_feed


def build_worker_client(settings: ApiSettings | None = None) -> WorkerHttpClient:
    if settings is None:
        settings = get_api_settings()
    return WorkerHttpClient(settings.WORKER_URL, timeout=settings.HTTP_TIMEOUT_SECONDS)


def configure_di(
    api_settings: ApiSettings | None = None,
    stream_settings: StreamSettings | None = None,
) -> WorkerHttpClient:
    """Bind the worker API and event feed repositories; return the HTTP client for closing."""
    worker_client = build_worker_client(api_settings)
    event_feed = build_event_feed(stream_settings)

    def _config(binder: inject.Binder) -> None:
        binder.bind(WorkerApiRepository, worker_client)
        binder.bind(EventFeedRepository, event_feed)

    inject.configure(_config, clear=True)
    return worker_client
