from typing import Any


class WorkerClientError(Exception):
    """Base class for errors raised while talking to the worker."""


class WorkerConnectionError(WorkerClientError):
    """Raised when the worker or the event broker cannot be reached."""

    def __init__(self, target: str, reason: str) -> None:
        super().__init__(f"Could not reach {target}: {reason}")
        self.target = target
        self.reason = reason


class ServiceClientError(WorkerClientError):
    """Raised when the worker answers with a non-2xx status."""

    def __init__(self, *, status: int, url: str, body: str) -> None:
        super().__init__(f"Worker HTTP {status}: {url} :: {body[:500]}")
        self.status = status
        self.url = url
        self.body = body


class ResponseDecodeError(WorkerClientError):
    """Raised when a response body does not match the expected shape."""

    def __init__(self, url: str, body: str) -> None:
        super().__init__(f"Could not decode response from {url}: {body[:500]}")
        self.url = url
        self.body = body


class DocumentDecodeError(WorkerClientError):
    def __init__(self, payload: Any) -> None:
        super().__init__(f"Could not decode event document: {payload!r}")
        self.payload = payload


class MalformedMessageError(WorkerClientError):
    def __init__(self, payload: Any) -> None:
        super().__init__(f"Malformed event feed message: {payload!r}")
        self.payload = payload


class EnvironmentReloadError(WorkerClientError):
    """Raised when the worker reports an error while reloading its environment."""

    def __init__(self, environment_id: str, error_message: str) -> None:
        super().__init__(f"Environment {environment_id} failed to load: {error_message}")
        self.environment_id = environment_id
        self.error_message = error_message


class EnvironmentReloadTimeoutError(WorkerClientError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Environment did not reload within {timeout} seconds.")
        self.timeout = timeout


class TaskWaitTimeoutError(WorkerClientError):
    def __init__(self, task_id: str, timeout: float) -> None:
        super().__init__(f"Task '{task_id}' did not complete within {timeout} seconds.")
        self.task_id = task_id
        self.timeout = timeout


class FeedClosedError(WorkerClientError):
    """Raised when the event feed ends before the awaited task completed."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Event feed closed before task '{task_id}' completed.")
        self.task_id = task_id
