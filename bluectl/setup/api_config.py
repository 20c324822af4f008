from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class ApiSettings(BaseSettings):
    """Where the worker's HTTP API lives and how long to wait for it."""
    WORKER_URL: str = "http://localhost:8000"
    HTTP_TIMEOUT_SECONDS: float = 30.0

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_api_settings() -> ApiSettings:
    return ApiSettings()
