from pydantic import AliasChoices, ConfigDict, Field
from pydantic_settings import BaseSettings


class CliSettings(BaseSettings):
    INSTRUMENT_SESSION: str | None = Field(
        default=None,
        validation_alias=AliasChoices("INSTRUMENT_SESSION", "BLUEAPI_INSTRUMENT_SESSION"),
    )
    LOG_LEVEL: str = "WARNING"

    model_config = ConfigDict(env_file=".env", extra="ignore")


def get_cli_settings() -> CliSettings:
    return CliSettings()
