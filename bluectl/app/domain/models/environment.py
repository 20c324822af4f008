from enum import Enum

from pydantic import BaseModel, Field


class EnvironmentState(BaseModel):
    """One instantiation of the worker's runtime environment."""

    environment_id: str = Field(description="Changes every time the environment is reloaded.")
    initialized: bool = Field(description="Whether the environment finished loading.")
    error_message: str | None = Field(
        default=None, description="Set when the environment failed to load."
    )


class SourceInfo(str, Enum):
    PYPI = "pypi"
    SCRATCH = "scratch"


class PackageInfo(BaseModel):
    name: str = Field(description="Distribution name.")
    version: str = Field(description="Installed version.")
    location: str = Field(default="", description="Install location or source URL.")
    is_dev: bool = Field(default=False, description="Installed in development mode.")
    source: SourceInfo = Field(description="Where the package was installed from.")


class PythonEnvironment(BaseModel):
    installed_packages: list[PackageInfo] = Field(default_factory=list)
    scratch_enabled: bool = Field(default=False)
