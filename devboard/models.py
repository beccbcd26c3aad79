# models.py
"""
Configuration models for the devboard dashboard.
"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DashboardMode(str, Enum):
    """Which session block the dashboard renders above the worker list."""

    SERVE = "serve"
    BUILD = "build"
    NONE = "none"


class WorkerConfig(BaseModel):
    """Static descriptor of one registered worker."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Stable, unique worker identifier.")
    watch: bool = Field(
        default=False, description="Whether the worker is a long-running watcher."
    )


class ServeConfig(BaseModel):
    """Dev server details shown when the dashboard runs in serve mode."""

    port: int = Field(default=8080, ge=1, le=65535, description="Port the dev server listens on.")
    host: str = Field(default="localhost", description="Host used for the local URL.")
    ips: Optional[List[str]] = Field(
        default=None,
        description="Network addresses to advertise. Detected from the host when omitted.",
    )


class BuildConfig(BaseModel):
    """Build output details shown when the dashboard runs in build mode."""

    dest: str = Field(default="build", description="Output directory of the build.")


class SourceConfig(BaseModel):
    """The process whose stdout carries the event stream."""

    command: List[str] = Field(
        default_factory=list, description="Command and arguments of the event source."
    )
    cwd: Optional[str] = Field(default=None, description="Working directory for the command.")
    env: Dict[str, str] = Field(
        default_factory=dict, description="Extra environment variables for the command."
    )


class InstallConfig(BaseModel):
    """Commands run when the user approves a missing dependency."""

    install_command: List[str] = Field(
        default_factory=lambda: ["npm", "install", "{package}"],
        description="Command that installs a package not found locally. '{package}' is substituted.",
    )
    record_command: Optional[List[str]] = Field(
        default=None,
        description="Command that records an already installed package. Skipped when omitted.",
    )


class DevboardConfig(BaseModel):
    """Main configuration for a dashboard session."""

    title: str = Field(default="Devboard", description="Banner printed at the top of every frame.")
    workers: List[WorkerConfig] = Field(
        default_factory=list, description="Registered workers, in display order."
    )
    mode: DashboardMode = Field(default=DashboardMode.NONE)
    serve: ServeConfig = Field(default_factory=ServeConfig)
    build: BuildConfig = Field(default_factory=BuildConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    install: InstallConfig = Field(default_factory=InstallConfig)
    no_color: bool = Field(default=False, description="Render frames without ANSI styles.")

    @field_validator("workers")
    @classmethod
    def _check_unique_ids(cls, workers: List[WorkerConfig]) -> List[WorkerConfig]:
        seen = set()
        for worker in workers:
            if worker.id in seen:
                raise ValueError(f"Duplicate worker id: {worker.id}")
            seen.add(worker.id)
        return workers
