from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServeInfo:
    """A running dev server. ``add_package`` receives approved installs."""

    port: int
    ips: tuple[str, ...] = ()
    start_time_ms: int = 0
    add_package: Callable[[str, bool], None] | None = field(default=None, compare=False)
    host: str = "localhost"


@dataclass(frozen=True)
class BuildInfo:
    dest: str


@dataclass(frozen=True)
class SessionInfo:
    """Static details of a dashboard run. At most one of serve/build is expected."""

    title: str = "Devboard"
    serve: ServeInfo | None = None
    build: BuildInfo | None = None
