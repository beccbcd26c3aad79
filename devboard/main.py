#!/usr/bin/env python3
"""
devboard - a live terminal dashboard for build and watch workers.
"""
from __future__ import annotations

import asyncio
import logging
import os
import sys
import time
from collections.abc import Callable

import typer
from rich.console import Console

from devboard.common.config import DEFAULT_CONFIG_PATH, ConfigError, load_devboard_config
from devboard.common.utils import (
    STREAM_LIMIT,
    detect_network_ips,
    elapsed_ms,
    read_stream_line,
    setup_logging,
)
from devboard.components.tui.dashboard import Dashboard
from devboard.components.tui.event_bus import EventBus
from devboard.components.tui.event_output_parser import EventLineParser
from devboard.components.tui.prompt_handler import PromptHandler
from devboard.components.tui.session import BuildInfo, ServeInfo, SessionInfo
from devboard.models import DashboardMode, DevboardConfig
from devboard.tui.package_installer import PackageInstaller
from devboard.tui.source_process_manager import SourceProcessManager

logger = logging.getLogger(__name__)


def build_session_info(
    config: DevboardConfig,
    add_package: Callable[[str, bool], None] | None = None,
    start_time_ms: int = 0,
) -> SessionInfo:
    """Derive the static session block from the configured mode."""
    serve = build = None
    if config.mode == DashboardMode.SERVE:
        ips = config.serve.ips if config.serve.ips is not None else detect_network_ips()
        serve = ServeInfo(
            port=config.serve.port,
            ips=tuple(ips),
            start_time_ms=start_time_ms,
            add_package=add_package,
            host=config.serve.host,
        )
    elif config.mode == DashboardMode.BUILD:
        build = BuildInfo(dest=config.build.dest)
    return SessionInfo(title=config.title, serve=serve, build=build)


async def _pump_events(
    process: asyncio.subprocess.Process, bus: EventBus, parser: EventLineParser
) -> None:
    """Read the source's stdout line by line and publish each parsed event."""
    if process.stdout is None:
        logger.error("Event source has no stdout")
        return
    while True:
        line_bytes = await read_stream_line(process.stdout)
        if not line_bytes:
            break
        line = line_bytes.decode("utf-8", errors="replace")
        for kind, payload in parser.parse_line(line):
            bus.emit(kind, payload)


async def _listen_for_input(prompt_handler: PromptHandler) -> None:
    """Forward terminal input lines to the prompt handler."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STREAM_LIMIT)
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
    except (ValueError, OSError) as e:
        logger.warning(f"Interactive prompt disabled, cannot read stdin: {e}")
        return
    await prompt_handler.listen(reader)


async def run_dashboard(
    config: DevboardConfig,
    console: Console | None = None,
    interactive: bool = True,
) -> int:
    """
    Run the event source and drive the dashboard until the source exits.

    Returns:
        The source's exit status. A run that finishes with errors exits the
        process through the dashboard before this returns.
    """
    started_at = time.monotonic()
    bus = EventBus()
    installer = PackageInstaller(
        bus,
        install_command=config.install.install_command,
        record_command=config.install.record_command,
        cwd=config.source.cwd,
    )
    manager = SourceProcessManager(config.source.command, cwd=config.source.cwd, env=config.source.env)
    process = await manager.start()

    session = build_session_info(config, installer.add_package, elapsed_ms(started_at))
    dashboard = Dashboard(
        config.workers, session=session, console=console or Console(no_color=config.no_color)
    )

    listener: asyncio.Task | None = None
    try:
        dashboard.start(bus)
        if interactive and dashboard.prompt_handler is not None:
            listener = asyncio.create_task(_listen_for_input(dashboard.prompt_handler))
        await _pump_events(process, bus, EventLineParser())
        returncode = await process.wait()
        logger.info(f"Event source exited with status {returncode}")
        return returncode
    finally:
        if listener is not None:
            listener.cancel()
        await manager.stop()


def _load_config_or_exit(config_path: str, mode: str | None) -> DevboardConfig:
    overrides = {"mode": mode} if mode else None
    try:
        return load_devboard_config(config_path, overrides=overrides)
    except ConfigError as e:
        typer.echo(f"❌ {e}", err=True)
        raise typer.Exit(1)


cli_app = typer.Typer(help="Live terminal dashboard for build and watch workers.")

CONFIG_OPTION = typer.Option(DEFAULT_CONFIG_PATH, "--config", "-c", help="Path to the devboard YAML file.")
MODE_OPTION = typer.Option(None, "--mode", "-m", help="Override the configured mode: serve, build or none.")
LOG_OPTION = typer.Option(None, "--log", "-l", help="Path to write a detailed log file.")
DEBUG_OPTION = typer.Option(False, "--debug", "-d", help="Enable debug logging to a temporary file.")


@cli_app.command()
def run(
    config: str = CONFIG_OPTION,
    mode: str | None = MODE_OPTION,
    log: str | None = LOG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Start the event source and show the live dashboard."""
    devboard_config = _load_config_or_exit(config, mode)
    if not devboard_config.source.command:
        typer.echo(f"❌ No source command configured in {config}", err=True)
        raise typer.Exit(1)

    debug_log_path = setup_logging(log, debug)
    if debug_log_path:
        typer.echo(f"Writing debug log to {debug_log_path}")

    try:
        exit_code = asyncio.run(run_dashboard(devboard_config))
    except OSError as e:
        typer.echo(f"❌ Could not start event source: {e}", err=True)
        raise typer.Exit(1)
    except KeyboardInterrupt:
        exit_code = 130
    raise typer.Exit(exit_code)


@cli_app.command()
def replay(
    events: str = typer.Argument(..., help="JSON-lines file of recorded events."),
    config: str = CONFIG_OPTION,
    mode: str | None = MODE_OPTION,
    log: str | None = LOG_OPTION,
    debug: bool = DEBUG_OPTION,
) -> None:
    """Render a recorded event stream, one frame per event."""
    if not os.path.exists(events):
        typer.echo(f"❌ Events file not found: {events}", err=True)
        raise typer.Exit(1)
    devboard_config = _load_config_or_exit(config, mode)
    setup_logging(log, debug)

    bus = EventBus()
    dashboard = Dashboard(
        devboard_config.workers,
        session=build_session_info(devboard_config),
        console=Console(no_color=devboard_config.no_color),
    )
    dashboard.start(bus)
    parser = EventLineParser()
    with open(events, encoding="utf-8") as f:
        for line in f:
            for kind, payload in parser.parse_line(line):
                bus.emit(kind, payload)


@cli_app.command()
def check(config: str = CONFIG_OPTION) -> None:
    """Validate the configuration and list the registered workers."""
    devboard_config = _load_config_or_exit(config, None)
    typer.echo(f"✅ {config} is valid ({devboard_config.mode.value} mode)")
    for worker in devboard_config.workers:
        suffix = " (watch)" if worker.watch else ""
        typer.echo(f"  - {worker.id}{suffix}")
    if not devboard_config.source.command:
        typer.echo("⚠️  No source command configured; only 'replay' will work.")


def main() -> None:
    cli_app()


if __name__ == "__main__":
    main()
