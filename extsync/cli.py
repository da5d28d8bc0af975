"""Click-based CLI for extsync - Extension & Settings Sync."""

from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from pydantic import ValidationError
from rich.syntax import Syntax

from extsync import __version__
from extsync.config import (
    ExtsyncConfig,
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from extsync.errors import SyncError
from extsync.logger import setup_logging
from extsync.output import Console, create_console
from extsync.registry import InstanceRegistry
from extsync.service import SyncService
from extsync.state import StateManager
from extsync.sync.engine import build_engine
from extsync.utils.aio import with_timeout


def _config_path(ctx: click.Context) -> Path:
    return ctx.obj.get("config_path") or get_config_path()


def _load_config_or_exit(ctx: click.Context, console: Console) -> ExtsyncConfig:
    """Load configuration, exiting with status 1 when it is missing or invalid."""
    try:
        return load_config(_config_path(ctx))
    except FileNotFoundError as e:
        console.print_error(str(e))
        sys.exit(1)
    except ValidationError as e:
        console.print_error(f"Invalid configuration:\n{e}")
        sys.exit(1)


def _prepare(ctx: click.Context, verbose: bool) -> tuple[ExtsyncConfig, Console]:
    """Load configuration and set up console output and logging."""
    config = _load_config_or_exit(ctx, create_console(verbose=verbose))
    verbose = verbose or config.output.verbose
    console = create_console(verbose=verbose, colored=config.output.colored)
    setup_logging(verbose=verbose, log_file=config.output.log_file)
    return config, console


@click.group()
@click.version_option(version=__version__, prog_name="extsync")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ~/.config/extsync/config.yaml or $EXTSYNC_CONFIG)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]) -> None:
    """extsync - Extension & Settings Sync for code editors.

    Keeps installed extensions and settings files of your editor in sync
    with a snapshot shared by all your machines.

    \b
    Workflow:
      extsync config init    Create a configuration file
      extsync status         Show what would change
      extsync sync           Run one sync pass
      extsync watch          Keep syncing in the background
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def sync(ctx: click.Context, verbose: bool) -> None:
    """Synchronize extensions and settings once.

    Detects local and remote changes since the last sync and applies
    them in order. Exits with status 1 if the pass failed.
    """
    config, console = _prepare(ctx, verbose)

    engine = build_engine(config, notifier=console.notify, auto_poll=False)
    result = asyncio.run(engine.request_sync())

    console.print_sync_result(result)
    if not result.success:
        sys.exit(1)


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def status(ctx: click.Context, verbose: bool) -> None:
    """Show pending changes without applying them."""
    config, console = _prepare(ctx, verbose)

    engine = build_engine(config, auto_poll=False)
    try:
        changes = asyncio.run(with_timeout(engine.detector.detect_changes(), "detect changes", engine.timeout))
    except SyncError as e:
        console.print_error(e.message)
        sys.exit(1)

    console.print_changes(changes)


async def _watch(service: SyncService) -> None:
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are not available on Windows event loops
            pass
    await service.run(stop_event)


@cli.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.option("--no-delay", is_flag=True, help="Skip the startup delay")
@click.pass_context
def watch(ctx: click.Context, verbose: bool, no_delay: bool) -> None:
    """Keep syncing in the background until interrupted.

    Only one extsync process per user syncs at a time; additional
    processes stand by and take over when the active one exits.
    """
    config, console = _prepare(ctx, verbose)

    engine = build_engine(config, notifier=console.notify)
    service = SyncService.from_config(config, engine)
    if no_delay:
        service.startup_delay = 0

    console.print_info(f"Watching (every {config.sync.poll_interval:g}s). Press Ctrl+C to stop.")
    try:
        asyncio.run(_watch(service))
    except KeyboardInterrupt:
        pass
    console.print_info("Stopped")


@cli.command()
@click.pass_context
def instances(ctx: click.Context) -> None:
    """List running extsync instances."""
    console = create_console()
    config = _load_config_or_exit(ctx, console)
    registry = InstanceRegistry(Path(config.instance.registry_file))
    console.print_instances(registry.list_instances())


# Config commands


@cli.group()
def config() -> None:
    """Manage the configuration file."""


@config.command("init")
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing configuration")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Create a default configuration file."""
    console = create_console()
    path = _config_path(ctx)

    if force and path.exists():
        path.unlink()

    path, created = ensure_config_exists(path)
    if created:
        console.print_success(f"Created configuration: {path}")
        console.print_info("Edit remote.path before running 'extsync sync'.")
    else:
        console.print_warning(f"Configuration already exists: {path} (use --force to overwrite)")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration."""
    console = create_console()
    cfg = _load_config_or_exit(ctx, console)
    console.print_config_summary(
        str(_config_path(ctx)),
        remote=f"{cfg.remote.backend.value}: {cfg.remote.path}",
        editor=f"{cfg.editor.name} ({cfg.editor.get_settings_dir()})",
    )
    content = yaml.dump(cfg.model_dump(mode="json"), default_flow_style=False, sort_keys=False, allow_unicode=True)
    console.print(Syntax(content, "yaml", background_color="default"))


@config.command("validate")
@click.pass_context
def config_validate(ctx: click.Context) -> None:
    """Validate the configuration file."""
    console = create_console()
    path = _config_path(ctx)
    valid, errors = validate_config_file(path)

    if valid:
        console.print_success(f"Configuration is valid: {path}")
        return

    console.print_error(f"Configuration is invalid: {path}")
    for error in errors:
        console.print(f"  • {error}")
    sys.exit(1)


@config.command("path")
@click.pass_context
def config_path(ctx: click.Context) -> None:
    """Print the configuration file path."""
    click.echo(str(_config_path(ctx)))


# State commands


@cli.group()
def state() -> None:
    """Inspect or reset the local sync state."""


@state.command("show")
@click.pass_context
def state_show(ctx: click.Context) -> None:
    """Show the last synced remote version."""
    console = create_console()
    cfg = _load_config_or_exit(ctx, console)
    manager = StateManager(Path(cfg.state_file))
    console.print_state(manager.state, str(manager.state_path))


@state.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def state_reset(ctx: click.Context, yes: bool) -> None:
    """Forget the last sync.

    The next sync treats this machine as a new instance: it installs the
    remote extensions, applies the remote settings and publishes the
    merged result.
    """
    console = create_console()
    cfg = _load_config_or_exit(ctx, console)

    if not yes and not click.confirm("Reset sync state?", default=False):
        console.print_warning("Cancelled")
        return

    StateManager(Path(cfg.state_file)).reset()
    console.print_success("Sync state reset")


if __name__ == "__main__":
    cli()
