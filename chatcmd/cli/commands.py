"""
chatcmd CLI

- Config bootstrap and status
- Command listing for an application factory
- Interactive console routing through the real router
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Final, Optional

import typer
from rich.console import Console
from rich.table import Table

from chatcmd import __logo__, __version__


# ============================================================================
# CLI App
# ============================================================================

APP_NAME: Final[str] = "chatcmd"
DEFAULT_APP: Final[str] = "chatcmd.cli.demo:build_app"

app = typer.Typer(
    name=APP_NAME,
    help=f"{__logo__} chatcmd - chat command routing",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} chatcmd v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """chatcmd - chat command routing."""
    pass


# ============================================================================
# Helpers
# ============================================================================

def _load(config_path: Optional[Path]):
    from chatcmd.config.loader import load_config
    from chatcmd.utils.helpers import configure_logging

    config = load_config(config_path)
    configure_logging(config.logging)
    return config


def _make_router(app_path: str, config):
    """
    Resolve an application factory and build its router.

    The target is either an EventRouter or a callable taking the Config.
    """
    from chatcmd.router.service import EventRouter
    from chatcmd.utils.helpers import import_object

    try:
        target = import_object(app_path)
    except (ValueError, ImportError, AttributeError) as e:
        console.print(f"[red]Error: cannot load application {app_path}: {e}[/red]")
        raise typer.Exit(1)

    router = target if isinstance(target, EventRouter) else target(config)
    if not isinstance(router, EventRouter):
        console.print(f"[red]Error: {app_path} did not produce an EventRouter[/red]")
        raise typer.Exit(1)
    return router


# ============================================================================
# Init / Status
# ============================================================================


@app.command()
def init(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
    force: bool = typer.Option(False, "--force", "-f"),
):
    """Write a default configuration file."""

    from chatcmd.config.loader import get_config_path, save_config
    from chatcmd.config.schema import Config

    path = config_path or get_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        raise typer.Exit()

    save_config(Config(), path)
    console.print(f"[green]✓[/green] Created config at {path}")


@app.command()
def status(
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
):
    """Show effective configuration."""

    from chatcmd.config.loader import get_config_path

    path = config_path or get_config_path()
    config = _load(config_path)

    console.print(f"{__logo__} chatcmd Status\n")
    console.print(f"Config: {path} {'[green]✓[/green]' if path.exists() else '[dim]defaults[/dim]'}")
    console.print(f"Routing: {'[green]enabled[/green]' if config.router.enabled else '[red]disabled[/red]'}")
    console.print(f"Bot username: {config.router.bot_username or '[dim]not set[/dim]'}")
    console.print(f"Notification queue: {config.bus.queue_size or 'unbounded'}")
    console.print(f"Log level: {config.logging.level}")


# ============================================================================
# Commands
# ============================================================================


@app.command("commands")
def list_commands(
    app_path: str = typer.Option(DEFAULT_APP, "--app", "-a"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
):
    """List the commands an application registers."""

    router = _make_router(app_path, _load(config_path))

    table = Table(title=f"{__logo__} Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Description")
    table.add_column("Debug", justify="center")

    for descriptor in router.registry.registered_commands:
        table.add_row(
            f"/{descriptor.name}",
            descriptor.description or "",
            "✓" if descriptor.debug_only else "",
        )

    console.print(table)


# ============================================================================
# Console
# ============================================================================


@app.command("console")
def console_session(
    app_path: str = typer.Option(DEFAULT_APP, "--app", "-a"),
    chat_id: int = typer.Option(1, "--chat-id"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c"),
):
    """Route typed lines through the application's router."""

    from chatcmd.channels.console import ConsoleTransport

    router = _make_router(app_path, _load(config_path))
    transport = ConsoleTransport(chat_id=chat_id, console=console)

    router.on_command_not_found(
        lambda e: console.print(f"[yellow]Unknown command /{e.parameters.command_name}[/yellow]")
    )
    router.on_command_exception(
        lambda e: console.print(f"[red]/{e.parameters.command_name} failed: {e.error}[/red]")
    )

    console.print(f"{__logo__} Console mode: /command, plain text replies, !data presses a button (Ctrl+D to exit)\n")

    async def run():
        async with router:
            while True:
                try:
                    line = await asyncio.to_thread(input, "> ")
                except (EOFError, KeyboardInterrupt):
                    break

                line = line.strip()
                if not line:
                    continue

                if line.startswith("!"):
                    await router.process_callback_event(transport, transport.press(line[1:]))
                else:
                    await router.process_message(transport, transport.incoming(line))

                await router.bus.join()

    asyncio.run(run())
    console.print("Goodbye!")


if __name__ == "__main__":
    app()
