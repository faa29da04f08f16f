"""Main Typer application for the presspipe CLI.

This module contains the main Typer app instance and registers all command
groups. It provides the entry point for the CLI and handles global options
like profile, debug mode, output formatting and logging.
"""

import logging
import os
import sys
from functools import wraps
from typing import Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install

from . import __version__
from .config import ConfigManager, ENV_API_URL
from .render import OutputFormatter
from .exceptions import PressPipeError, ConfigError
from .utils.exceptions import format_error_for_user

install(show_locals=False)

app = typer.Typer(
    name="presspipe",
    help="Publish author submissions to a headless WordPress-compatible CMS",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)
output_formatter = OutputFormatter(console)


def configure_logging(debug: bool) -> None:
    """Route library logging through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True, show_path=debug)],
        force=True,
    )
    # Keep urllib3's connection chatter out of debug output
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"presspipe {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        "-p",
        help="Configuration profile to use",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format (table, json, yaml)",
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds (overrides the profile)",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """presspipe - publish posts to a headless CMS.

    Examples:
        # Configure a site
        presspipe config init --name news --url https://news.example.com

        # Create a draft with tags and an image
        presspipe posts create --title "Hello" --body "<p>World</p>" --tag News --image https://cdn.example.com/a.jpg

        # Publish an existing post
        presspipe posts update 42 --title "Hello" --body "<p>World</p>" --status publish
    """
    configure_logging(debug)

    try:
        config_manager = ConfigManager()
    except ConfigError as e:
        err_console.print(f"[red]{format_error_for_user(e, debug)}[/red]")
        raise typer.Exit(1)

    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["output_format"] = output_format
    ctx.obj["timeout"] = timeout
    ctx.obj["console"] = console
    ctx.obj["config_manager"] = config_manager
    ctx.obj["output_formatter"] = output_formatter

    try:
        profile_obj = config_manager.resolve_profile(profile)
    except ConfigError as e:
        # An explicitly requested profile must exist; otherwise commands
        # that need one report the missing configuration themselves
        if profile:
            err_console.print(f"[red]Error loading profile '{profile}': {e.message}[/red]")
            raise typer.Exit(1)
        profile_obj = None

    ctx.obj["profile"] = profile_obj

    if debug and profile_obj:
        logging.getLogger(__name__).debug(
            "Using profile %s (%s)%s",
            profile_obj.name,
            profile_obj.api_base,
            f", {ENV_API_URL} override active" if os.getenv(ENV_API_URL) else "",
        )


def handle_exceptions(func):
    """Decorator to handle common exceptions in commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PressPipeError as e:
            ctx = click.get_current_context()
            debug = ctx.obj.get("debug", False) if ctx.obj else False
            err_console.print(f"[red]{format_error_for_user(e, debug)}[/red]")
            if not debug and not isinstance(e, ConfigError):
                err_console.print("[dim]Use --debug for more details[/dim]")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(130)
    return wrapper


def register_commands():
    """Register all command groups with the main app."""
    from .cmds import posts_app, config_app

    app.add_typer(posts_app, name="posts", help="Create and update posts")
    app.add_typer(config_app, name="config", help="Manage configuration")


def cli():
    """Entry point for the CLI."""
    register_commands()

    try:
        app()
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)
