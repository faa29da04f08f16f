"""Configuration commands for the presspipe CLI.

This module manages configuration profiles: creating them, listing and
showing them, switching the active one, deleting them and checking that
the upstream CMS is reachable.
"""

import os
from typing import List, Optional

import typer
from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from ..client import WordPressClient
from ..config import DEFAULT_API_PATH, ENV_API_URL, ENV_TOKEN, ENV_CONFIG_DIR
from ..utils.client_factory import get_client_and_formatter, get_profile
from ..app import handle_exceptions

app = typer.Typer()
console = Console()


@app.command()
@handle_exceptions
def init(
    ctx: typer.Context,
    name: str = typer.Option("default", "--name", help="Profile name"),
    url: Optional[str] = typer.Option(None, "--url", help="CMS site URL"),
    api_path: str = typer.Option(DEFAULT_API_PATH, "--api-path", help="REST API root path"),
    timeout: int = typer.Option(30, "--timeout", help="Request timeout in seconds"),
    categories: Optional[List[str]] = typer.Option(
        None, "--category", help="Allowed category slug (repeatable, default: editorial set)"
    ),
    sequential_taxonomy: bool = typer.Option(
        False, "--sequential-taxonomy", help="Look up the category after the tags instead of alongside"
    ),
    check: bool = typer.Option(False, "--check", help="Test the connection after saving"),
) -> None:
    """Create a configuration profile.

    The first profile created becomes the active one.

    Examples:
        # Interactive setup
        presspipe config init

        # Non-interactive setup
        presspipe config init --name news --url https://news.example.com

        # Restrict the category set
        presspipe config init --name sports --url https://sports.example.com --category sports --category charity
    """
    config_manager = ctx.obj["config_manager"]

    if not url:
        url = Prompt.ask("CMS site URL", default="https://example.com")

    profile = config_manager.create_profile(
        name=name,
        url=url,
        api_path=api_path,
        timeout=timeout,
        categories=categories or None,
        concurrent_taxonomy=not sequential_taxonomy,
    )

    if profile.active:
        console.print(f"[green]Profile '{name}' saved and set as active![/green]")
    else:
        console.print(f"[green]Profile '{name}' saved![/green]")

    if check:
        client = WordPressClient(profile=profile)
        if client.test_connection():
            console.print("[green]✓ Connection successful![/green]")
        else:
            console.print("[yellow]⚠ Connection test failed[/yellow]")


@app.command("list")
@handle_exceptions
def list_profiles(ctx: typer.Context) -> None:
    """List configuration profiles.

    Examples:
        presspipe config list
        presspipe config list --output json
    """
    config_manager = ctx.obj["config_manager"]
    formatter = ctx.obj["output_formatter"]

    profiles = config_manager.list_profiles()
    if not profiles:
        console.print("[yellow]No profiles configured. Run 'presspipe config init' to create one.[/yellow]")
        return

    if formatter.determine_format(ctx.obj["output_format"]) != "table":
        formatter.render(
            {"profiles": profiles, "active_profile": config_manager.get_active_profile()},
            format=ctx.obj["output_format"],
        )
        return

    table = Table(title="Configuration Profiles")
    table.add_column("Name", style="bold")
    table.add_column("URL", style="cyan")
    table.add_column("API Path", style="dim")
    table.add_column("Categories", style="magenta")
    table.add_column("Active", style="yellow")

    for profile in profiles:
        table.add_row(
            profile["name"],
            profile["url"],
            profile["api_path"],
            ", ".join(profile["categories"]),
            "✓" if profile["active"] else "—",
        )

    console.print(table)


@app.command()
@handle_exceptions
def show(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Profile name (default: the one in use)"),
) -> None:
    """Show a profile and the configuration environment.

    Examples:
        presspipe config show
        presspipe config show news --output yaml
    """
    config_manager = ctx.obj["config_manager"]
    formatter = ctx.obj["output_formatter"]

    profile = config_manager.get_profile(name) if name else get_profile(ctx)
    data = profile.model_dump()
    data["api_base"] = profile.api_base
    data["config_file"] = str(config_manager.config_file)
    data["environment"] = {
        ENV_API_URL: os.getenv(ENV_API_URL),
        ENV_TOKEN: "set" if os.getenv(ENV_TOKEN) else None,
        ENV_CONFIG_DIR: os.getenv(ENV_CONFIG_DIR),
    }

    formatter.render(data, format=ctx.obj["output_format"], title=f"Profile {profile.name}")


@app.command()
@handle_exceptions
def use(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile to make active"),
) -> None:
    """Set the active profile.

    Examples:
        presspipe config use staging
    """
    ctx.obj["config_manager"].set_active_profile(name)
    console.print(f"[green]Profile '{name}' is now active![/green]")


@app.command()
@handle_exceptions
def delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile to delete"),
    force: bool = typer.Option(False, "--force", help="Delete without confirmation"),
) -> None:
    """Delete a configuration profile.

    Examples:
        # Delete with confirmation
        presspipe config delete old-site

        # Force delete without confirmation
        presspipe config delete old-site --force
    """
    config_manager = ctx.obj["config_manager"]
    profile = config_manager.get_profile(name)
    was_active = config_manager.get_active_profile() == name

    if not force:
        console.print(f"[yellow]About to delete profile '{profile.name}' ({profile.url})[/yellow]")
        if not typer.confirm(f"Are you sure you want to delete profile '{name}'?"):
            console.print("[yellow]Delete cancelled[/yellow]")
            return

    config_manager.delete_profile(name)
    console.print(f"[green]Profile '{name}' deleted successfully![/green]")

    if was_active:
        console.print("[yellow]Note: no profile is active now; run 'presspipe config use NAME'[/yellow]")


@app.command()
@handle_exceptions
def test(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(None, "--token", help="Bearer token to check as well"),
) -> None:
    """Test the connection to the upstream CMS.

    With a token, the token is checked against the current user endpoint.

    Examples:
        presspipe config test
        presspipe -p staging config test --token "$TOKEN"
    """
    client, _ = get_client_and_formatter(ctx, token=token)
    if client.test_connection():
        who = f" as user {client.token.user_id}" if client.token and client.token.user_id else ""
        console.print(f"[green]✓ Connected to {client.api_base}{who}[/green]")
    else:
        console.print(f"[red]✗ Could not connect to {client.api_base}[/red]")
        raise typer.Exit(1)
