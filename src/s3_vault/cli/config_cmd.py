"""CLI config subcommands: bucket settings wizard and path/settings display."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

config_app = typer.Typer(no_args_is_help=True, rich_markup_mode="rich")
console = Console()

_PATH_OPTION = typer.Option(None, "--path", help="Custom config file location.")


@config_app.command("init")
def config_init(path: Path | None = _PATH_OPTION) -> None:
    """Write bucket addressing settings to the config file.

    Keys are not stored; export S3_VAULT_ACCESS_KEY_ID and
    S3_VAULT_SECRET_ACCESS_KEY instead.
    """
    from s3_vault.core.config import CONFIG_FILE, save_config_file
    from s3_vault.core.models import AppConfig, S3Config

    target = path or CONFIG_FILE
    if target.exists() and not typer.confirm(f"Config already exists at {target}. Overwrite?"):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit()

    console.print("[bold]s3-vault bucket setup[/bold]\n")
    bucket_name = typer.prompt("Bucket name")
    region = typer.prompt("Region", default="us-east-1")

    endpoint = typer.prompt("Custom endpoint URL (leave empty for AWS S3)", default="")
    # Addressing style only applies behind a custom endpoint.
    force_path_style = bool(endpoint) and typer.confirm("Use path-style addressing?", default=True)

    config = AppConfig(
        s3=S3Config(
            bucket_name=bucket_name,
            region=region,
            custom_endpoint=endpoint,
            force_path_style=force_path_style,
        ),
    )

    saved_path = save_config_file(config, target)
    console.print(f"\n[green]✓[/green] Config saved to: {saved_path} (mode 600)")


@config_app.command("show")
def config_show(path: Path | None = _PATH_OPTION) -> None:
    """Show the effective settings (config file plus S3_VAULT_* environment)."""
    from s3_vault.core.config import CONFIG_FILE, load_config
    from s3_vault.core.exceptions import ConfigError
    from s3_vault.providers.credentials import ACCESS_KEY_ENV, EnvCredentialProvider

    target = path or CONFIG_FILE
    try:
        config = load_config(target)
    except ConfigError as exc:
        console.print(f"[bold red]✗ {exc}[/bold red]")
        raise typer.Exit(code=1) from exc

    if not target.exists():
        console.print(
            f"[yellow]No config file at {target}; showing environment values only.[/yellow]\n"
            f"Run [bold]s3-vault config init[/bold] to create one.\n"
        )

    s3 = config.s3
    has_keys = EnvCredentialProvider().get_credentials() is not None

    table = Table(title=f"Config: {target}", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Bucket", s3.bucket_name or "[dim]not set[/dim]")
    table.add_row("Region", s3.region or "[dim]not set[/dim]")
    table.add_row("Endpoint", s3.custom_endpoint or "AWS S3")
    table.add_row("Path style", "yes" if s3.force_path_style else "no")
    table.add_row("Credentials", "from environment" if has_keys else f"[red]{ACCESS_KEY_ENV} unset[/red]")
    table.add_row("Log level", config.logging.level)
    table.add_row("Log format", config.logging.format.value)
    console.print(table)


@config_app.command("path")
def config_path() -> None:
    """Show config and data directory paths."""
    from s3_vault.core.config import CONFIG_DIR, CONFIG_FILE, DATA_DIR, DOWNLOAD_DIR, LOG_DIR

    table = Table(title="s3-vault paths", show_header=False)
    table.add_column("Name", style="cyan")
    table.add_column("Path")
    for name, value in (
            ("Config dir", CONFIG_DIR),
            ("Config file", CONFIG_FILE),
            ("Data dir", DATA_DIR),
            ("Logs dir", LOG_DIR),
            ("Downloads dir", DOWNLOAD_DIR),
    ):
        table.add_row(name, str(value))
    console.print(table)
