"""Main Typer application entry point for s3-vault CLI."""

from __future__ import annotations

from pathlib import Path

import typer

from s3_vault import __version__
from s3_vault.cli.backup import backup_app
from s3_vault.cli.config_cmd import config_app
from s3_vault.core.config import ensure_dirs, load_config
from s3_vault.core.exceptions import ConfigError
from s3_vault.core.models import LogFormat
from s3_vault.logging import setup_logging_from_config
from s3_vault.providers.credentials import ACCESS_KEY_ENV, SECRET_KEY_ENV

app = typer.Typer(
    name="s3-vault",
    help="Back up archives to S3-compatible storage with your own keys.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

app.add_typer(backup_app, name="backup", help="Backup transfer operations")
app.add_typer(config_app, name="config", help="Configuration management")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"s3-vault {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
        version: bool = typer.Option(
            False,
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
        verbose: bool = typer.Option(
            False,
            "--verbose",
            "-v",
            help="Enable verbose (DEBUG) logging.",
        ),
        log_json: bool = typer.Option(
            False,
            "--log-json",
            help="Output logs in JSON format.",
        ),
) -> None:
    """s3-vault: bring-your-own-key S3 backup transfers."""
    ensure_dirs()
    try:
        logging_config = load_config().logging
    except ConfigError as exc:
        typer.echo(typer.style(f"✗ {exc}", fg=typer.colors.RED, bold=True), err=True)
        raise typer.Exit(code=1) from exc
    if log_json:
        logging_config = logging_config.model_copy(update={"format": LogFormat.JSON})
    setup_logging_from_config(logging_config, verbose=verbose)


# ──────────────────── test-connection command ────────────


@app.command("test-connection")
def test_connection(
        access_key_id: str = typer.Option(
            ..., "--access-key-id", "-k", envvar=ACCESS_KEY_ENV, help="Access key ID."
        ),
        secret_access_key: str = typer.Option(
            ...,
            "--secret-access-key",
            "-s",
            envvar=SECRET_KEY_ENV,
            help="Secret access key.",
            hide_input=True,
        ),
        bucket: str | None = typer.Option(None, "--bucket", "-b", help="Bucket name."),
        region: str | None = typer.Option(None, "--region", "-r", help="Region."),
        endpoint: str | None = typer.Option(
            None, "--endpoint", help="Custom S3-compatible endpoint URL."
        ),
        path_style: bool | None = typer.Option(
            None,
            "--path-style/--virtual-style",
            help="Addressing style for custom endpoints.",
        ),
        config_path: Path | None = typer.Option(
            None, "--config", help="Custom config file location."
        ),
) -> None:
    """Check that the keys can reach and list the bucket."""
    from s3_vault.storage.connection import ConnectionTester

    s3 = load_config(config_path).s3.with_overrides(
        bucket_name=bucket,
        region=region,
        custom_endpoint=endpoint,
        force_path_style=path_style,
    )
    if not s3.is_complete:
        typer.echo(
            typer.style(
                "✗ Bucket name and region are required (--bucket/--region or config).",
                fg=typer.colors.RED,
                bold=True,
            ),
            err=True,
        )
        raise typer.Exit(code=1)

    result = ConnectionTester().test(
        access_key_id,
        secret_access_key,
        s3.bucket_name or "",
        s3.region or "",
        endpoint=s3.custom_endpoint,
        path_style=s3.force_path_style,
    )

    if result.success:
        typer.echo(
            typer.style("✓ Connection successful!", fg=typer.colors.GREEN, bold=True)
        )
        typer.echo(f"  Bucket:   {s3.bucket_name}")
        typer.echo(f"  Region:   {s3.region}")
        typer.echo(f"  Endpoint: {s3.custom_endpoint or 'AWS S3'}")
        return

    typer.echo(
        typer.style(f"✗ Connection failed: {result.error}", fg=typer.colors.RED, bold=True),
        err=True,
    )
    raise typer.Exit(code=1)


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
