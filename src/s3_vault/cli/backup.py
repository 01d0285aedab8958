"""CLI backup subcommands: upload, list, download, delete."""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from s3_vault.core.exceptions import S3BackupError
from s3_vault.core.models import TransferProgress
from s3_vault.storage.progress import ProgressCallback
from s3_vault.storage.service import S3BackupService

backup_app = typer.Typer(no_args_is_help=True, rich_markup_mode="rich")
console = Console()
err_console = Console(stderr=True)

_CONFIG_OPTION = typer.Option(None, "--config", help="Custom config file location.")
_BUCKET_OPTION = typer.Option(None, "--bucket", "-b", help="Bucket name (overrides config).")
_REGION_OPTION = typer.Option(None, "--region", "-r", help="Region (overrides config).")
_ENDPOINT_OPTION = typer.Option(
    None, "--endpoint", help="Custom S3-compatible endpoint URL (overrides config)."
)
_PATH_STYLE_OPTION = typer.Option(
    None, "--path-style/--virtual-style", help="Addressing style for custom endpoints (overrides config)."
)


def build_service(
        config_path: Path | None = None,
        bucket: str | None = None,
        region: str | None = None,
        endpoint: str | None = None,
        path_style: bool | None = None,
) -> S3BackupService:
    """Wire the service from the config file, env credentials and CLI overrides."""
    from s3_vault.core.config import DOWNLOAD_DIR, load_config
    from s3_vault.providers import (
        EnvCredentialProvider,
        FileConfigurationProvider,
        LocalFileSystem,
    )

    app_config = load_config(config_path)
    return S3BackupService(
        credentials=EnvCredentialProvider(),
        settings=FileConfigurationProvider(
            config_path,
            bucket_name=bucket,
            region=region,
            custom_endpoint=endpoint,
            force_path_style=path_style,
        ),
        files=LocalFileSystem(app_config.download_dir or DOWNLOAD_DIR),
    )


@contextmanager
def _progress_bar(description: str) -> Iterator[ProgressCallback]:
    with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
    ) as progress:
        task = progress.add_task(description, total=100)

        def _update(update: TransferProgress) -> None:
            progress.update(task, completed=update.percentage)

        yield _update


def _fail(exc: S3BackupError) -> typer.Exit:
    err_console.print(f"[bold red]✗ {exc.user_message}[/bold red]")
    if exc.message != exc.user_message:
        err_console.print(f"  [dim]{exc.message}[/dim]")
    return typer.Exit(code=1)


@backup_app.command("upload")
def backup_upload(
        file: Path = typer.Argument(..., help="Local backup archive to upload."),
        config_path: Path | None = _CONFIG_OPTION,
        bucket: str | None = _BUCKET_OPTION,
        region: str | None = _REGION_OPTION,
        endpoint: str | None = _ENDPOINT_OPTION,
        path_style: bool | None = _PATH_STYLE_OPTION,
) -> None:
    """Upload a local backup archive.

    Examples:
        s3-vault backup upload ./settings-backup.json
        s3-vault backup upload ./backup.json --bucket my-backups --region eu-west-1
    """
    service = build_service(config_path, bucket, region, endpoint, path_style)
    try:
        with _progress_bar(f"Uploading {file.name}") as on_progress:
            key = service.upload_backup(file, on_progress)
    except S3BackupError as exc:
        raise _fail(exc) from exc

    console.print(f"[green]✓[/green] Uploaded: {key}")


@backup_app.command("list")
def backup_list(
        config_path: Path | None = _CONFIG_OPTION,
        bucket: str | None = _BUCKET_OPTION,
        region: str | None = _REGION_OPTION,
        endpoint: str | None = _ENDPOINT_OPTION,
        path_style: bool | None = _PATH_STYLE_OPTION,
) -> None:
    """List available backups, newest first."""
    service = build_service(config_path, bucket, region, endpoint, path_style)
    try:
        with console.status("[bold blue]Listing backups..."):
            backups = service.list_backups()
    except S3BackupError as exc:
        raise _fail(exc) from exc

    if not backups:
        console.print("[yellow]No backups found.[/yellow]")
        return

    table = Table(title="Available Backups", show_lines=True)
    table.add_column("Key", style="cyan")
    table.add_column("Size", style="green", justify="right")
    table.add_column("Last Modified", style="magenta")
    table.add_column("Encrypted", justify="center")

    for b in backups:
        table.add_row(
            b.key,
            b.size_human,
            b.last_modified.isoformat(timespec="seconds"),
            "yes" if b.encrypted else "",
        )

    console.print(table)


@backup_app.command("download")
def backup_download(
        key: str = typer.Argument(..., help="Object key of the backup."),
        output: Path | None = typer.Option(
            None, "--output", "-o", help="Copy the downloaded file to this path."
        ),
        config_path: Path | None = _CONFIG_OPTION,
        bucket: str | None = _BUCKET_OPTION,
        region: str | None = _REGION_OPTION,
        endpoint: str | None = _ENDPOINT_OPTION,
        path_style: bool | None = _PATH_STYLE_OPTION,
) -> None:
    """Download a backup to the local download directory."""
    service = build_service(config_path, bucket, region, endpoint, path_style)
    try:
        with _progress_bar(f"Downloading {key}") as on_progress:
            path = service.download_backup(key, on_progress)
    except S3BackupError as exc:
        raise _fail(exc) from exc

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        path = Path(shutil.copy2(path, output))

    console.print(f"[green]✓[/green] Saved: {path}")


@backup_app.command("delete")
def backup_delete(
        key: str = typer.Argument(..., help="Object key of the backup."),
        yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
        config_path: Path | None = _CONFIG_OPTION,
        bucket: str | None = _BUCKET_OPTION,
        region: str | None = _REGION_OPTION,
        endpoint: str | None = _ENDPOINT_OPTION,
        path_style: bool | None = _PATH_STYLE_OPTION,
) -> None:
    """Permanently delete a backup."""
    if not yes and not typer.confirm(f"Delete {key}? This cannot be undone."):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit()

    service = build_service(config_path, bucket, region, endpoint, path_style)
    try:
        service.delete_backup(key)
    except S3BackupError as exc:
        raise _fail(exc) from exc

    console.print(f"[green]✓[/green] Deleted: {key}")
