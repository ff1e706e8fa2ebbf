from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, dump_config, load_config
from ..core import ConversionEngine
from ..errors import ConfigurationError
from ..models import ConversionStatus
from ..runner import BatchRunner
from ..settings import get_settings

console = Console()

app = typer.Typer(help="Generate WebP versions of uploaded images")


def _load_config(path: Path | None) -> AppConfig:
    settings = get_settings()
    try:
        config = load_config(path or settings.config_path)
    except ConfigurationError as exc:
        console.print(f"[red]Invalid configuration[/red]: {exc}")
        raise typer.Exit(2) from exc
    if settings.enable_local_api is not None:
        config.runtime.enable_local_api = settings.enable_local_api
    return config


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def generate(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    root: list[Path] | None = typer.Option(None, "--root", help="Scan this directory instead of the configured roots"),
) -> None:
    cfg = _load_config(config)
    runner = BatchRunner(cfg, ConversionEngine(cfg))
    batch_result = runner.run(roots=root or None)
    table = Table(title="WebP generation")
    table.add_column("Source")
    table.add_column("Status")
    table.add_column("Notes")
    for result in batch_result.results:
        if result.status is ConversionStatus.SKIPPED_FRESH:
            continue
        notes = result.reason or ", ".join(result.warnings) or "-"
        table.add_row(str(result.source), result.status.value, notes)
    console.print(table)
    summary = batch_result.summary
    console.print(
        f"Scanned {summary.total} files: {summary.converted} converted, "
        f"{summary.skipped} skipped, {summary.failures} failed."
    )


@app.command()
def convert(
    file: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    result = ConversionEngine(cfg).convert(file)
    if result.status is ConversionStatus.FAILED:
        console.print(f"[red]Conversion failed[/red]: {result.reason}")
        raise typer.Exit(1)
    console.print(f"[green]{result.status.value}[/green]: {result.source} -> {result.target}")
    for warning in result.warnings:
        console.print(f"[yellow]warning[/yellow]: {warning}")


@app.command()
def delete(
    file: Path,
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    ConversionEngine(cfg).on_original_deleted(file)
    console.print(f"Removed derived artifact of {file}")


@app.command("next-run")
def next_run(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    cfg = _load_config(config)
    try:
        when = cfg.schedule.next_run(datetime.now())
    except ConfigurationError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(2) from exc
    console.print(f"{when.isoformat(timespec='seconds')} ({cfg.schedule.recurrence})")


@app.command("show-config")
def show_config(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    console.print_json(dump_config(_load_config(config)))


@app.command()
def serve(config: Path | None = typer.Option(None, "--config", help="Path to config.toml")) -> None:
    import uvicorn

    from api.app import create_app

    cfg = _load_config(config)
    try:
        api = create_app(cfg)
    except RuntimeError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1) from exc
    uvicorn.run(api, host=cfg.api.host, port=cfg.api.port)


if __name__ == "__main__":
    app()
