"""Command line interface for browser-suite-runner."""

from __future__ import annotations

import asyncio
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer

from .config import load_config
from .factory import build_pipeline
from .reporting.loader import SetupError, load_program, select_channel
from .reporting.pipeline import ChannelClosedError

app = typer.Typer(help="Browser suite runner entry point")


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("browser-suite-runner"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


@app.command()
def run(
    artifact: Annotated[
        Path,
        typer.Argument(help="Path to the test program file."),
    ],
    filter_: Annotated[
        Optional[str],
        typer.Option("--filter", help="Only run suites matching this name."),
    ] = None,
    port: Annotated[
        Optional[str],
        typer.Option("--port", "-p", help="Name of the event channel to listen on."),
    ] = None,
    dot: Annotated[
        bool,
        typer.Option("--dot", help="Use the compact dot reporter."),
    ] = False,
    screenshots_dir: Annotated[
        Optional[Path],
        typer.Option("--screenshots-dir", help="Directory for captured screenshots."),
    ] = None,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration."),
    ] = None,
    env_file: Annotated[
        Optional[Path],
        typer.Option(
            "--env-file",
            help="Path to an .env file with default configuration values.",
        ),
    ] = None,
) -> None:
    """Run a test program and report its progress."""

    overrides: dict[str, Any] = {}
    if filter_ is not None or port is not None:
        overrides.setdefault("channel", {})
        if filter_ is not None:
            overrides["channel"]["filter"] = filter_
        if port is not None:
            overrides["channel"]["port"] = port
    if dot or screenshots_dir is not None:
        overrides.setdefault("reporter", {})
        if dot:
            overrides["reporter"]["dot"] = True
        if screenshots_dir is not None:
            overrides["reporter"]["screenshots_dir"] = str(screenshots_dir)

    config = load_config(config_path, env_file=env_file, **overrides)

    try:
        program = load_program(artifact, config.channel, config.bridge)
        channel = select_channel(program, config.channel.port)
    except SetupError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    pipeline = build_pipeline(config.reporter)
    try:
        success = asyncio.run(pipeline.run(program, channel))
    except ChannelClosedError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    if not success:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
