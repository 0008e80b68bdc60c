"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Optional

from rich.console import Console

from .bridge.base import DriverFactory
from .bridge.commands import CommandBridge
from .bridge.playwright_driver import PlaywrightDriverFactory
from .config import BridgeConfig, ReporterConfig
from .reporting.pipeline import ReportingPipeline, RunContext
from .reporting.render import CompactRenderer, Renderer, VerboseRenderer


def build_renderer(config: ReporterConfig, console: Optional[Console] = None) -> Renderer:
    if config.dot:
        return CompactRenderer(console)
    return VerboseRenderer(console)


def build_pipeline(config: ReporterConfig, console: Optional[Console] = None) -> ReportingPipeline:
    context = RunContext.create(build_renderer(config, console), config.screenshots_dir)
    return ReportingPipeline(context)


def build_bridge(
    config: Optional[BridgeConfig] = None,
    factory: Optional[DriverFactory] = None,
) -> CommandBridge:
    """Create a command bridge; test programs use this to drive the browser.

    Programs pass the ``bridge`` settings their entry point received so the
    loaded configuration applies.
    """

    return CommandBridge(factory or PlaywrightDriverFactory(), config or BridgeConfig())
