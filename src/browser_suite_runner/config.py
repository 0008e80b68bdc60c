"""Configuration models for the browser suite runner."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReporterConfig(BaseModel):
    """Settings for terminal reporting."""

    dot: bool = Field(default=False, description="Use the compact dot reporter.")
    screenshots_dir: Path = Path("screenshots")


class ChannelConfig(BaseModel):
    """Settings describing how to reach the test program's event channel."""

    port: Optional[str] = None
    filter: Optional[str] = None
    entry_point: str = Field(default="main")


class BridgeConfig(BaseModel):
    """Settings for the remote browser session."""

    browser: Literal["chromium", "firefox", "webkit"] = "chromium"
    headless: bool = True
    ws_endpoint: Optional[str] = Field(
        default=None,
        description="Connect to an already running browser server instead of launching one.",
    )
    viewport_width: int = 1280
    viewport_height: int = 720
    command_timeout: Optional[float] = Field(
        default=30.0,
        description="Upper bound (in seconds) for a single transport call.",
    )
    screenshot_on_error: bool = True


class RunnerConfig(BaseSettings):
    """Top-level configuration for a test run."""

    model_config = SettingsConfigDict(
        env_prefix="BROWSER_SUITE_RUNNER_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    reporter: ReporterConfig = Field(default_factory=ReporterConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
    bridge: BridgeConfig = Field(default_factory=BridgeConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> RunnerConfig:
    """Load configuration from an optional YAML file, the environment and overrides."""

    data: dict[str, Any] = {}
    if path:
        import yaml

        data = yaml.safe_load(path.read_text()) or {}
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = RunnerConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return RunnerConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value
