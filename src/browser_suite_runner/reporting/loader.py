"""Loading test programs and selecting their event channel."""

from __future__ import annotations

import importlib.util
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from ..config import BridgeConfig, ChannelConfig
from .channel import EventChannel, SuiteProgram

LOGGER = logging.getLogger(__name__)


class SetupError(RuntimeError):
    """Raised when a run cannot start; reported to the user before exiting."""


def load_program(
    artifact: Path,
    config: ChannelConfig,
    bridge: Optional[BridgeConfig] = None,
) -> SuiteProgram:
    """Import ``artifact`` and build its test program through the entry point.

    The entry point is called as ``main(filter=..., bridge=...)``; ``bridge``
    is the loaded browser configuration, meant to be handed to
    :func:`browser_suite_runner.factory.build_bridge`.
    """

    path = artifact.resolve()
    if not path.is_file():
        raise SetupError(f"Test artifact not found: {artifact}")
    module_name = f"_suite_artifact_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SetupError(f"Cannot load test artifact: {artifact}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        sys.modules.pop(module_name, None)
        raise SetupError(f"Failed to import test artifact {artifact}: {exc}") from exc

    entry_point = getattr(module, config.entry_point, None)
    if not callable(entry_point):
        raise SetupError(
            f"Entry point '{config.entry_point}' is not defined in {artifact}. "
            "Expose a callable returning the test program."
        )
    LOGGER.debug("Building test program from %s:%s", path, config.entry_point)
    try:
        return entry_point(filter=config.filter, bridge=bridge or BridgeConfig())
    except Exception as exc:
        raise SetupError(
            f"Entry point '{config.entry_point}' in {artifact} failed: {exc}"
        ) from exc


def select_channel(program: SuiteProgram, port: Optional[str]) -> EventChannel:
    """Return the channel named by ``port``, or the only channel when unnamed."""

    channels = dict(getattr(program, "channels", None) or {})
    names = sorted(channels)
    if port is None:
        if not names:
            raise SetupError("The test program must expose a channel to send events on")
        if len(names) > 1:
            raise SetupError(
                "The test program exposes several channels; choose one with --port: "
                + ", ".join(names)
            )
        port = names[0]
    if port not in channels:
        raise SetupError(
            f"Channel [{port}] is not among the program channels: " + (", ".join(names) or "none")
        )
    return channels[port]
