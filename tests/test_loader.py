from pathlib import Path
from textwrap import dedent

import pytest

from browser_suite_runner.config import BridgeConfig, ChannelConfig
from browser_suite_runner.reporting.channel import EventChannel
from browser_suite_runner.reporting.loader import SetupError, load_program, select_channel

ARTIFACT = dedent(
    """
    from browser_suite_runner.reporting.channel import EventChannel


    class Program:
        def __init__(self, names, filter, bridge):
            self.filter = filter
            self.bridge = bridge
            self.channels = {name: EventChannel() for name in names}

        async def run(self):
            return None


    def main(filter=None, bridge=None):
        return Program({names!r}, filter, bridge)
    """
)


def _write_artifact(tmp_path: Path, names: list[str]) -> Path:
    path = tmp_path / "suite.py"
    path.write_text(ARTIFACT.replace("{names!r}", repr(names)))
    return path


class Program:
    def __init__(self, *names: str) -> None:
        self.channels = {name: EventChannel() for name in names}

    async def run(self) -> None:
        return None


def test_load_program_forwards_filter(tmp_path: Path) -> None:
    artifact = _write_artifact(tmp_path, ["events"])

    program = load_program(artifact, ChannelConfig(filter="Login"))

    assert program.filter == "Login"
    assert list(program.channels) == ["events"]


def test_load_program_passes_bridge_settings(tmp_path: Path) -> None:
    artifact = _write_artifact(tmp_path, ["events"])
    bridge = BridgeConfig(headless=False, command_timeout=5.0)

    program = load_program(artifact, ChannelConfig(), bridge)

    assert program.bridge is bridge


def test_load_program_defaults_bridge_settings(tmp_path: Path) -> None:
    artifact = _write_artifact(tmp_path, ["events"])

    program = load_program(artifact, ChannelConfig())

    assert program.bridge == BridgeConfig()


def test_entry_point_failure_is_setup_error(tmp_path: Path) -> None:
    artifact = tmp_path / "suite.py"
    artifact.write_text("def main():\n    return None\n")

    with pytest.raises(SetupError, match="Entry point 'main'.*failed"):
        load_program(artifact, ChannelConfig())


def test_entry_point_exception_is_setup_error(tmp_path: Path) -> None:
    artifact = tmp_path / "suite.py"
    artifact.write_text(
        "def main(filter=None, bridge=None):\n    raise RuntimeError('no fixtures')\n"
    )

    with pytest.raises(SetupError, match="no fixtures"):
        load_program(artifact, ChannelConfig())


def test_missing_artifact_is_setup_error(tmp_path: Path) -> None:
    with pytest.raises(SetupError, match="not found"):
        load_program(tmp_path / "absent.py", ChannelConfig())


def test_missing_entry_point_is_setup_error(tmp_path: Path) -> None:
    artifact = _write_artifact(tmp_path, ["events"])

    with pytest.raises(SetupError, match="Entry point 'start'"):
        load_program(artifact, ChannelConfig(entry_point="start"))


def test_broken_artifact_is_setup_error(tmp_path: Path) -> None:
    artifact = tmp_path / "broken.py"
    artifact.write_text("raise ImportError('no elm here')\n")

    with pytest.raises(SetupError, match="no elm here"):
        load_program(artifact, ChannelConfig())


def test_single_channel_is_used_by_default():
    program = Program("events")

    assert select_channel(program, None) is program.channels["events"]


def test_named_channel_is_selected():
    program = Program("events", "debug")

    assert select_channel(program, "debug") is program.channels["debug"]


def test_several_channels_require_a_name():
    with pytest.raises(SetupError) as excinfo:
        select_channel(Program("events", "debug"), None)

    assert "debug, events" in str(excinfo.value)


def test_unknown_channel_lists_valid_names():
    with pytest.raises(SetupError) as excinfo:
        select_channel(Program("events"), "logs")

    assert "[logs]" in str(excinfo.value)
    assert "events" in str(excinfo.value)


def test_program_without_channels_is_rejected():
    with pytest.raises(SetupError, match="must expose a channel"):
        select_channel(Program(), None)
