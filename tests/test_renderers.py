import io

from rich.console import Console

from browser_suite_runner.models import LogSummary, StatusEntry
from browser_suite_runner.reporting.registry import SuiteRegistry
from browser_suite_runner.reporting.render import CompactRenderer, VerboseRenderer
from browser_suite_runner.reporting.summary import SummaryStore


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=100, color_system=None, force_terminal=False), buffer


def _entry(name: str, remaining: int, failed: bool = False, step: str = "") -> StatusEntry:
    return StatusEntry.model_validate(
        {
            "name": name,
            "value": {"total": 3, "remaining": remaining, "failed": failed, "nextStep": step},
        }
    )


def _update(renderer, registry: SuiteRegistry, entry: StatusEntry) -> None:
    renderer.suite_updated(entry, registry.update(entry))


def test_verbose_renderer_advances_by_completed_steps():
    console, _ = _console()
    renderer = VerboseRenderer(console)
    registry = SuiteRegistry()
    renderer.suite_started(registry.register(_entry("Login", 3, step="open")))

    _update(renderer, registry, _entry("Login", 1, step="submit"))
    renderer.stop()

    task = renderer.task_for("Login")
    assert task is not None
    assert task.total == 3
    assert task.completed == 2
    assert task.fields["step"] == "→ submit"


def test_verbose_renderer_recolours_once_and_stays_failed():
    console, _ = _console()
    renderer = VerboseRenderer(console)
    registry = SuiteRegistry()
    renderer.suite_started(registry.register(_entry("Login", 3)))

    _update(renderer, registry, _entry("Login", 1, failed=True))
    _update(renderer, registry, _entry("Login", 0, failed=False))
    renderer.stop()

    task = renderer.task_for("Login")
    assert task.fields["failed"] is True
    assert task.completed == 3


def test_compact_renderer_prints_one_symbol_per_update():
    console, buffer = _console()
    renderer = CompactRenderer(console)
    registry = SuiteRegistry()
    registry.register(_entry("Login", 3))
    registry.register(_entry("Search", 3))

    _update(renderer, registry, _entry("Login", 2))
    _update(renderer, registry, _entry("Search", 2, failed=True))
    _update(renderer, registry, _entry("Login", 1))

    assert buffer.getvalue() == ".F."


def test_compact_renderer_uses_each_entry_failed_flag():
    console, buffer = _console()
    renderer = CompactRenderer(console)
    registry = SuiteRegistry()
    registry.register(_entry("Login", 3))

    _update(renderer, registry, _entry("Login", 2, failed=True))
    _update(renderer, registry, _entry("Login", 1, failed=False))

    assert buffer.getvalue() == "F."
    assert registry.get("Login").failed is True


def test_compact_renderer_prints_entries_the_registry_ignores():
    console, buffer = _console()
    renderer = CompactRenderer(console)
    registry = SuiteRegistry()
    registry.register(_entry("Login", 3))
    registry.finalize("Login")

    _update(renderer, registry, _entry("Login", 2))
    _update(renderer, registry, _entry("Unknown", 2, failed=True))

    assert buffer.getvalue() == ".F"


def test_verbose_renderer_skips_ignored_entries():
    console, _ = _console()
    renderer = VerboseRenderer(console)

    renderer.suite_updated(_entry("Unknown", 1), None)
    renderer.stop()

    assert renderer.task_for("Unknown") is None


def test_summaries_print_in_insertion_order_with_last_write_winning():
    console, buffer = _console()
    renderer = CompactRenderer(console)
    store = SummaryStore()
    store.accumulate(LogSummary(name="Login", output="first attempt", failed=1))
    store.accumulate(LogSummary(name="Search", output="2 passed", failed=0))
    store.accumulate(LogSummary(name="Login", output="1 passed", failed=0))

    for summary in store.drain_for_report():
        renderer.print_summary(summary)

    output = buffer.getvalue()
    assert "first attempt" not in output
    assert output.index("Login") < output.index("1 passed") < output.index("Search")
    assert len(store) == 0


def test_verbose_summary_banner_contains_name_and_output():
    console, buffer = _console()
    renderer = VerboseRenderer(console)

    renderer.print_summary(LogSummary(name="Checkout [eu]", output="3 passed", failed=0))

    output = buffer.getvalue()
    assert "Checkout [eu]" in output
    assert output.index("Checkout [eu]") < output.index("3 passed")
