from browser_suite_runner.bridge.errors import CallContext, classify
from browser_suite_runner.models import ErrorKind


def test_no_such_element_is_missing_element():
    outcome = classify("NoSuchElement", "not found", CallContext("click", selector="#submit"))

    assert outcome.kind is ErrorKind.MISSING_ELEMENT
    assert outcome.selector == "#submit"
    assert outcome.error_type == "NoSuchElement"


def test_wait_timeout_is_failed_precondition():
    outcome = classify(
        "WaitUntilTimeoutError",
        "still hidden after 500ms",
        CallContext("wait_for_visible", selector="#modal"),
    )

    assert outcome.kind is ErrorKind.FAILED_ELEMENT_PRECONDITION
    assert outcome.selector == "#modal"


def test_runtime_error_with_not_clickable_marker_is_unreachable():
    outcome = classify(
        "RuntimeError",
        "Element is not clickable at point (10, 20). Other element would receive the click",
        CallContext("click", selector="#buy"),
        screenshot=b"png",
    )

    assert outcome.kind is ErrorKind.UNREACHABLE_ELEMENT
    assert outcome.selector == "#buy"
    assert outcome.screenshot == b"png"


def test_unreachable_marker_matches_anywhere_ignoring_case():
    outcome = classify(
        "RuntimeError",
        "unknown error: ELEMENT NOT INTERACTABLE",
        CallContext("set_value", selector="input"),
    )

    assert outcome.kind is ErrorKind.UNREACHABLE_ELEMENT


def test_runtime_error_without_marker_is_unknown():
    outcome = classify("RuntimeError", "javascript error", CallContext("execute_script"))

    assert outcome.kind is ErrorKind.UNKNOWN_ERROR
    assert outcome.error_type == "RuntimeError"
    assert outcome.message == "javascript error"


def test_navigation_failures_are_connection_errors():
    outcome = classify(
        "RuntimeError",
        "net::ERR_NAME_NOT_RESOLVED",
        CallContext("url", navigation=True),
        screenshot=b"shot",
    )

    assert outcome.kind is ErrorKind.CONNECTION_ERROR
    assert outcome.screenshot == b"shot"
    assert outcome.selector is None


def test_invalid_command_and_session_closed_keep_their_kind():
    invalid = classify("InvalidCommand", "Unknown custom command: < fly >", CallContext("fly"))
    closed = classify("SessionClosed", "no open session", CallContext("click", selector="a"))

    assert invalid.kind is ErrorKind.INVALID_COMMAND
    assert closed.kind is ErrorKind.SESSION_CLOSED


def test_element_kinds_default_selector_to_empty_string():
    outcome = classify("NoSuchElement", "gone", CallContext("frame"))

    assert outcome.selector == ""


def test_unrecognised_types_are_unknown():
    outcome = classify("StaleElementReference", "detached", CallContext("click", selector="a"))

    assert outcome.kind is ErrorKind.UNKNOWN_ERROR
    assert outcome.selector == "a"


def test_classification_is_deterministic():
    context = CallContext("click", selector="#submit")
    results = [classify("NoSuchElement", "missing", context) for _ in range(5)]

    assert all(outcome == results[0] for outcome in results)
