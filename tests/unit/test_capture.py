"""Unit tests for failure screenshots."""

import logging
from pathlib import Path

from selenium_bdd.capture import FailureCapture, screenshot_name
from selenium_bdd.results import ScenarioResult, ScenarioStatus
from selenium_bdd.session import SessionManager
from tests.unit.mocks import PNG_BYTES, MockBuilder


def failed_result() -> ScenarioResult:
    return ScenarioResult(
        scenario_id="tests/test_search.py::test_search[google]",
        name="Searching Google shows results",
        status=ScenarioStatus.FAILED,
        error="Timed out",
    )


def test_screenshot_name_is_filesystem_safe():
    assert screenshot_name("Search.Checkout") == "Search.Checkout.png"
    name = screenshot_name("tests/test_search.py::test_search[google]")
    assert name.startswith("tests_test_search.py_test_search_google-")
    assert name.endswith(".png")
    assert screenshot_name("???").startswith("scenario-")


def test_screenshot_names_do_not_collide():
    prefix = "tests/execution/test-all-scenarios.py::test_" + "a_very_long_outline_name_" * 8
    chrome = screenshot_name(prefix + "[chrome]")
    firefox = screenshot_name(prefix + "[firefox]")

    assert chrome != firefox
    assert len(chrome) < 170
    assert screenshot_name("a?b") != screenshot_name("a!b")
    assert screenshot_name(prefix + "[chrome]") == chrome


def test_capture_saves_screenshot_for_failed_scenario(session_manager: SessionManager, tmp_path: Path):
    session_manager.ensure_session()
    capture = FailureCapture(session_manager, tmp_path / "screenshots")

    result = capture.capture(failed_result())

    assert result.artifact is not None
    assert Path(result.artifact).read_bytes() == PNG_BYTES
    assert result.status == ScenarioStatus.FAILED


def test_capture_skips_passed_scenario(session_manager: SessionManager, mock_builder: MockBuilder, tmp_path: Path):
    session_manager.ensure_session()
    passed = ScenarioResult(scenario_id="s1", name="ok", status=ScenarioStatus.PASSED)

    result = FailureCapture(session_manager, tmp_path).capture(passed)

    assert result is passed
    assert mock_builder.last_driver.screenshots_taken == 0


def test_capture_disabled(session_manager: SessionManager, mock_builder: MockBuilder, tmp_path: Path):
    session_manager.ensure_session()

    result = FailureCapture(session_manager, tmp_path, enabled=False).capture(failed_result())

    assert result.artifact is None
    assert mock_builder.last_driver.screenshots_taken == 0


def test_screenshot_failure_keeps_result_failed(
    session_manager: SessionManager, mock_builder: MockBuilder, tmp_path: Path, caplog
):
    """Verify a crashed browser leaves the scenario failed without an artifact."""
    session_manager.ensure_session()
    mock_builder.last_driver.fail_on.add("get_screenshot_as_png")
    original = failed_result()

    with caplog.at_level(logging.ERROR):
        result = FailureCapture(session_manager, tmp_path).capture(original)

    assert result is original
    assert result.status == ScenarioStatus.FAILED
    assert result.artifact is None
    assert "screenshot request failed" in caplog.text


def test_empty_screenshot_is_not_saved(session_manager: SessionManager, mock_builder: MockBuilder, tmp_path: Path):
    session_manager.ensure_session()
    mock_builder.last_driver.screenshot = b""

    result = FailureCapture(session_manager, tmp_path / "screenshots").capture(failed_result())

    assert result.artifact is None
    assert not (tmp_path / "screenshots").exists()


def test_capture_without_session_does_not_create_one(
    session_manager: SessionManager, mock_builder: MockBuilder, tmp_path: Path
):
    result = FailureCapture(session_manager, tmp_path).capture(failed_result())

    assert result.artifact is None
    assert mock_builder.drivers == []
