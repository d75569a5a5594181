"""End-to-end tests of the pytest-bdd plugin using pytester.

Each test builds a small pytest-bdd project in a temporary directory whose
browser is a custom builder returning a fake WebDriver.
"""

import json
from xml.etree import ElementTree as ET

import pytest

FAKE_BUILDER = """
BUILT = []


class FakeDriver:
    title = "Home page"

    def __init__(self):
        self.visited = []
        self.quit_called = False

    def get(self, url):
        self.visited.append(url)

    def find_element(self, by, value):
        return object()

    def find_elements(self, by, value):
        return []

    def execute_script(self, script, *args):
        return None

    def delete_all_cookies(self):
        pass

    def get_screenshot_as_png(self):
        return b"\\x89PNG fake screenshot"

    def close(self):
        pass

    def quit(self):
        self.quit_called = True


def build_session(capabilities):
    driver = FakeDriver()
    BUILT.append(driver)
    return driver
"""

FEATURE = """
Feature: Search
  Scenario: Passing search
    Given the home page is open
    Then the title contains "Home"

  Scenario: Failing search
    Given the home page is open
    Then the title contains "Checkout"
"""

TEST_MODULE = """
from pytest_bdd import given, parsers, scenarios, then

scenarios("search.feature")


@given("the home page is open")
def home_page(world):
    world.helpers.load_page(world.parameters.get("base_url", "http://localhost/"))


@then(parsers.parse('the title contains "{text}"'))
def title_contains(world, text):
    world.helpers.assert_title_contains(text)
"""


@pytest.fixture
def bdd_project(pytester: pytest.Pytester) -> pytest.Pytester:
    pytester.makepyfile(fake_builder=FAKE_BUILDER, test_search=TEST_MODULE)
    pytester.makefile(".feature", search=FEATURE)
    return pytester


def run(pytester: pytest.Pytester, *args: str):
    return pytester.runpytest("-p", "selenium_bdd.plugin", "--selenium-browser", "fake_builder.py", *args)


def test_run_produces_reports_and_screenshot(bdd_project: pytest.Pytester):
    result = run(bdd_project)

    result.assert_outcomes(passed=1, failed=1)
    reports = bdd_project.path / "reports"
    raw = [json.loads(line) for line in (reports / "results.jsonl").read_text(encoding="utf-8").splitlines()]
    assert [r["status"] for r in raw] == ["passed", "failed"]
    assert raw[1]["feature"] == "Search"
    assert "does not contain 'Checkout'" in raw[1]["error"]
    assert raw[1]["artifact"] and (reports / "screenshots").is_dir()
    assert raw[0]["artifact"] is None

    junit = ET.parse(reports / "junit-report.xml").getroot()
    cases = junit.findall("./testsuite/testcase")
    assert len(cases) == 2
    assert sum(1 for c in cases if c.find("failure") is not None) == 1

    markdown = (reports / "report.md").read_text(encoding="utf-8")
    assert "| 2 | 1 | 1 |" in markdown


def test_all_passing_run_exits_zero(bdd_project: pytest.Pytester):
    result = run(bdd_project, "-k", "passing")

    result.assert_outcomes(passed=1)
    assert result.ret == pytest.ExitCode.OK


def test_command_line_options_override_defaults(bdd_project: pytest.Pytester):
    result = run(
        bdd_project,
        "--reports", "out",
        "--junit", "ci",
        "--no-screenshot",
        "--browser-teardown", "none",
        "--world-parameters", '{"base_url": "http://example.test/"}',
    )

    result.assert_outcomes(passed=1, failed=1)
    raw = (bdd_project.path / "out" / "results.jsonl").read_text(encoding="utf-8")
    assert all(json.loads(line)["artifact"] is None for line in raw.splitlines())
    assert (bdd_project.path / "ci" / "junit-report.xml").is_file()
    assert not (bdd_project.path / "out" / "screenshots").exists()


def test_config_file_is_used(bdd_project: pytest.Pytester):
    bdd_project.makefile(".yaml", **{"selenium-bdd": "browser: fake_builder.py\nreports: from-yaml\n"})

    result = bdd_project.runpytest("-p", "selenium_bdd.plugin", "--selenium-bdd")

    result.assert_outcomes(passed=1, failed=1)
    assert (bdd_project.path / "from-yaml" / "report.md").is_file()


def test_plugin_is_inert_without_flags(bdd_project: pytest.Pytester):
    result = bdd_project.runpytest("-p", "selenium_bdd.plugin")

    result.assert_outcomes(failed=2)
    result.stdout.fnmatch_lines(["*selenium-bdd is not enabled*"])
    assert not (bdd_project.path / "reports").exists()


def test_unknown_browser_aborts_run(bdd_project: pytest.Pytester):
    result = bdd_project.runpytest("-p", "selenium_bdd.plugin", "--selenium-browser", "netscape")

    assert result.ret == pytest.ExitCode.INTERNAL_ERROR


def test_invalid_configuration_aborts_run(bdd_project: pytest.Pytester):
    result = run(bdd_project, "--world-parameters", "not json")

    assert result.ret == pytest.ExitCode.USAGE_ERROR


def test_broken_page_object_aborts_run(bdd_project: pytest.Pytester):
    bdd_project.mkdir("page-objects")
    (bdd_project.path / "page-objects" / "broken.py").write_text("raise RuntimeError('boom')\n", encoding="utf-8")

    result = run(bdd_project)

    assert result.ret == pytest.ExitCode.INTERNAL_ERROR


def test_skipped_scenario_is_left_out_of_reports(bdd_project: pytest.Pytester):
    bdd_project.makefile(".feature", later="Feature: Later\n  Scenario: Not ready yet\n    Given the feature is not ready\n")
    bdd_project.makepyfile(
        test_later="""
import pytest
from pytest_bdd import given, scenarios

scenarios("later.feature")


@given("the feature is not ready")
def not_ready(world):
    pytest.skip("waiting for the new search page")
"""
    )

    result = run(bdd_project, "test_later.py")

    result.assert_outcomes(skipped=1)
    assert result.ret == pytest.ExitCode.OK
    reports = bdd_project.path / "reports"
    assert (reports / "results.jsonl").read_text(encoding="utf-8") == ""
    assert not (reports / "screenshots").exists()
    assert "| 0 | 0 | 0 |" in (reports / "report.md").read_text(encoding="utf-8")
