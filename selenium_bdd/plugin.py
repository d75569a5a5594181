"""pytest plugin wiring pytest-bdd scenarios to the orchestrator.

Enable it from the project's root conftest.py::

    pytest_plugins = ["selenium_bdd.plugin"]

and run with ``--selenium-bdd`` (or ``--selenium-browser`` /
``--selenium-bdd-config``). Without one of those flags the plugin stays inert.

Step definitions receive the World through the ``world`` fixture::

    @when(parsers.parse('I search Google for "{query}"'))
    def search_google(world, query):
        world.helpers.load_page("https://www.google.com")
        world.page.googleSearch.perform_search(world, query)
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Optional

import pytest

from selenium_bdd.config import load_config
from selenium_bdd.exceptions import (
    ConfigError,
    RegistryLoadError,
    SeleniumBddError,
    SessionCreationError,
)
from selenium_bdd.orchestrator import Orchestrator
from selenium_bdd.registry import Registry
from selenium_bdd.world import World

logger = logging.getLogger(__name__)

orchestrator_key = pytest.StashKey[Orchestrator]()
step_failure_key = pytest.StashKey[Optional[str]]()


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("selenium-bdd", "browser session orchestration for pytest-bdd")
    group.addoption(
        "--selenium-bdd",
        action="store_true",
        default=False,
        help="enable the selenium-bdd browser session orchestrator",
    )
    group.addoption(
        "--selenium-bdd-config",
        default=None,
        help="path to a selenium-bdd YAML configuration file (default: selenium-bdd.yaml in rootdir)",
    )
    group.addoption(
        "--selenium-browser",
        default=None,
        help="browser to use: chrome, firefox, headless-chrome, remote or path/to/builder.py[:function]",
    )
    group.addoption("--remote-url", default=None, help="WebDriver endpoint for the remote browser")
    group.addoption(
        "--browser-teardown",
        default=None,
        choices=("always", "clear", "none"),
        help="browser teardown strategy after every scenario (default: always)",
    )
    group.addoption("--page-objects", default=None, help="path to page objects (default: ./page-objects)")
    group.addoption(
        "--shared-objects",
        action="append",
        default=None,
        help="path to shared objects, repeatable; later paths win (default: ./shared-objects)",
    )
    group.addoption("--reports", default=None, help="output path for reports (default: ./reports)")
    group.addoption("--junit", default=None, help="output path for junit-report.xml (default: reports path)")
    group.addoption(
        "--no-screenshot",
        action="store_true",
        default=False,
        help="disable capturing a screenshot when a scenario fails",
    )
    group.addoption("--step-timeout", type=int, default=None, help="default wait timeout in milliseconds")
    group.addoption("--world-parameters", default=None, help="JSON object exposed as world.parameters")
    parser.addini("selenium_bdd_config", "path to the selenium-bdd YAML configuration file", default="")


def _enabled(config: pytest.Config) -> bool:
    return bool(
        config.getoption("selenium_bdd")
        or config.getoption("selenium_bdd_config")
        or config.getoption("selenium_browser")
        or config.getini("selenium_bdd_config")
    )


def _overrides(config: pytest.Config) -> dict[str, Any]:
    world_parameters = None
    raw = config.getoption("world_parameters")
    if raw:
        try:
            world_parameters = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ConfigError(f"--world-parameters is not valid JSON: {e}") from e

    return {
        "browser": config.getoption("selenium_browser"),
        "remote_url": config.getoption("remote_url"),
        "browser_teardown": config.getoption("browser_teardown"),
        "page_objects": config.getoption("page_objects"),
        "shared_objects": config.getoption("shared_objects"),
        "reports": config.getoption("reports"),
        "junit": config.getoption("junit"),
        "screenshots": False if config.getoption("no_screenshot") else None,
        "timeout": config.getoption("step_timeout"),
        "world_parameters": world_parameters,
    }


def get_orchestrator(config: pytest.Config) -> Optional[Orchestrator]:
    return config.stash.get(orchestrator_key, None)


def pytest_sessionstart(session: pytest.Session) -> None:
    config = session.config
    if not _enabled(config):
        return

    config_file = config.getoption("selenium_bdd_config") or config.getini("selenium_bdd_config") or None
    try:
        run_config = load_config(config_file, _overrides(config), base_dir=config.rootpath)
        orchestrator = Orchestrator(run_config)
        orchestrator.before_run()
        config.stash[orchestrator_key] = orchestrator
    except ConfigError as e:
        pytest.exit(f"selenium-bdd configuration error: {e}", returncode=pytest.ExitCode.USAGE_ERROR)
    except (SessionCreationError, RegistryLoadError) as e:
        pytest.exit(f"selenium-bdd: {e}", returncode=pytest.ExitCode.INTERNAL_ERROR)


def pytest_bdd_before_scenario(request: pytest.FixtureRequest, feature: Any, scenario: Any) -> None:
    orchestrator = get_orchestrator(request.config)
    if orchestrator is None:
        return
    request.node.stash[step_failure_key] = None
    try:
        orchestrator.before_scenario(request.node.nodeid, name=scenario.name, feature=feature.name)
    except SessionCreationError as e:
        pytest.exit(f"selenium-bdd: {e}", returncode=pytest.ExitCode.INTERNAL_ERROR)


def _record_failure(request: pytest.FixtureRequest, step: Any, exception: BaseException) -> None:
    if request.node.stash.get(step_failure_key, None) is None:
        request.node.stash[step_failure_key] = f"{step.keyword} {step.name}: {type(exception).__name__}: {exception}"


def pytest_bdd_step_error(request: pytest.FixtureRequest, step: Any, exception: BaseException) -> None:
    _record_failure(request, step, exception)


def pytest_bdd_step_func_lookup_error(request: pytest.FixtureRequest, step: Any, exception: BaseException) -> None:
    _record_failure(request, step, exception)


def pytest_bdd_after_scenario(request: pytest.FixtureRequest, feature: Any, scenario: Any) -> None:
    orchestrator = get_orchestrator(request.config)
    if orchestrator is None or orchestrator.open_scenario_id != request.node.nodeid:
        return
    # pytest-bdd calls this hook from a ``finally`` block, so a step's
    # pytest.skip() is still the exception in flight here.
    in_flight = sys.exc_info()[1]
    if isinstance(in_flight, pytest.skip.Exception):
        orchestrator.skip_scenario(request.node.nodeid, str(in_flight))
        return
    error = request.node.stash.get(step_failure_key, None)
    orchestrator.after_scenario(
        request.node.nodeid,
        passed=error is None,
        error=error,
        attach=lambda path: request.node.user_properties.append(("screenshot", path)),
    )


def pytest_sessionfinish(session: pytest.Session) -> None:
    orchestrator = get_orchestrator(session.config)
    if orchestrator is None:
        return
    try:
        code = orchestrator.after_run()
    except SeleniumBddError as e:
        logger.error("selenium-bdd run teardown failed: %s", e)
        return
    if code != 0 and session.exitstatus == pytest.ExitCode.OK:
        session.exitstatus = pytest.ExitCode.TESTS_FAILED


def pytest_report_header(config: pytest.Config) -> Optional[str]:
    orchestrator = get_orchestrator(config)
    if orchestrator is None:
        return None
    run = orchestrator.config
    return f"selenium-bdd: browser={run.browser}, teardown={run.browser_teardown.value}, reports={run.reports}"


# Fixtures exposed to step definitions


@pytest.fixture
def world(request: pytest.FixtureRequest) -> World:
    """The run's World (driver, page and shared objects, helpers)."""
    orchestrator = get_orchestrator(request.config)
    if orchestrator is None or not orchestrator.started:
        pytest.fail("selenium-bdd is not enabled, run pytest with --selenium-bdd", pytrace=False)
    return orchestrator.world


@pytest.fixture
def driver(world: World) -> Any:
    """The active WebDriver."""
    return world.driver


@pytest.fixture
def page(world: World) -> Registry:
    """Page objects registry."""
    return world.page


@pytest.fixture
def shared(world: World) -> Registry:
    """Shared objects registry."""
    return world.shared


@pytest.fixture
def browser_helpers(world: World) -> Any:
    return world.helpers
