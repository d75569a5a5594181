"""Selenium BDD keywords and lifecycle listener for Robot Framework.

The library registers itself as a listener (API v3), so importing it in a
suite is enough to get the browser session, failure screenshots, teardown
policy and reports::

    *** Settings ***
    Library    selenium_bdd.robot.SeleniumBddLibrary    browser=headless-chrome

Test steps reach the browser through the keywords below, or through
``Get Page Object`` for project page objects.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from robot.api.deco import keyword, library
from robot.api.exceptions import FatalError

from selenium_bdd.config import RunConfig, load_config
from selenium_bdd.exceptions import (
    ConfigError,
    RegistryLoadError,
    SeleniumBddError,
    SessionCreationError,
)
from selenium_bdd.orchestrator import Orchestrator
from selenium_bdd.world import World

logger = logging.getLogger(__name__)

FATAL_ERRORS = (ConfigError, SessionCreationError, RegistryLoadError)


def _skipped(result: Any) -> bool:
    return bool(getattr(result, "skipped", False)) or getattr(result, "status", None) == "SKIP"


@library(scope="GLOBAL", auto_keywords=False)
class SeleniumBddLibrary:
    """Browser session orchestration for Robot Framework suites.

    Arguments:
        config_file: Optional selenium-bdd YAML file, relative to the
            working directory
        **overrides: Any configuration key, e.g. ``browser=firefox`` or
            ``browser_teardown=clear``
    """

    ROBOT_LISTENER_API_VERSION = 3
    ROBOT_LIBRARY_DOC_FORMAT = "TEXT"

    def __init__(self, config_file: Optional[str] = None, **overrides: Any) -> None:
        self.ROBOT_LIBRARY_LISTENER = self
        self._config_file = config_file
        self._overrides = overrides
        self._orchestrator: Optional[Orchestrator] = None
        self._fatal: Optional[SeleniumBddError] = None

    @property
    def orchestrator(self) -> Optional[Orchestrator]:
        return self._orchestrator

    def _build_config(self) -> RunConfig:
        return load_config(self._config_file, self._overrides, base_dir=Path.cwd())

    def _start(self) -> None:
        if self._orchestrator is not None or self._fatal is not None:
            return
        try:
            orchestrator = Orchestrator(self._build_config())
            self._orchestrator = orchestrator
            orchestrator.before_run()
        except FATAL_ERRORS as e:
            logger.error("selenium-bdd could not start: %s", e)
            self._fatal = e

    def _world(self) -> World:
        self._start()
        if self._fatal is not None:
            raise FatalError(str(self._fatal))
        return self._orchestrator.world

    # =========================================================================
    # Listener interface
    # =========================================================================

    def start_suite(self, data: Any, result: Any) -> None:
        self._start()

    def start_test(self, data: Any, result: Any) -> None:
        if self._orchestrator is None or self._fatal is not None or _skipped(result):
            return
        try:
            self._orchestrator.before_scenario(
                result.full_name,
                name=result.name,
                feature=data.parent.name,
            )
        except SessionCreationError as e:
            logger.error("selenium-bdd could not start a browser: %s", e)
            self._fatal = e

    def end_test(self, data: Any, result: Any) -> None:
        if self._orchestrator is None or self._fatal is not None:
            return
        if self._orchestrator.open_scenario_id != result.full_name:
            return
        if _skipped(result):
            self._orchestrator.skip_scenario(result.full_name, result.message)
            return

        def attach(path: str) -> None:
            result.message = f"{result.message}\nScreenshot: {path}".strip()

        self._orchestrator.after_scenario(
            result.full_name,
            passed=result.passed,
            error=result.message or None,
            attach=attach,
        )

    def close(self) -> None:
        if self._orchestrator is None:
            return
        code = self._orchestrator.after_run()
        logger.info("selenium-bdd finished with exit code %d", code)

    # =========================================================================
    # Keywords
    # =========================================================================

    @keyword("Load Page")
    def load_page(self, url: str, timeout: Optional[float] = None) -> None:
        """Open ``url`` in the browser and wait for the page body.

        Arguments:
            url: Address to load
            timeout: Seconds to wait, defaults to the step timeout
        """
        self._world().helpers.load_page(url, timeout)

    @keyword("Click Hidden Element")
    def click_hidden_element(self, selector: str, text: Optional[str] = None) -> int:
        """Click elements through the DOM, even when they are not visible.

        Arguments:
            selector: CSS selector
            text: Only click elements containing this text

        Returns:
            Number of elements clicked
        """
        return self._world().helpers.click_hidden_element(selector, text)

    @keyword("Wait Until Attribute Equals")
    def wait_until_attribute_equals(
        self, selector: str, attribute: str, value: str, timeout: Optional[float] = None
    ) -> None:
        """Wait until the first element matching ``selector`` has ``attribute`` == ``value``."""
        self._world().helpers.wait_until_attribute_equals(selector, attribute, value, timeout)

    @keyword("Element Count Should Be")
    def element_count_should_be(self, selector: str, expected: int) -> None:
        self._world().helpers.assert_element_count(selector, int(expected))

    @keyword("Title Should Contain")
    def title_should_contain(self, text: str) -> None:
        self._world().helpers.assert_title_contains(text)

    @keyword("Trace")
    def trace(self, *values: Any) -> None:
        """Log values in a framed block."""
        self._world().trace(*values)

    @keyword("Get Page Object")
    def get_page_object(self, name: str) -> Any:
        """Return a page object module by its registry key.

        Arguments:
            name: Camel-cased key, e.g. ``googleSearch``

        Returns:
            The loaded module
        """
        world = self._world()
        try:
            return world.page[name]
        except KeyError:
            raise AssertionError(f"No page object named '{name}' (available: {', '.join(world.page)})") from None

    @keyword("Get Shared Object")
    def get_shared_object(self, name: str) -> Any:
        world = self._world()
        try:
            return world.shared[name]
        except KeyError:
            raise AssertionError(f"No shared object named '{name}' (available: {', '.join(world.shared)})") from None
