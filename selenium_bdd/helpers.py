"""
Browser Helper Functions

Reusable Selenium operations for step definitions and page objects.
Every wait takes an explicit timeout (defaulting to the run's step timeout)
and only that wait is aborted when it expires.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, List, Optional

from selenium.common.exceptions import (
    NoSuchElementException,
    TimeoutException,
    WebDriverException,
)
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from selenium_bdd.exceptions import SessionCommandError, WaitTimeoutError

if TYPE_CHECKING:
    from selenium_bdd.world import World


# Executed in the page: elements matching a CSS query whose text equals `content`.
FIND_ELEMENTS_CONTAINING_TEXT = """
var query = arguments[0], content = arguments[1];
var txtProp = ('textContent' in document) ? 'textContent' : 'innerText';
var elements = document.querySelectorAll(query);
var results = [];
for (var i = 0; i < elements.length; i++) {
    if (elements[i][txtProp] === content) {
        results.push(elements[i]);
    }
}
return results;
"""

# Executed in the page: clicks matching elements even when they are not visible.
CLICK_ELEMENTS_IN_DOM = """
var query = arguments[0], content = arguments[1];
var txtProp = ('textContent' in document) ? 'textContent' : 'innerText';
var elements = document.querySelectorAll(query);
var clicked = 0;
for (var i = 0; i < elements.length; i++) {
    if (content === null || content === undefined || elements[i][txtProp] === content) {
        elements[i].click();
        clicked++;
    }
}
return clicked;
"""

CLEAR_STORAGE = "window.localStorage.clear(); window.sessionStorage.clear();"


class BrowserHelpers:
    """High-level browser operations bound to the run's World.

    Example usage in step definitions:
        @when(parsers.parse('I click navigation item "{title}"'))
        def click_navigation_item(world, title):
            world.helpers.load_page(world.page.mammothWorkwear.URL)
            world.helpers.click_hidden_element("nav ul li a", title)
    """

    def __init__(self, world: "World") -> None:
        self.world = world

    @property
    def driver(self) -> Any:
        return self.world.driver

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.world.default_timeout if timeout is None else float(timeout)

    def _wait_until(self, condition: Callable[[Any], Any], timeout: Optional[float], description: str) -> Any:
        seconds = self._timeout(timeout)
        try:
            return WebDriverWait(self.driver, seconds).until(condition)
        except TimeoutException as e:
            raise WaitTimeoutError(f"Timed out after {seconds:g}s waiting for {description}") from e
        except WebDriverException as e:
            raise SessionCommandError(f"Browser error while waiting for {description}: {e}") from e

    def _command(self, description: str, func: Callable[[], Any]) -> Any:
        try:
            return func()
        except WebDriverException as e:
            raise SessionCommandError(f"{description} failed: {e}") from e

    def load_page(self, url: str, timeout: Optional[float] = None) -> None:
        """Navigate to a URL and wait until the body element is present.

        Args:
            url: Address to load
            timeout: Seconds to wait for the page, defaults to the step timeout
        """
        self._command(f"Loading {url}", lambda: self.driver.get(url))
        self._wait_until(
            EC.presence_of_element_located((By.CSS_SELECTOR, "body")),
            timeout,
            f"{url} to load",
        )

    def get_attribute_value(self, selector: str, attribute: str) -> str:
        """Return an attribute of the first element matching a CSS selector.

        Returns:
            The attribute value, or an empty string when the element or
            attribute is missing
        """
        try:
            element = self.driver.find_element(By.CSS_SELECTOR, selector)
        except NoSuchElementException:
            return ""
        except WebDriverException as e:
            raise SessionCommandError(f"Finding {selector} failed: {e}") from e
        value = self._command(f"Reading {attribute} of {selector}", lambda: element.get_attribute(attribute))
        return value or ""

    def get_elements_containing_text(self, selector: str, text: str) -> List[Any]:
        """Elements matching a CSS selector whose inner text equals ``text``.

        The elements are not necessarily visible, so interactions may be
        restricted.
        """
        elements = self._command(
            f"Searching {selector} for '{text}'",
            lambda: self.driver.execute_script(FIND_ELEMENTS_CONTAINING_TEXT, selector, text),
        )
        return list(elements or [])

    def get_first_element_containing_text(self, selector: str, text: str) -> Optional[Any]:
        elements = self.get_elements_containing_text(selector, text)
        return elements[0] if elements else None

    def click_hidden_element(self, selector: str, text: Optional[str] = None) -> int:
        """Click elements in the DOM, useful for menus that need a hover first.

        Args:
            selector: CSS selector of candidate elements
            text: Only click elements whose text equals this, all when None

        Returns:
            Number of elements clicked
        """
        clicked = self._command(
            f"Clicking {selector}",
            lambda: self.driver.execute_script(CLICK_ELEMENTS_IN_DOM, selector, text),
        )
        return int(clicked or 0)

    def wait_for_element(self, selector: str, timeout: Optional[float] = None) -> Any:
        return self._wait_until(
            EC.presence_of_element_located((By.CSS_SELECTOR, selector)),
            timeout,
            f"element {selector}",
        )

    def wait_for_elements(self, selector: str, timeout: Optional[float] = None) -> List[Any]:
        return self._wait_until(
            EC.presence_of_all_elements_located((By.CSS_SELECTOR, selector)),
            timeout,
            f"elements {selector}",
        )

    def wait_until_attribute_equals(
        self, selector: str, attribute: str, value: str, timeout: Optional[float] = None
    ) -> None:
        """Wait until an element attribute equals ``value``."""
        self._wait_until(
            lambda d: self._read_attribute(d, selector, attribute) == value,
            timeout,
            f"{selector}[{attribute}] to equal '{value}'",
        )

    def wait_until_attribute_contains(
        self, selector: str, attribute: str, value: str, timeout: Optional[float] = None
    ) -> None:
        self._wait_until(
            lambda d: value in (self._read_attribute(d, selector, attribute) or ""),
            timeout,
            f"{selector}[{attribute}] to contain '{value}'",
        )

    def wait_until_attribute_not_equals(
        self, selector: str, attribute: str, value: str, timeout: Optional[float] = None
    ) -> None:
        self._wait_until(
            lambda d: self._read_attribute(d, selector, attribute) not in (None, value),
            timeout,
            f"{selector}[{attribute}] to change from '{value}'",
        )

    @staticmethod
    def _read_attribute(driver: Any, selector: str, attribute: str) -> Optional[str]:
        try:
            return driver.find_element(By.CSS_SELECTOR, selector).get_attribute(attribute)
        except NoSuchElementException:
            return None

    def clear_cookies_and_storage(self) -> None:
        self._command("Deleting cookies", self.driver.delete_all_cookies)
        self._command("Clearing storage", lambda: self.driver.execute_script(CLEAR_STORAGE))

    # Assertions

    def assert_element_count(self, selector: str, expected: int) -> None:
        elements = self._command(
            f"Finding {selector}", lambda: self.driver.find_elements(By.CSS_SELECTOR, selector)
        )
        actual = len(elements)
        if actual != expected:
            raise AssertionError(f"Expected {expected} elements matching {selector}, found {actual}")

    def assert_title_contains(self, text: str) -> None:
        title = self._command("Reading page title", lambda: self.driver.title)
        if text not in title:
            raise AssertionError(f"Page title '{title}' does not contain '{text}'")
