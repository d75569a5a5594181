"""The World: everything step definitions and page objects may touch.

One World is constructed per run by the orchestrator and handed to every step
(``world`` fixture) and page-object function (first argument). It is
read-only; the browser session behind ``driver`` is owned by the
``SessionManager``.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Mapping, Optional

from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.support import expected_conditions
from selenium.webdriver.support.ui import WebDriverWait

from selenium_bdd.config import DEFAULT_TIMEOUT_MS
from selenium_bdd.helpers import BrowserHelpers
from selenium_bdd.registry import ObjectRegistry, Registry
from selenium_bdd.session import Session, SessionManager

logger = logging.getLogger(__name__)


class World:
    """Explicit context for steps and page objects.

    Attributes:
        by: Selenium locator strategies (``world.by.CSS_SELECTOR``)
        until: Selenium expected conditions
        keys: Special keyboard keys
        shared: Shared objects registry
        page: Page objects registry
        parameters: Read-only world parameters from the configuration
        timeout_ms: Default step timeout in milliseconds
        helpers: ``BrowserHelpers`` bound to this world
    """

    by = By
    until = expected_conditions
    keys = Keys

    def __init__(
        self,
        session_manager: SessionManager,
        objects: Optional[ObjectRegistry] = None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> None:
        objects = objects or ObjectRegistry(Registry(name="shared"), Registry(name="page"))
        values = {
            "_session_manager": session_manager,
            "shared": objects.shared,
            "page": objects.page,
            "timeout_ms": int(timeout_ms),
            "parameters": MappingProxyType(dict(parameters or {})),
        }
        for key, value in values.items():
            object.__setattr__(self, key, value)
        object.__setattr__(self, "helpers", BrowserHelpers(self))

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("World is read-only")

    @property
    def session(self) -> Session:
        return self._session_manager.ensure_session()

    @property
    def driver(self) -> Any:
        return self.session.driver

    @property
    def default_timeout(self) -> float:
        """Default wait timeout in seconds."""
        return self.timeout_ms / 1000.0

    def wait(self, timeout: Optional[float] = None) -> WebDriverWait:
        """A WebDriverWait on the active session, in seconds."""
        return WebDriverWait(self.driver, self.default_timeout if timeout is None else timeout)

    def trace(self, *values: Any) -> None:
        """Log values in a framed block that stands out in the run output."""
        message = " ".join(str(v) for v in values)
        logger.info("\n>>>>>\n%s\n<<<<<", message)
