"""Mock World for unit testing step definitions and page objects."""

from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import MagicMock

from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys

from selenium_bdd.helpers import BrowserHelpers


class MockWorld:
    """Mock of the selenium-bdd World.

    Replaces the ``world`` fixture in step definitions, giving tests
    control over page objects, shared objects and browser helpers without
    a browser.
    """

    by = By
    keys = Keys

    def __init__(
        self,
        page: Optional[dict] = None,
        shared: Optional[dict] = None,
        parameters: Optional[dict] = None,
    ):
        self.page = SimpleNamespace(**(page or {}))
        self.shared = SimpleNamespace(**(shared or {}))
        self.parameters = dict(parameters or {})
        self.helpers = MagicMock(spec=BrowserHelpers, unsafe=True)
        self.traced: list = []

    def trace(self, *values: Any) -> None:
        self.traced.append(values)
