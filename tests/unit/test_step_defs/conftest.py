"""Unit test conftest for step definitions and page objects.

This conftest overrides the ``world`` fixture from the selenium-bdd plugin
with a mock World, enabling isolated unit testing of step definition and
page object functions without a browser.
"""

from unittest.mock import MagicMock

import pytest

from tests.unit.mocks import MockWorld


@pytest.fixture
def google_search_page() -> MagicMock:
    """Mock of the googleSearch page object module."""
    return MagicMock(name="googleSearch")


@pytest.fixture
def world(google_search_page: MagicMock) -> MockWorld:
    """Mock World with the example page and shared objects registered.

    Provides a clean, isolated World for each unit test.
    """
    return MockWorld(
        page={"googleSearch": google_search_page},
        shared={"searchData": MagicMock(SEARCH_TERMS={"default": "pytest-bdd"})},
        parameters={"base_url": "https://www.google.com"},
    )
