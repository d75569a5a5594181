"""Unit tests for the Google search step definitions."""

from unittest.mock import MagicMock

import pytest

from tests.step_defs.google_search_steps import (
    on_google_search_page,
    page_title_contains,
    search_google,
    search_google_for_shared_term,
    search_results_displayed,
)
from tests.unit.mocks import MockWorld


def test_on_google_search_page(world: MockWorld, google_search_page: MagicMock):
    on_google_search_page(world)
    google_search_page.open_page.assert_called_once_with(world)


def test_search_google(world: MockWorld, google_search_page: MagicMock):
    search_google(world, "selenium webdriver")
    google_search_page.perform_search.assert_called_once_with(world, "selenium webdriver")


def test_search_google_for_shared_term(world: MockWorld, google_search_page: MagicMock):
    """Verify the shared search term is resolved and traced."""
    search_google_for_shared_term(world, "default")

    google_search_page.perform_search.assert_called_once_with(world, "pytest-bdd")
    assert world.traced == [("Searching for shared term", "default", "->", "pytest-bdd")]


def test_search_google_for_unknown_shared_term(world: MockWorld, google_search_page: MagicMock):
    with pytest.raises(ValueError, match="Unknown search term: missing"):
        search_google_for_shared_term(world, "missing")
    google_search_page.perform_search.assert_not_called()


def test_page_title_contains(world: MockWorld):
    page_title_contains(world, "selenium")
    world.helpers.assert_title_contains.assert_called_once_with("selenium")


def test_search_results_displayed(world: MockWorld, google_search_page: MagicMock):
    google_search_page.wait_for_results.return_value = [MagicMock()]

    search_results_displayed(world)


def test_search_results_missing(world: MockWorld, google_search_page: MagicMock):
    google_search_page.wait_for_results.return_value = []

    with pytest.raises(AssertionError, match="No search results"):
        search_results_displayed(world)
