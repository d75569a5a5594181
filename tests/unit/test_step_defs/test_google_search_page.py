"""Unit tests for the Google search page object."""

import importlib.util
from pathlib import Path

import pytest

from tests.unit.mocks import MockElement, MockWorld

PAGE_OBJECT = Path(__file__).resolve().parents[2] / "page_objects" / "google_search.py"


@pytest.fixture
def google_search():
    """The page object module, loaded from its file like the registry does."""
    spec = importlib.util.spec_from_file_location("google_search_page_under_test", PAGE_OBJECT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_open_page(world: MockWorld, google_search):
    google_search.open_page(world)

    world.helpers.load_page.assert_called_once_with("https://www.google.com")
    world.helpers.click_hidden_element.assert_called_once_with(google_search.SELECTORS["consent_button"])


def test_perform_search(world: MockWorld, google_search):
    search_input = MockElement()
    world.helpers.wait_for_element.return_value = search_input

    google_search.perform_search(world, "pytest-bdd")

    world.helpers.wait_for_element.assert_called_once_with(google_search.SELECTORS["search_input"])
    assert search_input.cleared
    assert search_input.sent_keys == ["pytest-bdd", world.keys.ENTER]


def test_wait_for_results(world: MockWorld, google_search):
    world.helpers.wait_for_elements.return_value = [MockElement()]

    assert len(google_search.wait_for_results(world)) == 1
