"""Step definitions for the Google search example feature.

Steps receive the selenium-bdd World through the ``world`` fixture and go
through page objects (``world.page``) and shared objects (``world.shared``)
instead of touching the driver directly.
"""

from pytest_bdd import given, parsers, then, when

from selenium_bdd.world import World


@given("I am on the Google search page")
def on_google_search_page(world: World) -> None:
    """Open the Google start page."""
    world.page.googleSearch.open_page(world)


@when(parsers.parse('I search Google for "{query}"'))
def search_google(world: World, query: str) -> None:
    world.page.googleSearch.perform_search(world, query)


@when(parsers.parse('I search Google for the "{term}" search term'))
def search_google_for_shared_term(world: World, term: str) -> None:
    """Search for a term from the shared search data."""
    terms = world.shared.searchData.SEARCH_TERMS
    if term not in terms:
        raise ValueError(f"Unknown search term: {term}")
    world.trace("Searching for shared term", term, "->", terms[term])
    world.page.googleSearch.perform_search(world, terms[term])


@then(parsers.parse('the page title should contain "{text}"'))
def page_title_contains(world: World, text: str) -> None:
    world.helpers.assert_title_contains(text)


@then("the search results are displayed")
def search_results_displayed(world: World) -> None:
    results = world.page.googleSearch.wait_for_results(world)
    assert results, "No search results displayed"
