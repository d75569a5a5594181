"""Unit test conftest for selenium-bdd.

Overrides the plugin's ``world`` fixture and provides sessions backed by
mock WebDrivers, so the orchestrator and its collaborators can be tested
without a browser.
"""

from pathlib import Path

import pytest

from selenium_bdd.config import RunConfig
from selenium_bdd.orchestrator import Orchestrator
from selenium_bdd.session import SessionManager
from selenium_bdd.world import World
from tests.unit.mocks import MockBuilder


@pytest.fixture
def mock_builder() -> MockBuilder:
    """Session builder returning a fresh MockWebDriver per session."""
    return MockBuilder()


@pytest.fixture
def session_manager(mock_builder: MockBuilder) -> SessionManager:
    return SessionManager(mock_builder)


@pytest.fixture
def world(session_manager: SessionManager) -> World:
    """A World with a short step timeout so wait failures are quick."""
    return World(session_manager, timeout_ms=100)


@pytest.fixture
def run_config(tmp_path: Path) -> RunConfig:
    """Configuration rooted in a temporary project directory."""
    return RunConfig.from_mapping({"browser": "chrome"}, base_dir=tmp_path)


@pytest.fixture
def orchestrator(run_config: RunConfig, session_manager: SessionManager) -> Orchestrator:
    return Orchestrator(run_config, session_manager=session_manager)
