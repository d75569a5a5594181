"""Browser session orchestration for behaviour-driven Selenium tests."""

from selenium_bdd.config import RunConfig, TeardownPolicy, load_config
from selenium_bdd.exceptions import SeleniumBddError
from selenium_bdd.orchestrator import Orchestrator
from selenium_bdd.results import ScenarioResult, ScenarioStatus
from selenium_bdd.world import World

__version__ = "0.1.0"

__all__ = [
    "Orchestrator",
    "RunConfig",
    "ScenarioResult",
    "ScenarioStatus",
    "SeleniumBddError",
    "TeardownPolicy",
    "World",
    "load_config",
]
