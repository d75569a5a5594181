"""Root conftest.py - Enable selenium-bdd and register step definitions for pytest-bdd."""

import importlib
import logging
from pathlib import Path

pytest_plugins = ["pytester", "selenium_bdd.plugin"]

logger = logging.getLogger(__name__)

STEP_DEFS_DIR = Path(__file__).parent / "tests" / "step_defs"


def _register_step_definitions(namespace: dict) -> None:
    """Expose every step definition under tests/step_defs to all test modules.

    pytest-bdd registers steps as fixtures in the module that defines them;
    copying those fixtures into this conftest makes them visible to every
    scenario, whichever test file loads the feature.
    """
    for module_path in sorted(STEP_DEFS_DIR.glob("*_steps.py")):
        module = importlib.import_module(f"tests.step_defs.{module_path.stem}")
        for name, value in vars(module).items():
            if not name.startswith("pytestbdd_"):
                continue
            if name in namespace and namespace[name] is not value:
                logger.warning("Step fixture %s from %s shadows an earlier definition", name, module_path.name)
            namespace[name] = value


_register_step_definitions(globals())
