"""Applies the configured teardown policy at scenario and run boundaries."""

from __future__ import annotations

import logging

from selenium_bdd.config import TeardownPolicy
from selenium_bdd.session import SessionManager

logger = logging.getLogger(__name__)


class PolicyDispatcher:
    """Runs the session teardown for each boundary.

    The per-scenario policy is fixed for the run. At run end the session is
    always closed, whatever the policy, so no browser outlives the process.
    """

    def __init__(self, session_manager: SessionManager, policy: TeardownPolicy) -> None:
        self.session_manager = session_manager
        self.policy = TeardownPolicy.parse(policy)

    def on_scenario_end(self) -> None:
        logger.debug("Applying '%s' teardown after scenario", self.policy.value)
        self.session_manager.teardown(self.policy)

    def on_run_end(self) -> None:
        self.session_manager.teardown(TeardownPolicy.ALWAYS)
