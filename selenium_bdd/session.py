"""Ownership of the single browser session of a run.

State machine::

    ABSENT -> CREATING -> ACTIVE -> TEARING_DOWN -> ABSENT   (always)
                          ACTIVE -> ACTIVE                    (clear / none)
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Optional

from selenium_bdd.builders import Capabilities, SessionBuilder
from selenium_bdd.config import TeardownPolicy
from selenium_bdd.exceptions import SessionCreationError, SessionStateError
from selenium_bdd.helpers import CLEAR_STORAGE

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    ABSENT = "absent"
    CREATING = "creating"
    ACTIVE = "active"
    TEARING_DOWN = "tearing_down"


class Session:
    """A live browser handle together with how it was built."""

    def __init__(self, browser: str, capabilities: Capabilities, driver: Any) -> None:
        self.browser = browser
        self.capabilities = capabilities
        self.driver = driver

    def __repr__(self) -> str:
        return f"Session(browser={self.browser!r})"


class SessionManager:
    """Creates, reuses and tears down the browser session.

    Example usage:
        manager = SessionManager(resolve_builder("chrome"), Capabilities())
        session = manager.ensure_session()
        session.driver.get("https://example.org")
        manager.teardown(TeardownPolicy.ALWAYS)
    """

    def __init__(self, builder: SessionBuilder, capabilities: Optional[Capabilities] = None) -> None:
        self.builder = builder
        self.capabilities = capabilities or Capabilities()
        self._state = SessionState.ABSENT
        self._session: Optional[Session] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current(self) -> Optional[Session]:
        """The active session, without creating one."""
        return self._session if self._state == SessionState.ACTIVE else None

    def _enter(self, state: SessionState) -> None:
        if self._state in (SessionState.CREATING, SessionState.TEARING_DOWN):
            raise SessionStateError(
                f"Cannot enter {state.value} while the session is {self._state.value}"
            )
        self._state = state

    def ensure_session(self) -> Session:
        """Return the active session, creating it if absent.

        Raises:
            SessionCreationError: If the builder fails.
            SessionStateError: If called while a transition is in progress.
        """
        if self._state == SessionState.ACTIVE and self._session is not None:
            return self._session

        self._enter(SessionState.CREATING)
        logger.info("Starting %s browser session", self.builder.name)
        try:
            driver = self.builder.build(self.capabilities)
        except SessionCreationError:
            self._state = SessionState.ABSENT
            raise
        except Exception as e:  # noqa: BLE001
            self._state = SessionState.ABSENT
            raise SessionCreationError(f"Failed to start {self.builder!r}: {e}") from e

        self._session = Session(self.builder.name, self.capabilities, driver)
        self._state = SessionState.ACTIVE
        return self._session

    def teardown(self, policy: TeardownPolicy) -> None:
        """Apply a teardown policy. Never raises on driver failures."""
        policy = TeardownPolicy.parse(policy)
        if self._state != SessionState.ACTIVE or self._session is None:
            logger.debug("No active session, skipping '%s' teardown", policy.value)
            return

        if policy == TeardownPolicy.ALWAYS:
            self._quit()
        elif policy == TeardownPolicy.CLEAR:
            self._clear()

    def _quit(self) -> None:
        self._enter(SessionState.TEARING_DOWN)
        session = self._session
        try:
            closed = False
            try:
                session.driver.close()
                closed = True
            except Exception as e:  # noqa: BLE001
                logger.warning("Browser close failed during teardown: %s", e)
            try:
                session.driver.quit()
            except Exception as e:  # noqa: BLE001
                # Closing the last window usually ends the driver session already.
                level = logging.DEBUG if closed else logging.WARNING
                logger.log(level, "Browser quit failed during teardown: %s", e)
        finally:
            self._session = None
            self._state = SessionState.ABSENT
        logger.info("Browser session closed")

    def _clear(self) -> None:
        driver = self._session.driver
        try:
            driver.delete_all_cookies()
            driver.execute_script(CLEAR_STORAGE)
        except Exception as e:  # noqa: BLE001
            logger.warning("Clearing browser state failed: %s", e)
        else:
            logger.debug("Cleared cookies, local storage and session storage")
