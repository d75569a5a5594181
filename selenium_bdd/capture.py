"""Screenshot capture for failed scenarios."""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path

from selenium_bdd.exceptions import DiagnosticCaptureError
from selenium_bdd.results import ScenarioResult
from selenium_bdd.session import SessionManager

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^0-9A-Za-z._-]+")
MAX_SLUG = 150


def screenshot_name(scenario_id: str) -> str:
    """File name for a scenario's screenshot.

    Ids that had to be sanitised or truncated get a short digest of the full
    id appended, so distinct scenarios never share a file.
    """
    slug = _UNSAFE.sub("_", scenario_id).strip("._")
    if slug == scenario_id and len(slug) <= MAX_SLUG:
        return f"{slug}.png"
    digest = hashlib.sha1(scenario_id.encode("utf-8")).hexdigest()[:10]
    return f"{slug[:MAX_SLUG].rstrip('._') or 'scenario'}-{digest}.png"


class FailureCapture:
    """Attaches a screenshot of the active session to failed results.

    Must run before teardown, while the failing page is still open. It never
    creates a session and never changes a result's status.
    """

    def __init__(self, session_manager: SessionManager, screenshot_dir: Path | str, *, enabled: bool = True) -> None:
        self.session_manager = session_manager
        self.screenshot_dir = Path(screenshot_dir)
        self.enabled = enabled

    def capture(self, result: ScenarioResult) -> ScenarioResult:
        if not self.enabled or result.passed:
            return result
        try:
            artifact = self._snapshot(result.scenario_id)
        except DiagnosticCaptureError as e:
            logger.error("Screenshot for failed scenario '%s' skipped: %s", result.name, e)
            return result
        logger.info("Saved failure screenshot %s", artifact)
        return result.with_artifact(str(artifact))

    def _snapshot(self, scenario_id: str) -> Path:
        session = self.session_manager.current
        if session is None:
            raise DiagnosticCaptureError("no active browser session")

        try:
            png = session.driver.get_screenshot_as_png()
        except Exception as e:  # noqa: BLE001
            raise DiagnosticCaptureError(f"screenshot request failed: {e}") from e
        if not png:
            raise DiagnosticCaptureError("browser returned an empty screenshot")

        path = self.screenshot_dir / screenshot_name(scenario_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(png)
        except OSError as e:
            raise DiagnosticCaptureError(f"cannot write {path}: {e}") from e
        return path
