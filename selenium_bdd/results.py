"""Per-scenario results and the raw results stream.

The raw stream is a JSON Lines file with one object per scenario, appended as
each scenario finishes. It is the single source both report generators read.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

from selenium_bdd.exceptions import ReportGenerationError

logger = logging.getLogger(__name__)


class ScenarioStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ScenarioResult:
    """Outcome of one scenario.

    Attributes:
        scenario_id: Unique identifier (pytest node id, Robot long name).
        name: Scenario title.
        feature: Feature (or suite) the scenario belongs to.
        status: Passed or failed.
        error: Failure message, if any.
        artifact: Path of the failure screenshot, if one was captured.
        started_at: ISO-8601 start timestamp.
        duration: Seconds spent in the scenario.
    """

    scenario_id: str
    name: str
    status: ScenarioStatus
    feature: str = ""
    error: Optional[str] = None
    artifact: Optional[str] = None
    started_at: str = dataclasses.field(default_factory=_now_iso)
    duration: float = 0.0

    @property
    def passed(self) -> bool:
        return self.status == ScenarioStatus.PASSED

    @property
    def failed(self) -> bool:
        return self.status == ScenarioStatus.FAILED

    def with_artifact(self, artifact: str) -> "ScenarioResult":
        """Return a copy carrying a diagnostic artifact."""
        if self.artifact is not None:
            raise ValueError(f"Scenario {self.scenario_id} already has an artifact")
        return dataclasses.replace(self, artifact=artifact)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenario_id": self.scenario_id,
            "name": self.name,
            "feature": self.feature,
            "status": self.status.value,
            "error": self.error,
            "artifact": self.artifact,
            "started_at": self.started_at,
            "duration": round(self.duration, 3),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScenarioResult":
        return cls(
            scenario_id=str(data["scenario_id"]),
            name=str(data["name"]),
            feature=str(data.get("feature") or ""),
            status=ScenarioStatus(data["status"]),
            error=data.get("error"),
            artifact=data.get("artifact"),
            started_at=str(data.get("started_at") or ""),
            duration=float(data.get("duration") or 0.0),
        )


class RawResultsWriter:
    """Appends results to the raw JSON Lines file as scenarios finish."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def start(self) -> None:
        """Create the file empty. Called once when a run begins."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text("", encoding="utf-8")
        except OSError as e:
            raise ReportGenerationError(f"Cannot create raw results file {self.path}: {e}") from e

    def append(self, result: ScenarioResult) -> None:
        line = json.dumps(result.to_dict(), ensure_ascii=False)
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()
        except OSError as e:
            raise ReportGenerationError(f"Cannot append to raw results file {self.path}: {e}") from e


def read_raw_results(path: Path | str) -> list[ScenarioResult]:
    """Parse the raw results file.

    Raises:
        ReportGenerationError: If the file is missing, unreadable, or any line
            is truncated or malformed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ReportGenerationError(f"Cannot read raw results {path}: {e}") from e

    results = []
    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            results.append(ScenarioResult.from_dict(json.loads(line)))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise ReportGenerationError(f"Malformed raw result at {path}:{number}: {e}") from e
    return results


def exit_code_for(results: Iterable[ScenarioResult]) -> int:
    """0 if every scenario passed, 1 otherwise."""
    return 0 if all(r.passed for r in results) else 1
