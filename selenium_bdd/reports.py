"""Report generation from the raw results stream.

Usage::

    pipeline = ReportPipeline(
        raw_path=Path("reports/results.jsonl"),
        markdown_path=Path("reports/report.md"),
        junit_path=Path("reports/junit-report.xml"),
    )
    artifact = pipeline.generate()
    print(artifact.summary)   # ReportSummary(total=4, passed=3, failed=1)

Each output reads the raw file on its own. A failure in one is logged and
leaves the other untouched; ``generate()`` never raises.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Sequence
from xml.etree import ElementTree as ET

from selenium_bdd.exceptions import ReportGenerationError
from selenium_bdd.results import ScenarioResult, read_raw_results

logger = logging.getLogger(__name__)

REPORT_TITLE = "Selenium BDD Test Report"
UNNAMED_FEATURE = "Scenarios"

# Characters XML 1.0 does not allow, even escaped.
_ILLEGAL_XML = re.compile("[^\u0009\u000A\u000D\u0020-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")
_BACKTICKS = re.compile("`+")


@dataclass(frozen=True)
class ReportSummary:
    total: int
    passed: int
    failed: int


@dataclass(frozen=True)
class ReportArtifact:
    """What the pipeline produced. Paths are ``None`` for failed outputs."""

    summary: Optional[ReportSummary]
    markdown_path: Optional[Path]
    junit_path: Optional[Path]


def summarize(results: Sequence[ScenarioResult]) -> ReportSummary:
    passed = sum(1 for r in results if r.passed)
    return ReportSummary(total=len(results), passed=passed, failed=len(results) - passed)


def _group_by_feature(results: Sequence[ScenarioResult]) -> dict[str, list[ScenarioResult]]:
    groups: dict[str, list[ScenarioResult]] = {}
    for result in results:
        groups.setdefault(result.feature or UNNAMED_FEATURE, []).append(result)
    return groups


def _xml_safe(text: str) -> str:
    return _ILLEGAL_XML.sub(lambda m: f"#x{ord(m.group()):02X}", text)


def _inline_code(text: str) -> str:
    """Markdown code span that survives backticks inside ``text``."""
    longest = max((len(run) for run in _BACKTICKS.findall(text)), default=0)
    fence = "`" * (longest + 1)
    if longest:
        return f"{fence} {text} {fence}"
    return f"{fence}{text}{fence}"


def _write(path: Path, content: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ReportGenerationError(f"Cannot write {path}: {e}") from e


class MarkdownReport:
    """Human-readable report."""

    def __init__(self, title: str = REPORT_TITLE) -> None:
        self.title = title

    def render(self, results: Sequence[ScenarioResult], base_dir: Optional[Path] = None) -> str:
        summary = summarize(results)
        generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        verdict = "PASSED" if summary.failed == 0 else "FAILED"

        lines = [
            f"# {self.title}\n",
            f"Generated {generated}. Overall result: **{verdict}**\n",
            "| Total | Passed | Failed |",
            "|------:|-------:|-------:|",
            f"| {summary.total} | {summary.passed} | {summary.failed} |",
        ]

        for feature, scenarios in _group_by_feature(results).items():
            lines.append(f"\n## {feature}\n")
            for result in scenarios:
                mark = "PASS" if result.passed else "FAIL"
                lines.append(f"- **{mark}** {result.name} ({result.duration:.2f}s)")
                if result.error:
                    error = " ".join(result.error.split())
                    lines.append(f"  - Error: {_inline_code(error)}")
                if result.artifact:
                    link = result.artifact
                    if base_dir is not None:
                        try:
                            link = os.path.relpath(result.artifact, base_dir)
                        except ValueError:
                            pass
                    lines.append(f"  - Screenshot: [{Path(result.artifact).name}]({Path(link).as_posix()})")

        failed = [r for r in results if r.failed]
        if failed:
            lines.append("\n## Failed scenarios\n")
            for result in failed:
                lines.append(f"- {_inline_code(result.scenario_id)}")

        return "\n".join(lines) + "\n"

    def write(self, results: Sequence[ScenarioResult], path: Path) -> Path:
        _write(path, self.render(results, base_dir=path.parent))
        return path


class JUnitReport:
    """Machine-readable JUnit XML report for CI ingestion."""

    def __init__(self, suite_name: str = "selenium-bdd") -> None:
        self.suite_name = suite_name

    def build(self, results: Sequence[ScenarioResult]) -> ET.Element:
        summary = summarize(results)
        root = ET.Element(
            "testsuites",
            name=self.suite_name,
            tests=str(summary.total),
            failures=str(summary.failed),
            errors="0",
            time=f"{sum(r.duration for r in results):.3f}",
        )
        for feature, scenarios in _group_by_feature(results).items():
            failures = sum(1 for r in scenarios if r.failed)
            suite = ET.SubElement(
                root,
                "testsuite",
                name=_xml_safe(feature),
                tests=str(len(scenarios)),
                failures=str(failures),
                errors="0",
                skipped="0",
                time=f"{sum(r.duration for r in scenarios):.3f}",
            )
            if scenarios and scenarios[0].started_at:
                suite.set("timestamp", scenarios[0].started_at)
            for result in scenarios:
                case = ET.SubElement(
                    suite,
                    "testcase",
                    classname=_xml_safe(feature),
                    name=_xml_safe(result.name),
                    time=f"{result.duration:.3f}",
                )
                if result.failed:
                    message = _xml_safe((result.error or "Scenario failed").strip())
                    failure = ET.SubElement(case, "failure", message=message.splitlines()[0] if message else "")
                    failure.text = message
                if result.artifact:
                    out = ET.SubElement(case, "system-out")
                    out.text = _xml_safe(f"[[ATTACHMENT|{result.artifact}]]")
        return root

    def render(self, results: Sequence[ScenarioResult]) -> str:
        root = self.build(results)
        ET.indent(root)
        return ET.tostring(root, encoding="utf-8", xml_declaration=True).decode("utf-8") + "\n"

    def write(self, results: Sequence[ScenarioResult], path: Path) -> Path:
        _write(path, self.render(results))
        return path


class ReportPipeline:
    """Turns the raw results file into the summary and both reports."""

    def __init__(
        self,
        raw_path: Path | str,
        markdown_path: Optional[Path | str] = None,
        junit_path: Optional[Path | str] = None,
        *,
        title: str = REPORT_TITLE,
    ) -> None:
        self.raw_path = Path(raw_path)
        self.markdown_path = Path(markdown_path) if markdown_path is not None else None
        self.junit_path = Path(junit_path) if junit_path is not None else None
        self.markdown = MarkdownReport(title)
        self.junit = JUnitReport()

    def _load(self) -> list[ScenarioResult]:
        return read_raw_results(self.raw_path)

    def generate(self) -> ReportArtifact:
        summary = None
        try:
            summary = summarize(self._load())
        except ReportGenerationError as e:
            logger.error("Could not summarize results: %s", e)
        else:
            logger.info(
                "%d scenarios (%d passed, %d failed)", summary.total, summary.passed, summary.failed
            )

        markdown_path = None
        if self.markdown_path is not None:
            try:
                markdown_path = self.markdown.write(self._load(), self.markdown_path)
                logger.info("Test report written to %s", markdown_path)
            except ReportGenerationError as e:
                logger.error("Failed to generate test report: %s", e)

        junit_path = None
        if self.junit_path is not None:
            try:
                junit_path = self.junit.write(self._load(), self.junit_path)
                logger.info("JUnit report written to %s", junit_path)
            except ReportGenerationError as e:
                logger.error("Failed to generate JUnit report: %s", e)

        return ReportArtifact(summary=summary, markdown_path=markdown_path, junit_path=junit_path)
