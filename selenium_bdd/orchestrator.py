"""Run lifecycle: the single entry point engine adapters talk to.

Engine adapters (the pytest plugin, the Robot Framework library) translate
their own hooks into four calls::

    orchestrator.before_run()
    for each scenario:
        orchestrator.before_scenario(scenario_id, name=..., feature=...)
        ... steps run against orchestrator.world ...
        orchestrator.after_scenario(scenario_id, passed=..., error=...)
        # or orchestrator.skip_scenario(scenario_id) when the engine skipped it
    exit_code = orchestrator.after_run()
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence

from selenium_bdd.builders import Capabilities, resolve_builder
from selenium_bdd.capture import FailureCapture
from selenium_bdd.config import RunConfig
from selenium_bdd.exceptions import LifecycleError, ReportGenerationError
from selenium_bdd.policy import PolicyDispatcher
from selenium_bdd.registry import RegistryBuilder
from selenium_bdd.reports import ReportArtifact, ReportPipeline
from selenium_bdd.results import (
    RawResultsWriter,
    ScenarioResult,
    ScenarioStatus,
    exit_code_for,
)
from selenium_bdd.session import Session, SessionManager
from selenium_bdd.world import World

logger = logging.getLogger(__name__)


def capabilities_from_config(config: RunConfig) -> Capabilities:
    return Capabilities(
        accept_insecure_certs=True,
        window_size=config.window_size,
        extra=dict(config.capabilities),
    )


class Orchestrator:
    """Owns the session, the object registry, failure capture and reports.

    Collaborators can be injected for testing; by default they are built from
    the configuration in ``before_run``.
    """

    def __init__(
        self,
        config: RunConfig,
        *,
        session_manager: Optional[SessionManager] = None,
        registry_builder: Optional[RegistryBuilder] = None,
        report_pipeline: Optional[ReportPipeline] = None,
    ) -> None:
        self.config = config
        self.session_manager = session_manager
        self.registry_builder = registry_builder or RegistryBuilder(
            config.shared_objects,
            config.page_objects,
            on_error=config.registry_load_errors,
        )
        self.report_pipeline = report_pipeline or ReportPipeline(
            config.raw_results_path,
            config.markdown_report_path,
            config.junit_report_path,
        )
        self.raw_writer = RawResultsWriter(config.raw_results_path)
        self.capture: Optional[FailureCapture] = None
        self.dispatcher: Optional[PolicyDispatcher] = None
        self.report: Optional[ReportArtifact] = None
        self._world: Optional[World] = None
        self._results: list[ScenarioResult] = []
        self._open_scenario: Optional[tuple[str, str, str, str, float]] = None
        self._finished = False

    @property
    def started(self) -> bool:
        return self._world is not None

    @property
    def world(self) -> World:
        if self._world is None:
            raise LifecycleError("The run has not started; before_run() must be called first")
        return self._world

    @property
    def results(self) -> tuple[ScenarioResult, ...]:
        return tuple(self._results)

    @property
    def exit_code(self) -> int:
        return exit_code_for(self._results)

    def before_run(self) -> None:
        """Prepare the run. Fatal errors propagate.

        Raises:
            SessionCreationError: The browser identifier cannot be resolved.
            RegistryLoadError: An object module failed to load.
        """
        if self.started:
            return

        if self.session_manager is None:
            builder = resolve_builder(
                self.config.browser,
                remote_url=self.config.remote_url,
                remote_browser=self.config.remote_browser,
                base_dir=self.config.base_dir,
            )
            self.session_manager = SessionManager(builder, capabilities_from_config(self.config))

        objects = self.registry_builder.build()

        self.capture = FailureCapture(
            self.session_manager,
            self.config.screenshot_dir,
            enabled=self.config.screenshots,
        )
        self.dispatcher = PolicyDispatcher(self.session_manager, self.config.browser_teardown)
        self._world = World(
            self.session_manager,
            objects,
            timeout_ms=self.config.timeout,
            parameters=self.config.world_parameters,
        )

        try:
            self.raw_writer.start()
        except ReportGenerationError as e:
            logger.error("%s", e)
        logger.info(
            "Run started: browser=%s teardown=%s reports=%s",
            self.config.browser, self.config.browser_teardown.value, self.config.reports,
        )

    def before_scenario(self, scenario_id: str, *, name: str = "", feature: str = "") -> Session:
        """Mark a scenario open and make sure a browser session exists."""
        if not self.started:
            raise LifecycleError("before_scenario() called before before_run()")
        if self._finished:
            raise LifecycleError("before_scenario() called after after_run()")
        if self._open_scenario is not None:
            raise LifecycleError(
                f"Scenario '{scenario_id}' started before '{self._open_scenario[0]}' finished"
            )

        started_at = datetime.now(timezone.utc).isoformat()
        self._open_scenario = (scenario_id, name or scenario_id, feature, started_at, time.monotonic())
        logger.debug("Scenario started: %s", scenario_id)
        try:
            return self.session_manager.ensure_session()
        except Exception:
            self._open_scenario = None
            raise

    def after_scenario(
        self,
        scenario_id: str,
        *,
        passed: bool,
        error: Optional[str] = None,
        attach: Optional[Callable[[str], Any]] = None,
    ) -> ScenarioResult:
        """Close a scenario: capture on failure, tear down per policy, record.

        Args:
            scenario_id: Must match the id given to ``before_scenario``.
            passed: Outcome reported by the engine.
            error: Failure message, if any.
            attach: Engine callback receiving the screenshot path.

        Returns:
            The final, immutable result.
        """
        if self._open_scenario is None or self._open_scenario[0] != scenario_id:
            raise LifecycleError(f"after_scenario() for '{scenario_id}' without a matching before_scenario()")

        _, name, feature, started_at, start = self._open_scenario
        result = ScenarioResult(
            scenario_id=scenario_id,
            name=name,
            feature=feature,
            status=ScenarioStatus.PASSED if passed else ScenarioStatus.FAILED,
            error=None if passed else (error or "Scenario failed"),
            started_at=started_at,
            duration=time.monotonic() - start,
        )

        try:
            result = self.capture.capture(result)
            if result.artifact and attach is not None:
                try:
                    attach(result.artifact)
                except Exception as e:  # noqa: BLE001
                    logger.warning("Could not attach screenshot to '%s': %s", name, e)
        finally:
            self.dispatcher.on_scenario_end()
            self._open_scenario = None

        try:
            self.raw_writer.append(result)
        except ReportGenerationError as e:
            logger.error("%s", e)

        self._results.append(result)
        logger.info("Scenario %s: %s", result.status.value, name)
        return result

    def skip_scenario(self, scenario_id: str, reason: str = "") -> None:
        """Close a scenario the engine skipped.

        Skipped scenarios are left out of the results and reports, and no
        screenshot is taken. The teardown policy still applies.
        """
        if self._open_scenario is None or self._open_scenario[0] != scenario_id:
            raise LifecycleError(f"skip_scenario() for '{scenario_id}' without a matching before_scenario()")
        try:
            self.dispatcher.on_scenario_end()
        finally:
            self._open_scenario = None
        logger.info("Scenario skipped: %s%s", scenario_id, f" ({reason})" if reason else "")

    @property
    def open_scenario_id(self) -> Optional[str]:
        return self._open_scenario[0] if self._open_scenario is not None else None

    def after_run(self, results: Optional[Sequence[ScenarioResult]] = None) -> int:
        """Close the browser, generate reports and return the exit code.

        Args:
            results: The engine's full result list. Defaults to the results
                accumulated through ``after_scenario``.
        """
        if self._finished:
            return exit_code_for(results if results is not None else self._results)
        self._finished = True

        if self._open_scenario is not None:
            logger.warning("Run ended while scenario '%s' was still open", self._open_scenario[0])
            self._open_scenario = None

        if self.dispatcher is not None:
            self.dispatcher.on_run_end()
        if self.started:
            self.report = self.report_pipeline.generate()

        final = list(results) if results is not None else self._results
        code = exit_code_for(final)
        logger.info("Run finished with exit code %d", code)
        return code
