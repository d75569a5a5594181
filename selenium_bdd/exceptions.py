"""Error taxonomy for the browser session orchestrator.

Only ``ConfigError``, ``SessionCreationError`` and ``RegistryLoadError`` are
fatal. Everything else is logged by the orchestrator and the run continues.
"""


class SeleniumBddError(Exception):
    """Base class for all orchestrator errors."""


class ConfigError(SeleniumBddError):
    """Invalid or unreadable run configuration."""


class SessionCreationError(SeleniumBddError):
    """Browser identifier or custom builder could not produce a session."""


class SessionStateError(SeleniumBddError):
    """A session transition was entered while another was in progress."""


class SessionCommandError(SeleniumBddError):
    """A round-trip with the browser session failed during a step."""


class WaitTimeoutError(SessionCommandError):
    """A wait-for-condition expired. Only the wait is aborted."""


class DiagnosticCaptureError(SeleniumBddError):
    """A failure screenshot could not be taken or stored."""


class RegistryLoadError(SeleniumBddError):
    """A module in a page-object or shared-object directory failed to load."""


class ReportGenerationError(SeleniumBddError):
    """Raw results were malformed or a report could not be written."""


class LifecycleError(SeleniumBddError):
    """Lifecycle notifications arrived out of order."""
