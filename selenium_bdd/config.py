"""Run configuration.

Values are layered: built-in defaults, then an optional YAML file
(``selenium-bdd.yaml``), then command-line overrides. Relative paths are
resolved against a base directory (the pytest rootdir or the Robot
Framework working directory).
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import yaml

from selenium_bdd.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "selenium-bdd.yaml"
DEFAULT_TIMEOUT_MS = 15000


class TeardownPolicy(str, Enum):
    """What happens to the browser session at every scenario boundary."""

    ALWAYS = "always"
    CLEAR = "clear"
    NONE = "none"

    @classmethod
    def parse(cls, value: Any) -> "TeardownPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ConfigError(
                f"Unknown browser teardown strategy '{value}' (expected one of: {choices})"
            ) from None


REGISTRY_ERROR_MODES = ("abort", "skip")


@dataclass(frozen=True)
class RunConfig:
    """Resolved configuration for one run."""

    browser: str = "chrome"
    browser_teardown: TeardownPolicy = TeardownPolicy.ALWAYS
    page_objects: Path = Path("page-objects")
    shared_objects: tuple[Path, ...] = (Path("shared-objects"),)
    reports: Path = Path("reports")
    junit: Optional[Path] = None
    screenshots: bool = True
    timeout: int = DEFAULT_TIMEOUT_MS
    world_parameters: dict[str, Any] = field(default_factory=dict)
    remote_url: Optional[str] = None
    remote_browser: str = "chrome"
    window_size: Optional[tuple[int, int]] = None
    capabilities: dict[str, Any] = field(default_factory=dict)
    registry_load_errors: str = "abort"
    base_dir: Path = Path(".")

    @property
    def junit_dir(self) -> Path:
        return self.junit if self.junit is not None else self.reports

    @property
    def raw_results_path(self) -> Path:
        return self.reports / "results.jsonl"

    @property
    def markdown_report_path(self) -> Path:
        return self.reports / "report.md"

    @property
    def junit_report_path(self) -> Path:
        return self.junit_dir / "junit-report.xml"

    @property
    def screenshot_dir(self) -> Path:
        return self.reports / "screenshots"

    @classmethod
    def from_mapping(cls, values: dict[str, Any], base_dir: Path | str = ".") -> "RunConfig":
        """Build a config from plain values (YAML content or CLI overrides).

        Args:
            values: Keys named after the ``RunConfig`` fields. ``None`` values
                are ignored so unset command-line options keep the default.
            base_dir: Directory relative paths are resolved against.

        Returns:
            A validated, fully resolved ``RunConfig``.

        Raises:
            ConfigError: On unknown keys or invalid values.
        """
        merged: dict[str, Any] = {
            "page_objects": "page-objects",
            "shared_objects": ["shared-objects"],
            "reports": "reports",
        }
        merged.update({k: v for k, v in values.items() if v is not None})
        return cls(base_dir=Path(base_dir)).with_overrides(merged)

    def with_overrides(self, values: dict[str, Any]) -> "RunConfig":
        known = {f.name for f in dataclasses.fields(self)} - {"base_dir"}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(unknown)}")

        changes = {k: v for k, v in values.items() if v is not None}
        base = self.base_dir
        converted: dict[str, Any] = {}
        for key, value in changes.items():
            converted[key] = _convert(key, value, base)
        return dataclasses.replace(self, **converted)


def _resolve(base: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    return path if path.is_absolute() else (base / path)


def _convert(key: str, value: Any, base: Path) -> Any:
    if key == "browser_teardown":
        return TeardownPolicy.parse(value)
    if key in ("page_objects", "reports", "junit"):
        return _resolve(base, value)
    if key == "shared_objects":
        if isinstance(value, (str, Path)):
            value = [value]
        return tuple(_resolve(base, item) for item in value)
    if key == "screenshots":
        return bool(value)
    if key == "timeout":
        try:
            timeout = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Step timeout must be an integer number of milliseconds, got {value!r}") from None
        if timeout <= 0:
            raise ConfigError(f"Step timeout must be positive, got {timeout}")
        return timeout
    if key in ("world_parameters", "capabilities"):
        if not isinstance(value, dict):
            raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
        return dict(value)
    if key == "window_size":
        try:
            width, height = (int(v) for v in value)
        except (TypeError, ValueError):
            raise ConfigError(f"window_size must be [width, height], got {value!r}") from None
        return (width, height)
    if key == "registry_load_errors":
        if value not in REGISTRY_ERROR_MODES:
            raise ConfigError(
                f"registry_load_errors must be one of {', '.join(REGISTRY_ERROR_MODES)}, got {value!r}"
            )
        return value
    if key in ("browser", "remote_url", "remote_browser"):
        return str(value)
    return value


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a dict.

    An empty file yields an empty dict.
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return content


def load_config(
    config_file: Path | str | None = None,
    overrides: Optional[dict[str, Any]] = None,
    base_dir: Path | str = ".",
) -> RunConfig:
    """Resolve the run configuration.

    Args:
        config_file: Explicit YAML file. When ``None``, ``selenium-bdd.yaml``
            in ``base_dir`` is used if it exists.
        overrides: Command-line values applied on top of the file.
        base_dir: Directory relative paths are resolved against.

    Returns:
        The resolved ``RunConfig``.
    """
    base = Path(base_dir)
    if config_file is None:
        candidate = base / CONFIG_FILE_NAME
        config_path = candidate if candidate.is_file() else None
    else:
        config_path = _resolve(base, config_file)
        if not config_path.is_file():
            raise ConfigError(f"Configuration file not found: {config_path}")

    values: dict[str, Any] = {}
    if config_path is not None:
        logger.debug("Loading configuration from %s", config_path)
        values = read_config_file(config_path)

    config = RunConfig.from_mapping(values, base_dir=base)
    if overrides:
        config = config.with_overrides(overrides)
    return config
