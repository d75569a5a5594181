"""Session builders: one per supported browser backend.

Each builder turns a ``Capabilities`` value into a live WebDriver with the
baseline configuration applied (window sizing, certificate leniency and, where
relevant, headless and log-level flags). A browser identifier that matches no
built-in builder is treated as the path of a Python file exposing a builder
function::

    # my_builder.py
    def build_session(capabilities):
        options = webdriver.EdgeOptions()
        options.accept_insecure_certs = capabilities.accept_insecure_certs
        return webdriver.Edge(options=options)

    --selenium-browser my_builder.py            # uses build_session()
    --selenium-browser my_builder.py:make_edge  # uses make_edge()
"""

from __future__ import annotations

import importlib.util
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from selenium_bdd.exceptions import SessionCreationError

logger = logging.getLogger(__name__)

DEFAULT_HEADLESS_WINDOW = (1920, 1080)
CUSTOM_BUILDER_FUNCTION = "build_session"


@dataclass(frozen=True)
class Capabilities:
    """Baseline capability configuration handed to every builder."""

    accept_insecure_certs: bool = True
    window_size: Optional[tuple[int, int]] = None
    headless: bool = False
    log_level: int = 1
    extra: dict[str, Any] = field(default_factory=dict)


class SessionBuilder(ABC):
    """Creates a WebDriver for one browser backend."""

    name: str = ""

    @abstractmethod
    def build(self, capabilities: Capabilities) -> Any:
        """Start a browser and return its WebDriver."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


def _apply_extra(options: Any, capabilities: Capabilities) -> None:
    options.accept_insecure_certs = capabilities.accept_insecure_certs
    for key, value in capabilities.extra.items():
        options.set_capability(key, value)


def _chrome_options(capabilities: Capabilities) -> webdriver.ChromeOptions:
    options = webdriver.ChromeOptions()
    if capabilities.headless:
        width, height = capabilities.window_size or DEFAULT_HEADLESS_WINDOW
        options.add_argument("--headless=new")
        options.add_argument("--disable-gpu")
        options.add_argument("--disable-extensions")
        options.add_argument(f"--log-level={capabilities.log_level}")
        options.add_argument(f"--window-size={width},{height}")
        options.add_experimental_option("excludeSwitches", ["enable-logging"])
    elif capabilities.window_size:
        width, height = capabilities.window_size
        options.add_argument(f"--window-size={width},{height}")
    else:
        options.add_argument("--start-maximized")
    _apply_extra(options, capabilities)
    return options


def _firefox_options(capabilities: Capabilities) -> webdriver.FirefoxOptions:
    options = webdriver.FirefoxOptions()
    if capabilities.headless:
        options.add_argument("-headless")
    if capabilities.window_size:
        width, height = capabilities.window_size
        options.add_argument(f"--width={width}")
        options.add_argument(f"--height={height}")
    _apply_extra(options, capabilities)
    return options


def _maximize(driver: Any) -> None:
    try:
        driver.maximize_window()
    except WebDriverException as e:
        logger.warning("Could not maximize browser window: %s", e)


class ChromeBuilder(SessionBuilder):
    name = "chrome"

    def build(self, capabilities: Capabilities) -> Any:
        return webdriver.Chrome(options=_chrome_options(capabilities))


class HeadlessChromeBuilder(SessionBuilder):
    name = "headless-chrome"

    def build(self, capabilities: Capabilities) -> Any:
        headless = Capabilities(
            accept_insecure_certs=capabilities.accept_insecure_certs,
            window_size=capabilities.window_size,
            headless=True,
            log_level=capabilities.log_level,
            extra=capabilities.extra,
        )
        return webdriver.Chrome(options=_chrome_options(headless))


class FirefoxBuilder(SessionBuilder):
    name = "firefox"

    def build(self, capabilities: Capabilities) -> Any:
        driver = webdriver.Firefox(options=_firefox_options(capabilities))
        if not capabilities.window_size and not capabilities.headless:
            _maximize(driver)
        return driver


class RemoteBuilder(SessionBuilder):
    """Connects to a Selenium Grid or any remote WebDriver endpoint."""

    name = "remote"

    def __init__(self, remote_url: str, remote_browser: str = "chrome") -> None:
        self.remote_url = remote_url
        self.remote_browser = remote_browser

    def build(self, capabilities: Capabilities) -> Any:
        if self.remote_browser == "firefox":
            options = _firefox_options(capabilities)
        else:
            options = _chrome_options(capabilities)
        return webdriver.Remote(command_executor=self.remote_url, options=options)


class CustomBuilder(SessionBuilder):
    """Delegates to a user-supplied builder function."""

    name = "custom"

    def __init__(self, function: Callable[[Capabilities], Any], source: str) -> None:
        self.function = function
        self.source = source

    def build(self, capabilities: Capabilities) -> Any:
        driver = self.function(capabilities)
        if driver is None:
            raise SessionCreationError(f"Custom builder {self.source} returned no session")
        return driver

    def __repr__(self) -> str:
        return f"CustomBuilder({self.source!r})"


BUILT_IN_BUILDERS: dict[str, Callable[[], SessionBuilder]] = {
    "chrome": ChromeBuilder,
    "firefox": FirefoxBuilder,
    "headless-chrome": HeadlessChromeBuilder,
    "headless": HeadlessChromeBuilder,
    "chrome-headless": HeadlessChromeBuilder,
}


def load_custom_builder(reference: str, base_dir: Path | str = ".") -> CustomBuilder:
    """Load a builder function from ``path/to/file.py[:function]``.

    Raises:
        SessionCreationError: If the file does not exist, fails to import, or
            does not define a callable builder function.
    """
    path_part, _, function_name = reference.partition(":")
    if not function_name or "/" in function_name or "\\" in function_name:
        # Windows drive letters also contain a colon.
        path_part, function_name = reference, CUSTOM_BUILDER_FUNCTION

    path = Path(path_part).expanduser()
    if not path.is_absolute():
        path = Path(base_dir) / path
    if not path.is_file():
        raise SessionCreationError(
            f"Browser '{reference}' is not a built-in browser and {path} is not a file"
        )

    module_name = f"_selenium_bdd_builder_{path.stem.replace('-', '_')}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SessionCreationError(f"Cannot load custom builder from {path}")
    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:  # noqa: BLE001
        raise SessionCreationError(f"Error importing custom builder {path}: {e}") from e

    function = getattr(module, function_name, None)
    if not callable(function):
        raise SessionCreationError(
            f"Custom builder {path} does not define a callable '{function_name}'"
        )
    logger.debug("Loaded custom session builder %s:%s", path, function_name)
    return CustomBuilder(function, f"{path}:{function_name}")


def resolve_builder(
    browser: str,
    *,
    remote_url: Optional[str] = None,
    remote_browser: str = "chrome",
    base_dir: Path | str = ".",
) -> SessionBuilder:
    """Select the session builder for a browser identifier.

    Args:
        browser: Built-in name (``chrome``, ``firefox``, ``headless-chrome``,
            ``remote``) or path to a custom builder file.
        remote_url: WebDriver endpoint, required for ``remote``.
        remote_browser: Options flavour used by the remote builder.
        base_dir: Directory a relative custom builder path is resolved against.

    Returns:
        The builder to use for every session of the run.

    Raises:
        SessionCreationError: If the identifier cannot be resolved.
    """
    key = (browser or "").strip()
    if not key:
        raise SessionCreationError("No browser configured")

    lowered = key.lower()
    if lowered == "remote":
        if not remote_url:
            raise SessionCreationError("The remote browser requires a remote_url")
        return RemoteBuilder(remote_url, remote_browser)
    if lowered in BUILT_IN_BUILDERS:
        return BUILT_IN_BUILDERS[lowered]()
    return load_custom_builder(key, base_dir)
