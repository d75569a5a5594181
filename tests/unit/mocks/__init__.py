"""Mock classes for unit testing selenium-bdd and the example step definitions."""

from .mock_context import MockWorld
from .mock_driver import PNG_BYTES, MockBuilder, MockElement, MockWebDriver

__all__ = [
    "MockWorld",
    "MockBuilder",
    "MockElement",
    "MockWebDriver",
    "PNG_BYTES",
]
