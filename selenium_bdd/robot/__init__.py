"""Robot Framework adapter."""

from selenium_bdd.robot.library import SeleniumBddLibrary

__all__ = ["SeleniumBddLibrary"]
