"""Run pytest with the selenium-bdd plugin enabled.

Usage::

    python -m selenium_bdd tests/ --selenium-browser headless-chrome
"""

import logging
import sys
from typing import Optional, Sequence

import pytest


def main(argv: Optional[Sequence[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
    )
    args = list(sys.argv[1:] if argv is None else argv)
    return int(pytest.main(["-p", "selenium_bdd.plugin", "--selenium-bdd", *args]))


if __name__ == "__main__":
    sys.exit(main())
