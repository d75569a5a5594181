"""Helper script to run pytest with coverage programmatically."""

import sys
from pathlib import Path
import coverage
import pytest

# Add project root to Python path to ensure modules are found
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

# We are interested in the selenium_bdd package
cov = coverage.Coverage(source=["selenium_bdd"])
cov.start()

# Run the unit and plugin integration tests
exit_code = pytest.main(["tests/unit/", "tests/integration/"])

# Stop coverage and generate report
cov.stop()
cov.save()

# Print report to console
cov.report(show_missing=True)
sys.exit(int(exit_code))
