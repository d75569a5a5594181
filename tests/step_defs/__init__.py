"""Step definitions for the example browser scenarios.

Every ``*_steps.py`` module is registered in the root conftest.py so pytest-bdd
can match its steps from any scenario.
"""
