"""Test-session options shared by every test package.

``tests/integration`` talks to real services unless a test stubs them. Those
run only with ``--integration``; stubbed ones are marked ``ci_safe`` and run
everywhere.
"""

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="also run integration tests that reach external services",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--integration"):
        return
    skip = pytest.mark.skip(reason="pass --integration to run")
    for item in items:
        if item.get_closest_marker("integration") and not item.get_closest_marker(
            "ci_safe"
        ):
            item.add_marker(skip)
