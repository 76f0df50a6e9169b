" generic fixtures "
import logging

import pytest

from perspace.adapters.proxy import BackendProxy
from perspace.config import Configuration
from perspace.plugins.monitor_workspaces.schema import MONITOR_WORKSPACES_SCHEMA

from .testtools import FakeDesktop


def pytest_configure():
    "Runs once before all"
    from perspace.common import init_logger

    init_logger("/dev/null", force_debug=True)


@pytest.fixture
def test_logger():
    "A logger for the objects requiring one"
    return logging.getLogger("perspace.tests")


@pytest.fixture
def desktop():
    "Two monitors, four workspaces, the first one active"
    return FakeDesktop()


@pytest.fixture
def backend(desktop, test_logger):
    "The fake desktop, behind the proxy the plugins use"
    return BackendProxy(desktop, test_logger)


@pytest.fixture
def workspaces_config(test_logger):
    "An empty monitor_workspaces section (schema defaults apply)"
    return Configuration({}, logger=test_logger, schema=MONITOR_WORKSPACES_SCHEMA)
