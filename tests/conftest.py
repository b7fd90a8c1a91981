"""
Shared pytest fixtures for grantkit tests.

Provides environment isolation and a fake connection recording the
statements an executor runs.
"""

import os
from typing import Generator

import pytest

from tests.fixtures import FakeConnection

GRANTKIT_ENV_PREFIX = "GRANTKIT_"


@pytest.fixture(autouse=True)
def isolate_environment() -> Generator[None, None, None]:
    """
    Autouse fixture that hides GRANTKIT_* variables from unit tests.

    Integration tests read their connection settings before this runs, so
    only the process-wide defaults are affected. Restores the original
    values after the test completes.
    """
    original = {k: v for k, v in os.environ.items() if k.startswith(GRANTKIT_ENV_PREFIX)}
    for key in original:
        if not key.startswith("GRANTKIT_MYSQL_"):
            del os.environ[key]
    yield
    for key in [k for k in os.environ if k.startswith(GRANTKIT_ENV_PREFIX)]:
        del os.environ[key]
    os.environ.update(original)


@pytest.fixture
def mysql8() -> FakeConnection:
    """Fake connection to a MySQL 8 server (roles supported)."""
    return FakeConnection(version="8.0.32")


@pytest.fixture
def mysql57() -> FakeConnection:
    """Fake connection to a MySQL 5.7 server (no roles)."""
    return FakeConnection(version="5.7.44-log")
