"""
Integration test fixtures for grantkit.

Provides a live MySQL connection, executor fixtures, and cleanup of the
accounts and databases a test creates. Skipped unless GRANTKIT_MYSQL_HOST
is set.
"""

import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Generator, List

import pytest
from mysql.connector import errors as mysql_errors

from grantkit.capabilities import ServerCapabilities, probe_capabilities
from grantkit.connection import ConnectionSettings, MySQLConnection
from grantkit.executors import GrantExecutor, GrantsExecutor

logger = logging.getLogger(__name__)


def generate_test_prefix() -> str:
    """
    Generate a unique prefix for test accounts and databases.

    Format: gk_{timestamp}_{short_uuid}
    Example: gk_0127143052_abc123
    """
    timestamp = datetime.now().strftime("%m%d%H%M%S")
    short_uuid = uuid.uuid4().hex[:6]
    return f"gk_{timestamp}_{short_uuid}"


@dataclass
class ResourceTracker:
    """
    Tracks created server objects for cleanup after tests.

    Accounts are dropped before databases.
    """

    users: List[str] = field(default_factory=list)  # 'user'@'host'
    roles: List[str] = field(default_factory=list)
    databases: List[str] = field(default_factory=list)

    def add_user(self, identifier: str) -> None:
        """Track an account for cleanup."""
        if identifier not in self.users:
            self.users.append(identifier)

    def add_role(self, name: str) -> None:
        """Track a role for cleanup."""
        if name not in self.roles:
            self.roles.append(name)

    def add_database(self, name: str) -> None:
        """Track a database for cleanup."""
        if name not in self.databases:
            self.databases.append(name)


@pytest.fixture(scope="session")
def test_prefix() -> str:
    """Session-scoped unique prefix for test objects."""
    return generate_test_prefix()


@pytest.fixture(scope="session")
def mysql_connection() -> Generator[MySQLConnection, None, None]:
    """
    Session-scoped connection built from GRANTKIT_MYSQL_* variables.

    The login user needs CREATE USER and GRANT OPTION.
    """
    if not os.getenv("GRANTKIT_MYSQL_HOST"):
        pytest.skip("GRANTKIT_MYSQL_HOST is not set")
    try:
        connection = MySQLConnection.connect(ConnectionSettings.from_env())
    except mysql_errors.Error as e:
        pytest.skip(f"Could not connect to MySQL: {e}")
    yield connection
    connection.close()


@pytest.fixture(scope="session")
def server_capabilities(mysql_connection: MySQLConnection) -> ServerCapabilities:
    """Capabilities of the server under test."""
    return probe_capabilities(mysql_connection)


@pytest.fixture
def resource_tracker() -> ResourceTracker:
    """Fixture that provides a resource tracker for the test."""
    return ResourceTracker()


@pytest.fixture(autouse=True)
def cleanup_resources(
    mysql_connection: MySQLConnection,
    resource_tracker: ResourceTracker,
) -> Generator[None, None, None]:
    """
    Autouse fixture that drops tracked objects after each test.

    Failed cleanups are logged but don't fail the test.
    """
    yield

    for identifier in reversed(resource_tracker.users):
        try:
            mysql_connection.execute(f"DROP USER IF EXISTS {identifier}")
            logger.info(f"Cleaned up user: {identifier}")
        except mysql_errors.Error as e:
            logger.warning(f"Failed to cleanup user {identifier}: {e}")

    for role in reversed(resource_tracker.roles):
        try:
            mysql_connection.execute(f"DROP ROLE IF EXISTS '{role}'")
            logger.info(f"Cleaned up role: {role}")
        except mysql_errors.Error as e:
            logger.warning(f"Failed to cleanup role {role}: {e}")

    for database in reversed(resource_tracker.databases):
        try:
            mysql_connection.execute(f"DROP DATABASE IF EXISTS `{database}`")
            logger.info(f"Cleaned up database: {database}")
        except mysql_errors.Error as e:
            logger.warning(f"Failed to cleanup database {database}: {e}")


# =============================================================================
# EXECUTOR FIXTURES
# =============================================================================


@pytest.fixture
def grants_executor(mysql_connection: MySQLConnection) -> GrantsExecutor:
    """Fixture that provides a GrantsExecutor."""
    return GrantsExecutor(mysql_connection)


@pytest.fixture
def grant_executor(mysql_connection: MySQLConnection) -> GrantExecutor:
    """Fixture that provides a GrantExecutor."""
    return GrantExecutor(mysql_connection)


# =============================================================================
# COMMON TEST FIXTURES
# =============================================================================


@pytest.fixture
def test_database(
    test_prefix: str,
    mysql_connection: MySQLConnection,
    resource_tracker: ResourceTracker,
) -> str:
    """Fixture that creates an empty database with a unique name."""
    name = f"{test_prefix}_db"
    mysql_connection.execute(f"CREATE DATABASE IF NOT EXISTS `{name}`")
    resource_tracker.add_database(name)
    return name


@pytest.fixture
def test_user(
    test_prefix: str,
    mysql_connection: MySQLConnection,
    resource_tracker: ResourceTracker,
) -> str:
    """Fixture that creates an account with no privileges; returns its user name."""
    user = f"{test_prefix}_u"
    identifier = f"'{user}'@'localhost'"
    mysql_connection.execute(f"CREATE USER IF NOT EXISTS {identifier}")
    resource_tracker.add_user(identifier)
    return user
