"""
Connection adapter for MySQL servers.

The reconciler only needs two capabilities from a connection: run a
statement, and run a query whose rows are single strings (``SHOW GRANTS``,
``SELECT VERSION()``). ``MySQLConnection`` provides both on top of
mysql-connector-python.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, List, Optional

import mysql.connector
from mysql.connector import errors as mysql_errors
from pydantic import BaseModel, Field, SecretStr
from typing_extensions import Protocol

logger = logging.getLogger(__name__)

# Error 1141: There is no such grant defined for user
NONEXISTING_GRANT_ERROR_CODE = 1141

_NONEXISTING_GRANT_PATTERN = re.compile(rf"^(?:Error )?{NONEXISTING_GRANT_ERROR_CODE}\b", re.IGNORECASE)


class Connection(Protocol):
    """What the reconciler needs from a database connection."""

    def execute(self, statement: str) -> int:
        """Run a statement and return the affected row count. Raises on error."""
        ...

    def query(self, statement: str) -> List[str]:
        """Run a query and return the first column of every row. Raises on error."""
        ...


def is_nonexisting_grant_error(error: Optional[BaseException]) -> bool:
    """
    Check whether an error is MySQL error 1141 (no such grant defined).

    Walks the chain of wrapped causes. An error carrying a numeric ``errno``
    is decided by that number alone; only errors without one are matched on
    a message that starts with the error code.
    """
    while error is not None:
        errno = getattr(error, "errno", None)
        # mysql-connector uses -1 when the server sent no error number
        if errno is not None and errno != -1:
            return errno == NONEXISTING_GRANT_ERROR_CODE
        if _NONEXISTING_GRANT_PATTERN.match(str(error)):
            return True
        error = getattr(error, "cause", None) or error.__cause__
    return False


class ConnectionSettings(BaseModel):
    """
    Connection settings for the MySQL server being reconciled.

    Use ``ConnectionSettings.from_env()`` to read ``GRANTKIT_MYSQL_*``
    environment variables.
    """

    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=3306, ge=1, le=65535, description="Server port")
    user: str = Field(default="root", description="Login user")
    password: SecretStr = Field(default=SecretStr(""), description="Login password")
    database: Optional[str] = Field(default=None, description="Default database")
    connect_timeout: int = Field(default=10, ge=1, description="Connect timeout in seconds")

    @classmethod
    def from_env(cls) -> "ConnectionSettings":
        """Build settings from GRANTKIT_MYSQL_* environment variables."""
        return cls(
            host=os.getenv("GRANTKIT_MYSQL_HOST", "127.0.0.1"),
            port=int(os.getenv("GRANTKIT_MYSQL_PORT", "3306")),
            user=os.getenv("GRANTKIT_MYSQL_USER", "root"),
            password=SecretStr(os.getenv("GRANTKIT_MYSQL_PASSWORD", "")),
            database=os.getenv("GRANTKIT_MYSQL_DATABASE") or None,
            connect_timeout=int(os.getenv("GRANTKIT_MYSQL_CONNECT_TIMEOUT", "10")),
        )


class MySQLConnection:
    """
    ``Connection`` implementation over mysql-connector-python.

    Runs with autocommit: every GRANT/REVOKE is its own statement.
    """

    def __init__(self, raw_connection: Any):
        self._raw = raw_connection

    @classmethod
    def connect(cls, settings: Optional[ConnectionSettings] = None) -> "MySQLConnection":
        """
        Open a connection.

        Args:
            settings: Connection settings, read from the environment if omitted

        Returns:
            Connected MySQLConnection
        """
        settings = settings or ConnectionSettings.from_env()
        logger.info(f"Connecting to MySQL at {settings.host}:{settings.port} as {settings.user}")
        raw = mysql.connector.connect(
            host=settings.host,
            port=settings.port,
            user=settings.user,
            password=settings.password.get_secret_value(),
            database=settings.database,
            connection_timeout=settings.connect_timeout,
            autocommit=True,
        )
        return cls(raw)

    def execute(self, statement: str) -> int:
        cursor = self._raw.cursor()
        try:
            cursor.execute(statement)
            return cursor.rowcount
        finally:
            cursor.close()

    def query(self, statement: str) -> List[str]:
        logger.debug(f"SQL: {statement}")
        cursor = self._raw.cursor()
        try:
            cursor.execute(statement)
            return [str(row[0]) for row in cursor.fetchall()]
        finally:
            cursor.close()

    def close(self) -> None:
        try:
            self._raw.close()
        except mysql_errors.Error as e:
            logger.warning(f"Error closing MySQL connection: {e}")

    def __enter__(self) -> "MySQLConnection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
