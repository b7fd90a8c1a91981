"""
Unit tests for the connection adapter.
"""

from typing import Any, List, Optional

import pytest
from mysql.connector import errors as mysql_errors

from grantkit.connection import (
    ConnectionSettings,
    MySQLConnection,
    is_nonexisting_grant_error,
)
from grantkit.executors import StatementExecutionError
from tests.fixtures import no_such_grant_error


class _Cursor:
    def __init__(self, rows: List[tuple], rowcount: int = 0):
        self.rows = rows
        self.rowcount = rowcount
        self.statements: List[str] = []
        self.closed = False

    def execute(self, statement: str) -> None:
        self.statements.append(statement)

    def fetchall(self) -> List[tuple]:
        return self.rows

    def close(self) -> None:
        self.closed = True


class _RawConnection:
    def __init__(self, cursor: _Cursor, close_error: Optional[Exception] = None):
        self._cursor = cursor
        self.close_error = close_error
        self.closed = False

    def cursor(self) -> _Cursor:
        return self._cursor

    def close(self) -> None:
        if self.close_error:
            raise self.close_error
        self.closed = True


class TestIsNonexistingGrantError:
    """Tests for is_nonexisting_grant_error."""

    def test_errno(self) -> None:
        """Errors carrying errno 1141 match."""
        assert is_nonexisting_grant_error(no_such_grant_error())

    def test_message(self) -> None:
        """Errors mentioning 1141 in their message match."""
        assert is_nonexisting_grant_error(RuntimeError("Error 1141: There is no such grant"))

    def test_wrapped_cause(self) -> None:
        """A wrapped 1141 error matches."""
        try:
            try:
                raise no_such_grant_error()
            except mysql_errors.ProgrammingError as e:
                raise RuntimeError("statement failed") from e
        except RuntimeError as wrapped:
            assert is_nonexisting_grant_error(wrapped)

    def test_other_errors(self) -> None:
        """Other errors do not match."""
        assert not is_nonexisting_grant_error(mysql_errors.ProgrammingError(msg="denied", errno=1044))
        assert not is_nonexisting_grant_error(RuntimeError("error 11410"))
        assert not is_nonexisting_grant_error(None)

    def test_statement_text_ignored(self) -> None:
        """A failed statement naming `1141` with another errno does not match."""
        error = StatementExecutionError(
            "REVOKE GRANT OPTION ON `1141`.* FROM 'u'@'h'",
            mysql_errors.ProgrammingError(msg="Access denied", errno=1044),
        )
        assert not is_nonexisting_grant_error(error)

    def test_statement_error_wrapping_1141(self) -> None:
        """A failed statement wrapping error 1141 matches through its cause."""
        error = StatementExecutionError("REVOKE GRANT OPTION ON *.* FROM 'u'@'h'", no_such_grant_error())
        assert is_nonexisting_grant_error(error)

    def test_errno_decides_over_message(self) -> None:
        """An error number other than 1141 wins over a message mentioning it."""
        assert not is_nonexisting_grant_error(mysql_errors.ProgrammingError(msg="1141 rows", errno=1064))


class TestConnectionSettings:
    """Tests for ConnectionSettings."""

    def test_defaults(self) -> None:
        """Defaults point at a local server."""
        settings = ConnectionSettings()
        assert settings.host == "127.0.0.1"
        assert settings.port == 3306

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """GRANTKIT_MYSQL_* variables are read."""
        monkeypatch.setenv("GRANTKIT_MYSQL_HOST", "db.internal")
        monkeypatch.setenv("GRANTKIT_MYSQL_PORT", "3307")
        monkeypatch.setenv("GRANTKIT_MYSQL_USER", "admin")
        monkeypatch.setenv("GRANTKIT_MYSQL_PASSWORD", "s3cret")
        monkeypatch.delenv("GRANTKIT_MYSQL_DATABASE", raising=False)
        settings = ConnectionSettings.from_env()
        assert settings.host == "db.internal"
        assert settings.port == 3307
        assert settings.user == "admin"
        assert settings.password.get_secret_value() == "s3cret"
        assert settings.database is None
        assert "s3cret" not in repr(settings)

    def test_port_validated(self) -> None:
        """Ports outside 1-65535 are rejected."""
        with pytest.raises(ValueError):
            ConnectionSettings(port=0)


class TestMySQLConnection:
    """Tests for MySQLConnection over a stub driver connection."""

    def test_query_returns_first_column(self) -> None:
        """query returns the first column of each row as a string."""
        cursor = _Cursor(rows=[("GRANT USAGE ON *.* TO `u`@`h`",), ("8.0.32", "x")])
        connection = MySQLConnection(_RawConnection(cursor))
        assert connection.query("SHOW GRANTS FOR 'u'@'h'") == [
            "GRANT USAGE ON *.* TO `u`@`h`",
            "8.0.32",
        ]
        assert cursor.closed

    def test_execute_returns_rowcount(self) -> None:
        """execute runs the statement and returns the row count."""
        cursor = _Cursor(rows=[], rowcount=0)
        connection = MySQLConnection(_RawConnection(cursor))
        assert connection.execute("GRANT SELECT ON `app`.* TO 'u'@'h'") == 0
        assert cursor.statements == ["GRANT SELECT ON `app`.* TO 'u'@'h'"]

    def test_context_manager_closes(self) -> None:
        """Leaving the context closes the driver connection."""
        raw = _RawConnection(_Cursor(rows=[]))
        with MySQLConnection(raw):
            pass
        assert raw.closed

    def test_close_error_logged(self) -> None:
        """Driver errors on close are not raised."""
        raw: Any = _RawConnection(_Cursor(rows=[]), close_error=mysql_errors.OperationalError(msg="gone"))
        MySQLConnection(raw).close()
