"""
Unit tests for grant snapshot parsing.
"""

import re

import pytest

from grantkit.models import Scope, UserPrincipal
from grantkit.snapshot import (
    MYSQL_GRAMMAR,
    GrantGrammar,
    GrantParseError,
    has_grants,
    parse_grant_line,
    read_snapshot,
)
from tests.fixtures import FakeConnection, make_role, make_user, no_such_grant_error


class TestParseGrantLine:
    """Tests for parse_grant_line."""

    def test_usage_on_everything(self) -> None:
        """The USAGE line every account has parses to *.*."""
        record = parse_grant_line("GRANT USAGE ON *.* TO `u`@`h`")
        assert record.scope == Scope(database="*", table="*")
        assert record.privileges == ("USAGE",)
        assert record.grant_option is False

    def test_database_scope_unquoted(self) -> None:
        """Backticks are removed from database and table names."""
        record = parse_grant_line("GRANT SELECT, INSERT ON `app`.`orders` TO 'u'@'h'")
        assert record.scope.database == "app"
        assert record.scope.table == "orders"
        assert record.privileges == ("SELECT", "INSERT")

    def test_grant_option(self) -> None:
        """WITH GRANT OPTION sets the grant option flag."""
        record = parse_grant_line("GRANT ALL PRIVILEGES ON `app`.* TO `u`@`h` WITH GRANT OPTION")
        assert record.privileges == ("ALL PRIVILEGES",)
        assert record.grant_option is True

    def test_column_privileges(self) -> None:
        """Column lists are normalized."""
        record = parse_grant_line("GRANT SELECT (`name`, `id`) ON `app`.`users` TO `u`@`h`")
        assert record.privileges == ("SELECT (`id`, `name`)",)

    def test_procedure_scope(self) -> None:
        """Routine grants keep the PROCEDURE keyword in the database part."""
        record = parse_grant_line("GRANT EXECUTE ON PROCEDURE `app`.`do_work` TO `u`@`h`")
        assert record.scope.database == "PROCEDURE app"
        assert record.scope.table == "do_work"

    def test_unparseable_line(self) -> None:
        """A line that does not match the grammar raises GrantParseError."""
        with pytest.raises(GrantParseError, match="failed to parse grant statement") as exc_info:
            parse_grant_line("GRANT `r1`@`%` TO `u`@`h`")
        assert exc_info.value.line == "GRANT `r1`@`%` TO `u`@`h`"

    def test_custom_grammar(self) -> None:
        """A different dialect only needs a different grammar."""
        grammar = GrantGrammar(
            statement=re.compile(r'^GRANT (?P<privileges>.+) ON "(?P<database>[^"]+)"\.(?P<table>\S+) TO'),
            grant_option=MYSQL_GRAMMAR.grant_option,
            quote='"',
        )
        record = parse_grant_line('GRANT SELECT ON "app".* TO u', grammar)
        assert record.scope == Scope(database="app", table="*")


class TestReadSnapshot:
    """Tests for read_snapshot."""

    def test_reads_all_lines(self) -> None:
        """Every line becomes one record, in report order."""
        connection = FakeConnection(grants=[
            "GRANT USAGE ON *.* TO `u`@`h`",
            "GRANT SELECT ON `app`.* TO `u`@`h`",
        ])
        records = read_snapshot(connection, make_user())
        assert [r.scope.render() for r in records] == ["*.*", "`app`.*"]
        assert connection.queries == ["SHOW GRANTS FOR 'u'@'h'"]

    def test_role_principal(self) -> None:
        """Roles are queried by their quoted name."""
        connection = FakeConnection(grants=["GRANT SELECT ON `app`.* TO `r`@`%`"])
        read_snapshot(connection, make_role("r"))
        assert connection.queries == ["SHOW GRANTS FOR 'r'"]

    def test_one_bad_line_fails_everything(self) -> None:
        """No partial snapshot is returned."""
        connection = FakeConnection(grants=[
            "GRANT USAGE ON *.* TO `u`@`h`",
            "GRANT `reporting`@`%` TO `u`@`h`",
        ])
        with pytest.raises(GrantParseError):
            read_snapshot(connection, make_user())

    def test_query_errors_propagate(self) -> None:
        """Server errors are not swallowed."""
        connection = FakeConnection().fail_on("SHOW GRANTS FOR 'u'@'h'", no_such_grant_error())
        with pytest.raises(Exception, match="1141"):
            read_snapshot(connection, UserPrincipal(user="u", host="h"))


class TestHasGrants:
    """Tests for has_grants."""

    def test_true_when_rows(self) -> None:
        """Any reported row means grants exist."""
        connection = FakeConnection(grants=["GRANT USAGE ON *.* TO `u`@`h`"])
        assert has_grants(connection, "'u'@'h'") is True

    def test_false_when_no_rows(self) -> None:
        """An empty report means no grants."""
        assert has_grants(FakeConnection(), "'u'@'h'") is False

    def test_false_on_no_such_grant(self) -> None:
        """Error 1141 means the grants are gone."""
        connection = FakeConnection().fail_on("SHOW GRANTS FOR 'u'@'h'", no_such_grant_error())
        assert has_grants(connection, "'u'@'h'") is False

    def test_other_errors_propagate(self) -> None:
        """Other errors are raised."""
        connection = FakeConnection().fail_on("SHOW GRANTS FOR 'u'@'h'", RuntimeError("gone away"))
        with pytest.raises(RuntimeError):
            has_grants(connection, "'u'@'h'")
