"""
Grant snapshot parsing.

Reads a principal's current grants with ``SHOW GRANTS FOR`` and parses every
line into a ``GrantRecord``. The line grammar lives in ``GrantGrammar`` so a
different server dialect only needs a different grammar.

Lines look like::

    GRANT <privileges> ON <database>.<table> TO <principal> [REQUIRE ...] [WITH GRANT OPTION]
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Pattern

from grantkit.connection import Connection, is_nonexisting_grant_error
from grantkit.models import GrantRecord, Principal, Scope, parse_privileges

logger = logging.getLogger(__name__)


class GrantParseError(ValueError):
    """Raised when a line of a grants report does not match the grammar."""

    def __init__(self, line: str):
        self.line = line
        super().__init__(f"failed to parse grant statement: {line}")


@dataclass(frozen=True)
class GrantGrammar:
    """
    Grammar of one grants report line.

    ``statement`` must define the named groups ``privileges``, ``database``
    and ``table``. ``grant_option`` is searched across the whole line.
    """

    statement: Pattern[str]
    grant_option: Pattern[str]
    quote: str = "`"

    def strip_database(self, raw: str) -> str:
        return raw.replace(self.quote, "")

    def strip_table(self, raw: str) -> str:
        return raw.strip(self.quote)


MYSQL_GRAMMAR = GrantGrammar(
    statement=re.compile(r"^GRANT (?P<privileges>.+) ON (?P<database>.+?)\.(?P<table>.+?) TO"),
    # Also matches when a server lists GRANT OPTION inside the privilege clause.
    grant_option=re.compile(r"\bGRANT OPTION\b"),
)


def parse_grant_line(line: str, grammar: GrantGrammar = MYSQL_GRAMMAR) -> GrantRecord:
    """
    Parse one line of a grants report.

    Args:
        line: Raw report line
        grammar: Grammar to parse with

    Returns:
        GrantRecord with bare database/table names

    Raises:
        GrantParseError: If the line does not match the grammar
    """
    match = grammar.statement.match(line)
    if not match:
        raise GrantParseError(line)

    return GrantRecord(
        scope=Scope(
            database=grammar.strip_database(match.group("database")),
            table=grammar.strip_table(match.group("table")),
        ),
        privileges=tuple(parse_privileges(match.group("privileges"))),
        grant_option=bool(grammar.grant_option.search(line)),
    )


def show_grants_statement(identifier: str) -> str:
    return f"SHOW GRANTS FOR {identifier}"


def read_snapshot(
    connection: Connection,
    principal: Principal,
    grammar: GrantGrammar = MYSQL_GRAMMAR,
) -> List[GrantRecord]:
    """
    Read and parse the current grants of a principal.

    A single unparseable line fails the whole snapshot; no partial view is
    returned.

    Raises:
        GrantParseError: If any line does not match the grammar
    """
    lines = connection.query(show_grants_statement(principal.identifier))
    records = [parse_grant_line(line, grammar) for line in lines]
    logger.debug(f"Read {len(records)} grants for {principal.identifier}")
    return records


def has_grants(connection: Connection, identifier: str) -> bool:
    """
    Check whether the server still reports any grant for a principal.

    Error 1141 (no such grant) means the principal is gone.
    """
    try:
        rows = connection.query(show_grants_statement(identifier))
    except Exception as e:
        if is_nonexisting_grant_error(e):
            return False
        raise
    return len(rows) > 0
