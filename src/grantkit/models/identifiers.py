"""
Identifier formatting for GRANT and REVOKE statements.

Database and table names are kept bare inside the models and quoted with
backticks only when a statement is rendered or two scopes are compared.
"""

QUOTE = "`"
WILDCARD = "*"
PROCEDURE_PREFIX = "PROCEDURE "


def format_database(name: str) -> str:
    """
    Quote a database name for use in a statement.

    The wildcard and names that already end with a backtick are returned
    unchanged. For routine grants the ``PROCEDURE`` keyword stays outside
    the quotes: ``PROCEDURE db.proc`` becomes ``PROCEDURE `db.proc```.
    """
    if name == WILDCARD or name.endswith(QUOTE):
        return name

    quoted = f"{QUOTE}{name}{QUOTE}"
    if quoted.startswith(QUOTE + PROCEDURE_PREFIX):
        quoted = quoted.replace(QUOTE + PROCEDURE_PREFIX, PROCEDURE_PREFIX + QUOTE, 1)
    return quoted


def format_table(name: str) -> str:
    """Quote a table name; empty names mean all tables."""
    if not name or name == WILDCARD:
        return WILDCARD
    return f"{QUOTE}{name}{QUOTE}"


def format_scope(database: str, table: str) -> str:
    """Render ``<database>.<table>`` with both parts quoted."""
    return f"{format_database(database)}.{format_table(table)}"


def quote_role(name: str) -> str:
    return f"'{name}'"
