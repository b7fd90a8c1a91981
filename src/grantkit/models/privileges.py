"""
Privilege list parsing.

Turns the privilege clause of a ``SHOW GRANTS`` line (``SELECT (id, user),
UPDATE``) into an ordered list of privilege tokens. Column-qualified tokens
are normalized so that the same column set always renders the same way.
"""

import re
from typing import Iterable, List

# One token per match: a column-qualified privilege, or a privilege name of
# up to three words (ALL PRIVILEGES, CREATE TEMPORARY TABLES, ...).
PRIVILEGE_TOKEN = re.compile(
    r"(?P<column_privilege>(?P<action>[A-Z]+) ?\((?P<columns>[a-zA-Z0-9_, `]+)\))"
    r"|(?P<privilege>[A-Z]+ [A-Z]+ [A-Z]+|[A-Z]+ [A-Z]+|[A-Z]+)"
)


def _render_column_privilege(action: str, columns: Iterable[str]) -> str:
    ordered = sorted(c.strip() for c in columns if c.strip())
    return f"{action.strip()} ({', '.join(ordered)})"


def normalize_privilege(token: str) -> str:
    """
    Normalize a single privilege token.

    ``SELECT (user, id)`` becomes ``SELECT (id, user)``; plain privileges are
    only stripped of surrounding whitespace.
    """
    token = token.strip()
    if "(" not in token:
        return token
    action, _, rest = token.partition("(")
    return _render_column_privilege(action, rest.replace(")", "", 1).split(","))


def parse_privileges(clause: str) -> List[str]:
    """
    Parse a comma-joined privilege clause into privilege tokens.

    Token order follows the clause; only the columns inside a column-qualified
    privilege are sorted.

    Args:
        clause: Privilege clause, e.g. ``"SELECT (user, id), UPDATE"``

    Returns:
        List of privilege tokens, e.g. ``["SELECT (id, user)", "UPDATE"]``
    """
    privileges = []
    for match in PRIVILEGE_TOKEN.finditer(clause):
        if match.group("column_privilege"):
            privileges.append(
                _render_column_privilege(match.group("action"), match.group("columns").split(","))
            )
        else:
            privileges.append(match.group("privilege").strip())
    return privileges


def render_privileges(privileges: Iterable[str]) -> str:
    """Join privilege tokens the way statements expect them."""
    return ", ".join(privileges)
