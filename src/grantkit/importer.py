"""
Importer for existing grants.

Pulls the grants a server reports for an account and converts them to
grantkit models, so that existing accounts can be brought under management.
"""

import logging
import time
from dataclasses import dataclass
from typing import List, Tuple

from grantkit.connection import Connection
from grantkit.models import Grant, GrantRecord, GrantsBlock, UserPrincipal
from grantkit.snapshot import read_snapshot

logger = logging.getLogger(__name__)

# Imported grants carry no TLS requirement
IMPORTED_TLS_OPTION = "NONE"


@dataclass
class ImportResult:
    """Result of importing grants."""

    resource_type: str
    count: int
    resources: List[Grant]
    duration_seconds: float = 0.0

    def __repr__(self) -> str:
        return f"ImportResult({self.resource_type}: {self.count} resources)"


def parse_import_id(identifier: str) -> Tuple[str, str]:
    """
    Split an import id of the form ``USER@HOST``.

    The last ``@`` separates user and host, so user names may contain ``@``.

    Raises:
        ValueError: If the id has no user part or no ``@``
    """
    separator = identifier.rfind("@")
    if separator <= 0:
        raise ValueError(f"wrong ID format {identifier} (expected USER@HOST)")
    return identifier[:separator], identifier[separator + 1:]


class GrantsImporter:
    """
    Imports the grants of an existing account.

    Usage:
        importer = GrantsImporter(connection)
        block = importer.pull_one("jdoe@example.com")
        result = importer.pull_grants("jdoe@example.com")
    """

    resource_type = "grants"

    def __init__(self, connection: Connection):
        self.connection = connection

    def _records(self, user: str, host: str) -> List[GrantRecord]:
        return read_snapshot(self.connection, UserPrincipal(user=user, host=host))

    def pull_one(self, identifier: str) -> GrantsBlock:
        """
        Import every grant of an account as one grants block.

        Args:
            identifier: Account as ``USER@HOST``

        Returns:
            GrantsBlock declaring what the server reports
        """
        user, host = parse_import_id(identifier)
        records = self._records(user, host)
        logger.info(f"Imported {len(records)} grants for {user}@{host}")
        return GrantsBlock(
            user=user,
            host=host,
            tls_option=IMPORTED_TLS_OPTION,
            grants=[record.to_spec() for record in records],
        )

    def pull_grants(self, identifier: str) -> ImportResult:
        """
        Import every grant of an account as single-scope grants.

        Args:
            identifier: Account as ``USER@HOST``

        Returns:
            ImportResult with one Grant per reported scope
        """
        start_time = time.time()
        user, host = parse_import_id(identifier)

        grants = [
            Grant(
                user=user,
                host=host,
                database=record.scope.database,
                table=record.scope.table,
                privileges=record.sorted_privileges,
                grant=record.grant_option,
                tls_option=IMPORTED_TLS_OPTION,
            )
            for record in self._records(user, host)
        ]

        return ImportResult(
            resource_type="grant",
            count=len(grants),
            resources=grants,
            duration_seconds=time.time() - start_time,
        )
