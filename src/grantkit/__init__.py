"""
Grantkit - Declarative MySQL grant reconciliation.

This library compares the grants declared for a MySQL account or role with
what the server reports through SHOW GRANTS, and runs the GRANT and REVOKE
statements that converge the two.

Key Features:
- Typed desired-state models (Grant, GrantsBlock) validated with pydantic
- SHOW GRANTS parsing with column-privilege normalization
- Single-scope and multi-scope diffs planned as ordered statements
- Role and TLS handling gated on the server version (MySQL 8 roles)
- Idempotent deletion of grants already removed out of band

Quick Start:
    from grantkit import DesiredGrantSpec, GrantsBlock, GrantsExecutor, MySQLConnection

    block = GrantsBlock(
        user="jdoe",
        host="example.com",
        grants=[
            DesiredGrantSpec(database="*", privileges=["USAGE"]),
            DesiredGrantSpec(database="app", privileges=["SELECT", "UPDATE"]),
        ],
    )

    with MySQLConnection.connect() as connection:
        executor = GrantsExecutor(connection)
        if executor.exists(block):
            executor.update(block)
        else:
            executor.create(block)
"""

__version__ = "0.1.0"

# =============================================================================
# Connection and capabilities
# =============================================================================

from grantkit.capabilities import (
    ROLE_SUPPORT_VERSION,
    CapabilityProbeError,
    ServerCapabilities,
    probe_capabilities,
)
from grantkit.connection import (
    Connection,
    ConnectionSettings,
    MySQLConnection,
    is_nonexisting_grant_error,
)

# =============================================================================
# Executors
# =============================================================================
from grantkit.executors import (
    ExecutionPlan,
    ExecutionResult,
    GrantExecutor,
    GrantsExecutor,
    OperationType,
    StatementExecutionError,
)
from grantkit.importer import GrantsImporter, ImportResult, parse_import_id
from grantkit.manifest import GrantsManifest, load_grants_manifest

# =============================================================================
# Models
# =============================================================================
from grantkit.models import (
    DesiredGrantSpec,
    Grant,
    GrantRecord,
    GrantsBlock,
    PrincipalResolutionError,
    RolePrincipal,
    RoleSupportRequiredError,
    Scope,
    UserPrincipal,
    format_database,
    format_table,
    parse_privileges,
    resolve_principal,
)
from grantkit.reconcile import (
    build_grant_statement,
    plan_block_changes,
    plan_creation,
    plan_deletion,
    plan_scope_changes,
)
from grantkit.snapshot import (
    MYSQL_GRAMMAR,
    GrantGrammar,
    GrantParseError,
    has_grants,
    parse_grant_line,
    read_snapshot,
)

__all__ = [
    "__version__",
    # Connection and capabilities
    "Connection",
    "ConnectionSettings",
    "MySQLConnection",
    "is_nonexisting_grant_error",
    "ROLE_SUPPORT_VERSION",
    "CapabilityProbeError",
    "ServerCapabilities",
    "probe_capabilities",
    # Models
    "DesiredGrantSpec",
    "Grant",
    "GrantRecord",
    "GrantsBlock",
    "PrincipalResolutionError",
    "RolePrincipal",
    "RoleSupportRequiredError",
    "Scope",
    "UserPrincipal",
    "format_database",
    "format_table",
    "parse_privileges",
    "resolve_principal",
    # Snapshot
    "MYSQL_GRAMMAR",
    "GrantGrammar",
    "GrantParseError",
    "has_grants",
    "parse_grant_line",
    "read_snapshot",
    # Planning
    "build_grant_statement",
    "plan_block_changes",
    "plan_creation",
    "plan_deletion",
    "plan_scope_changes",
    # Executors
    "ExecutionPlan",
    "ExecutionResult",
    "GrantExecutor",
    "GrantsExecutor",
    "OperationType",
    "StatementExecutionError",
    # Import and manifests
    "GrantsImporter",
    "ImportResult",
    "parse_import_id",
    "GrantsManifest",
    "load_grants_manifest",
]
