"""
MySQL grant models.

Module organization:
- enums: PrincipalKind
- base: BaseGrantModel and environment-driven defaults
- identifiers: database/table quoting
- privileges: privilege clause parsing and normalization
- principals: UserPrincipal, RolePrincipal and the principal resolver
- grants: Scope, GrantRecord, DesiredGrantSpec, Grant, GrantsBlock
"""

from .base import (
    DEFAULT_HOST,
    DEFAULT_TLS_OPTION,
    BaseGrantModel,
)
from .enums import PrincipalKind
from .grants import (
    DesiredGrantSpec,
    Grant,
    GrantRecord,
    GrantsBlock,
    PrincipalAttributes,
    Scope,
)
from .identifiers import (
    WILDCARD,
    format_database,
    format_scope,
    format_table,
    quote_role,
)
from .principals import (
    Principal,
    PrincipalResolutionError,
    RolePrincipal,
    RoleSupportRequiredError,
    UserPrincipal,
    resolve_principal,
)
from .privileges import (
    normalize_privilege,
    parse_privileges,
    render_privileges,
)

__all__ = [
    # Base
    "DEFAULT_HOST",
    "DEFAULT_TLS_OPTION",
    "BaseGrantModel",
    "PrincipalKind",
    # Identifiers
    "WILDCARD",
    "format_database",
    "format_scope",
    "format_table",
    "quote_role",
    # Privileges
    "normalize_privilege",
    "parse_privileges",
    "render_privileges",
    # Principals
    "Principal",
    "PrincipalResolutionError",
    "RolePrincipal",
    "RoleSupportRequiredError",
    "UserPrincipal",
    "resolve_principal",
    # Grants
    "DesiredGrantSpec",
    "Grant",
    "GrantRecord",
    "GrantsBlock",
    "PrincipalAttributes",
    "Scope",
]
