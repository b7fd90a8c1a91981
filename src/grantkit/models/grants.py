"""
Grant models for MySQL privilege reconciliation.

This module contains the scope, the parsed grant record read back from the
server, and the desired-state models declared by callers:

- Scope: a (database, table) pair
- GrantRecord: one parsed line of ``SHOW GRANTS``
- DesiredGrantSpec: one declared (scope, privileges-or-roles) entry
- Grant: a single-scope grant resource
- GrantsBlock: a multi-scope grants resource
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List, Optional, Tuple

from pydantic import Field, computed_field, field_validator, model_validator
from typing_extensions import Self

from .base import DEFAULT_HOST, DEFAULT_TLS_OPTION, BaseGrantModel
from .identifiers import WILDCARD, format_database, format_scope, format_table
from .principals import Principal, resolve_principal
from .privileges import normalize_privilege

logger = logging.getLogger(__name__)


def _unique(values: List[str]) -> Tuple[str, ...]:
    """Drop empty and repeated values, keeping first occurrences in order."""
    seen: List[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return tuple(seen)


# =============================================================================
# SCOPE
# =============================================================================

class Scope(BaseGrantModel):
    """
    The (database, table) object a set of privileges applies to.

    Names are stored bare; ``*`` means all databases or all tables.
    """

    database: str = Field(..., min_length=1, description="Database name or *")
    table: str = Field(default=WILDCARD, description="Table name or *")

    @property
    def formatted_database(self) -> str:
        return format_database(self.database)

    @property
    def formatted_table(self) -> str:
        return format_table(self.table)

    @property
    def key(self) -> Tuple[str, str]:
        """Comparison key; a bare name and its quoted form compare equal."""
        return (self.formatted_database, self.formatted_table)

    def render(self) -> str:
        return format_scope(self.database, self.table)

    def __str__(self) -> str:
        return self.render()


# =============================================================================
# GRANT RECORD (observed state)
# =============================================================================

class GrantRecord(BaseGrantModel):
    """
    One line of the server's current-grants report.

    Privileges are compared as a set and serialized sorted.
    """

    scope: Scope
    privileges: Tuple[str, ...] = Field(default_factory=tuple)
    grant_option: bool = False

    @property
    def privilege_set(self) -> FrozenSet[str]:
        return frozenset(self.privileges)

    @property
    def sorted_privileges(self) -> List[str]:
        return sorted(self.privilege_set)

    def to_spec(self) -> DesiredGrantSpec:
        """Express the observed grant as a declared entry."""
        return DesiredGrantSpec(
            database=self.scope.database,
            table=self.scope.table,
            privileges=self.sorted_privileges,
            grant=self.grant_option,
        )


# =============================================================================
# DESIRED STATE
# =============================================================================

class DesiredGrantSpec(BaseGrantModel):
    """
    One declared entry of desired state.

    Exactly one of ``privileges`` and ``roles`` must be given. Role-based
    entries are granted without a scope clause.
    """

    database: str = Field(..., min_length=1, description="Database name, * for all")
    table: str = Field(default=WILDCARD, description="Table name, * for all")
    privileges: Tuple[str, ...] = Field(default_factory=tuple, description="Privileges to grant")
    roles: Tuple[str, ...] = Field(default_factory=tuple, description="Roles to grant")
    grant: bool = Field(default=False, description="Whether to add WITH GRANT OPTION")

    @field_validator('table', mode='before')
    @classmethod
    def default_empty_table(cls, v: Optional[str]) -> str:
        return v or WILDCARD

    @field_validator('privileges', mode='before')
    @classmethod
    def normalize_privileges(cls, v: Optional[List[str]]) -> Tuple[str, ...]:
        if isinstance(v, str):
            v = [v]
        return _unique([normalize_privilege(p) for p in v or []])

    @field_validator('roles', mode='before')
    @classmethod
    def normalize_roles(cls, v: Optional[List[str]]) -> Tuple[str, ...]:
        if isinstance(v, str):
            v = [v]
        return _unique([r.strip() for r in v or []])

    @model_validator(mode='after')
    def check_privileges_or_roles(self) -> Self:
        if self.privileges and self.roles:
            raise ValueError("privileges and roles are mutually exclusive")
        if not self.privileges and not self.roles:
            raise ValueError("one of privileges or roles is required")
        return self

    @property
    def scope(self) -> Scope:
        return Scope(database=self.database, table=self.table)

    @property
    def is_role_based(self) -> bool:
        return bool(self.roles)

    @property
    def tokens(self) -> FrozenSet[str]:
        """The privilege or role tokens this entry declares."""
        return frozenset(self.roles if self.is_role_based else self.privileges)

    @property
    def match_key(self) -> Tuple[str, str, bool]:
        """Key used to pair old and new entries of a grants block."""
        return (*self.scope.key, self.is_role_based)


class PrincipalAttributes(BaseGrantModel):
    """
    Principal attributes shared by the grant resources.

    ``user``/``host`` conflict with ``role``. A user without a host gets
    ``DEFAULT_HOST``.
    """

    user: Optional[str] = Field(default=None, description="Account user name")
    host: Optional[str] = Field(default=None, description="Account host")
    role: Optional[str] = Field(default=None, description="Role name (MySQL 8+)")
    tls_option: str = Field(default=DEFAULT_TLS_OPTION, description="REQUIRE clause for pre-8.0 servers")

    @model_validator(mode='after')
    def check_principal_conflicts(self) -> Self:
        if self.role and (self.user or self.host):
            raise ValueError("role conflicts with user and host")
        return self

    @property
    def resolved_host(self) -> Optional[str]:
        if self.user and not self.host:
            return DEFAULT_HOST
        return self.host

    def resolve(self, supports_roles: bool) -> Principal:
        """Resolve the principal these attributes name."""
        principal, _ = resolve_principal(self.user, self.resolved_host, self.role, supports_roles)
        return principal


class Grant(PrincipalAttributes, DesiredGrantSpec):
    """
    Single-scope grant resource.

    Example:
        ```python
        grant = Grant(user="jdoe", host="example.com", database="app",
                      privileges=["SELECT", "UPDATE"])
        ```
    """

    @property
    def spec(self) -> DesiredGrantSpec:
        return DesiredGrantSpec(
            database=self.database,
            table=self.table,
            privileges=self.privileges,
            roles=self.roles,
            grant=self.grant,
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resource_id(self) -> str:
        database = format_database(self.database)
        if self.role:
            return f"{self.role}:{database}"
        return f"{self.user}@{self.resolved_host}:{database}"


class GrantsBlock(PrincipalAttributes):
    """
    Multi-scope grants resource: every scope granted to one principal.

    Example:
        ```python
        block = GrantsBlock(
            user="jdoe",
            host="example.com",
            grants=[
                DesiredGrantSpec(database="*", privileges=["USAGE"]),
                DesiredGrantSpec(database="app", privileges=["SELECT", "UPDATE"]),
            ],
        )
        ```
    """

    grants: Tuple[DesiredGrantSpec, ...] = Field(default_factory=tuple, description="Declared grant entries")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resource_id(self) -> str:
        if self.role:
            return self.role
        return f"{self.user}@{self.resolved_host}"

    def with_grants(self, grants: List[DesiredGrantSpec]) -> GrantsBlock:
        """Copy of this block declaring a different set of entries."""
        return self.model_copy(update={"grants": tuple(grants)})
