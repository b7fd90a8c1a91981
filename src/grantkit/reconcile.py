"""
Statement planning for grant reconciliation.

Pure functions that turn desired and current grant state into the ordered
GRANT/REVOKE statements converging them. Nothing here talks to a server;
the executors run the planned statements. Every function that depends on
what the server accepts takes a ``ServerCapabilities`` record explicitly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Dict, Iterable, List, Optional, Sequence, Tuple

from grantkit.capabilities import ServerCapabilities
from grantkit.models import (
    DesiredGrantSpec,
    Principal,
    RoleSupportRequiredError,
    Scope,
    quote_role,
    render_privileges,
)

logger = logging.getLogger(__name__)


def _render_tokens(tokens: Iterable[str], roles: bool) -> str:
    if roles:
        return ", ".join(quote_role(r) for r in tokens)
    return render_privileges(tokens)


def _on_clause(scope: Scope, roles: bool) -> str:
    # Roles are granted without a scope.
    return "" if roles else f" ON {scope.render()}"


def grant_statement(tokens: Sequence[str], scope: Scope, principal: Principal, roles: bool = False) -> str:
    return f"GRANT {_render_tokens(tokens, roles)}{_on_clause(scope, roles)} TO {principal.identifier}"


def revoke_statement(tokens: Sequence[str], scope: Scope, principal: Principal, roles: bool = False) -> str:
    return f"REVOKE {_render_tokens(tokens, roles)}{_on_clause(scope, roles)} FROM {principal.identifier}"


def revoke_grant_option_statement(scope: Scope, principal: Principal) -> str:
    return f"REVOKE GRANT OPTION ON {scope.render()} FROM {principal.identifier}"


def grant_grant_option_statement(scope: Scope, principal: Principal) -> str:
    return f"GRANT GRANT OPTION ON {scope.render()} TO {principal.identifier}"


# =============================================================================
# SINGLE SCOPE
# =============================================================================

def plan_scope_changes(
    scope: Scope,
    current: AbstractSet[str],
    desired: AbstractSet[str],
    principal: Principal,
    roles: bool = False,
) -> List[str]:
    """
    Plan the statements converging one scope.

    Emits at most one REVOKE (``current - desired``) followed by at most one
    GRANT (``desired - current``). Equal sets plan nothing.

    Args:
        scope: The scope both sets apply to
        current: Tokens currently granted
        desired: Tokens that should be granted
        principal: Grantee
        roles: Whether the tokens are role names

    Returns:
        Ordered statements, possibly empty
    """
    to_revoke = sorted(set(current) - set(desired))
    to_grant = sorted(set(desired) - set(current))

    statements = []
    if to_revoke:
        statements.append(revoke_statement(to_revoke, scope, principal, roles))
    if to_grant:
        statements.append(grant_statement(to_grant, scope, principal, roles))
    return statements


def _plan_grant_option_change(
    scope: Scope,
    had_option: bool,
    wants_option: bool,
    principal: Principal,
    capabilities: ServerCapabilities,
) -> List[str]:
    # Same gating as WITH GRANT OPTION at creation time.
    if had_option == wants_option or principal.is_role or capabilities.supports_roles:
        return []
    if wants_option:
        return [grant_grant_option_statement(scope, principal)]
    return [revoke_grant_option_statement(scope, principal)]


# =============================================================================
# MULTIPLE SCOPES
# =============================================================================

def _index_by_key(specs: Sequence[DesiredGrantSpec]) -> Dict[Tuple[str, str, bool], DesiredGrantSpec]:
    indexed: Dict[Tuple[str, str, bool], DesiredGrantSpec] = {}
    for spec in specs:
        if spec.match_key in indexed:
            logger.warning(f"Duplicate grant entry for {spec.scope}, keeping the first one")
            continue
        indexed[spec.match_key] = spec
    return indexed


def plan_block_changes(
    old_specs: Sequence[DesiredGrantSpec],
    new_specs: Sequence[DesiredGrantSpec],
    principal: Principal,
    capabilities: ServerCapabilities,
) -> List[str]:
    """
    Plan the statements moving a grants block from one set of entries to another.

    Entries are paired by formatted (database, table) and by kind
    (privileges or roles). Old entries are processed first in declared
    order: paired ones are diffed, unpaired ones revoked. Unpaired new
    entries are then granted in declared order.

    Args:
        old_specs: Previously declared entries
        new_specs: Newly declared entries
        principal: Grantee
        capabilities: Server capabilities

    Returns:
        Ordered statements, possibly empty
    """
    old_by_key = _index_by_key(old_specs)
    new_by_key = _index_by_key(new_specs)

    statements: List[str] = []

    for key, old in old_by_key.items():
        new = new_by_key.get(key)
        if new is None:
            logger.debug(f"{old.scope} not found in new grants, revoking")
            statements += plan_scope_changes(old.scope, old.tokens, frozenset(), principal, old.is_role_based)
            if not old.is_role_based:
                statements += _plan_grant_option_change(old.scope, old.grant, False, principal, capabilities)
            continue

        logger.debug(f"{old.scope} found in new grants, updating")
        statements += plan_scope_changes(old.scope, old.tokens, new.tokens, principal, old.is_role_based)
        if not old.is_role_based:
            statements += _plan_grant_option_change(old.scope, old.grant, new.grant, principal, capabilities)

    for key, new in new_by_key.items():
        if key in old_by_key:
            continue
        logger.debug(f"{new.scope} not found in old grants, granting")
        statements += plan_scope_changes(new.scope, frozenset(), new.tokens, principal, new.is_role_based)
        if not new.is_role_based:
            statements += _plan_grant_option_change(new.scope, False, new.grant, principal, capabilities)

    return statements


# =============================================================================
# CREATION AND DELETION
# =============================================================================

def build_grant_statement(
    spec: DesiredGrantSpec,
    principal: Principal,
    tls_option: Optional[str],
    capabilities: ServerCapabilities,
) -> str:
    """
    Build the GRANT statement creating one declared entry.

    - ``ON <scope>`` is left out for role-based entries
    - ``REQUIRE <tls_option>`` only on servers without role support
    - ``WITH GRANT OPTION`` only for privilege entries granted to a user on
      servers without role support

    Raises:
        RoleSupportRequiredError: If the entry grants roles and the server lacks role support
    """
    if spec.is_role_based and not capabilities.supports_roles:
        raise RoleSupportRequiredError()

    if spec.is_role_based:
        statement = grant_statement(spec.roles, spec.scope, principal, roles=True)
    else:
        statement = grant_statement(spec.privileges, spec.scope, principal)

    # MySQL 8+ doesn't allow REQUIRE on a GRANT statement.
    if not capabilities.supports_roles and tls_option:
        statement += f" REQUIRE {tls_option}"

    if not capabilities.supports_roles and not principal.is_role and not spec.is_role_based and spec.grant:
        statement += " WITH GRANT OPTION"

    return statement


def plan_creation(
    specs: Sequence[DesiredGrantSpec],
    principal: Principal,
    tls_option: Optional[str],
    capabilities: ServerCapabilities,
) -> List[str]:
    """
    Plan one GRANT per declared entry, in declared order.

    Every entry is validated before any statement is planned.
    """
    if not capabilities.supports_roles and any(s.is_role_based for s in specs):
        raise RoleSupportRequiredError()
    return [build_grant_statement(spec, principal, tls_option, capabilities) for spec in specs]


@dataclass(frozen=True)
class DeletionPlan:
    """
    Statements removing one declared entry.

    ``guard`` (``REVOKE GRANT OPTION``) runs first when present; if the
    server answers that no such grant exists, the entry is already gone and
    ``revoke`` must not run.
    """

    guard: Optional[str]
    revoke: str

    @property
    def statements(self) -> List[str]:
        return [s for s in (self.guard, self.revoke) if s]


def plan_deletion(
    scope: Scope,
    principal: Principal,
    privileges: Sequence[str] = (),
    roles: Sequence[str] = (),
) -> DeletionPlan:
    """
    Plan the removal of one entry.

    Revokes the declared roles if any, else the declared privileges, else
    ``ALL`` on the scope.
    """
    guard = None
    if not principal.is_role and not roles:
        guard = revoke_grant_option_statement(scope, principal)

    if roles:
        revoke = revoke_statement(list(roles), scope, principal, roles=True)
    elif privileges:
        revoke = revoke_statement(list(privileges), scope, principal)
    else:
        revoke = revoke_statement(["ALL"], scope, principal)

    return DeletionPlan(guard=guard, revoke=revoke)
