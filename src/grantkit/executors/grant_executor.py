"""
Grant executors for MySQL privilege management.

Handles creating, reading, updating and revoking grants with GRANT and
REVOKE statements:

- GrantsExecutor: a GrantsBlock, every scope granted to one principal
- GrantExecutor: a single-scope Grant
"""

import logging
from typing import List, Optional, Sequence, TypeVar

from grantkit.capabilities import ServerCapabilities
from grantkit.connection import is_nonexisting_grant_error
from grantkit.models import (
    DesiredGrantSpec,
    Grant,
    GrantRecord,
    GrantsBlock,
    Principal,
    PrincipalAttributes,
)
from grantkit.reconcile import (
    plan_block_changes,
    plan_creation,
    plan_deletion,
    plan_scope_changes,
)
from grantkit.snapshot import has_grants, read_snapshot

from .base import BaseExecutor, ExecutionResult, OperationType, StatementExecutionError

logger = logging.getLogger(__name__)

R = TypeVar('R', bound=PrincipalAttributes)


class _GrantExecutorBase(BaseExecutor[R]):
    """Snapshot reading and deletion shared by the grant executors."""

    def _principal(self, resource: R, capabilities: ServerCapabilities) -> Principal:
        return resource.resolve(capabilities.supports_roles)

    def _read_records(self, principal: Principal) -> Optional[List[GrantRecord]]:
        """
        Read the principal's grants, or None if the server has none.

        Error 1141 means the principal or its grants were removed out of
        band; the resource is then treated as absent.
        """
        try:
            return read_snapshot(self.connection, principal)
        except Exception as e:
            if is_nonexisting_grant_error(e):
                logger.warning(f"GRANT not found for {principal.identifier} - treating as absent")
                return None
            raise

    def _delete_specs(
        self,
        specs: Sequence[DesiredGrantSpec],
        principal: Principal,
        resource_name: str,
    ) -> ExecutionResult:
        """
        Revoke every declared entry.

        For user principals each entry first revokes GRANT OPTION; if the
        server reports that no such grant exists, the grants are already
        gone and the deletion ends there.
        """
        plans = [plan_deletion(s.scope, principal, s.privileges, s.roles) for s in specs]

        if self.dry_run:
            return self.run_statements(
                [statement for p in plans for statement in p.statements],
                OperationType.DELETE,
                resource_name,
            )

        executed: List[str] = []
        for deletion in plans:
            if deletion.guard:
                try:
                    self.execute(deletion.guard)
                except StatementExecutionError as e:
                    if is_nonexisting_grant_error(e):
                        logger.warning(f"error revoking GRANT ({deletion.guard}): {e.cause}")
                        return self._record(ExecutionResult(
                            success=True,
                            operation=OperationType.NO_OP,
                            resource_type=self.get_resource_type(),
                            resource_name=resource_name,
                            message="Grant already revoked",
                            statements=executed,
                        ))
                    return self._handle_error(OperationType.DELETE, resource_name, e, executed)
                executed.append(deletion.guard)

            try:
                self.execute(deletion.revoke)
            except StatementExecutionError as e:
                return self._handle_error(OperationType.DELETE, resource_name, e, executed)
            executed.append(deletion.revoke)

        return self._record(ExecutionResult(
            success=True,
            operation=OperationType.DELETE,
            resource_type=self.get_resource_type(),
            resource_name=resource_name,
            message="Revoked successfully",
            statements=executed,
        ))


class GrantsExecutor(_GrantExecutorBase[GrantsBlock]):
    """Executor for multi-scope grants blocks."""

    def get_resource_type(self) -> str:
        """Get the resource type."""
        return "GRANTS"

    def read(
        self,
        resource: GrantsBlock,
        capabilities: Optional[ServerCapabilities] = None,
    ) -> Optional[GrantsBlock]:
        """
        Read the current grants of the block's principal.

        Args:
            resource: The declared block
            capabilities: Server capabilities, queried if omitted

        Returns:
            Copy of the block declaring what the server reports, or None if
            the principal has no grants
        """
        principal = self._principal(resource, self.capabilities(capabilities))
        records = self._read_records(principal)
        if records is None:
            return None
        return resource.with_grants([record.to_spec() for record in records])

    def exists(self, resource: GrantsBlock, capabilities: Optional[ServerCapabilities] = None) -> bool:
        return self.read(resource, capabilities) is not None

    def plan_creation(
        self,
        resource: GrantsBlock,
        capabilities: Optional[ServerCapabilities] = None,
    ) -> List[str]:
        capabilities = self.capabilities(capabilities)
        principal = self._principal(resource, capabilities)
        return plan_creation(resource.grants, principal, resource.tls_option, capabilities)

    def plan_statements(
        self,
        resource: GrantsBlock,
        previous: Optional[GrantsBlock] = None,
        capabilities: Optional[ServerCapabilities] = None,
    ) -> List[str]:
        """
        Statements moving the block from its previous entries to the declared ones.

        Without ``previous`` the server's current grants are used.
        """
        capabilities = self.capabilities(capabilities)
        principal = self._principal(resource, capabilities)

        if previous is None:
            records = self._read_records(principal) or []
            old_specs: Sequence[DesiredGrantSpec] = [record.to_spec() for record in records]
        else:
            old_specs = previous.grants

        logger.debug(
            f"Updating grants for {principal.identifier}:\n"
            f" new grants: {list(resource.grants)}\n old grants: {list(old_specs)}"
        )
        return plan_block_changes(old_specs, resource.grants, principal, capabilities)

    def create(self, resource: GrantsBlock) -> ExecutionResult:
        """
        Grant every declared entry.

        Args:
            resource: The block to create

        Returns:
            ExecutionResult indicating success or failure
        """
        logger.info(f"Creating grants for {resource.resource_id}")
        return self.run_statements(self.plan_creation(resource), OperationType.CREATE, resource.resource_id)

    def update(self, resource: GrantsBlock, previous: Optional[GrantsBlock] = None) -> ExecutionResult:
        """
        Converge the block's principal to the declared entries.

        Args:
            resource: The declared block
            previous: The previously declared block; the server is read if omitted

        Returns:
            ExecutionResult indicating success or failure
        """
        logger.info(f"Updating grants for {resource.resource_id}")
        return self.run_statements(
            self.plan_statements(resource, previous), OperationType.UPDATE, resource.resource_id
        )

    def delete(self, resource: GrantsBlock) -> ExecutionResult:
        """
        Revoke every declared entry.

        Args:
            resource: The block to delete

        Returns:
            ExecutionResult indicating success or failure
        """
        logger.info(f"Deleting grants for {resource.resource_id}")
        principal = self._principal(resource, self.capabilities())
        return self._delete_specs(resource.grants, principal, resource.resource_id)


class GrantExecutor(_GrantExecutorBase[Grant]):
    """
    Executor for single-scope grants.

    ``SHOW GRANTS`` reports privileges per scope but not granted roles, so
    role-based grants are never diffed against the server: without a
    previous declaration their roles are granted again, which MySQL accepts
    as a no-op.
    """

    def get_resource_type(self) -> str:
        """Get the resource type."""
        return "GRANT"

    def read(self, resource: Grant, capabilities: Optional[ServerCapabilities] = None) -> Optional[Grant]:
        """
        Read the current privileges on the grant's scope.

        Args:
            resource: The declared grant
            capabilities: Server capabilities, queried if omitted

        Returns:
            Copy of the grant with the privileges and grant option the server
            reports for its scope (empty if the scope is not granted), or
            None if the principal has no grants
        """
        principal = self._principal(resource, self.capabilities(capabilities))
        records = self._read_records(principal)
        if records is None:
            return None

        privileges: tuple = ()
        grant_option = False
        for record in records:
            if record.scope.key == resource.spec.scope.key:
                privileges = tuple(record.sorted_privileges)
                grant_option = record.grant_option
                break

        return resource.model_copy(update={"privileges": privileges, "roles": (), "grant": grant_option})

    def exists(self, resource: Grant, capabilities: Optional[ServerCapabilities] = None) -> bool:
        """
        Check whether the grant is in place.

        Privilege grants exist when their scope holds privileges. Role grants
        exist when the principal still has any grant at all.
        """
        capabilities = self.capabilities(capabilities)
        if resource.is_role_based:
            principal = self._principal(resource, capabilities)
            return has_grants(self.connection, principal.identifier)

        current = self.read(resource, capabilities)
        return current is not None and bool(current.privileges)

    def plan_creation(self, resource: Grant, capabilities: Optional[ServerCapabilities] = None) -> List[str]:
        capabilities = self.capabilities(capabilities)
        principal = self._principal(resource, capabilities)
        return plan_creation([resource.spec], principal, resource.tls_option, capabilities)

    def plan_statements(
        self,
        resource: Grant,
        previous: Optional[Grant] = None,
        capabilities: Optional[ServerCapabilities] = None,
    ) -> List[str]:
        """
        Statements moving the grant's scope from its previous tokens to the declared ones.

        Without ``previous`` the server's current privileges on the scope are
        used; role-based grants then start from no roles.
        """
        capabilities = self.capabilities(capabilities)
        principal = self._principal(resource, capabilities)
        spec = resource.spec

        if previous is not None:
            current = previous.spec.tokens
        elif spec.is_role_based:
            current = frozenset()
        else:
            observed = self.read(resource, capabilities)
            current = frozenset(observed.privileges) if observed is not None else frozenset()

        return plan_scope_changes(spec.scope, current, spec.tokens, principal, roles=spec.is_role_based)

    def create(self, resource: Grant) -> ExecutionResult:
        """
        Grant the declared privileges or roles.

        Args:
            resource: The grant to create

        Returns:
            ExecutionResult indicating success or failure
        """
        logger.info(f"Creating grant {resource.resource_id}")
        return self.run_statements(self.plan_creation(resource), OperationType.CREATE, resource.resource_id)

    def update(self, resource: Grant, previous: Optional[Grant] = None) -> ExecutionResult:
        """
        Converge the grant's scope to the declared privileges.

        Args:
            resource: The declared grant
            previous: The previously declared grant; the server is read if omitted

        Returns:
            ExecutionResult indicating success or failure
        """
        logger.info(f"Updating grant {resource.resource_id}")
        return self.run_statements(
            self.plan_statements(resource, previous), OperationType.UPDATE, resource.resource_id
        )

    def delete(self, resource: Grant) -> ExecutionResult:
        """
        Revoke the declared privileges or roles.

        Args:
            resource: The grant to revoke

        Returns:
            ExecutionResult indicating success or failure
        """
        logger.info(f"Revoking grant {resource.resource_id}")
        principal = self._principal(resource, self.capabilities())
        return self._delete_specs([resource.spec], principal, resource.resource_id)
