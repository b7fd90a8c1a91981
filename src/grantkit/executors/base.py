"""
Base executor class for MySQL grant operations.

Provides common functionality for all executors including error handling,
sequential statement execution, dry-run support and result reporting.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from mysql.connector import errors as mysql_errors

from grantkit.capabilities import CapabilityProbeError, ServerCapabilities, probe_capabilities
from grantkit.connection import Connection, is_nonexisting_grant_error

logger = logging.getLogger(__name__)

T = TypeVar('T')  # Generic type for models

# MySQL error numbers with a specific meaning for grant management
ACCESS_DENIED_ERROR_CODES = {1044, 1045, 1227}
UNKNOWN_PRINCIPAL_ERROR_CODES = {1396, 3523}


class OperationType(str, Enum):
    """Types of operations that can be performed."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    NO_OP = "NO_OP"


class StatementExecutionError(Exception):
    """Raised when the server rejects a planned statement."""

    def __init__(self, statement: str, cause: BaseException):
        self.statement = statement
        self.cause = cause
        super().__init__(f"error running SQL ({statement}): {cause}")


@dataclass
class ExecutionResult:
    """Result of an execution operation."""

    success: bool
    operation: OperationType
    resource_type: str
    resource_name: str
    message: str = ""
    error: Optional[Exception] = None
    duration_seconds: float = 0.0
    statements: List[str] = field(default_factory=list)
    changes: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """String representation of the result."""
        status = "✅" if self.success else "❌"
        return (
            f"{status} {self.operation.value} {self.resource_type} "
            f"{self.resource_name}: {self.message}"
        )


@dataclass
class ExecutionPlan:
    """Execution plan showing what will be done."""

    operations: List[ExecutionResult] = field(default_factory=list)

    def add_operation(
        self,
        operation: OperationType,
        resource_type: str,
        resource_name: str,
        statements: Optional[List[str]] = None
    ):
        """Add an operation to the plan."""
        self.operations.append(ExecutionResult(
            success=True,  # Plan assumes success
            operation=operation,
            resource_type=resource_type,
            resource_name=resource_name,
            message="Planned",
            statements=statements or []
        ))

    @property
    def statements(self) -> List[str]:
        """All planned statements in execution order."""
        return [s for op in self.operations for s in op.statements]

    def __str__(self) -> str:
        """String representation of the plan."""
        if not self.operations:
            return "No operations planned"

        lines = ["Execution Plan:"]
        for i, op in enumerate(self.operations, 1):
            lines.append(f"  {i}. {op.operation.value} {op.resource_type} {op.resource_name}")
            for statement in op.statements:
                lines.append(f"      {statement}")

        lines.append(f"\nTotal statements: {len(self.statements)}")

        return "\n".join(lines)


class BaseExecutor(ABC, Generic[T]):
    """
    Base class for all grant executors.

    Provides common functionality including:
    - Sequential statement execution stopping at the first failure
    - Dry-run mode support
    - Error handling and audit logging

    Statements are never retried and never rolled back: each one is applied
    on its own and the server is re-read on the next pass.
    """

    def __init__(
        self,
        connection: Connection,
        dry_run: bool = False,
        continue_on_error: bool = False,
    ):
        """
        Initialize the executor.

        Args:
            connection: Connection to the MySQL server
            dry_run: If True, only show what would be done
            continue_on_error: Return failed results instead of raising
        """
        self.connection = connection
        self.dry_run = dry_run
        self.continue_on_error = continue_on_error
        self.results: List[ExecutionResult] = []

    @abstractmethod
    def create(self, resource: T) -> ExecutionResult:
        """
        Create a new resource.

        Args:
            resource: The resource to create

        Returns:
            ExecutionResult indicating success or failure
        """
        pass

    @abstractmethod
    def update(self, resource: T, previous: Optional[T] = None) -> ExecutionResult:
        """
        Converge an existing resource to its declared state.

        Args:
            resource: The desired resource
            previous: The previously declared resource; read from the server if omitted

        Returns:
            ExecutionResult indicating success or failure
        """
        pass

    @abstractmethod
    def delete(self, resource: T) -> ExecutionResult:
        """
        Delete a resource.

        Args:
            resource: The resource to delete

        Returns:
            ExecutionResult indicating success or failure
        """
        pass

    @abstractmethod
    def exists(self, resource: T, capabilities: Optional[ServerCapabilities] = None) -> bool:
        """
        Check if a resource exists.

        Args:
            resource: The resource to check
            capabilities: Server capabilities, queried if omitted

        Returns:
            True if resource exists, False otherwise
        """
        pass

    @abstractmethod
    def get_resource_type(self) -> str:
        """Get the type of resource this executor handles."""
        pass

    @abstractmethod
    def plan_statements(
        self,
        resource: T,
        previous: Optional[T] = None,
        capabilities: Optional[ServerCapabilities] = None,
    ) -> List[str]:
        """Statements that would converge the resource from its current server state."""
        pass

    @abstractmethod
    def plan_creation(self, resource: T, capabilities: Optional[ServerCapabilities] = None) -> List[str]:
        """Statements creating the resource."""
        pass

    def capabilities(self, capabilities: Optional[ServerCapabilities] = None) -> ServerCapabilities:
        """
        Capabilities for the current operation.

        Returns ``capabilities`` when the caller already has them, otherwise
        asks the server for its version.
        """
        if capabilities is not None:
            return capabilities
        return probe_capabilities(self.connection)

    def plan(self, resources: List[T]) -> ExecutionPlan:
        """
        Generate an execution plan for a list of resources.

        The server version is read once for the whole plan.

        Args:
            resources: List of resources to process

        Returns:
            ExecutionPlan showing what would be done
        """
        plan = ExecutionPlan()
        capabilities = self.capabilities()

        for resource in resources:
            name = self._get_resource_name(resource)
            if not self.exists(resource, capabilities):
                plan.add_operation(OperationType.CREATE, self.get_resource_type(), name,
                                   self.plan_creation(resource, capabilities))
                continue

            statements = self.plan_statements(resource, capabilities=capabilities)
            if statements:
                plan.add_operation(OperationType.UPDATE, self.get_resource_type(), name, statements)
            else:
                plan.add_operation(OperationType.NO_OP, self.get_resource_type(), name)

        return plan

    def run_statements(
        self,
        statements: Sequence[str],
        operation: OperationType,
        resource_name: str,
    ) -> ExecutionResult:
        """
        Execute planned statements in order.

        Stops at the first statement the server rejects. Statements already
        applied stay applied.

        Args:
            statements: Statements to run
            operation: Operation the statements implement
            resource_name: Resource name for logging

        Returns:
            ExecutionResult listing the statements run (or planned, in dry-run mode)
        """
        start_time = time.time()

        if not statements:
            return self._record(ExecutionResult(
                success=True,
                operation=OperationType.NO_OP,
                resource_type=self.get_resource_type(),
                resource_name=resource_name,
                message="No changes needed",
            ))

        if self.dry_run:
            for statement in statements:
                logger.info(f"[DRY RUN] Would run: {statement}")
            return self._record(ExecutionResult(
                success=True,
                operation=operation,
                resource_type=self.get_resource_type(),
                resource_name=resource_name,
                message=f"Would run {len(statements)} statements (dry run)",
                statements=list(statements),
            ))

        executed: List[str] = []
        for statement in statements:
            try:
                self.execute(statement)
            except StatementExecutionError as e:
                return self._handle_error(operation, resource_name, e, executed)
            executed.append(statement)

        return self._record(ExecutionResult(
            success=True,
            operation=operation,
            resource_type=self.get_resource_type(),
            resource_name=resource_name,
            message=f"Ran {len(executed)} statements",
            duration_seconds=time.time() - start_time,
            statements=executed,
        ))

    def execute(self, statement: str) -> int:
        """
        Execute a single statement.

        Raises:
            StatementExecutionError: Wrapping whatever the connection raised
        """
        logger.debug(f"SQL: {statement}")
        try:
            return self.connection.execute(statement)
        except Exception as e:
            raise StatementExecutionError(statement, e) from e

    def _record(self, result: ExecutionResult) -> ExecutionResult:
        self.results.append(result)
        logger.info(str(result))
        return result

    def _handle_error(
        self,
        operation: OperationType,
        resource_name: str,
        error: Exception,
        executed: Optional[List[str]] = None,
    ) -> ExecutionResult:
        """
        Handle an error during execution.

        Args:
            operation: The operation that failed
            resource_name: Name of the resource
            error: The exception that occurred
            executed: Statements applied before the failure

        Returns:
            ExecutionResult with error details
        """
        cause = error.cause if isinstance(error, StatementExecutionError) else error
        errno = getattr(cause, "errno", None)

        # Provide specific error messages for server errors
        if is_nonexisting_grant_error(error):
            message = f"No such grant: {str(error)}"
        elif errno in ACCESS_DENIED_ERROR_CODES:
            message = f"Permission denied: {str(error)}. Check that the login user holds the privileges it grants and GRANT OPTION."
        elif errno in UNKNOWN_PRINCIPAL_ERROR_CODES:
            message = f"Unknown user or role: {str(error)}"
        elif isinstance(cause, mysql_errors.InterfaceError):
            message = f"Connection failed: {str(error)}. Check host, port and credentials."
        elif isinstance(cause, mysql_errors.ProgrammingError):
            message = f"Invalid statement: {str(error)}. Check privilege and object names."
        elif isinstance(error, CapabilityProbeError):
            message = f"Could not determine server capabilities: {str(error)}"
        else:
            message = str(error)

        result = ExecutionResult(
            success=False,
            operation=operation,
            resource_type=self.get_resource_type(),
            resource_name=resource_name,
            message=message,
            error=error,
            statements=list(executed or []),
        )

        self.results.append(result)
        logger.error(f"Operation failed: {result}")

        if not self.continue_on_error:
            raise error

        return result

    def _get_resource_name(self, resource: T) -> str:
        """
        Get the name of a resource.

        Args:
            resource: The resource

        Returns:
            Resource name for logging
        """
        for attr in ['resource_id', 'name']:
            if hasattr(resource, attr):
                return str(getattr(resource, attr))
        return str(resource)

    def get_summary(self) -> str:
        """
        Get a summary of execution results.

        Returns:
            Summary string
        """
        if not self.results:
            return "No operations performed"

        successful = sum(1 for r in self.results if r.success)
        failed = sum(1 for r in self.results if not r.success)

        lines = [
            "Execution Summary:",
            f"  Total operations: {len(self.results)}",
            f"  Successful: {successful}",
            f"  Failed: {failed}"
        ]

        if failed > 0:
            lines.append("\nFailed operations:")
            for result in self.results:
                if not result.success:
                    lines.append(f"  - {result}")

        return "\n".join(lines)
