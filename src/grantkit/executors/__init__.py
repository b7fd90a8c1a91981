"""
Executors applying grant resources to a MySQL server.

Each executor plans GRANT/REVOKE statements from the declared resource and
the server's current state, then runs them in order.
"""

from .base import (
    BaseExecutor,
    ExecutionPlan,
    ExecutionResult,
    OperationType,
    StatementExecutionError,
)
from .grant_executor import GrantExecutor, GrantsExecutor

__all__ = [
    "BaseExecutor",
    "ExecutionPlan",
    "ExecutionResult",
    "OperationType",
    "StatementExecutionError",
    "GrantExecutor",
    "GrantsExecutor",
]
