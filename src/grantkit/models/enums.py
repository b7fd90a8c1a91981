"""
Enum definitions for MySQL grant models.

This module contains the enumeration types used throughout the reconciler.
"""

from enum import Enum


class PrincipalKind(str, Enum):
    """Identifies who a grant is given to."""
    USER = "USER"  # 'user'@'host'
    ROLE = "ROLE"  # 'role', MySQL 8+ only
