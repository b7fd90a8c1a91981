"""
Principal models for MySQL grants.

A grant is given either to an account (``'user'@'host'``) or, on MySQL 8 and
above, to a role (``'role'``). The resolver below decides which one a set of
declared attributes denotes.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

from pydantic import Field, computed_field

from .base import BaseGrantModel
from .enums import PrincipalKind

logger = logging.getLogger(__name__)


class PrincipalResolutionError(ValueError):
    """Raised when declared user/host/role attributes do not name a principal."""


class RoleSupportRequiredError(PrincipalResolutionError):
    """Raised when a role is used against a server without role support."""

    def __init__(self, what: str = "Roles"):
        super().__init__(f"{what} are only supported on MySQL 8 and above")


class UserPrincipal(BaseGrantModel):
    """An account principal, ``'user'@'host'``."""

    user: str = Field(..., min_length=1, description="Account user name")
    host: str = Field(..., min_length=1, description="Account host")

    @property
    def kind(self) -> PrincipalKind:
        return PrincipalKind.USER

    @property
    def is_role(self) -> bool:
        return False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def identifier(self) -> str:
        """Principal as written in GRANT/REVOKE statements."""
        return f"'{self.user}'@'{self.host}'"


class RolePrincipal(BaseGrantModel):
    """A role principal, ``'role'``."""

    name: str = Field(..., min_length=1, description="Role name")

    @property
    def kind(self) -> PrincipalKind:
        return PrincipalKind.ROLE

    @property
    def is_role(self) -> bool:
        return True

    @computed_field  # type: ignore[prop-decorator]
    @property
    def identifier(self) -> str:
        """Principal as written in GRANT/REVOKE statements."""
        return f"'{self.name}'"


Principal = Union[UserPrincipal, RolePrincipal]


def resolve_principal(
    user: Optional[str],
    host: Optional[str],
    role: Optional[str],
    supports_roles: bool,
) -> Tuple[Principal, str]:
    """
    Decide which principal a user/host/role triple denotes.

    A complete user+host pair wins over a role when both are supplied.

    Args:
        user: Account user name, may be empty
        host: Account host, may be empty
        role: Role name, may be empty
        supports_roles: Whether the target server supports roles

    Returns:
        Tuple of the principal and its statement identifier

    Raises:
        RoleSupportRequiredError: If only a role is given and the server lacks role support
        PrincipalResolutionError: If neither user+host nor a role is given
    """
    if user and host:
        principal: Principal = UserPrincipal(user=user, host=host)
    elif role:
        if not supports_roles:
            raise RoleSupportRequiredError()
        principal = RolePrincipal(name=role)
    else:
        raise PrincipalResolutionError("user with host or a role is required")

    logger.debug(f"Resolved principal {principal.identifier}")
    return principal, principal.identifier
