"""
Server capability probing.

Which statements are legal depends on the server version: roles, and the
rules for REQUIRE and WITH GRANT OPTION that come with them, start at
MySQL 8.0.0. The probe runs once per operation and its result is passed
explicitly to the planning functions.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

from grantkit.connection import Connection

logger = logging.getLogger(__name__)

ROLE_SUPPORT_VERSION = Version("8.0.0")

_VERSION_PREFIX = re.compile(r"^\s*(\d+(?:\.\d+){0,2})")


class CapabilityProbeError(Exception):
    """Raised when the server version cannot be determined."""

    def __init__(self, message: str, raw_version: str = ""):
        self.raw_version = raw_version
        super().__init__(message)


@dataclass(frozen=True)
class ServerCapabilities:
    """What the target server supports, as far as grant statements go."""

    version: Version
    supports_roles: bool

    @classmethod
    def from_version(cls, version: Version) -> "ServerCapabilities":
        """Derive capabilities from a parsed server version."""
        return cls(version=version, supports_roles=version >= ROLE_SUPPORT_VERSION)

    @classmethod
    def for_version(cls, version: str) -> "ServerCapabilities":
        """Derive capabilities from a version string such as ``8.0.32-log``."""
        return cls.from_version(parse_server_version(version))


def parse_server_version(raw: str) -> Version:
    """
    Parse the numeric part of a ``SELECT VERSION()`` result.

    Distribution suffixes (``-log``, ``-0ubuntu0.22.04.1``, ``-MariaDB``)
    are ignored.

    Raises:
        CapabilityProbeError: If no version number can be found
    """
    match = _VERSION_PREFIX.match(raw or "")
    if not match:
        raise CapabilityProbeError(f"unrecognized server version: {raw!r}", raw)
    try:
        return Version(match.group(1))
    except InvalidVersion as e:
        raise CapabilityProbeError(f"unrecognized server version: {raw!r}", raw) from e


def server_version(connection: Connection) -> Version:
    """Query and parse the server version."""
    try:
        rows = connection.query("SELECT VERSION()")
    except Exception as e:
        raise CapabilityProbeError(f"could not read server version: {e}") from e
    if not rows:
        raise CapabilityProbeError("SELECT VERSION() returned no rows")
    return parse_server_version(rows[0])


def probe_capabilities(connection: Connection) -> ServerCapabilities:
    """
    Probe the server behind a connection.

    Returns:
        ServerCapabilities with the version and role support flag

    Raises:
        CapabilityProbeError: If the version cannot be read or parsed
    """
    capabilities = ServerCapabilities.from_version(server_version(connection))
    logger.debug(f"Server version {capabilities.version}, roles supported: {capabilities.supports_roles}")
    return capabilities
