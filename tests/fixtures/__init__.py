"""Test fixtures for grantkit."""

from .model_factories import (
    FakeConnection,
    make_block,
    make_grant,
    make_role,
    make_spec,
    make_user,
    no_such_grant_error,
)

__all__ = [
    "FakeConnection",
    "make_spec",
    "make_block",
    "make_grant",
    "make_user",
    "make_role",
    "no_such_grant_error",
]
