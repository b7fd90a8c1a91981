"""
Base classes and utilities for grant models.

This module contains the foundational model class and the environment-driven
defaults shared by all grant models.
"""

from __future__ import annotations

import logging
import os

from pydantic import (
    BaseModel,
    ConfigDict,
)

# Configure logging
logger = logging.getLogger(__name__)

# Host used for user principals when none is declared
DEFAULT_HOST = os.getenv('GRANTKIT_DEFAULT_HOST', 'localhost')

# TLS requirement applied on pre-8.0 servers when none is declared
DEFAULT_TLS_OPTION = os.getenv('GRANTKIT_DEFAULT_TLS_OPTION', 'NONE')

# =============================================================================
# BASE CONFIGURATION
# =============================================================================

class BaseGrantModel(BaseModel):
    """
    Base model for all grant objects with common configuration.

    Grant models are value objects: they are built fresh on each
    reconciliation pass and never mutated afterwards.
    """

    model_config = ConfigDict(
        frozen=True,  # Records are immutable once constructed
        validate_default=True,  # Validate defaults once
        populate_by_name=True,  # Allow field population by name
        use_enum_values=False,  # Keep enums as enum objects
        str_strip_whitespace=True,  # Strip whitespace from strings
        json_schema_extra={
            "title": "MySQL Grant Model",
            "description": "Base model for MySQL grant objects"
        }
    )
