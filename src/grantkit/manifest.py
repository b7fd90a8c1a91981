"""
Grants manifest for declarative desired state.

Teams declare the grants of their accounts and roles in a YAML or JSON
manifest and load it at runtime.

Usage:
    from grantkit.manifest import load_grants_manifest

    manifest = load_grants_manifest("./grants.yml")
    for block in manifest.accounts:
        executor.update(block)

Example manifest (grants.yml):
    version: "1.0"
    accounts:
      - user: jdoe
        host: example.com
        grants:
          - database: "*"
            privileges: [USAGE]
          - database: app
            privileges: [SELECT, UPDATE]
      - role: reporting
        grants:
          - database: app
            table: orders
            privileges: ["SELECT (id, total)"]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Union

import yaml
from pydantic import BaseModel, Field, model_validator

from grantkit.models import GrantsBlock


class GrantsManifest(BaseModel):
    """
    Desired grants of a set of accounts and roles.

    Attributes:
        version: Manifest schema version (currently "1.0")
        accounts: One grants block per account or role
    """

    version: str = Field(default="1.0", pattern=r"^\d+\.\d+$")
    accounts: List[GrantsBlock] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_no_duplicate_accounts(self) -> "GrantsManifest":
        """Ensure each account or role is declared once."""
        ids = [block.resource_id for block in self.accounts]
        if len(ids) != len(set(ids)):
            duplicates = [i for i in ids if ids.count(i) > 1]
            raise ValueError(f"Duplicate accounts in manifest: {set(duplicates)}")
        return self


def load_grants_manifest(path: Union[str, Path]) -> GrantsManifest:
    """
    Load a grants manifest from a YAML or JSON file.

    Fails fast on any validation error - invalid syntax, missing required
    fields, entries declaring both privileges and roles, etc.

    Args:
        path: Path to the manifest file (.yml, .yaml or .json)

    Returns:
        Validated GrantsManifest

    Raises:
        FileNotFoundError: If the manifest file doesn't exist
        ValueError: If the path is not a file or has an unknown suffix
        pydantic.ValidationError: If the manifest structure is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Manifest file not found: {path}")

    if not path.is_file():
        raise ValueError(f"Manifest path is not a file: {path}")

    content = path.read_text(encoding="utf-8")
    suffix = path.suffix.lower()
    if suffix in (".yml", ".yaml"):
        data = yaml.safe_load(content) or {}
    elif suffix == ".json":
        data = json.loads(content)
    else:
        raise ValueError(f"Unsupported manifest format: {path.suffix}")

    return GrantsManifest.model_validate(data)


__all__ = [
    "GrantsManifest",
    "load_grants_manifest",
]
