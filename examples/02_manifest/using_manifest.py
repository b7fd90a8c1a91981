"""
Example: Using a grants manifest.

Teams declare the grants of their accounts and roles in a YAML file and
converge the server to it at deploy time.
"""

from pathlib import Path

from grantkit import GrantsExecutor, MySQLConnection, load_grants_manifest

# Load the manifest from YAML
manifest_path = Path(__file__).parent / "grants.yml"
manifest = load_grants_manifest(manifest_path)

print(f"Manifest version: {manifest.version}")
print(f"Accounts: {[block.resource_id for block in manifest.accounts]}")

with MySQLConnection.connect() as connection:
    executor = GrantsExecutor(connection, continue_on_error=True)

    for block in manifest.accounts:
        if executor.exists(block):
            executor.update(block)
        else:
            executor.create(block)

    print(executor.get_summary())
