"""
Simple Grants Example

Shows how to declare the grants of an account and converge a server to them.
Runs in dry-run mode: the planned statements are printed, nothing is changed.

Connection settings come from GRANTKIT_MYSQL_HOST, GRANTKIT_MYSQL_USER, etc.
"""

from grantkit import (
    DesiredGrantSpec,
    Grant,
    GrantExecutor,
    GrantsBlock,
    GrantsExecutor,
    MySQLConnection,
)

# Every scope granted to one account
block = GrantsBlock(
    user="jdoe",
    host="example.com",
    grants=[
        DesiredGrantSpec(database="*", privileges=["USAGE"]),
        DesiredGrantSpec(database="app", privileges=["SELECT", "UPDATE"]),
        DesiredGrantSpec(database="app", table="users", privileges=["SELECT (id, email)"]),
    ],
)

# A single scope
grant = Grant(user="reporter", host="%", database="reports", privileges=["SELECT"])

with MySQLConnection.connect() as connection:
    grants_executor = GrantsExecutor(connection, dry_run=True)
    grant_executor = GrantExecutor(connection, dry_run=True)

    plan = grants_executor.plan([block])
    print(plan)

    if grant_executor.exists(grant):
        grant_executor.update(grant)
    else:
        grant_executor.create(grant)

    print(grant_executor.get_summary())

# Output against a server where jdoe@example.com only has USAGE:
# Execution Plan:
#   1. UPDATE GRANTS jdoe@example.com
#       GRANT SELECT, UPDATE ON `app`.* TO 'jdoe'@'example.com'
#       GRANT SELECT (email, id) ON `app`.`users` TO 'jdoe'@'example.com'
#
# Total statements: 2
