"""Interpreter for PostgreSQL, keyed by SQLSTATE.

See https://www.postgresql.org/docs/current/errcodes-appendix.html
"""

from __future__ import annotations

from sqlfixture.interpreter.base import ErrorExplanation, TableInterpreter

POSTGRESQL_EXPLANATIONS: dict[str, ErrorExplanation] = {
    explanation.state_code: explanation
    for explanation in (
        ErrorExplanation(
            state_code="55P03",
            explanation=(
                "The table is locked, perhaps your test code has not cleaned correctly the DB "
                "resources that it used (such as doing proper commit/rollback of a transaction it started)."
            ),
            remediation="Commit or roll back every connection the test opened and close it.",
        ),
        ErrorExplanation(
            state_code="40P01",
            explanation="A deadlock was detected; two transactions wait for each other's locks.",
            remediation="Look for a connection left open by the test that still holds row or table locks.",
        ),
        ErrorExplanation(
            state_code="57P03",
            explanation="The database server doesn't accept connections right now (starting up or shutting down).",
            remediation="Wait for the server to finish starting or check that no other process is restoring it.",
        ),
        ErrorExplanation(
            state_code="53300",
            explanation="The database server refused the connection because too many clients are connected.",
            remediation="Close connections left open by earlier tests or other processes.",
        ),
        ErrorExplanation(
            state_code="3D000",
            explanation="Failed to connect to the test database, it seems it hasn't been created yet.",
            remediation="Create the database (e.g. `createdb`) and bootstrap it with `sqlfixture-create`.",
        ),
        ErrorExplanation(
            state_code="3F000",
            explanation="The schema referenced by a table name doesn't exist.",
            remediation="Table names must be fully qualified (schema.table) with a schema created by your DDL.",
        ),
    )
}


class PostgresqlInterpreter(TableInterpreter):
    database = "postgresql"
    explanations = POSTGRESQL_EXPLANATIONS
