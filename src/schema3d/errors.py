from __future__ import annotations


class SchemaError(ValueError):
    """A statement or block that cannot contribute to the schema.

    Raised by statement-level helpers and caught by the parser loops, which
    log it and move on to the next statement.
    """
