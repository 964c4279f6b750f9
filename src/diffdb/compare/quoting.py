"""
SQL quoting for identifiers and string literals.

Table names come from the catalog and may contain any character,
including double and single quotes, so they are always quoted and escaped
rather than validated against a whitelist. The rules match PostgreSQL's
quote_ident (forced) and quote_literal with standard_conforming_strings on.
"""

from diffdb.models import TableIdentity


def _reject_nul(value: str, kind: str) -> None:
    if "\x00" in value:
        raise ValueError(f"{kind} cannot contain NUL characters: {value!r}")


def quote_identifier(identifier: str) -> str:
    """
    Quote a single identifier component.

    Args:
        identifier: Schema, table or column name exactly as stored in the catalog

    Returns:
        Double-quoted identifier with embedded double quotes doubled

    Raises:
        ValueError: If the identifier is empty or contains NUL
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")
    _reject_nul(identifier, "SQL identifier")

    return '"' + identifier.replace('"', '""') + '"'


def quote_table(table: TableIdentity) -> str:
    """
    Quote a schema-qualified table name.

    Example:
        >>> quote_table(TableIdentity("public", 'odd"name'))
        '"public"."odd""name"'
    """
    return f"{quote_identifier(table.schema)}.{quote_identifier(table.name)}"


def quote_literal(value: str) -> str:
    """
    Quote a string literal, doubling embedded single quotes.

    Raises:
        ValueError: If the value contains NUL
    """
    _reject_nul(value, "SQL literal")
    return "'" + value.replace("'", "''") + "'"
