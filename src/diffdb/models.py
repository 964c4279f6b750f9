"""
Data model for a comparison run.

TableIdentity values come straight from the catalog; everything else is
produced by the comparison engine and consumed by the reporting layer.
"""

from dataclasses import dataclass, field
from enum import Enum

TABLE_COUNT_SUBJECT = "Table Count"


def normalize_identifier(part: str) -> str:
    """
    Normalize one identifier component the way PostgreSQL resolves it.

    Double-quoted components keep their case and have embedded ``""``
    unescaped; bare components fold to lower case.

    Args:
        part: Identifier component, quoted or bare

    Returns:
        The identifier as stored in the catalog
    """
    part = part.strip()
    if len(part) >= 2 and part.startswith('"') and part.endswith('"'):
        return part[1:-1].replace('""', '"')
    return part.lower()


def _split_qualified_name(qualified_name: str) -> list[str]:
    """Split ``schema.table`` on the first dot outside double quotes."""
    in_quotes = False
    for i, char in enumerate(qualified_name):
        if char == '"':
            in_quotes = not in_quotes
        elif char == '.' and not in_quotes:
            return [qualified_name[:i], qualified_name[i + 1:]]
    return [qualified_name]


@dataclass(frozen=True, order=True)
class TableIdentity:
    """A base table within one database, ordered by (schema, name)."""

    schema: str
    name: str

    @classmethod
    def parse(cls, qualified_name: str, default_schema: str = "public") -> "TableIdentity":
        """
        Build an identity from a possibly quoted ``schema.table`` string.

        Raises:
            ValueError: If the name is empty or has more than two components
        """
        if not qualified_name or not qualified_name.strip():
            raise ValueError("Table name cannot be empty")

        parts = _split_qualified_name(qualified_name)
        if len(parts) == 1:
            return cls(default_schema, normalize_identifier(parts[0]))
        if len(_split_qualified_name(parts[1])) > 1:
            raise ValueError(f"Invalid schema.table format: {qualified_name}")
        return cls(normalize_identifier(parts[0]), normalize_identifier(parts[1]))

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    def __str__(self) -> str:
        return self.qualified_name


TableInventory = tuple[TableIdentity, ...]


class OutcomeStatus(str, Enum):
    """Verdict for a single table."""

    MATCHED = "MATCHED"
    MISMATCH = "MISMATCH"
    SKIPPED = "SKIPPED"


@dataclass(frozen=True)
class StrategyOutcome:
    """Result of running one comparison strategy against one table."""

    table: TableIdentity
    status: OutcomeStatus
    description: str = ""

    @classmethod
    def matched(cls, table: TableIdentity) -> "StrategyOutcome":
        return cls(table, OutcomeStatus.MATCHED)

    @classmethod
    def mismatch(cls, table: TableIdentity, description: str) -> "StrategyOutcome":
        return cls(table, OutcomeStatus.MISMATCH, description)

    @classmethod
    def skipped(cls, table: TableIdentity, reason: str) -> "StrategyOutcome":
        return cls(table, OutcomeStatus.SKIPPED, reason)


@dataclass
class ComparisonUnit:
    """One table's extracted representation from both databases."""

    table: TableIdentity
    base_value: int | None = None
    test_value: int | None = None
    base_artifact: str | None = None
    test_artifact: str | None = None


@dataclass(frozen=True)
class MismatchRecord:
    """A table (or the table inventory) whose data differs between the databases."""

    subject: str
    description: str


@dataclass(frozen=True)
class SkippedTable:
    """A table that could not be verified; reported as a warning only."""

    subject: str
    reason: str


@dataclass(frozen=True)
class RunResult:
    """Outcome of one comparison run."""

    overall_match: bool
    matched_table_count: int
    total_table_count: int
    mismatches: tuple[MismatchRecord, ...] = ()
    skipped: tuple[SkippedTable, ...] = ()
    stopped_early: bool = False

    @property
    def mismatch_count(self) -> int:
        return len(self.mismatches)

    @property
    def skip_count(self) -> int:
        return len(self.skipped)

    def to_dict(self) -> dict:
        return {
            "overall_match": self.overall_match,
            "matched_table_count": self.matched_table_count,
            "total_table_count": self.total_table_count,
            "mismatches": [
                {"subject": m.subject, "description": m.description}
                for m in self.mismatches
            ],
            "skipped": [
                {"subject": s.subject, "reason": s.reason} for s in self.skipped
            ],
            "stopped_early": self.stopped_early,
        }


@dataclass
class RunCounters:
    """Mutable tallies owned by a single RunContext."""

    matched: int = 0
    mismatches: list[MismatchRecord] = field(default_factory=list)
    skipped: list[SkippedTable] = field(default_factory=list)
