"""Exception taxonomy for metadata ingestion, resolution and artifact output.

Every error knows the table it belongs to so the orchestrator can skip that
table, keep going with the rest of the run and list the reason in the final
report.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from cg_core.issues import Issue, table_path


class CrawlGenError(Exception):
    """Base class for generator errors."""

    code = "GENERATION_FAILED"
    severity = "error"

    def __init__(self, message: str, table: str = "", column: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.table = table
        self.column = column

    @property
    def path(self) -> str:
        if not self.table:
            return "/"
        return table_path(self.table, self.column)

    def to_issue(self) -> Issue:
        return Issue(
            severity=self.severity,
            code=self.code,
            message=self.message,
            path=self.path,
        )

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class MalformedRecordError(CrawlGenError):
    """A raw record is missing a required field or names nothing usable."""

    code = "MALFORMED_RECORD"

    def __init__(self, message: str, table: str = "", column: str = "", line: int = 0) -> None:
        if line:
            message = f"{message} (line {line})"
        super().__init__(message, table=table, column=column)
        self.line = line


class UnresolvedEntityCodeError(CrawlGenError):
    """No row identifier column and no primary key.

    Never raised by the generator itself: the clue producer gets a FILL_IN
    marker and the run reports a warning built from this class.
    """

    code = "UNRESOLVED_ENTITY_CODE"
    severity = "warning"


class CyclicReferenceError(CrawlGenError):
    """Foreign-key chain revisits a table it already walked through."""

    code = "CYCLIC_REFERENCE"

    def __init__(self, table: str, column: str, chain: Sequence[str]) -> None:
        joined = " -> ".join(chain)
        super().__init__(
            f"Foreign-key chain from {table}.{column} never reaches a base table: {joined}",
            table=table,
            column=column,
        )
        self.chain = list(chain)


class DuplicateColumnError(CrawlGenError):
    """Two records declare the same column of one table."""

    code = "DUPLICATE_COLUMN"

    def __init__(self, table: str, column: str, identifier: str, first_line: int = 0) -> None:
        where = f" (first declared on line {first_line})" if first_line else ""
        super().__init__(
            f"Column {column!r} maps to property {identifier!r} which is already declared{where}",
            table=table,
            column=column,
        )
        self.identifier = identifier


class SinkWriteError(CrawlGenError):
    """The output sink could not persist one artifact."""

    code = "SINK_WRITE_FAILED"

    def __init__(self, artifact: str, reason: str, table: str = "", original_error: Optional[Exception] = None) -> None:
        super().__init__(f"Could not write {artifact}: {reason}", table=table)
        self.artifact = artifact
        self.original_error = original_error


class ConfigError(CrawlGenError):
    """Configuration file failed schema validation."""

    code = "CONFIG_INVALID"

    def __init__(self, message: str, issues: Optional[List[Issue]] = None) -> None:
        super().__init__(message)
        self.issues = issues or []


class SourceError(CrawlGenError):
    """A schema-record source could not be read."""

    code = "SOURCE_FAILED"


class DuplicateTableError(CrawlGenError):
    """Two distinct raw table names normalize to the same type name."""

    code = "DUPLICATE_TABLE"

    def __init__(self, table: str, other: str, identifier: str) -> None:
        super().__init__(
            f"Table {table!r} and {other!r} both normalize to {identifier!r}",
            table=table,
        )
        self.identifier = identifier
