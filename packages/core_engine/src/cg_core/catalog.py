"""Immutable, table-indexed view over all ingested schema records."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from cg_core.errors import CrawlGenError, DuplicateColumnError, DuplicateTableError, MalformedRecordError
from cg_core.issues import Issue
from cg_core.naming import DEFAULT_QUALIFIERS, normalize, normalize_column, normalize_column_batch
from cg_core.records import SchemaRecord

DUPLICATE_MODES = ("error", "warn")
UNKNOWN_TABLE = "<unknown>"


def column_identifier(record: SchemaRecord) -> str:
    if record.from_header:
        return normalize_column_batch(record.column)
    return normalize_column(record.column)


class SchemaCatalog:
    """Records grouped by table in first-appearance order.

    Lookups are case-insensitive on both table and column. The catalog never
    changes after construction, so it can be shared between worker threads.
    """

    def __init__(self, records: Iterable[SchemaRecord]) -> None:
        grouped: Dict[str, List[SchemaRecord]] = {}
        table_keys: Dict[str, str] = {}
        lookup: Dict[Tuple[str, str], SchemaRecord] = {}
        for record in records:
            grouped.setdefault(record.table, []).append(record)
            table_keys.setdefault(record.table.lower(), record.table)
            lookup.setdefault((record.table.lower(), record.column.lower()), record)

        self._tables: Mapping[str, Tuple[SchemaRecord, ...]] = MappingProxyType(
            {table: tuple(rows) for table, rows in grouped.items()}
        )
        self._table_keys: Mapping[str, str] = MappingProxyType(table_keys)
        self._lookup: Mapping[Tuple[str, str], SchemaRecord] = MappingProxyType(lookup)

    @property
    def tables(self) -> List[str]:
        return list(self._tables.keys())

    def __len__(self) -> int:
        return len(self._tables)

    def __contains__(self, table: object) -> bool:
        return isinstance(table, str) and self.has_table(table)

    def has_table(self, table: str) -> bool:
        return table.lower() in self._table_keys

    def table_name(self, table: str) -> Optional[str]:
        """Spelling of ``table`` as it appears in the metadata."""
        return self._table_keys.get(table.lower())

    def records(self, table: str) -> Tuple[SchemaRecord, ...]:
        name = self.table_name(table)
        if name is None:
            return ()
        return self._tables[name]

    def first_record(self, table: str) -> Optional[SchemaRecord]:
        rows = self.records(table)
        return rows[0] if rows else None

    def find(self, table: str, column: str) -> Optional[SchemaRecord]:
        return self._lookup.get((table.lower(), column.lower()))

    def record_count(self) -> int:
        return sum(len(rows) for rows in self._tables.values())


class CatalogBuild:
    """Catalog plus everything that went wrong while building it."""

    def __init__(
        self,
        catalog: SchemaCatalog,
        rejected: Dict[str, List[CrawlGenError]],
        issues: List[Issue],
    ) -> None:
        self.catalog = catalog
        self.rejected = rejected
        self.issues = issues

    def is_rejected(self, table: str) -> bool:
        return table in self.rejected


def build_catalog(
    records: Iterable[SchemaRecord],
    malformed: Sequence[MalformedRecordError] = (),
    on_duplicate_column: str = "error",
    qualifiers: Sequence[str] = DEFAULT_QUALIFIERS,
) -> CatalogBuild:
    """Index ``records`` by table and flag tables that cannot be generated.

    A table is rejected when one of its records was malformed, when a column or
    the table itself normalizes to an empty identifier, when two columns collide
    on the same property name (``on_duplicate_column="error"``) or when its
    type name collides with an earlier table. Records with no table at all are
    rejected under ``UNKNOWN_TABLE``. With ``"warn"`` the first
    declaration of a duplicated column wins and the later one is dropped.
    """
    if on_duplicate_column not in DUPLICATE_MODES:
        raise ValueError(f"on_duplicate_column must be one of {', '.join(DUPLICATE_MODES)}")

    rejected: Dict[str, List[CrawlGenError]] = {}
    issues: List[Issue] = []

    def reject(table: str, error: CrawlGenError) -> None:
        rejected.setdefault(table, []).append(error)
        issues.append(error.to_issue())

    for error in malformed:
        reject(error.table or UNKNOWN_TABLE, error)

    kept: List[SchemaRecord] = []
    seen_columns: Dict[str, Dict[str, SchemaRecord]] = {}
    type_names: Dict[str, str] = {}

    for record in records:
        columns = seen_columns.get(record.table)
        if columns is None:
            columns = seen_columns[record.table] = {}
            type_name = normalize(record.table, qualifiers)
            if not type_name:
                reject(record.table, MalformedRecordError(
                    f"Table name {record.table!r} normalizes to an empty identifier",
                    table=record.table,
                    line=record.line,
                ))
            elif type_name in type_names:
                reject(record.table, DuplicateTableError(record.table, type_names[type_name], type_name))
            else:
                type_names[type_name] = record.table

        identifier = column_identifier(record)
        if not identifier:
            reject(record.table, MalformedRecordError(
                f"Column name {record.column!r} normalizes to an empty identifier",
                table=record.table,
                column=record.column,
                line=record.line,
            ))
            kept.append(record)
            continue

        first = columns.get(identifier)
        if first is not None:
            error = DuplicateColumnError(record.table, record.column, identifier, first.line)
            if on_duplicate_column == "error":
                reject(record.table, error)
            else:
                issues.append(Issue("warning", error.code, error.message, error.path))
                continue
        else:
            columns[identifier] = record
        kept.append(record)

    return CatalogBuild(SchemaCatalog(kept), rejected, issues)
