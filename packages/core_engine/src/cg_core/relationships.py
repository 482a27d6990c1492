"""Foreign-key graph resolution: keys, entity codes, base tables and edges."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from cg_core.catalog import SchemaCatalog, column_identifier
from cg_core.errors import CyclicReferenceError
from cg_core.grouping import resolve_category
from cg_core.naming import DEFAULT_QUALIFIERS
from cg_core.records import ForeignKeyRef, SchemaRecord

FILL_IN = "FILL_IN"
ENTITY_CODE_SEPARATOR = "."
DEFAULT_ROW_GUID_COLUMN = "rowguid"
DEFAULT_DISPLAY_NAME_COLUMN = "name"

ROW_GUID = "row_guid"
PRIMARY_KEY = "primary_key"
COMPOSITE_KEY = "composite_key"
UNRESOLVED = "unresolved"


@dataclass(frozen=True)
class Hop:
    """One foreign-key step: ``table.column`` references ``referenced_table.referenced_column``."""

    table: str
    column: str
    referenced_table: str
    referenced_column: str

    def as_tuple(self) -> Tuple[str, str, str]:
        return (self.table, self.column, self.referenced_column)


@dataclass(frozen=True)
class BaseTable:
    table: str
    key_column: str
    hops: Tuple[Hop, ...]

    @property
    def hop_count(self) -> int:
        return len(self.hops)


@dataclass(frozen=True)
class EntityCode:
    strategy: str
    columns: Tuple[str, ...] = ()

    @property
    def resolved(self) -> bool:
        return self.strategy != UNRESOLVED

    @property
    def expression(self) -> str:
        if not self.resolved:
            return FILL_IN
        parts = ENTITY_CODE_SEPARATOR.join("{input.%s}" % column for column in self.columns)
        return f'$"{parts}"'


class RelationshipResolver:
    """Answers key and relationship questions against one immutable catalog."""

    def __init__(
        self,
        catalog: SchemaCatalog,
        row_guid_column: str = DEFAULT_ROW_GUID_COLUMN,
        display_name_column: str = DEFAULT_DISPLAY_NAME_COLUMN,
        qualifiers: Sequence[str] = DEFAULT_QUALIFIERS,
    ) -> None:
        self.catalog = catalog
        self.row_guid_column = row_guid_column.lower()
        self.display_name_column_name = display_name_column.lower()
        self.qualifiers = tuple(qualifiers)
        # A walk visits each table at most once; the extra hop covers a
        # target that is referenced but never described.
        self.max_hops = len(catalog) + 1

    def primary_keys(self, table: str) -> List[SchemaRecord]:
        return [record for record in self.catalog.records(table) if record.is_primary_key]

    def foreign_keys(self, table: str) -> List[SchemaRecord]:
        return [record for record in self.catalog.records(table) if record.foreign_key is not None]

    def row_guid(self, table: str) -> Optional[SchemaRecord]:
        for record in self.catalog.records(table):
            if record.column.lower() == self.row_guid_column:
                return record
        return None

    def entity_code(self, table: str, ignore_row_guid: bool = False) -> EntityCode:
        """Pick the natural key of ``table``.

        Priority: row identifier column, single primary key, all primary keys
        in column order, otherwise unresolved.
        """
        if not ignore_row_guid:
            row_guid = self.row_guid(table)
            if row_guid is not None:
                return EntityCode(ROW_GUID, (column_identifier(row_guid),))

        keys = self.primary_keys(table)
        if len(keys) == 1:
            return EntityCode(PRIMARY_KEY, (column_identifier(keys[0]),))
        if len(keys) > 1:
            return EntityCode(COMPOSITE_KEY, tuple(column_identifier(key) for key in keys))
        return EntityCode(UNRESOLVED)

    def display_name_column(self, table: str) -> Optional[SchemaRecord]:
        for record in self.catalog.records(table):
            if record.column.lower() == self.display_name_column_name:
                return record
        return None

    def resolve_base_table(self, record: SchemaRecord) -> BaseTable:
        """Follow foreign keys from ``record`` until a key that references nothing.

        The walk stops at the first referenced column that carries no further
        reference, or that the catalog does not describe at all. Raises
        :class:`CyclicReferenceError` when a table comes up twice.
        """
        if record.foreign_key is None:
            raise ValueError(f"{record.table}.{record.column} has no foreign-key reference")

        ref: ForeignKeyRef = record.foreign_key
        hops: List[Hop] = [Hop(record.table, record.column, ref.table, ref.column)]
        visited = set()
        path = [record.table]

        while True:
            path.append(ref.table)
            table_key = ref.table.lower()
            if table_key in visited or len(hops) > self.max_hops:
                raise CyclicReferenceError(record.table, record.column, path)
            visited.add(table_key)

            target = self.catalog.find(ref.table, ref.column)
            if target is None or target.foreign_key is None:
                table = self.catalog.table_name(ref.table) or ref.table
                key_column = target.column if target is not None else ref.column
                return BaseTable(table=table, key_column=key_column, hops=tuple(hops))

            ref = target.foreign_key
            hops.append(Hop(target.table, target.column, ref.table, ref.column))

    def edge_target(self, ref: ForeignKeyRef) -> str:
        """Entity type path of the table a foreign key points at."""
        first = self.catalog.first_record(ref.table)
        return resolve_category(ref.table, first, self.qualifiers).entity_type_path
