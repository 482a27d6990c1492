"""Per-table resolved view consumed by the emitters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from cg_core.catalog import column_identifier
from cg_core.grouping import Category, resolve_category
from cg_core.inference import (
    SemanticType,
    Visibility,
    infer_display_name,
    infer_semantic_type,
    infer_visibility,
    is_quoted,
    source_type,
    storage_type,
)
from cg_core.naming import lower_camel, normalize
from cg_core.records import ForeignKeyRef, SchemaRecord
from cg_core.relationships import ROW_GUID, BaseTable, EntityCode, RelationshipResolver


@dataclass(frozen=True)
class ResolvedColumn:
    name: str
    canonical_name: str
    key: str
    semantic_type: str
    visibility: Visibility
    display_name: str
    description: Optional[str]
    storage_type: str
    source_type: str
    is_primary_key: bool = False
    foreign_key: Optional[ForeignKeyRef] = None

    @property
    def is_identifier(self) -> bool:
        return self.semantic_type == SemanticType.IDENTIFIER.value

    @property
    def quoted(self) -> bool:
        return is_quoted(self.storage_type)


@dataclass(frozen=True)
class ForeignKeyLink:
    column: ResolvedColumn
    reference: ForeignKeyRef
    target_entity_type: str
    base: BaseTable
    base_canonical_name: str


@dataclass(frozen=True)
class ResolvedTable:
    name: str
    canonical_name: str
    columns: Tuple[ResolvedColumn, ...]
    primary_keys: Tuple[ResolvedColumn, ...]
    entity_code: EntityCode
    category: Category
    foreign_keys: Tuple[ForeignKeyLink, ...] = ()
    display_name_column: Optional[ResolvedColumn] = None
    extra_code: Optional[EntityCode] = None

    @property
    def base_table_chains(self) -> Dict[str, Tuple[Tuple[str, str, str], ...]]:
        return {
            link.column.name: tuple(hop.as_tuple() for hop in link.base.hops)
            for link in self.foreign_keys
        }


def resolve_column(record: SchemaRecord) -> ResolvedColumn:
    canonical = column_identifier(record)
    semantic = infer_semantic_type(record)
    return ResolvedColumn(
        name=record.column,
        canonical_name=canonical,
        key=lower_camel(canonical),
        semantic_type=semantic,
        visibility=infer_visibility(record),
        display_name=infer_display_name(record, canonical),
        description=record.description,
        storage_type=storage_type(record),
        source_type=source_type(record, semantic),
        is_primary_key=record.is_primary_key,
        foreign_key=record.foreign_key,
    )


def resolve_table(table: str, resolver: RelationshipResolver) -> ResolvedTable:
    """Build the resolved view of ``table``.

    Raises :class:`~cg_core.errors.CyclicReferenceError` when one of its
    foreign keys never reaches a base table.
    """
    catalog = resolver.catalog
    records = catalog.records(table)
    columns = tuple(resolve_column(record) for record in records)
    by_name = {column.name: column for column in columns}

    links = []
    for record in resolver.foreign_keys(table):
        base = resolver.resolve_base_table(record)
        links.append(
            ForeignKeyLink(
                column=by_name[record.column],
                reference=record.foreign_key,
                target_entity_type=resolver.edge_target(record.foreign_key),
                base=base,
                base_canonical_name=normalize(base.table, resolver.qualifiers),
            )
        )

    entity_code = resolver.entity_code(table)
    extra_code = None
    if entity_code.strategy == ROW_GUID:
        key_code = resolver.entity_code(table, ignore_row_guid=True)
        if key_code.resolved:
            extra_code = key_code

    display = resolver.display_name_column(table)

    return ResolvedTable(
        name=table,
        canonical_name=normalize(table, resolver.qualifiers),
        columns=columns,
        primary_keys=tuple(column for column in columns if column.is_primary_key),
        entity_code=entity_code,
        category=resolve_category(table, records[0] if records else None, resolver.qualifiers),
        foreign_keys=tuple(links),
        display_name_column=by_name[display.column] if display is not None else None,
        extra_code=extra_code,
    )


def table_to_dict(table: ResolvedTable) -> Dict[str, Any]:
    """Plain-data view of a resolved table for ``cg inspect``."""
    return {
        "table": table.name,
        "type_name": table.canonical_name,
        "entity_type": table.category.entity_type_path,
        "grouping": table.category.grouping,
        "entity_code": {
            "strategy": table.entity_code.strategy,
            "columns": list(table.entity_code.columns),
        },
        "display_name_column": table.display_name_column.canonical_name if table.display_name_column else None,
        "columns": [
            {
                "name": column.name,
                "property": column.canonical_name,
                "key": column.key,
                "semantic_type": column.semantic_type,
                "visibility": column.visibility.value,
                "display_name": column.display_name,
                "storage_type": column.storage_type,
                "primary_key": column.is_primary_key,
            }
            for column in table.columns
        ],
        "foreign_keys": [
            {
                "column": link.column.name,
                "references": str(link.reference),
                "base_table": link.base.table,
                "base_key": link.base.key_column,
                "hops": link.base.hop_count,
            }
            for link in table.foreign_keys
        ],
    }
