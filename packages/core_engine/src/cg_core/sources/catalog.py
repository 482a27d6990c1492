"""Flattened relational catalog: a CSV export or a live SQL Server query."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from cg_core.config import SourceConfig
from cg_core.errors import MalformedRecordError, SourceError
from cg_core.records import ForeignKeyRef, SchemaRecord, clean_optional, make_record
from cg_core.sources.base import SchemaSource, SourceResult, read_csv_rows

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = (
    "Table",
    "ColumnName",
    "ColumnDescription",
    "ColumnType",
    "isPrimaryKey",
    "PrimaryTable",
    "PkColumnName",
)

CATALOG_QUERY = """
select schema_name(tab.schema_id) + '.' + tab.name as [Table],
    col.name as ColumnName,
    sep.value as ColumnDescription,
    types.name as ColumnType,
    pk_cols.index_id as isPrimaryKey,
    schema_name(tab_fk.schema_id) + '.' + tab_fk.name as PrimaryTable,
    fks.name as PkColumnName
from sys.tables tab
inner join sys.columns col
    on col.object_id = tab.object_id
left outer join (
    select index_cols.object_id, index_cols.column_id, indexes.index_id
    from sys.index_columns index_cols
    inner join sys.indexes indexes
        on indexes.object_id = index_cols.object_id
        and indexes.index_id = index_cols.index_id
    where indexes.is_primary_key = 1
        and index_cols.key_ordinal != 0
) pk_cols
    on pk_cols.object_id = col.object_id
    and pk_cols.column_id = col.column_id
outer apply (
    select top 1 fk_cols.referenced_object_id, fk_cols.referenced_column_id
    from sys.foreign_key_columns fk_cols
    where fk_cols.parent_object_id = tab.object_id
        and fk_cols.parent_column_id = col.column_id
    order by fk_cols.constraint_object_id
) foreign_cols
left outer join sys.tables tab_fk
    on tab_fk.object_id = foreign_cols.referenced_object_id
left outer join sys.columns fks
    on fks.object_id = tab_fk.object_id
    and fks.column_id = foreign_cols.referenced_column_id
left outer join sys.systypes types
    on types.xusertype = col.user_type_id
left join sys.extended_properties sep
    on tab.object_id = sep.major_id
    and col.column_id = sep.minor_id
    and sep.name = 'MS_Description'
    and sep.class_desc = 'OBJECT_OR_COLUMN'
order by schema_name(tab.schema_id) + '.' + tab.name, col.column_id
"""


def catalog_record(row: Mapping[str, Any], line: int = 0) -> SchemaRecord:
    """Build a record from one catalog row keyed by :data:`CATALOG_COLUMNS`.

    The referenced table and column arrive as two fields; either both are set
    or neither is.
    """
    primary_table = clean_optional(row.get("PrimaryTable"))
    pk_column = clean_optional(row.get("PkColumnName"))
    foreign_key: Optional[ForeignKeyRef] = None
    if primary_table and pk_column:
        foreign_key = ForeignKeyRef(primary_table, pk_column)
    elif primary_table or pk_column:
        raise MalformedRecordError(
            "Foreign key needs both PrimaryTable and PkColumnName",
            table=clean_optional(row.get("Table")) or "",
            column=clean_optional(row.get("ColumnName")) or "",
            line=line,
        )

    return make_record(
        table=row.get("Table"),
        column=row.get("ColumnName"),
        column_type=row.get("ColumnType"),
        is_primary_key=row.get("isPrimaryKey"),
        description=row.get("ColumnDescription"),
        foreign_key=foreign_key,
        line=line,
    )


class CatalogCsvSource(SchemaSource):
    """CSV export of the catalog query, header names matched case-insensitively."""

    source_type = "catalog_csv"
    display_name = "Catalog export (CSV)"

    def read(self, config: SourceConfig) -> SourceResult:
        result = SourceResult()
        for path in self._input_files(config):
            rows = read_csv_rows(path, delimiter=config.delimiter, encoding=config.encoding)
            header = next(rows, None)
            if header is None:
                result.warnings.append(f"{path}: empty catalog export")
                continue
            try:
                positions = self._header_positions(header[1], path)
                for line, cells in rows:
                    row = {name: cells[index] if index < len(cells) else "" for name, index in positions.items()}
                    result.add(lambda: catalog_record(row, line=line))
            finally:
                rows.close()
        return result

    @staticmethod
    def _header_positions(cells: List[str], path: str) -> Dict[str, int]:
        lookup = {cell.strip().lower(): index for index, cell in enumerate(cells)}
        positions: Dict[str, int] = {}
        missing = []
        for name in CATALOG_COLUMNS:
            index = lookup.get(name.lower())
            if index is None:
                missing.append(name)
            else:
                positions[name] = index
        if "Table" in missing or "ColumnName" in missing:
            raise SourceError(f"{path}: catalog export needs Table and ColumnName headers")
        if missing:
            logger.info("%s: no %s column(s), treating them as empty", path, ", ".join(missing))
        return positions


class SqlServerCatalogSource(SchemaSource):
    source_type = "sqlserver"
    display_name = "SQL Server catalog"
    required_package = "pyodbc"
    default_port = 1433

    def _build_conn_string(self, config: SourceConfig) -> str:
        if config.connection_string:
            return config.connection_string

        server = config.host or "localhost"
        port = config.port or self.default_port
        if port:
            server = f"{server},{port}"

        parts = [
            f"DRIVER={{{config.odbc_driver}}}",
            f"SERVER={server}",
            f"DATABASE={config.database}",
            "Encrypt=yes",
            "TrustServerCertificate=yes",
            "Connection Timeout=10",
        ]
        if config.user:
            parts.extend([
                f"UID={config.user}",
                f"PWD={config.password or ''}",
            ])
        else:
            parts.append("Trusted_Connection=yes")
        return ";".join(parts)

    def _connect(self, config: SourceConfig):
        import pyodbc

        return pyodbc.connect(self._build_conn_string(config), autocommit=True)

    def read(self, config: SourceConfig) -> SourceResult:
        try:
            conn = self._connect(config)
        except ImportError as exc:
            raise SourceError("pyodbc not installed. Run: pip install pyodbc") from exc
        except Exception as exc:
            raise SourceError(f"Cannot connect to SQL Server: {exc}") from exc

        try:
            cursor = conn.cursor()
            cursor.execute(CATALOG_QUERY)
            names = [column[0] for column in cursor.description]
            fetched = [dict(zip(names, values)) for values in cursor.fetchall()]
        except Exception as exc:
            raise SourceError(f"Catalog query failed: {exc}") from exc
        finally:
            conn.close()

        return self.records_from_rows(fetched, config.exclude_schemas)

    @staticmethod
    def records_from_rows(rows: Iterable[Mapping[str, Any]], exclude_schemas: Iterable[str] = ()) -> SourceResult:
        """One record per catalog column.

        Rows repeating a (table, column) pair are folded into the first one: a
        key flag or foreign key from any of them is kept.
        """
        excluded = {schema.lower() for schema in exclude_schemas}
        merged: Dict[Tuple[str, str], Dict[str, Any]] = {}
        lines: Dict[Tuple[str, str], int] = {}
        skipped = 0
        for index, row in enumerate(rows, start=1):
            table = str(row.get("Table") or "")
            if table.split(".", 1)[0].lower() in excluded:
                skipped += 1
                continue
            key = (table.lower(), str(row.get("ColumnName") or "").lower())
            first = merged.get(key)
            if first is None:
                merged[key] = dict(row)
                lines[key] = index
                continue
            for name in CATALOG_COLUMNS:
                if clean_optional(first.get(name)) is None and clean_optional(row.get(name)) is not None:
                    first[name] = row.get(name)
        if skipped:
            logger.info("Excluded %d catalog rows by schema", skipped)

        result = SourceResult()
        for key, row in merged.items():
            result.add(lambda: catalog_record(row, line=lines[key]))
        return result
