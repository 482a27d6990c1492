"""Normalized schema records.

Every source hands its raw rows to :func:`make_record`, which converts null
sentinels and blank strings to ``None`` and boolean-ish flags to ``bool`` once,
so nothing downstream has to re-check ``"NULL"`` strings.
"""

from dataclasses import dataclass
from typing import Any, Optional

from cg_core.errors import MalformedRecordError

NULL_SENTINELS = {"null", "none", "nil"}
FALSE_FLAGS = {"0", "false", "no", "n", "f"}


def clean_optional(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in NULL_SENTINELS:
        return None
    return text


def parse_flag(value: Any) -> bool:
    """Metadata flags are set by any non-empty value that is not an explicit no."""
    if isinstance(value, bool):
        return value
    text = clean_optional(value)
    if text is None:
        return False
    return text.lower() not in FALSE_FLAGS


@dataclass(frozen=True)
class ForeignKeyRef:
    table: str
    column: str

    @classmethod
    def parse(cls, value: Any) -> Optional["ForeignKeyRef"]:
        """Parse ``table.column``; the split is on the last dot so ``Sales.Customer.CustomerID`` works."""
        text = clean_optional(value)
        if text is None:
            return None
        if "." not in text:
            raise ValueError(f"Foreign-key reference must look like table.column, got {text!r}")
        table, column = text.rsplit(".", 1)
        table, column = table.strip(), column.strip()
        if not table or not column:
            raise ValueError(f"Foreign-key reference must look like table.column, got {text!r}")
        return cls(table=table, column=column)

    def __str__(self) -> str:
        return f"{self.table}.{self.column}"


@dataclass(frozen=True)
class SchemaRecord:
    """One column of one table as described by a metadata source."""

    table: str
    column: str
    column_type: Optional[str] = None
    is_primary_key: bool = False
    description: Optional[str] = None
    foreign_key: Optional[ForeignKeyRef] = None
    semantic_type: Optional[str] = None
    is_identifier: bool = False
    vocabulary_category: Optional[str] = None
    custom_category: Optional[str] = None
    display_name: Optional[str] = None
    from_header: bool = False
    line: int = 0


def make_record(
    table: Any,
    column: Any,
    column_type: Any = None,
    is_primary_key: Any = None,
    description: Any = None,
    foreign_key: Any = None,
    semantic_type: Any = None,
    is_identifier: Any = None,
    vocabulary_category: Any = None,
    custom_category: Any = None,
    display_name: Any = None,
    from_header: bool = False,
    line: int = 0,
) -> SchemaRecord:
    table_name = clean_optional(table)
    column_name = clean_optional(column)
    if table_name is None:
        raise MalformedRecordError("Record has no table name", column=column_name or "", line=line)
    if column_name is None:
        raise MalformedRecordError("Record has no column name", table=table_name, line=line)

    if isinstance(foreign_key, ForeignKeyRef):
        fk_ref: Optional[ForeignKeyRef] = foreign_key
    else:
        try:
            fk_ref = ForeignKeyRef.parse(foreign_key)
        except ValueError as exc:
            raise MalformedRecordError(str(exc), table=table_name, column=column_name, line=line) from exc

    return SchemaRecord(
        table=table_name,
        column=column_name,
        column_type=clean_optional(column_type),
        is_primary_key=parse_flag(is_primary_key),
        description=clean_optional(description),
        foreign_key=fk_ref,
        semantic_type=clean_optional(semantic_type),
        is_identifier=parse_flag(is_identifier),
        vocabulary_category=clean_optional(vocabulary_category),
        custom_category=clean_optional(custom_category),
        display_name=clean_optional(display_name),
        from_header=from_header,
        line=line,
    )
