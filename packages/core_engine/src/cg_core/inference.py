"""Semantic type, visibility, label and host-type inference for columns."""

import re
from enum import Enum
from typing import Optional

from cg_core.naming import split_words
from cg_core.records import SchemaRecord


class SemanticType(str, Enum):
    INTEGER = "Integer"
    BOOLEAN = "Boolean"
    DATETIME = "DateTime"
    NUMBER = "Number"
    MONEY = "Money"
    IDENTIFIER = "Identifier"
    TEXT = "Text"


class Visibility(str, Enum):
    VISIBLE = "Visible"
    HIDDEN = "HiddenInFrontendUI"


_TYPE_SUFFIX = re.compile(r"\s*\(.*\)\s*$")

_SEMANTIC_BY_TAG = {
    "int": SemanticType.INTEGER,
    "smallint": SemanticType.INTEGER,
    "bigint": SemanticType.INTEGER,
    "bit": SemanticType.BOOLEAN,
    "datetime": SemanticType.DATETIME,
    "datetime2": SemanticType.DATETIME,
    "decimal": SemanticType.NUMBER,
    "float": SemanticType.NUMBER,
    "numeric": SemanticType.NUMBER,
    "money": SemanticType.MONEY,
    "smallmoney": SemanticType.MONEY,
}

_STORAGE_BY_TAG = {
    "bigint": "long?",
    "bit": "bool?",
    "decimal": "decimal?",
    "money": "decimal?",
    "smallmoney": "decimal?",
    "numeric": "decimal?",
    "float": "double?",
    "int": "int?",
    "smallint": "int?",
    "tinyint": "byte?",
    "datetime": "DateTime?",
    "datetime2": "DateTime?",
}

# Checked in order; first matching suffix wins.
_NAME_SUFFIXES = (
    ("date", SemanticType.DATETIME),
    ("ind", SemanticType.BOOLEAN),
    ("count", SemanticType.INTEGER),
    ("value", SemanticType.NUMBER),
)

_STORAGE_BY_SEMANTIC = {
    SemanticType.DATETIME: "DateTime?",
    SemanticType.BOOLEAN: "bool?",
    SemanticType.INTEGER: "int?",
    SemanticType.NUMBER: "decimal?",
}

STRING_TYPE = "string"


def type_tag(column_type: Optional[str]) -> str:
    """Bare lower-case tag: ``NVARCHAR(50)`` -> ``nvarchar``."""
    if not column_type:
        return ""
    return _TYPE_SUFFIX.sub("", column_type).strip().lower()


def semantic_type_from_tag(column_type: Optional[str]) -> SemanticType:
    return _SEMANTIC_BY_TAG.get(type_tag(column_type), SemanticType.TEXT)


def semantic_type_from_name(column: str) -> SemanticType:
    lowered = column.lower()
    for suffix, semantic in _NAME_SUFFIXES:
        if lowered.endswith(suffix):
            return semantic
    return SemanticType.TEXT


def infer_semantic_type(record: SchemaRecord) -> str:
    """Semantic type for ``record``.

    An explicit override wins over the raw tag; primary keys and business
    identifiers always end up as Identifier. Returns the override text verbatim
    when one is given, otherwise a :class:`SemanticType` value.
    """
    if record.is_primary_key or record.is_identifier:
        return SemanticType.IDENTIFIER.value
    if record.semantic_type:
        return record.semantic_type
    if record.from_header:
        return semantic_type_from_name(record.column).value
    return semantic_type_from_tag(record.column_type).value


def infer_visibility(record: SchemaRecord) -> Visibility:
    if record.is_primary_key or record.column.lower().endswith("id"):
        return Visibility.HIDDEN
    return Visibility.VISIBLE


def infer_display_name(record: SchemaRecord, identifier: str) -> str:
    if record.display_name:
        return record.display_name
    return split_words(identifier)


def storage_type(record: SchemaRecord) -> str:
    """Host type of the raw value, ignoring key and identifier flags."""
    if record.from_header:
        return _STORAGE_BY_SEMANTIC.get(semantic_type_from_name(record.column), STRING_TYPE)
    return _STORAGE_BY_TAG.get(type_tag(record.column_type), STRING_TYPE)


def source_type(record: SchemaRecord, semantic_type: str) -> str:
    if semantic_type == SemanticType.IDENTIFIER.value:
        return STRING_TYPE
    return storage_type(record)


def is_quoted(storage: str) -> bool:
    return storage == STRING_TYPE
