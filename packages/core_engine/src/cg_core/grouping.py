"""Semantic category of a table, used for vocabulary grouping and entity typing."""

from dataclasses import dataclass
from typing import Optional, Sequence

from cg_core.naming import DEFAULT_QUALIFIERS, normalize
from cg_core.records import SchemaRecord

VOCABULARY = "vocabulary"
LITERAL = "literal"

VOCABULARY_PREFIX = "EntityType."


@dataclass(frozen=True)
class Category:
    kind: str
    value: str

    @property
    def is_vocabulary(self) -> bool:
        return self.kind == VOCABULARY

    @property
    def grouping(self) -> str:
        """Expression assigned to ``Grouping`` in the vocabulary."""
        if self.is_vocabulary:
            return f"{VOCABULARY_PREFIX}{self.value}"
        return f'"{self.value}"'

    @property
    def label(self) -> str:
        return self.value

    @property
    def entity_type_path(self) -> str:
        """Entity type expression for clues and edges.

        Literal categories get ``/`` inserted after the opening quote:
        ``"Customer"`` becomes ``"/Customer"``.
        """
        grouping = self.grouping
        if self.is_vocabulary:
            return grouping
        return grouping[:1] + "/" + grouping[1:]


def resolve_category(
    table: str,
    first_record: Optional[SchemaRecord],
    qualifiers: Sequence[str] = DEFAULT_QUALIFIERS,
) -> Category:
    """Category for ``table``; ``first_record`` is ``None`` for tables only seen as FK targets."""
    fallback = Category(LITERAL, normalize(table, qualifiers))
    if first_record is None:
        return fallback
    if first_record.vocabulary_category:
        return Category(VOCABULARY, first_record.vocabulary_category)
    if first_record.custom_category:
        return Category(LITERAL, first_record.custom_category)
    return fallback
