"""Identifier normalization for generated type, property and key names.

``normalize`` lower-cases each segment and title-cases it, so ``CUSTOMER``,
``customer`` and ``Customer`` all become ``Customer`` and ``CustomerID``
becomes ``Customerid``. The result has no separators and a single leading
capital per segment, so normalizing it again changes nothing.
"""

import re
from typing import Sequence

DEFAULT_QUALIFIERS = ("dbo",)

_SEPARATORS = re.compile(r"[_/\s.]+")
_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9]+")
_WORD_BOUNDARY = re.compile(r"([a-z](?=[A-Z0-9])|[A-Z](?=[A-Z][a-z]|[0-9]))")


def strip_qualifier(raw: str, qualifiers: Sequence[str] = DEFAULT_QUALIFIERS) -> str:
    text = str(raw or "").strip()
    lowered = text.lower()
    for qualifier in qualifiers:
        prefix = f"{qualifier.lower()}."
        if lowered.startswith(prefix):
            return text[len(prefix):]
    return text


def _title_segment(segment: str) -> str:
    segment = _NON_IDENTIFIER.sub("", segment).lower()
    return segment[:1].upper() + segment[1:]


def _pascal(text: str) -> str:
    return "".join(_title_segment(segment) for segment in _SEPARATORS.split(text) if segment)


def normalize(raw: str, qualifiers: Sequence[str] = DEFAULT_QUALIFIERS) -> str:
    """Turn a raw table name into a PascalCase type name.

    A leading schema qualifier from ``qualifiers`` (``dbo.`` by default) is
    dropped; any other qualifier becomes part of the name
    (``Sales.Customer`` -> ``SalesCustomer``). Returns ``""`` when nothing
    identifier-like is left; callers must reject that.
    """
    return _pascal(strip_qualifier(raw, qualifiers))


def normalize_column(raw: str) -> str:
    """Same as :func:`normalize` but never strips a qualifier."""
    return _pascal(str(raw or "").strip())


def normalize_column_batch(raw: str) -> str:
    """Property name for a header-derived column (``first_name`` -> ``FirstName``)."""
    parts = [part for part in str(raw or "").split("_") if part]
    joined = "".join(part[:1].upper() + part[1:] for part in parts)
    token = _NON_IDENTIFIER.sub("", joined)
    return token[:1].upper() + token[1:]


def lower_camel(identifier: str) -> str:
    return identifier[:1].lower() + identifier[1:]


def split_words(identifier: str) -> str:
    """Insert spaces at camel-case and letter/digit boundaries."""
    return _WORD_BOUNDARY.sub(r"\1 ", identifier)

