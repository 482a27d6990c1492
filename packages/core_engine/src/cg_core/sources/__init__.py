from cg_core.sources.base import (
    SchemaSource,
    SourceResult,
    get_source,
    list_sources,
    load_records,
    register_all,
)

__all__ = [
    "SchemaSource",
    "SourceResult",
    "get_source",
    "list_sources",
    "load_records",
    "register_all",
]
