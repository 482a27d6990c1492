from cg_core.catalog import CatalogBuild, SchemaCatalog, build_catalog
from cg_core.config import GeneratorConfig, SourceConfig, config_from_dict, config_issues, load_config, load_config_schema
from cg_core.errors import (
    ConfigError,
    CrawlGenError,
    CyclicReferenceError,
    DuplicateColumnError,
    DuplicateTableError,
    MalformedRecordError,
    SinkWriteError,
    SourceError,
    UnresolvedEntityCodeError,
)
from cg_core.generators import (
    generate_clue_producer,
    generate_model,
    generate_table_artifacts,
    generate_traversal,
    generate_vocabulary,
)
from cg_core.inference import infer_semantic_type, infer_visibility
from cg_core.log import setup_logging
from cg_core.naming import normalize
from cg_core.orchestrator import GenerationReport, generate_all, load_catalog, resolve_all, run
from cg_core.records import ForeignKeyRef, SchemaRecord, make_record
from cg_core.relationships import RelationshipResolver
from cg_core.resolution import ResolvedColumn, ResolvedTable, resolve_table, table_to_dict
from cg_core.sinks import ArtifactSink, DirectorySink, MemorySink
from cg_core.sources import get_source, list_sources, load_records

__all__ = [
    "ArtifactSink",
    "build_catalog",
    "CatalogBuild",
    "config_from_dict",
    "config_issues",
    "ConfigError",
    "CrawlGenError",
    "CyclicReferenceError",
    "DirectorySink",
    "DuplicateColumnError",
    "DuplicateTableError",
    "ForeignKeyRef",
    "generate_all",
    "generate_clue_producer",
    "generate_model",
    "generate_table_artifacts",
    "generate_traversal",
    "generate_vocabulary",
    "GenerationReport",
    "GeneratorConfig",
    "get_source",
    "infer_semantic_type",
    "infer_visibility",
    "list_sources",
    "load_catalog",
    "load_config",
    "load_config_schema",
    "load_records",
    "make_record",
    "MalformedRecordError",
    "MemorySink",
    "normalize",
    "RelationshipResolver",
    "resolve_all",
    "resolve_table",
    "ResolvedColumn",
    "ResolvedTable",
    "run",
    "SchemaCatalog",
    "SchemaRecord",
    "setup_logging",
    "SinkWriteError",
    "SourceConfig",
    "SourceError",
    "table_to_dict",
    "UnresolvedEntityCodeError",
]
