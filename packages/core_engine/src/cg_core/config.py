"""Generator configuration: YAML file validated against a packaged JSON schema."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft202012Validator

from cg_core.errors import ConfigError
from cg_core.issues import Issue
from cg_core.naming import DEFAULT_QUALIFIERS, lower_camel

CONFIG_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "config.schema.json"
DEFAULT_CONFIG_NAME = "crawlgen.yaml"

STARTER_CONFIG = """crawler_name: Acme
namespace_root: CluedIn.Crawling
output_dir: generated

source:
  type: metadata_file
  path: Metadata.csv
"""


@dataclass
class SourceConfig:
    """Where schema records come from."""

    source_type: str
    path: str = ""
    paths: List[str] = field(default_factory=list)
    delimiter: str = ","
    encoding: str = "utf-8-sig"
    connection_string: str = ""
    host: str = ""
    port: int = 0
    database: str = ""
    user: str = ""
    password: str = ""
    odbc_driver: str = "ODBC Driver 18 for SQL Server"
    exclude_schemas: List[str] = field(default_factory=list)

    def input_paths(self) -> List[str]:
        if self.paths:
            return list(self.paths)
        return [self.path] if self.path else []


@dataclass
class GeneratorConfig:
    crawler_name: str
    source: SourceConfig = field(default_factory=lambda: SourceConfig(source_type="metadata_file"))
    namespace_root: str = "CluedIn.Crawling"
    entity_base_class: str = ""
    schema_qualifiers: List[str] = field(default_factory=lambda: list(DEFAULT_QUALIFIERS))
    row_guid_column: str = "rowguid"
    display_name_column: str = "name"
    on_duplicate_column: str = "error"
    workers: int = 1
    output_dir: str = "generated"

    @property
    def base_class(self) -> str:
        return self.entity_base_class or f"Base{self.crawler_name}Entity"

    @property
    def namespace(self) -> str:
        return f"{self.namespace_root}.{self.crawler_name}"

    @property
    def key_prefix(self) -> str:
        return lower_camel(self.crawler_name)


def load_config_schema(schema_path: Optional[str] = None) -> Dict[str, Any]:
    path = Path(schema_path) if schema_path else CONFIG_SCHEMA_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config schema not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def load_config_data(path: str) -> Dict[str, Any]:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with config_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ValueError("Config YAML must parse to an object/map at root.")

    return data


def _to_json_path(parts: List[Any]) -> str:
    if not parts:
        return "/"
    return "/" + "/".join(str(part) for part in parts)


def config_issues(data: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> List[Issue]:
    validator = Draft202012Validator(schema or load_config_schema())
    issues: List[Issue] = []

    for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path]):
        issues.append(
            Issue(
                severity="error",
                code="CONFIG_VALIDATION_FAILED",
                message=error.message,
                path=_to_json_path(list(error.absolute_path)),
            )
        )

    source = data.get("source") or {}
    if isinstance(source, dict):
        source_type = source.get("type")
        if source_type in ("csv_headers", "metadata_file", "catalog_csv"):
            if not source.get("path") and not source.get("paths"):
                issues.append(
                    Issue(
                        severity="error",
                        code="CONFIG_VALIDATION_FAILED",
                        message=f"Source type '{source_type}' needs 'path' or 'paths'.",
                        path="/source",
                    )
                )
        elif source_type == "sqlserver":
            if not source.get("connection_string") and not source.get("database"):
                issues.append(
                    Issue(
                        severity="error",
                        code="CONFIG_VALIDATION_FAILED",
                        message="Source type 'sqlserver' needs 'connection_string' or 'database'.",
                        path="/source",
                    )
                )

    return issues


def config_from_dict(data: Dict[str, Any], base_dir: Optional[Path] = None) -> GeneratorConfig:
    """Build a :class:`GeneratorConfig`; relative source paths resolve against ``base_dir``."""
    source_data = dict(data.get("source") or {})
    source_type = str(source_data.pop("type", "metadata_file"))

    def _resolve(value: str) -> str:
        if base_dir is None or Path(value).is_absolute():
            return value
        return str(base_dir / value)

    source = SourceConfig(source_type=source_type)
    for key, value in source_data.items():
        if key == "path":
            value = _resolve(value)
        elif key == "paths":
            value = [_resolve(item) for item in value]
        setattr(source, key, value)

    config = GeneratorConfig(crawler_name=str(data.get("crawler_name", "")), source=source)
    for key in (
        "namespace_root",
        "entity_base_class",
        "schema_qualifiers",
        "row_guid_column",
        "display_name_column",
        "on_duplicate_column",
        "workers",
        "output_dir",
    ):
        if key in data:
            setattr(config, key, data[key])
    if "output_dir" in data and base_dir is not None and not Path(config.output_dir).is_absolute():
        config.output_dir = str(base_dir / config.output_dir)
    return config


def load_config(path: str) -> GeneratorConfig:
    data = load_config_data(path)
    issues = config_issues(data)
    if issues:
        raise ConfigError(f"Invalid config {path}: {len(issues)} issue(s)", issues=issues)
    return config_from_dict(data, base_dir=Path(path).resolve().parent)
