"""Base source interface and registry for schema metadata sources."""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from cg_core.config import SourceConfig
from cg_core.errors import MalformedRecordError, SourceError
from cg_core.records import SchemaRecord

logger = logging.getLogger(__name__)


@dataclass
class SourceResult:
    """Records read from one source, plus the rows that could not be used."""

    records: List[SchemaRecord] = field(default_factory=list)
    malformed: List[MalformedRecordError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def tables_found(self) -> int:
        return len({record.table.lower() for record in self.records})

    def add(self, build: Callable[[], SchemaRecord]) -> None:
        """Append the record ``build`` returns, or keep its malformed-record error."""
        try:
            self.records.append(build())
        except MalformedRecordError as exc:
            logger.warning("Skipping record: %s", exc.message)
            self.malformed.append(exc)

    def summary(self) -> str:
        lines = [
            f"Tables: {self.tables_found}",
            f"Columns: {len(self.records)}",
        ]
        if self.malformed:
            lines.append(f"Malformed records: {len(self.malformed)}")
        if self.warnings:
            lines.append(f"Warnings: {len(self.warnings)}")
            for w in self.warnings:
                lines.append(f"  - {w}")
        return "\n".join(lines)


def read_csv_rows(path: str, delimiter: str = ",", encoding: str = "utf-8-sig") -> Iterator[Tuple[int, List[str]]]:
    """Yield ``(line_number, fields)`` for every non-blank row of ``path``."""
    try:
        with open(path, newline="", encoding=encoding) as handle:
            reader = csv.reader(handle, delimiter=delimiter)
            for row in reader:
                if not any(cell.strip() for cell in row):
                    continue
                yield reader.line_num, row
    except OSError as exc:
        raise SourceError(f"Cannot read {path}: {exc}") from exc


class SchemaSource(ABC):
    """Abstract base class for all schema metadata sources."""

    source_type: str = ""
    display_name: str = ""
    required_package: str = ""

    @abstractmethod
    def read(self, config: SourceConfig) -> SourceResult:
        """Read every schema record the source describes."""

    def check_driver(self) -> Tuple[bool, str]:
        """Check if the required Python driver package is installed."""
        if not self.required_package:
            return True, "No driver required"
        try:
            __import__(self.required_package)
            return True, f"{self.required_package} is installed"
        except ImportError:
            return False, f"Missing driver: pip install {self.required_package}"

    def _input_files(self, config: SourceConfig, pattern: str = "*.csv") -> List[str]:
        files: List[str] = []
        for raw in config.input_paths():
            path = Path(raw)
            if path.is_dir():
                files.extend(str(p) for p in sorted(path.glob(pattern)))
            elif path.exists():
                files.append(str(path))
            else:
                raise SourceError(f"Input path does not exist: {raw}")
        if not files:
            raise SourceError(f"No input files found for source {self.source_type!r}")
        return files


# ---------------------------------------------------------------------------
# Source registry
# ---------------------------------------------------------------------------

_REGISTRY: Dict[str, SchemaSource] = {}


def _register(source: SchemaSource) -> None:
    _REGISTRY[source.source_type] = source


def get_source(source_type: str) -> Optional[SchemaSource]:
    """Get a source by type name."""
    if not _REGISTRY:
        register_all()
    return _REGISTRY.get(source_type)


def list_sources() -> List[Dict[str, Any]]:
    """List all registered sources."""
    if not _REGISTRY:
        register_all()
    result = []
    for name, source in sorted(_REGISTRY.items()):
        ok, msg = source.check_driver()
        result.append({
            "type": name,
            "name": source.display_name,
            "driver": source.required_package or "none",
            "installed": ok,
            "status": msg,
        })
    return result


def register_all() -> None:
    """Register all built-in sources."""
    from cg_core.sources.catalog import CatalogCsvSource, SqlServerCatalogSource
    from cg_core.sources.header_csv import HeaderCsvSource
    from cg_core.sources.metadata_file import MetadataFileSource

    for source in (HeaderCsvSource(), MetadataFileSource(), CatalogCsvSource(), SqlServerCatalogSource()):
        _register(source)


def load_records(config: SourceConfig) -> SourceResult:
    source = get_source(config.source_type)
    if source is None:
        raise SourceError(f"Unknown source type: {config.source_type}")
    ok, msg = source.check_driver()
    if not ok:
        raise SourceError(msg)
    logger.info("Reading schema records from %s source", config.source_type)
    result = source.read(config)
    logger.info("Read %d records across %d tables", len(result.records), result.tables_found)
    return result
