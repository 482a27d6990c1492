"""Run generation for every table: resolve, emit, write.

Tables are independent units of work. A table that cannot be resolved is
skipped and reported; the rest of the run carries on. The traversal artifact
is written once at the end and covers every table that resolved.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from cg_core.catalog import CatalogBuild, build_catalog
from cg_core.config import GeneratorConfig
from cg_core.errors import CrawlGenError, SinkWriteError, UnresolvedEntityCodeError
from cg_core.generators import generate_table_artifacts, generate_traversal
from cg_core.issues import Issue, has_errors, issues_as_dicts, table_path, to_lines
from cg_core.log import table_context
from cg_core.relationships import RelationshipResolver
from cg_core.resolution import ResolvedTable, resolve_table
from cg_core.sinks import ArtifactSink
from cg_core.sources import load_records
from cg_core.templating import Artifact

logger = logging.getLogger(__name__)

MISSING_DISPLAY_NAME = "MISSING_DISPLAY_NAME"


@dataclass
class TableOutcome:
    table: str
    resolved: Optional[ResolvedTable] = None
    artifacts: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    skipped_reason: str = ""


@dataclass
class GenerationReport:
    artifacts: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    tables: int = 0

    @property
    def ok(self) -> bool:
        return not self.skipped and not has_errors(self.issues)

    def summary(self) -> str:
        lines = [
            f"Tables: {self.tables}",
            f"Artifacts: {len(self.artifacts)}",
            f"Skipped: {len(self.skipped)}",
        ]
        for table, reason in self.skipped:
            lines.append(f"  - {table}: {reason}")
        if self.issues:
            lines.append(f"Issues: {len(self.issues)}")
            lines.extend(f"  {line}" for line in to_lines(self.issues))
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "tables": self.tables,
            "artifacts": list(self.artifacts),
            "skipped": [{"table": table, "reason": reason} for table, reason in self.skipped],
            "issues": issues_as_dicts(self.issues),
        }


def make_resolver(build: CatalogBuild, config: GeneratorConfig) -> RelationshipResolver:
    return RelationshipResolver(
        build.catalog,
        row_guid_column=config.row_guid_column,
        display_name_column=config.display_name_column,
        qualifiers=config.schema_qualifiers,
    )


def _table_warnings(resolved: ResolvedTable) -> List[Issue]:
    issues = []
    if not resolved.entity_code.resolved:
        issues.append(Issue(
            severity="warning",
            code=UnresolvedEntityCodeError.code,
            message=f"Table {resolved.name!r} has no row identifier or primary key; entity code left as FILL_IN",
            path=table_path(resolved.name),
        ))
    if resolved.display_name_column is None:
        issues.append(Issue(
            severity="warning",
            code=MISSING_DISPLAY_NAME,
            message=f"Table {resolved.name!r} has no display-name column; data.Name left as FILL_IN",
            path=table_path(resolved.name),
        ))
    return issues


def _write(sink: Optional[ArtifactSink], artifact: Artifact, outcome: TableOutcome) -> None:
    if sink is None:
        outcome.artifacts.append(artifact.path)
        return
    try:
        sink.write(artifact)
    except SinkWriteError as exc:
        logger.error("%s", exc)
        outcome.issues.append(exc.to_issue())
        return
    outcome.artifacts.append(artifact.path)


def process_table(
    table: str,
    build: CatalogBuild,
    resolver: RelationshipResolver,
    config: GeneratorConfig,
    sink: Optional[ArtifactSink],
) -> TableOutcome:
    """Resolve one table and write its model, vocabulary and clue producer."""
    outcome = TableOutcome(table=table)
    with table_context(table):
        if build.is_rejected(table):
            errors = build.rejected[table]
            outcome.skipped_reason = "; ".join(str(error) for error in errors)
            logger.warning("Skipping table: %s", outcome.skipped_reason)
            return outcome

        try:
            resolved = resolve_table(table, resolver)
        except CrawlGenError as exc:
            outcome.skipped_reason = str(exc)
            outcome.issues.append(exc.to_issue())
            logger.warning("Skipping table: %s", exc)
            return outcome

        outcome.resolved = resolved
        outcome.issues.extend(_table_warnings(resolved))
        logger.info(
            "Resolved %d columns, %d foreign keys, entity code %s",
            len(resolved.columns),
            len(resolved.foreign_keys),
            resolved.entity_code.strategy,
        )
        for artifact in generate_table_artifacts(resolved, config):
            _write(sink, artifact, outcome)
    return outcome


def generate_all(
    build: CatalogBuild,
    config: GeneratorConfig,
    sink: Optional[ArtifactSink] = None,
) -> GenerationReport:
    """Generate every table in ``build``; with no sink only artifact names are collected.

    The report lists tables in catalog order whatever the worker count.
    """
    resolver = make_resolver(build, config)
    tables = build.catalog.tables
    report = GenerationReport(tables=len(tables), issues=list(build.issues))

    # Tables whose every record was malformed never reach the catalog.
    for table in build.rejected:
        if not build.catalog.has_table(table):
            errors = build.rejected[table]
            report.skipped.append((table, "; ".join(str(error) for error in errors)))

    if config.workers > 1 and len(tables) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as pool:
            futures = [
                pool.submit(process_table, table, build, resolver, config, sink)
                for table in tables
            ]
            outcomes = [future.result() for future in futures]
    else:
        outcomes = [process_table(table, build, resolver, config, sink) for table in tables]

    resolved_tables = []
    for outcome in outcomes:
        report.artifacts.extend(outcome.artifacts)
        report.issues.extend(outcome.issues)
        if outcome.skipped_reason:
            report.skipped.append((outcome.table, outcome.skipped_reason))
        if outcome.resolved is not None:
            resolved_tables.append(outcome.resolved)

    if resolved_tables:
        traversal = TableOutcome(table="")
        _write(sink, generate_traversal(resolved_tables, config), traversal)
        report.artifacts.extend(traversal.artifacts)
        report.issues.extend(traversal.issues)

    logger.info(
        "Generated %d artifacts for %d tables, %d skipped",
        len(report.artifacts),
        len(tables),
        len(report.skipped),
    )
    return report


def resolve_all(build: CatalogBuild, config: GeneratorConfig) -> Tuple[List[ResolvedTable], List[Issue]]:
    """Resolved view of every table that can be generated, plus what went wrong."""
    resolver = make_resolver(build, config)
    resolved: List[ResolvedTable] = []
    issues: List[Issue] = list(build.issues)
    for table in build.catalog.tables:
        if build.is_rejected(table):
            continue
        try:
            resolved.append(resolve_table(table, resolver))
        except CrawlGenError as exc:
            issues.append(exc.to_issue())
    return resolved, issues


def load_catalog(config: GeneratorConfig) -> CatalogBuild:
    result = load_records(config.source)
    build = build_catalog(
        result.records,
        malformed=result.malformed,
        on_duplicate_column=config.on_duplicate_column,
        qualifiers=config.schema_qualifiers,
    )
    for warning in result.warnings:
        build.issues.append(Issue(severity="warning", code="SOURCE_WARNING", message=warning))
    return build


def run(config: GeneratorConfig, sink: Optional[ArtifactSink] = None) -> GenerationReport:
    return generate_all(load_catalog(config), config, sink)
