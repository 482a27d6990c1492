"""Fixed-layout metadata file: one column per row, eleven positional fields."""

from __future__ import annotations

import logging

from cg_core.config import SourceConfig
from cg_core.records import make_record
from cg_core.sources.base import SchemaSource, SourceResult, read_csv_rows

logger = logging.getLogger(__name__)

FIELDS = (
    "table",
    "vocabulary_category",
    "custom_category",
    "column",
    "display_name",
    "description",
    "is_identifier",
    "semantic_type",
    "is_primary_key",
    "column_type",
    "foreign_key",
)


class MetadataFileSource(SchemaSource):
    source_type = "metadata_file"
    display_name = "Metadata file (11 positional fields)"

    def read(self, config: SourceConfig) -> SourceResult:
        result = SourceResult()
        for path in self._input_files(config):
            logger.debug("Reading metadata file %s", path)
            rows = read_csv_rows(path, delimiter=config.delimiter, encoding=config.encoding)
            for index, (line, row) in enumerate(rows):
                # header row; a table named "Table" still counts on later rows
                if index == 0 and row[0].strip().lower() == "table":
                    continue
                if len(row) > len(FIELDS):
                    result.warnings.append(
                        f"{path}:{line}: {len(row)} fields, ignoring everything after field {len(FIELDS)}"
                    )
                values = dict(zip(FIELDS, row + [""] * (len(FIELDS) - len(row))))
                result.add(lambda: make_record(line=line, **values))
        return result
