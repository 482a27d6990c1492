"""Data CSV files whose header line is the only schema description."""

from __future__ import annotations

import logging
from pathlib import Path

from cg_core.config import SourceConfig
from cg_core.records import make_record
from cg_core.sources.base import SchemaSource, SourceResult, read_csv_rows

logger = logging.getLogger(__name__)


class HeaderCsvSource(SchemaSource):
    """Each file is one table named after the file; each header cell is one column.

    Types are unknown, so semantic types come from column-name conventions.
    """

    source_type = "csv_headers"
    display_name = "CSV files (header row only)"

    def read(self, config: SourceConfig) -> SourceResult:
        result = SourceResult()
        for path in self._input_files(config):
            table = Path(path).stem
            rows = read_csv_rows(path, delimiter=config.delimiter, encoding=config.encoding)
            header = next(rows, None)
            rows.close()
            if header is None:
                result.warnings.append(f"{path}: empty file, no table generated")
                continue
            line, cells = header
            logger.debug("Table %s: %d header columns", table, len(cells))
            for cell in cells:
                result.add(lambda: make_record(table, cell, from_header=True, line=line))
        return result
