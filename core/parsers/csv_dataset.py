"""CSV ingestion for uploaded and bundled datasets.

The parser only splits text into header and records; every cell is then
parsed once by `analysis.dataset.Dataset.from_rows`, which is the single place
where numeric values are recognized.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass

from analysis.dataset import Dataset
from analysis.errors import DatasetLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ParsedCsvDataset:
    """Parsed output for CSV ingestion.

    Attributes:
        dataset: Parsed dataset.
        source_name: File name (or label) the text came from.
    """

    dataset: Dataset
    source_name: str | None


def decode_csv_bytes(raw: bytes) -> str:
    """Decode uploaded CSV bytes as UTF-8, dropping a leading BOM.

    Raises:
        DatasetLoadError: When the bytes are not valid UTF-8.
    """

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DatasetLoadError(f"CSV file is not valid UTF-8: {exc.reason}.") from exc


def parse_csv_dataset(text: str, *, source_name: str | None = None) -> ParsedCsvDataset:
    """Parse CSV text with a header row into a Dataset.

    Args:
        text: CSV text. The first row names the columns.
        source_name: Optional file name for display and logging.

    Returns:
        ParsedCsvDataset wrapping the dataset. Blank header names become
        `column_<position>`, as written by tools that leave an index column
        unnamed.

    Raises:
        DatasetLoadError: When the text is empty, has no usable header, or is
            not valid CSV.
    """

    if not text.strip():
        raise DatasetLoadError("CSV file is empty.")

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    try:
        header = next((row for row in reader if row), None)
        if not header:
            raise DatasetLoadError("CSV file has no header row.")
        columns = [name.strip() or f"column_{position}" for position, name in enumerate(header, start=1)]
        records = [
            {column: (row[index] if index < len(row) else None) for index, column in enumerate(columns)}
            for row in reader
            if row
        ]
    except csv.Error as exc:
        raise DatasetLoadError(f"Could not parse CSV (line {reader.line_num}): {exc}.") from exc

    dataset = Dataset.from_rows(records, columns=columns)
    logger.debug(
        "CSV parsed",
        extra={"source_name": source_name, "rows": len(dataset), "columns": len(dataset.columns)},
    )
    return ParsedCsvDataset(dataset=dataset, source_name=source_name)
