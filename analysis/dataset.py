"""Tabular dataset model and the canonical numeric parse.

Every cell is parsed exactly once, when a Dataset is built. Downstream code
(classification, aggregation, scales) reads the tagged `CellValue` and never
re-parses strings, so there is a single definition of "numeric" in the
codebase: `parse_number`.
"""

from __future__ import annotations

import hashlib
import math
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from .errors import DatasetLoadError, UnknownColumnError

_NON_FINITE_LITERALS: Final[frozenset[str]] = frozenset(
    {"inf", "+inf", "-inf", "infinity", "+infinity", "-infinity", "nan", "+nan", "-nan"}
)


def parse_number(text: str) -> float | None:
    """Parse a cell string as a finite float.

    Args:
        text: Raw cell text.

    Returns:
        The parsed float, or None when the text is empty, not a float literal,
        or spells a non-finite value (`Infinity`, `NaN`, ...).
    """

    trimmed = text.strip()
    if not trimmed:
        return None
    if trimmed.casefold() in _NON_FINITE_LITERALS:
        return None
    try:
        value = float(trimmed)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


class CellKind(StrEnum):
    """Tag of a parsed cell value."""

    raw = "raw"
    parsed = "parsed"
    null = "null"


@dataclass(frozen=True, slots=True)
class CellValue:
    """A single dataset cell.

    Attributes:
        kind: Which variant the cell holds.
        text: Original text for raw/parsed cells; None for null cells.
        number: Parsed float for parsed cells; None otherwise.
    """

    kind: CellKind
    text: str | None = None
    number: float | None = None

    @classmethod
    def from_value(cls, value: object) -> CellValue:
        """Build a CellValue from a loaded value (CSV string, JSON scalar, None)."""

        if value is None:
            return NULL_CELL
        if isinstance(value, bool):
            return cls(kind=CellKind.raw, text=str(value))
        if isinstance(value, (int, float)):
            number = float(value)
            if math.isfinite(number):
                return cls(kind=CellKind.parsed, text=str(value), number=number)
            return cls(kind=CellKind.raw, text=str(value))

        text = str(value)
        if not text.strip():
            return NULL_CELL
        number = parse_number(text)
        if number is None:
            return cls(kind=CellKind.raw, text=text)
        return cls(kind=CellKind.parsed, text=text, number=number)

    @property
    def is_null(self) -> bool:
        """Return True for null cells."""

        return self.kind is CellKind.null

    @property
    def is_numeric(self) -> bool:
        """Return True when the cell holds a parsed number."""

        return self.kind is CellKind.parsed


NULL_CELL: Final[CellValue] = CellValue(kind=CellKind.null)


@dataclass(frozen=True, slots=True)
class Dataset:
    """An immutable table of cells.

    Attributes:
        columns: Column names, in header order.
        rows: One tuple of cells per record, aligned with `columns`.
        fingerprint: SHA-256 identity of the contents, computed once at
            construction when not supplied.
    """

    columns: tuple[str, ...]
    rows: tuple[tuple[CellValue, ...], ...]
    fingerprint: str = field(default="", compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.fingerprint:
            object.__setattr__(self, "fingerprint", content_fingerprint(self.columns, self.rows))

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Mapping[str, object]],
        *,
        columns: Sequence[str] | None = None,
    ) -> Dataset:
        """Build a Dataset from row mappings.

        Columns are taken from `columns` when given (e.g. a CSV header),
        otherwise from the first row. Rows missing a column get a null cell;
        keys that are not columns are ignored.

        Args:
            rows: Row mappings as produced by a CSV reader or a JSON payload.
            columns: Optional explicit column order.

        Returns:
            Dataset with every cell parsed.

        Raises:
            DatasetLoadError: When a row is not a mapping or a column name is
                blank or repeated.
        """

        if columns is None:
            if not rows:
                return cls(columns=(), rows=())
            first = rows[0]
            if not isinstance(first, Mapping):
                raise DatasetLoadError("Dataset rows must be mappings of column name to value.")
            columns = [str(key) for key in first.keys()]

        columns = tuple(columns)
        if any(not column.strip() for column in columns):
            raise DatasetLoadError("Dataset column names must be non-empty.")
        if len(set(columns)) != len(columns):
            raise DatasetLoadError("Dataset column names must be unique.")

        parsed_rows: list[tuple[CellValue, ...]] = []
        for index, row in enumerate(rows):
            if not isinstance(row, Mapping):
                raise DatasetLoadError(f"Row {index} is not a mapping.")
            parsed_rows.append(tuple(CellValue.from_value(row.get(column)) for column in columns))
        return cls(columns=columns, rows=tuple(parsed_rows))

    def __len__(self) -> int:
        """Return the number of rows."""

        return len(self.rows)

    def column_index(self, column: str) -> int:
        """Return the position of `column`, raising UnknownColumnError when absent."""

        try:
            return self.columns.index(column)
        except ValueError:
            raise UnknownColumnError(column) from None

    def column_cells(self, column: str) -> Iterator[CellValue]:
        """Yield the cells of a column in row order."""

        index = self.column_index(column)
        for row in self.rows:
            yield row[index]

    def numeric_values(self, column: str) -> list[float]:
        """Return the parsed numbers of a column, dropping non-numeric cells."""

        return [cell.number for cell in self.column_cells(column) if cell.number is not None]


def content_fingerprint(columns: Sequence[str], rows: Sequence[Sequence[CellValue]]) -> str:
    """Return the SHA-256 identity of a table's column names and cell texts."""

    digest = hashlib.sha256()
    digest.update("\x1f".join(columns).encode("utf-8"))
    for row in rows:
        digest.update(b"\x1e")
        for cell in row:
            digest.update(b"\x00" if cell.is_null else b"\x01" + (cell.text or "").encode("utf-8"))
            digest.update(b"\x1f")
    return digest.hexdigest()


EMPTY_DATASET: Final[Dataset] = Dataset(columns=(), rows=())
