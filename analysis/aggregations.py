"""Aggregation helpers that turn a dataset column into chart data.

Each builder is a pure, deterministic function of its inputs and returns
immutable DTOs from `analysis.dto`.
"""

from __future__ import annotations

import math
from bisect import bisect_right
from collections.abc import Sequence
from statistics import pstdev
from typing import Final, Literal

from .dataset import Dataset
from .dto import FrequencyEntry, HistogramBin, Point
from .errors import EmptyNumericColumnError, InsufficientDataError
from .scales import DomainPadding, numeric_extent

BinRule = Literal["fixed", "scott", "sturges"]

DEFAULT_BIN_COUNT: Final[int] = 10
MAX_BIN_COUNT: Final[int] = 100

_CONSTANT_COLUMN_PADDING: Final[DomainPadding] = DomainPadding.relative()


def build_frequency_table(dataset: Dataset, column: str) -> tuple[FrequencyEntry, ...]:
    """Count occurrences of each distinct raw value in a column.

    Values are grouped by their original text, so numeric-looking categories
    (ZIP codes, ids) keep leading zeros and formatting. Null cells are skipped.

    Args:
        dataset: Loaded dataset.
        column: Column to count.

    Returns:
        Entries sorted by count descending; ties keep first-occurrence order.

    Raises:
        InsufficientDataError: When the column has no non-null values.
    """

    counts: dict[str, int] = {}
    for cell in dataset.column_cells(column):
        if cell.is_null:
            continue
        text = cell.text or ""
        counts[text] = counts.get(text, 0) + 1

    if not counts:
        raise InsufficientDataError(f"Column {column!r} has no values to count.", column=column)

    # sorted() is stable and dicts keep insertion order.
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return tuple(FrequencyEntry(category=category, count=count) for category, count in ordered)


def build_histogram_bins(
    dataset: Dataset,
    column: str,
    bin_count: int = DEFAULT_BIN_COUNT,
) -> tuple[HistogramBin, ...]:
    """Bin the numeric values of a column.

    Args:
        dataset: Loaded dataset.
        column: Column to bin; non-numeric cells are dropped.
        bin_count: Number of equal-width bins.

    Returns:
        Contiguous bins covering `[min, max]`. Intervals are half-open except
        the last, which also holds `max`. A constant column yields a single bin
        `[value, value + epsilon]`.

    Raises:
        EmptyNumericColumnError: When no cell of the column is numeric.
        ValueError: When `bin_count < 1`.
    """

    if bin_count < 1:
        raise ValueError("bin_count must be >= 1")

    values = dataset.numeric_values(column)
    return bin_values(values, bin_count=bin_count, column=column)


def bin_values(values: Sequence[float], *, bin_count: int, column: str = "values") -> tuple[HistogramBin, ...]:
    """Bin already-parsed values; see `build_histogram_bins`."""

    low, high = numeric_extent(values, column=column)
    if low == high:
        lower, upper = low, low + _CONSTANT_COLUMN_PADDING.pad(low)
        if not math.isfinite(upper):
            upper = math.nextafter(low, math.inf)
        if not math.isfinite(upper):
            # Nothing finite lies above the largest float; pad downwards.
            lower, upper = low - _CONSTANT_COLUMN_PADDING.pad(low), low
        return (HistogramBin(lower_bound=lower, upper_bound=upper, count=len(values)),)

    edges = [low] + [_interpolate(low, high, index / bin_count) for index in range(1, bin_count)] + [high]
    counts = [0] * bin_count
    for value in values:
        index = min(bisect_right(edges, value) - 1, bin_count - 1)
        counts[index] += 1

    return tuple(
        HistogramBin(lower_bound=edges[index], upper_bound=edges[index + 1], count=counts[index])
        for index in range(bin_count)
    )


def _interpolate(low: float, high: float, fraction: float) -> float:
    """Return the point `fraction` of the way from `low` to `high` without overflowing."""

    return low * (1 - fraction) + high * fraction


def resolve_bin_count(values: Sequence[float], *, rule: BinRule = "fixed", default: int = DEFAULT_BIN_COUNT) -> int:
    """Choose a histogram bin count.

    Args:
        values: Parsed numeric values that will be binned.
        rule: `fixed` returns `default`; `scott` and `sturges` derive the
            count from the data.
        default: Bin count used by the `fixed` rule.

    Returns:
        A bin count between 1 and MAX_BIN_COUNT.
    """

    if rule == "fixed":
        return max(1, min(default, MAX_BIN_COUNT))

    n = len(values)
    if n < 2:
        return 1

    if rule == "sturges":
        return min(math.ceil(math.log2(n)) + 1, MAX_BIN_COUNT)

    if rule == "scott":
        spread = max(values) - min(values)
        sigma = pstdev(values)
        if spread == 0 or sigma == 0:
            return 1
        width = 3.49 * sigma * n ** (-1 / 3)
        count = spread / width
        if not math.isfinite(count):
            return MAX_BIN_COUNT
        return max(1, min(math.ceil(count), MAX_BIN_COUNT))

    raise ValueError(f"Unknown bin rule: {rule!r}")


def build_point_series(dataset: Dataset, x_column: str, y_column: str) -> tuple[Point, ...]:
    """Pair two numeric columns row by row.

    Args:
        dataset: Loaded dataset.
        x_column: Column providing x values.
        y_column: Column providing y values.

    Returns:
        Points in original row order. Rows where either cell is not numeric
        are dropped entirely.
    """

    x_index = dataset.column_index(x_column)
    y_index = dataset.column_index(y_column)
    points: list[Point] = []
    for row_index, row in enumerate(dataset.rows):
        x_value = row[x_index].number
        y_value = row[y_index].number
        if x_value is None or y_value is None:
            continue
        points.append(Point(x=x_value, y=y_value, source_row_index=row_index))
    return tuple(points)
