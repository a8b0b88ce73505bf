"""DTO types returned by the chart decision engine.

DTOs are plain data containers used to transport chart data to the renderer.
They intentionally avoid any Django dependencies.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FrequencyEntry:
    """One bar of a bar chart.

    Attributes:
        category: Raw text of the category.
        count: Number of rows holding that text (>= 1).
    """

    category: str
    count: int


@dataclass(frozen=True, slots=True)
class HistogramBin:
    """One bin of a histogram.

    Attributes:
        lower_bound: Inclusive lower bound.
        upper_bound: Exclusive upper bound (inclusive for the last bin).
        count: Number of values in the bin (>= 0).
    """

    lower_bound: float
    upper_bound: float
    count: int

    @property
    def label(self) -> str:
        """Rounded range label used on a categorical bin axis."""

        return f"{round(self.lower_bound)} - {round(self.upper_bound)}"


@dataclass(frozen=True, slots=True)
class Point:
    """One point of a scatter plot.

    Attributes:
        x: Horizontal value.
        y: Vertical value.
        source_row_index: Index of the dataset row the point came from.
    """

    x: float
    y: float
    source_row_index: int


FrequencyTable = tuple[FrequencyEntry, ...]
HistogramBins = tuple[HistogramBin, ...]
PointSeries = tuple[Point, ...]
