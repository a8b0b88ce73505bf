"""Chart selection: decide which chart a selection maps to and build it.

This is the decision engine behind the dashboard. It reads a DashboardState,
classifies only the columns it needs, delegates to the aggregation builders,
resolves both axis scales and returns a single `ChartResult` the renderer can
draw without doing any calculation of its own.

Policies:
- A numeric primary with a categorical secondary draws a histogram of the
  primary; the secondary is ignored.
- Axis flip swaps the values (not only the labels) of a scatter plot.
- Orientation only applies to bar charts and histograms.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

from .aggregations import BinRule, DEFAULT_BIN_COUNT, build_frequency_table, build_histogram_bins, build_point_series, resolve_bin_count
from .classification import ColumnKind
from .dto import FrequencyEntry, FrequencyTable, HistogramBin, HistogramBins, Point, PointSeries
from .errors import (
    DegenerateDomainError,
    EmptyNumericColumnError,
    InsufficientDataError,
    UnknownCategoryError,
    UnknownColumnError,
)
from .scales import DomainPadding, Scale, numeric_extent, resolve_categorical_scale, resolve_linear_scale
from .state import DashboardState, Selection

logger = logging.getLogger(__name__)

SelectorState = Literal["awaiting_selection", "single_variable", "paired_variables"]
ChartType = Literal["none", "bar", "histogram", "scatter"]

AWAITING_SELECTION_MESSAGE = "Select a variable to display a chart."
UNAVAILABLE_MESSAGE = "Cannot display a chart for this selection."
COUNT_LABEL = "Count"

_RECOVERABLE_ERRORS = (
    InsufficientDataError,
    EmptyNumericColumnError,
    DegenerateDomainError,
    UnknownCategoryError,
    UnknownColumnError,
)


@dataclass(frozen=True, slots=True)
class ChartLayout:
    """Display-space geometry shared by every chart."""

    width: float = 600
    height: float = 400
    margin_top: float = 30
    margin_right: float = 30
    margin_bottom: float = 50
    margin_left: float = 50
    band_padding: float = 0.1

    @property
    def horizontal_range(self) -> tuple[float, float]:
        """Left-to-right range of the horizontal axis."""

        return self.margin_left, self.width - self.margin_right

    @property
    def vertical_linear_range(self) -> tuple[float, float]:
        """Bottom-to-top range of a linear vertical axis."""

        return self.height - self.margin_bottom, self.margin_top

    @property
    def vertical_band_range(self) -> tuple[float, float]:
        """Top-to-bottom range of a band (or bin) vertical axis."""

        return self.margin_top, self.height - self.margin_bottom


@dataclass(frozen=True, slots=True)
class SelectorOptions:
    """Tunable parameters for chart selection.

    Args:
        bin_count: Bin count for the `fixed` rule.
        bin_rule: Histogram bin count rule.
        layout: Display geometry used for scale ranges.
    """

    bin_count: int = DEFAULT_BIN_COUNT
    bin_rule: BinRule = "fixed"
    layout: ChartLayout = ChartLayout()


@dataclass(frozen=True, slots=True)
class ChartResult:
    """Render handoff produced by `select_chart`.

    Args:
        state: Selector state for the evaluated selection.
        chart_type: Chart to draw, or `none`.
        selection: Selection the result was computed from.
        title: Chart title.
        x_label: Horizontal axis label.
        y_label: Vertical axis label.
        data: Frequency table, histogram bins or point series.
        x_scale: Scale for the horizontal axis.
        y_scale: Scale for the vertical axis.
        bin_labels: Rounded range labels for histogram bins.
        message: User-facing prompt or error message when no chart is drawn.
    """

    state: SelectorState
    chart_type: ChartType
    selection: Selection
    title: str | None = None
    x_label: str | None = None
    y_label: str | None = None
    data: FrequencyTable | HistogramBins | PointSeries | None = None
    x_scale: Scale | None = None
    y_scale: Scale | None = None
    bin_labels: tuple[str, ...] = ()
    message: str | None = None

    @property
    def is_available(self) -> bool:
        """Return True when there is a chart to draw."""

        return self.chart_type != "none"

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serializable payload for the client renderer."""

        return {
            "state": self.state,
            "chartType": self.chart_type,
            "title": self.title,
            "xLabel": self.x_label,
            "yLabel": self.y_label,
            "primary": self.selection.primary,
            "secondary": self.selection.secondary,
            "orientation": self.selection.orientation,
            "axisFlip": self.selection.axis_flip,
            "data": [_entry_payload(entry) for entry in (self.data or ())],
            "xScale": self.x_scale.to_payload() if self.x_scale is not None else None,
            "yScale": self.y_scale.to_payload() if self.y_scale is not None else None,
            "binLabels": list(self.bin_labels),
            "message": self.message,
        }


def selector_state(selection: Selection) -> SelectorState:
    """Return the selector state implied by which columns are selected."""

    if not selection.primary:
        return "awaiting_selection"
    if not selection.secondary:
        return "single_variable"
    return "paired_variables"


def decide_chart_type(primary_kind: ColumnKind, secondary_kind: ColumnKind | None) -> ChartType:
    """Apply the chart decision table to the selected column kinds."""

    if primary_kind is ColumnKind.categorical:
        return "bar"
    if secondary_kind is ColumnKind.numeric:
        return "scatter"
    return "histogram"


def select_chart(
    state: DashboardState,
    *,
    selection: Selection | None = None,
    options: SelectorOptions | None = None,
) -> ChartResult:
    """Decide and build the chart for a selection.

    Args:
        state: Dashboard state holding the dataset and classification cache.
        selection: Optional selection to evaluate instead of `state.selection`.
        options: Optional selector options.

    Returns:
        ChartResult. Classification, aggregation and scale errors are logged
        and reported through `message` with `chart_type="none"`.
    """

    selection = selection if selection is not None else state.selection
    options = options if options is not None else SelectorOptions()
    current = selector_state(selection)
    if current == "awaiting_selection":
        return ChartResult(state=current, chart_type="none", selection=selection, message=AWAITING_SELECTION_MESSAGE)

    primary = selection.primary or ""
    try:
        primary_kind = state.classifications.classify(state.dataset, primary)
        secondary_kind = None
        if primary_kind is ColumnKind.numeric and selection.secondary:
            secondary_kind = state.classifications.classify(state.dataset, selection.secondary)

        chart_type = decide_chart_type(primary_kind, secondary_kind)
        if chart_type == "bar":
            return _bar_chart(state, selection, current, options)
        if chart_type == "histogram":
            return _histogram(state, selection, current, options)
        return _scatter_plot(state, selection, current, options)
    except _RECOVERABLE_ERRORS as exc:
        logger.warning(
            "Chart unavailable for selection",
            extra={
                "primary": selection.primary,
                "secondary": selection.secondary,
                "error_type": type(exc).__name__,
                "reason": str(exc),
            },
        )
        return ChartResult(
            state=current,
            chart_type="none",
            selection=selection,
            message=f"{UNAVAILABLE_MESSAGE} {exc}",
        )


def _bar_chart(state: DashboardState, selection: Selection, current: SelectorState, options: SelectorOptions) -> ChartResult:
    """Build a bar chart of the primary column's category counts."""

    column = selection.primary or ""
    table = build_frequency_table(state.dataset, column)
    layout = options.layout
    categories = [entry.category for entry in table]
    max_count = max(entry.count for entry in table)

    if selection.orientation == "vertical":
        x_scale: Scale = resolve_categorical_scale(categories, *layout.horizontal_range, layout.band_padding)
        y_scale: Scale = resolve_linear_scale(0, max_count, *layout.vertical_linear_range)
        x_label, y_label = column, COUNT_LABEL
    else:
        x_scale = resolve_linear_scale(0, max_count, *layout.horizontal_range)
        y_scale = resolve_categorical_scale(categories, *layout.vertical_band_range, layout.band_padding)
        x_label, y_label = COUNT_LABEL, column

    return ChartResult(
        state=current,
        chart_type="bar",
        selection=selection,
        title=f"Bar Chart: {column}",
        x_label=x_label,
        y_label=y_label,
        data=table,
        x_scale=x_scale,
        y_scale=y_scale,
    )


def _histogram(state: DashboardState, selection: Selection, current: SelectorState, options: SelectorOptions) -> ChartResult:
    """Build a histogram of the primary column's numeric values."""

    column = selection.primary or ""
    bin_count = resolve_bin_count(
        state.dataset.numeric_values(column),
        rule=options.bin_rule,
        default=options.bin_count,
    )
    bins = build_histogram_bins(state.dataset, column, bin_count)
    layout = options.layout
    low, high = bins[0].lower_bound, bins[-1].upper_bound
    max_count = max(item.count for item in bins)

    if selection.orientation == "vertical":
        x_scale = resolve_linear_scale(low, high, *layout.horizontal_range)
        y_scale = resolve_linear_scale(0, max_count, *layout.vertical_linear_range)
        x_label, y_label = column, COUNT_LABEL
    else:
        x_scale = resolve_linear_scale(0, max_count, *layout.horizontal_range)
        y_scale = resolve_linear_scale(low, high, *layout.vertical_band_range)
        x_label, y_label = COUNT_LABEL, column

    return ChartResult(
        state=current,
        chart_type="histogram",
        selection=selection,
        title=f"Histogram: {column}",
        x_label=x_label,
        y_label=y_label,
        data=bins,
        x_scale=x_scale,
        y_scale=y_scale,
        bin_labels=tuple(item.label for item in bins),
    )


def _scatter_plot(state: DashboardState, selection: Selection, current: SelectorState, options: SelectorOptions) -> ChartResult:
    """Build a scatter plot of the two selected columns."""

    primary = selection.primary or ""
    secondary = selection.secondary or ""
    x_column, y_column = (secondary, primary) if selection.axis_flip else (primary, secondary)

    points = build_point_series(state.dataset, x_column, y_column)
    if not points:
        raise EmptyNumericColumnError(f"{x_column} / {y_column}")

    layout = options.layout
    padding = DomainPadding.relative()
    x_scale = resolve_linear_scale(*numeric_extent(point.x for point in points), *layout.horizontal_range, padding=padding)
    y_scale = resolve_linear_scale(*numeric_extent(point.y for point in points), *layout.vertical_linear_range, padding=padding)

    return ChartResult(
        state=current,
        chart_type="scatter",
        selection=selection,
        title=f"Scatterplot: {primary} vs. {secondary}",
        x_label=x_column,
        y_label=y_column,
        data=points,
        x_scale=x_scale,
        y_scale=y_scale,
    )


def _entry_payload(entry: FrequencyEntry | HistogramBin | Point) -> dict[str, Any]:
    """Serialize one data entry using the renderer's field names."""

    if isinstance(entry, FrequencyEntry):
        return {"category": entry.category, "count": entry.count}
    if isinstance(entry, HistogramBin):
        return {"lowerBound": entry.lower_bound, "upperBound": entry.upper_bound, "count": entry.count}
    return {"x": entry.x, "y": entry.y, "sourceRowIndex": entry.source_row_index}
