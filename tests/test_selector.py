"""Tests for the chart decision engine."""

from __future__ import annotations

import logging

import pytest

from analysis.classification import ColumnKind
from analysis.dto import FrequencyEntry, Point
from analysis.scales import BandScale, LinearScale
from analysis.selector import (
    AWAITING_SELECTION_MESSAGE,
    UNAVAILABLE_MESSAGE,
    SelectorOptions,
    decide_chart_type,
    select_chart,
    selector_state,
)
from analysis.state import Selection, select_primary, select_secondary, toggle_axis_flip, toggle_orientation

pytestmark = pytest.mark.unit


def test_selector_state_follows_selected_columns() -> None:
    """The state depends only on which of primary/secondary are set."""

    assert selector_state(Selection()) == "awaiting_selection"
    assert selector_state(Selection(secondary="y")) == "awaiting_selection"
    assert selector_state(Selection(primary="x")) == "single_variable"
    assert selector_state(Selection(primary="x", secondary="y")) == "paired_variables"


@pytest.mark.parametrize(
    ("primary", "secondary", "expected"),
    [
        (ColumnKind.numeric, None, "histogram"),
        (ColumnKind.categorical, None, "bar"),
        (ColumnKind.numeric, ColumnKind.numeric, "scatter"),
        (ColumnKind.numeric, ColumnKind.categorical, "histogram"),
        (ColumnKind.categorical, ColumnKind.numeric, "bar"),
        (ColumnKind.categorical, ColumnKind.categorical, "bar"),
    ],
)
def test_decision_table(primary: ColumnKind, secondary: ColumnKind | None, expected: str) -> None:
    """Apply every row of the decision table."""

    assert decide_chart_type(primary, secondary) == expected


def test_no_primary_awaits_selection_without_aggregating(make_state, monkeypatch: pytest.MonkeyPatch) -> None:
    """Without a primary column nothing is classified or aggregated."""

    def fail(*args, **kwargs):
        raise AssertionError("aggregation must not run")

    for name in ("build_frequency_table", "build_histogram_bins", "build_point_series"):
        monkeypatch.setattr(f"analysis.selector.{name}", fail)

    state = make_state(v=["1", "2"])
    select_primary(state, None)
    result = select_chart(state)

    assert result.state == "awaiting_selection"
    assert result.chart_type == "none"
    assert result.message == AWAITING_SELECTION_MESSAGE
    assert state.classifications.kinds == {}


def test_categorical_primary_draws_vertical_bar_chart(make_state) -> None:
    """Categories go on a band x axis, counts on a linear y axis."""

    state = make_state(col=["a", "a", "b"])
    result = select_chart(state)

    assert result.chart_type == "bar"
    assert result.title == "Bar Chart: col"
    assert result.data == (FrequencyEntry("a", 2), FrequencyEntry("b", 1))
    assert isinstance(result.x_scale, BandScale)
    assert result.x_scale.categories == ("a", "b")
    assert isinstance(result.y_scale, LinearScale)
    assert (result.y_scale.domain_min, result.y_scale.domain_max) == (0, 2)
    assert (result.x_label, result.y_label) == ("col", "Count")


def test_horizontal_orientation_swaps_bar_axes(make_state) -> None:
    """Horizontal bars put categories on y and counts on x."""

    state = make_state(col=["a", "a", "b"])
    toggle_orientation(state)
    result = select_chart(state)

    assert isinstance(result.x_scale, LinearScale)
    assert isinstance(result.y_scale, BandScale)
    assert (result.x_label, result.y_label) == ("Count", "col")


def test_numeric_primary_draws_histogram(make_state) -> None:
    """A numeric primary produces bins and a linear bin axis."""

    state = make_state(v=[str(n) for n in range(1, 11)])
    result = select_chart(state, options=SelectorOptions(bin_count=5))

    assert result.chart_type == "histogram"
    assert result.title == "Histogram: v"
    assert len(result.data or ()) == 5
    assert isinstance(result.x_scale, LinearScale)
    assert (result.x_scale.domain_min, result.x_scale.domain_max) == (1, 10)
    assert result.bin_labels[0] == "1 - 3"


def test_horizontal_histogram_puts_bins_on_y(make_state) -> None:
    """Horizontal histograms map the bin extent top-to-bottom."""

    state = make_state(v=[str(n) for n in range(1, 11)])
    toggle_orientation(state)
    result = select_chart(state)

    assert isinstance(result.y_scale, LinearScale)
    assert (result.y_scale.domain_min, result.y_scale.domain_max) == (1, 10)
    assert result.y_scale.range_min < result.y_scale.range_max


def test_constant_column_histogram_is_padded_not_an_error(make_state) -> None:
    """A constant column gives one bin and a non-degenerate scale."""

    state = make_state(v=["5"] * 10)
    result = select_chart(state)

    assert result.chart_type == "histogram"
    assert len(result.data or ()) == 1
    assert result.data[0].count == 10  # type: ignore[index, union-attr]
    assert result.x_scale is not None


def test_numeric_with_categorical_secondary_ignores_secondary(make_state) -> None:
    """A categorical secondary does not change a numeric primary's histogram."""

    state = make_state(v=["1", "2", "3"], c=["a", "b", "c"])
    select_secondary(state, "c")
    result = select_chart(state)

    assert result.state == "paired_variables"
    assert result.chart_type == "histogram"


def test_categorical_primary_ignores_numeric_secondary(make_state) -> None:
    """A categorical primary always draws a bar chart."""

    state = make_state(c=["a", "b", "c"], v=["1", "2", "3"])
    select_secondary(state, "v")
    result = select_chart(state)

    assert result.chart_type == "bar"
    assert "v" not in state.classifications.kinds


def test_two_numeric_columns_draw_scatter(make_state) -> None:
    """Two numeric columns give a scatter plot with primary on x."""

    state = make_state(x=["1", "2", "3"], y=["4", "5", "6"])
    select_secondary(state, "y")
    result = select_chart(state)

    assert result.chart_type == "scatter"
    assert result.title == "Scatterplot: x vs. y"
    assert [(p.x, p.y) for p in result.data or ()] == [(1, 4), (2, 5), (3, 6)]  # type: ignore[union-attr]
    assert (result.x_label, result.y_label) == ("x", "y")


def test_axis_flip_swaps_scatter_values(make_state) -> None:
    """Axis flip swaps values, labels and scales, not only labels."""

    state = make_state(x=["1", "2", "3"], y=["4", "5", "6"])
    select_secondary(state, "y")
    toggle_axis_flip(state)
    result = select_chart(state)

    assert result.data == (
        Point(x=4.0, y=1.0, source_row_index=0),
        Point(x=5.0, y=2.0, source_row_index=1),
        Point(x=6.0, y=3.0, source_row_index=2),
    )
    assert (result.x_label, result.y_label) == ("y", "x")
    assert isinstance(result.x_scale, LinearScale)
    assert (result.x_scale.domain_min, result.x_scale.domain_max) == (4, 6)


def test_orientation_does_not_affect_scatter(make_state) -> None:
    """Toggling orientation leaves scatter data and scales unchanged."""

    state = make_state(x=["1", "2", "3"], y=["4", "5", "6"])
    select_secondary(state, "y")
    vertical = select_chart(state)
    toggle_orientation(state)
    horizontal = select_chart(state)

    assert vertical.data == horizontal.data
    assert vertical.x_scale == horizontal.x_scale
    assert vertical.y_scale == horizontal.y_scale


def test_scatter_with_constant_column_pads_domain(make_state) -> None:
    """A constant scatter axis is padded rather than failing."""

    state = make_state(x=["2", "2", "2"], y=["1", "2", "3"])
    select_secondary(state, "y")
    result = select_chart(state)

    assert result.chart_type == "scatter"
    assert isinstance(result.x_scale, LinearScale)
    assert result.x_scale.domain_min < 2 < result.x_scale.domain_max


def test_errors_are_recovered_as_unavailable_chart(make_state, caplog: pytest.LogCaptureFixture) -> None:
    """Classification failures become a user-visible message and a log record."""

    state = make_state(v=[])
    caplog.set_level(logging.WARNING, logger="analysis.selector")
    result = select_chart(state, selection=Selection(primary="v"))

    assert result.chart_type == "none"
    assert result.state == "single_variable"
    assert result.message is not None and result.message.startswith(UNAVAILABLE_MESSAGE)
    assert any(record.levelno == logging.WARNING for record in caplog.records)


def test_unknown_column_selection_is_recovered(make_state) -> None:
    """An ad-hoc selection naming a missing column is reported, not raised."""

    state = make_state(v=["1"])
    result = select_chart(state, selection=Selection(primary="missing"))

    assert result.chart_type == "none"
    assert "missing" in (result.message or "")


def test_same_selection_yields_identical_output(make_state) -> None:
    """Repeated evaluation without state changes is idempotent."""

    state = make_state(x=["1", "2", "3", "9"], y=["4", "5", "6", "1"])
    select_secondary(state, "y")

    assert select_chart(state) == select_chart(state)
    assert select_chart(state).to_payload() == select_chart(state).to_payload()


def test_payload_is_json_ready(make_state) -> None:
    """The render payload uses plain types and renderer field names."""

    state = make_state(col=["a", "a", "b"])
    payload = select_chart(state).to_payload()

    assert payload["chartType"] == "bar"
    assert payload["data"] == [{"category": "a", "count": 2}, {"category": "b", "count": 1}]
    assert payload["xScale"]["type"] == "band"
    assert payload["yScale"] == {"type": "linear", "domain": [0, 2], "range": [350, 30]}
    assert payload["orientation"] == "vertical"


def test_histogram_over_extreme_values_renders(make_state) -> None:
    """Values spanning the float range still produce a histogram payload."""

    state = make_state(v=["-1e308", "0", "1e308"])
    result = select_chart(state, options=SelectorOptions(bin_count=4))
    payload = result.to_payload()

    assert result.chart_type == "histogram"
    assert len(payload["binLabels"]) == 4
    assert payload["xScale"]["domain"] == [-1e308, 1e308]
    assert result.x_scale is not None and result.x_scale(0.0) == pytest.approx(310)
