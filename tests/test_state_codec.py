"""Tests for dashboard state session encoding."""

from __future__ import annotations

import json

import pytest

from analysis.classification import ColumnKind
from analysis.errors import DatasetLoadError
from analysis.state import select_secondary, toggle_axis_flip
from core.state_codec import STATE_VERSION, decode_dashboard_state, encode_dashboard_state

pytestmark = pytest.mark.unit


def test_state_round_trip_preserves_dataset_and_selection(make_state) -> None:
    """Decoding an encoded state restores identity, selection and cache."""

    state = make_state(x=["1", "2", None], label=["a", "b", "c"])
    select_secondary(state, "label")
    toggle_axis_flip(state)
    state.classifications.classify(state.dataset, "x")

    payload = json.loads(json.dumps(encode_dashboard_state(state)))
    restored = decode_dashboard_state(payload)

    assert payload["version"] == STATE_VERSION
    assert restored.dataset.fingerprint == state.dataset.fingerprint
    assert restored.selection == state.selection
    assert restored.dataset_version == state.dataset_version
    assert restored.source_name == "test.csv"
    assert restored.classifications.kinds == {"x": ColumnKind.numeric}
    assert restored.dataset.rows[2][0].is_null


def test_decode_drops_selection_of_unknown_columns(make_state) -> None:
    """Stored selections that no longer name a column are discarded."""

    payload = encode_dashboard_state(make_state(x=["1"]))
    payload["selection"]["primary"] = "gone"
    payload["selection"]["orientation"] = "sideways"

    restored = decode_dashboard_state(payload)

    assert restored.selection.primary is None
    assert restored.selection.orientation == "vertical"


def test_decode_ignores_stale_classifications(make_state) -> None:
    """A cache stored for different contents is not restored."""

    state = make_state(x=["1"])
    state.classifications.classify(state.dataset, "x")
    payload = encode_dashboard_state(state)
    payload["classifications"]["fingerprint"] = "0" * 64

    assert decode_dashboard_state(payload).classifications.kinds == {}


def test_decode_rejects_mismatched_rows(make_state) -> None:
    """Rows whose width differs from the header are a load error."""

    payload = encode_dashboard_state(make_state(x=["1"], y=["2"]))
    payload["rows"] = [["1"]]

    with pytest.raises(DatasetLoadError):
        decode_dashboard_state(payload)
