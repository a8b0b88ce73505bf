"""Session encoding/decoding helpers for DashboardState payloads."""

from __future__ import annotations

from typing import Any, cast

from analysis.classification import ClassificationCache, ColumnKind
from analysis.dataset import Dataset
from analysis.errors import DatasetLoadError
from analysis.state import DashboardState, Orientation, Selection

STATE_VERSION = "dashboard_state_v1"


def encode_dashboard_state(state: DashboardState) -> dict[str, Any]:
    """Encode a DashboardState into a JSON-serializable dictionary.

    Cells are stored as their original text (None for nulls) and re-parsed on
    decode, so the payload never carries a second numeric representation.

    Args:
        state: DashboardState to encode.

    Returns:
        Dict payload safe for the JSON session serializer.
    """

    selection = state.selection
    payload: dict[str, Any] = {
        "version": STATE_VERSION,
        "dataset_version": state.dataset_version,
        "source_name": state.source_name,
        "columns": list(state.dataset.columns),
        "rows": [[cell.text for cell in row] for row in state.dataset.rows],
        "selection": {
            "primary": selection.primary,
            "secondary": selection.secondary,
            "axis_flip": bool(selection.axis_flip),
            "orientation": selection.orientation,
        },
    }
    cache = state.classifications
    if cache.fingerprint is not None and cache.kinds:
        payload["classifications"] = {
            "fingerprint": cache.fingerprint,
            "kinds": {name: str(kind) for name, kind in cache.kinds.items()},
        }
    return payload


def decode_dashboard_state(payload: dict[str, Any]) -> DashboardState:
    """Decode a DashboardState from a stored session payload.

    Args:
        payload: Payload previously produced by `encode_dashboard_state`.

    Returns:
        DashboardState instance. Selections naming unknown columns are dropped.

    Raises:
        DatasetLoadError: When the stored rows cannot be rebuilt into a Dataset.
    """

    columns = [str(name) for name in (payload.get("columns") or ())]
    raw_rows = payload.get("rows") or ()
    rows: list[dict[str, object]] = []
    for raw_row in raw_rows:
        if not isinstance(raw_row, list) or len(raw_row) != len(columns):
            raise DatasetLoadError("Stored dashboard rows do not match the stored columns.")
        rows.append(dict(zip(columns, (None if value is None else str(value) for value in raw_row))))
    dataset = Dataset.from_rows(rows, columns=columns)

    selection_raw = cast(dict[str, Any], payload.get("selection") or {})
    selection = Selection(
        primary=_parse_column(selection_raw.get("primary"), columns),
        secondary=_parse_column(selection_raw.get("secondary"), columns),
        axis_flip=_parse_bool(selection_raw.get("axis_flip")),
        orientation=_parse_orientation(selection_raw.get("orientation")),
    )

    return DashboardState(
        dataset=dataset,
        selection=selection,
        dataset_version=_parse_int(payload.get("dataset_version")) or 0,
        source_name=_parse_text(payload.get("source_name")),
        classifications=_decode_classifications(payload.get("classifications"), dataset=dataset),
    )


def _decode_classifications(value: object, *, dataset: Dataset) -> ClassificationCache:
    """Restore a classification cache when it still matches the dataset."""

    cache = ClassificationCache()
    if not isinstance(value, dict):
        return cache
    if value.get("fingerprint") != dataset.fingerprint:
        return cache
    kinds_raw = value.get("kinds")
    if not isinstance(kinds_raw, dict):
        return cache
    cache.fingerprint = dataset.fingerprint
    for name, kind in kinds_raw.items():
        if name in dataset.columns and kind in {k.value for k in ColumnKind}:
            cache.kinds[str(name)] = ColumnKind(kind)
    return cache


def _parse_column(value: object, columns: list[str]) -> str | None:
    """Return `value` when it names a known column, otherwise None."""

    if isinstance(value, str) and value in columns:
        return value
    return None


def _parse_orientation(value: object) -> Orientation:
    """Best-effort orientation parsing for session payloads."""

    return "horizontal" if value == "horizontal" else "vertical"


def _parse_text(value: object) -> str | None:
    """Best-effort optional string parsing for session payloads."""

    if value is None or value == "":
        return None
    return str(value)


def _parse_int(value: object) -> int | None:
    """Best-effort int parsing for session payloads."""

    if value is None or value == "":
        return None
    try:
        return int(str(value))
    except ValueError:
        return None


def _parse_bool(value: object) -> bool:
    """Best-effort bool parsing for session payloads."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    normalized = str(value).strip().casefold()
    return normalized in {"1", "true", "yes", "on"}
