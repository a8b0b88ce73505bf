"""Dashboard state and the user actions that mutate it.

`DashboardState` is an explicit object handed to every entry point; nothing
in the analysis package keeps module-level state. The action functions below
are the only code that mutates it, one function per user action.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Literal

from .classification import ClassificationCache
from .dataset import EMPTY_DATASET, Dataset
from .errors import UnknownColumnError

logger = logging.getLogger(__name__)

Orientation = Literal["vertical", "horizontal"]


@dataclass(frozen=True, slots=True)
class Selection:
    """The chart the user currently intends to see.

    Args:
        primary: First selected column, or None.
        secondary: Second selected column, or None.
        axis_flip: When True a scatter plot puts `secondary` on x and
            `primary` on y.
        orientation: Bar/histogram orientation; ignored by scatter plots.
    """

    primary: str | None = None
    secondary: str | None = None
    axis_flip: bool = False
    orientation: Orientation = "vertical"


@dataclass(slots=True)
class DashboardState:
    """Mutable dashboard state for one user session.

    Attributes:
        dataset: Currently loaded dataset.
        selection: Current user selection.
        dataset_version: Incremented on every successful load.
        source_name: Display name of the loaded dataset (file name).
        classifications: Classification cache bound to `dataset`.
    """

    dataset: Dataset = EMPTY_DATASET
    selection: Selection = Selection()
    dataset_version: int = 0
    source_name: str | None = None
    classifications: ClassificationCache = field(default_factory=ClassificationCache)


def load_dataset(
    state: DashboardState,
    rows: Dataset | Sequence[Mapping[str, object]],
    *,
    source_name: str | None = None,
) -> DashboardState:
    """Replace the loaded dataset.

    The dataset is fully built before anything on `state` changes, so a
    DatasetLoadError leaves the previous dataset and selection in place.
    Selections that name columns missing from the new dataset are cleared;
    an empty primary defaults to the first column.

    Args:
        state: State to update.
        rows: Already-parsed Dataset or row mappings to parse.
        source_name: Optional display name for the dataset.

    Returns:
        The same state object, for chaining.
    """

    dataset = rows if isinstance(rows, Dataset) else Dataset.from_rows(rows)

    previous = state.selection
    primary = previous.primary if previous.primary in dataset.columns else None
    if primary is None and dataset.columns:
        primary = dataset.columns[0]
    secondary = previous.secondary if previous.secondary in dataset.columns else None

    state.dataset = dataset
    state.dataset_version += 1
    state.source_name = source_name
    state.selection = replace(previous, primary=primary, secondary=secondary)
    state.classifications.invalidate()
    logger.info(
        "Dataset loaded",
        extra={
            "source_name": source_name,
            "rows": len(dataset),
            "columns": len(dataset.columns),
            "dataset_version": state.dataset_version,
        },
    )
    return state


def select_primary(state: DashboardState, column: str | None) -> DashboardState:
    """Set (or clear, with None/empty) the primary column."""

    state.selection = replace(state.selection, primary=_checked_column(state, column))
    return state


def select_secondary(state: DashboardState, column: str | None) -> DashboardState:
    """Set (or clear, with None/empty) the secondary column."""

    state.selection = replace(state.selection, secondary=_checked_column(state, column))
    return state


def toggle_orientation(state: DashboardState) -> DashboardState:
    """Switch bar/histogram orientation between vertical and horizontal."""

    orientation: Orientation = "horizontal" if state.selection.orientation == "vertical" else "vertical"
    state.selection = replace(state.selection, orientation=orientation)
    return state


def toggle_axis_flip(state: DashboardState) -> DashboardState:
    """Switch which selected column a scatter plot puts on the x axis."""

    state.selection = replace(state.selection, axis_flip=not state.selection.axis_flip)
    return state


def _checked_column(state: DashboardState, column: str | None) -> str | None:
    """Return a validated column name, or None for an empty selection."""

    if column is None or not column.strip():
        return None
    if column not in state.dataset.columns:
        raise UnknownColumnError(column)
    return column
