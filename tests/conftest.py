"""Pytest fixtures shared across unit and Django integration tests."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from analysis.dataset import Dataset
from analysis.state import DashboardState, load_dataset


@pytest.fixture
def make_dataset() -> Callable[..., Dataset]:
    """Return a factory building a Dataset from column-name keyword lists.

    Example: `make_dataset(x=[1, 2], y=["a", "b"])`.
    """

    def _make(**columns: Sequence[object]) -> Dataset:
        names = list(columns)
        length = max((len(values) for values in columns.values()), default=0)
        rows = [
            {name: (columns[name][idx] if idx < len(columns[name]) else None) for name in names}
            for idx in range(length)
        ]
        return Dataset.from_rows(rows, columns=names)

    return _make


@pytest.fixture
def make_state(make_dataset) -> Callable[..., DashboardState]:
    """Return a factory building a DashboardState with a loaded dataset."""

    def _make(**columns: Sequence[object]) -> DashboardState:
        return load_dataset(DashboardState(), make_dataset(**columns), source_name="test.csv")

    return _make


def pytest_collection_modifyitems(items: Sequence[pytest.Item]) -> None:
    """Enforce that every test has exactly one speed marker.

    The suite must be runnable by intent:
    - `unit`: pure, fast tests with no database access.
    - `integration`: tests touching Django, database, views, or IO.

    Each test must have exactly one of these markers.
    """

    invalid: list[str] = []
    for item in items:
        has_unit = item.get_closest_marker("unit") is not None
        has_integration = item.get_closest_marker("integration") is not None
        if has_unit == has_integration:
            markers = []
            if has_unit:
                markers.append("unit")
            if has_integration:
                markers.append("integration")
            invalid.append(f"{item.nodeid} (markers={markers or 'none'})")

    if invalid:
        joined = "\n".join(f"- {nodeid}" for nodeid in invalid)
        raise pytest.UsageError(
            "Each test must have exactly one speed marker: `@pytest.mark.unit` or "
            "`@pytest.mark.integration`.\n"
            f"Offending tests:\n{joined}"
        )
