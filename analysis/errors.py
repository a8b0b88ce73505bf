"""Error taxonomy for the chart decision engine.

Classification, aggregation and scale errors are raised by the pure analysis
functions and recovered by `analysis.selector.select_chart`. Dataset load
errors propagate to the caller so a failed load never touches existing state.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for every error raised by the analysis package."""


class InsufficientDataError(DashboardError):
    """Raised when a dataset or column has no usable values."""

    def __init__(self, message: str, *, column: str | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description.
            column: Optional column name the error refers to.
        """

        super().__init__(message)
        self.column = column


class EmptyNumericColumnError(DashboardError):
    """Raised when a numeric aggregation finds no parseable values."""

    def __init__(self, column: str) -> None:
        """Initialize the error.

        Args:
            column: Column (or column pair label) with no numeric values.
        """

        super().__init__(f"Column {column!r} has no numeric values.")
        self.column = column


class DegenerateDomainError(DashboardError):
    """Raised when a linear scale domain has zero width and no padding policy."""

    def __init__(self, value: float) -> None:
        """Initialize the error.

        Args:
            value: The single value both domain bounds are equal to.
        """

        super().__init__(f"Scale domain has zero width at {value!r}.")
        self.value = value


class UnknownCategoryError(DashboardError, KeyError):
    """Raised when a band scale is queried with a category it was not built from."""

    def __init__(self, category: str) -> None:
        """Initialize the error.

        Args:
            category: The category that was not found.
        """

        super().__init__(category)
        self.category = category

    def __str__(self) -> str:
        """Return a readable message instead of KeyError's repr."""

        return f"Unknown category: {self.category!r}."


class UnknownColumnError(DashboardError, KeyError):
    """Raised when a column name is not part of the loaded dataset."""

    def __init__(self, column: str) -> None:
        """Initialize the error.

        Args:
            column: The column that was not found.
        """

        super().__init__(column)
        self.column = column

    def __str__(self) -> str:
        """Return a readable message instead of KeyError's repr."""

        return f"Unknown column: {self.column!r}."


class DatasetLoadError(DashboardError):
    """Raised when a dataset cannot be fetched or parsed."""
