"""Column type classification.

A column is classified from a deterministic sample (its first rows) using a
single policy: the share of sampled cells holding a parsed number. The
distinct-value-count heuristic is not used; a low-cardinality
numeric column (e.g. a 1-5 rating) is still numeric.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from .dataset import Dataset
from .errors import InsufficientDataError

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE: Final[int] = 10
NUMERIC_RATIO_THRESHOLD: Final[float] = 0.6


class ColumnKind(StrEnum):
    """Semantic kind of a column for charting purposes."""

    numeric = "numeric"
    categorical = "categorical"


@dataclass(frozen=True, slots=True)
class ColumnClassification:
    """Classification result for a single column."""

    name: str
    kind: ColumnKind


def classify(dataset: Dataset, column: str, *, sample_size: int = DEFAULT_SAMPLE_SIZE) -> ColumnKind:
    """Classify a column as numeric or categorical.

    Args:
        dataset: Loaded dataset.
        column: Column name to classify.
        sample_size: Number of leading rows inspected.

    Returns:
        ColumnKind.numeric when more than 60% of the sampled cells are numbers,
        otherwise ColumnKind.categorical.

    Raises:
        InsufficientDataError: When the dataset has no rows.
        UnknownColumnError: When `column` is not part of the dataset.
    """

    if sample_size < 1:
        raise ValueError("sample_size must be >= 1")

    cells = list(dataset.column_cells(column))[:sample_size]
    if not cells:
        raise InsufficientDataError(f"Cannot classify {column!r}: the dataset is empty.", column=column)

    # Values typed at load time need no ratio test.
    if all(cell.is_numeric for cell in cells):
        return ColumnKind.numeric

    numeric_count = sum(1 for cell in cells if cell.is_numeric)
    ratio = numeric_count / len(cells)
    return ColumnKind.numeric if ratio > NUMERIC_RATIO_THRESHOLD else ColumnKind.categorical


@dataclass(slots=True)
class ClassificationCache:
    """Memoize column classifications for one dataset identity.

    The cache is bound to the fingerprint of the dataset it last saw; asking
    about a different dataset clears it first.

    Attributes:
        sample_size: Sample size passed through to `classify`.
        fingerprint: Fingerprint of the dataset the cached kinds belong to.
        kinds: Cached kinds keyed by column name.
    """

    sample_size: int = DEFAULT_SAMPLE_SIZE
    fingerprint: str | None = None
    kinds: dict[str, ColumnKind] = field(default_factory=dict)

    def classify(self, dataset: Dataset, column: str) -> ColumnKind:
        """Return the cached kind for `column`, classifying it on first use."""

        fingerprint = dataset.fingerprint
        if fingerprint != self.fingerprint:
            if self.kinds:
                logger.debug(
                    "Classification cache invalidated",
                    extra={"previous_fingerprint": self.fingerprint, "fingerprint": fingerprint},
                )
            self.kinds.clear()
            self.fingerprint = fingerprint

        kind = self.kinds.get(column)
        if kind is None:
            kind = classify(dataset, column, sample_size=self.sample_size)
            self.kinds[column] = kind
        return kind

    def invalidate(self) -> None:
        """Drop every cached classification."""

        self.kinds.clear()
        self.fingerprint = None


def classify_columns(
    dataset: Dataset,
    *,
    cache: ClassificationCache | None = None,
) -> tuple[ColumnClassification, ...]:
    """Classify every column of a dataset.

    Args:
        dataset: Loaded dataset.
        cache: Optional cache to read from and populate.

    Returns:
        One ColumnClassification per column in header order, or an empty tuple
        when the dataset has no rows.
    """

    if not dataset.rows:
        return ()
    resolver = cache if cache is not None else ClassificationCache()
    return tuple(ColumnClassification(name=column, kind=resolver.classify(dataset, column)) for column in dataset.columns)
