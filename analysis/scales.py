"""Scale resolution for chart axes.

Scales map a data-space domain onto a display-space range. They are plain
frozen dataclasses that are callable, so a renderer can use them directly and
tests can compare them by value.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from .errors import DegenerateDomainError, EmptyNumericColumnError, InsufficientDataError, UnknownCategoryError

PaddingMode = Literal["fixed", "relative"]

DEFAULT_RELATIVE_PADDING = 0.05
ZERO_VALUE_PADDING = 1.0


@dataclass(frozen=True, slots=True)
class DomainPadding:
    """Policy used to widen a zero-width domain before mapping.

    Args:
        mode: `fixed` expands each side by `amount`; `relative` expands each
            side by `amount * |value|` (or by 1.0 when the value is 0).
        amount: Epsilon for `fixed`, fraction for `relative`.
    """

    mode: PaddingMode
    amount: float

    @classmethod
    def fixed(cls, epsilon: float) -> DomainPadding:
        """Return a fixed-epsilon padding policy."""

        if epsilon <= 0:
            raise ValueError("epsilon must be > 0")
        return cls(mode="fixed", amount=epsilon)

    @classmethod
    def relative(cls, fraction: float = DEFAULT_RELATIVE_PADDING) -> DomainPadding:
        """Return a padding policy proportional to the value's magnitude."""

        if fraction <= 0:
            raise ValueError("fraction must be > 0")
        return cls(mode="relative", amount=fraction)

    def pad(self, value: float) -> float:
        """Return the amount added on each side of a degenerate domain at `value`."""

        if self.mode == "fixed":
            return self.amount
        return abs(value) * self.amount or ZERO_VALUE_PADDING


@dataclass(frozen=True, slots=True)
class LinearScale:
    """Affine map from `[domain_min, domain_max]` to `[range_min, range_max]`."""

    domain_min: float
    domain_max: float
    range_min: float
    range_max: float

    def __call__(self, value: float) -> float:
        """Map a domain value into the range."""

        # Halved so domains spanning the whole float range do not overflow.
        fraction = (value / 2 - self.domain_min / 2) / (self.domain_max / 2 - self.domain_min / 2)
        return self.range_min + fraction * (self.range_max - self.range_min)

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-safe description of the scale."""

        return {
            "type": "linear",
            "domain": [self.domain_min, self.domain_max],
            "range": [self.range_min, self.range_max],
        }


@dataclass(frozen=True, slots=True)
class BandScale:
    """Evenly spaced bands, one per category.

    The range is split into equal steps; each band is its step shrunk by
    `padding` (a fraction of the step) and centred inside it.
    """

    categories: tuple[str, ...]
    range_min: float
    range_max: float
    padding: float

    @property
    def step(self) -> float:
        """Distance between consecutive band starts."""

        return (self.range_max - self.range_min) / len(self.categories)

    @property
    def bandwidth(self) -> float:
        """Width of every band."""

        return self.step * (1 - self.padding)

    def __call__(self, category: str) -> tuple[float, float]:
        """Return `(band_start, band_width)` for a category."""

        try:
            index = self.categories.index(category)
        except ValueError:
            raise UnknownCategoryError(category) from None
        step = self.step
        return self.range_min + index * step + step * self.padding / 2, self.bandwidth

    def to_payload(self) -> dict[str, object]:
        """Return a JSON-safe description of the scale."""

        return {
            "type": "band",
            "domain": list(self.categories),
            "range": [self.range_min, self.range_max],
            "padding": self.padding,
            "bandwidth": self.bandwidth,
        }


Scale = LinearScale | BandScale


def resolve_linear_scale(
    domain_min: float,
    domain_max: float,
    range_min: float,
    range_max: float,
    *,
    padding: DomainPadding | None = None,
) -> LinearScale:
    """Resolve a linear scale.

    Args:
        domain_min: Lower data-space bound.
        domain_max: Upper data-space bound.
        range_min: Display position of `domain_min`.
        range_max: Display position of `domain_max`.
        padding: Optional policy applied when the domain has zero width.

    Returns:
        LinearScale mapping the (possibly padded) domain onto the range.

    Raises:
        DegenerateDomainError: When `domain_min == domain_max` and no padding
            policy was supplied.
    """

    if domain_min == domain_max:
        if padding is None:
            raise DegenerateDomainError(domain_min)
        amount = padding.pad(domain_min)
        domain_min, domain_max = domain_min - amount, domain_max + amount
    return LinearScale(domain_min=domain_min, domain_max=domain_max, range_min=range_min, range_max=range_max)


def resolve_categorical_scale(
    categories: Sequence[str],
    range_min: float,
    range_max: float,
    padding: float = 0.1,
) -> BandScale:
    """Resolve a band scale for an ordered set of categories.

    Args:
        categories: Distinct categories in display order.
        range_min: Display start of the first band's step.
        range_max: Display end of the last band's step.
        padding: Fraction of each step left empty around its band, in [0, 1).

    Returns:
        BandScale over `categories`.

    Raises:
        InsufficientDataError: When `categories` is empty.
        ValueError: When categories repeat or padding is out of bounds.
    """

    if not categories:
        raise InsufficientDataError("A categorical scale needs at least one category.")
    if not 0 <= padding < 1:
        raise ValueError("padding must be in [0, 1)")
    ordered = tuple(categories)
    if len(set(ordered)) != len(ordered):
        raise ValueError("categories must be distinct")
    return BandScale(categories=ordered, range_min=range_min, range_max=range_max, padding=padding)


def numeric_extent(values: Iterable[float], *, column: str = "values") -> tuple[float, float]:
    """Return `(min, max)` over already-filtered numeric values.

    Raises:
        EmptyNumericColumnError: When `values` is empty.
    """

    materialized = list(values)
    if not materialized:
        raise EmptyNumericColumnError(column)
    return min(materialized), max(materialized)
