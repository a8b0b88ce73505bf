"""Pure chart decision engine for dataExplorer.

This package contains deterministic, testable computations that operate on
in-memory inputs and return DTOs. It must not import Django or perform any
I/O.
"""

from .selector import select_chart

__all__ = ["select_chart"]
