"""
slanter/util/warnings
"""

from __future__ import annotations

import warnings
from typing import Type


class ConvergenceWarning(RuntimeWarning):
    """
    Warning emitted when the order solver stops before reaching a fixed point.
    """


class HeightReversalWarning(RuntimeWarning):
    """
    Warning emitted when a constrained merge cost falls below a child height.
    """


def warn(message: str, category: Type[Warning] = RuntimeWarning, stacklevel: int = 3) -> None:
    """
    Emits a warning attributed to the caller of the public slanter function.

    Args:
        message (str): Warning message text.
        category (Type[Warning]): Warning category class. Defaults to RuntimeWarning.
        stacklevel (int): Stacklevel to report. Defaults to 3 (the public API caller).
    """
    warnings.warn(message, category=category, stacklevel=stacklevel)
