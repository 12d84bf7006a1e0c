from __future__ import annotations

import numpy as np


def clamp(value, lo: float = -1.0, hi: float = 1.0):
    """Clip into [lo, hi]; used before asin/acos to absorb float overshoot."""
    return np.clip(value, lo, hi)


def normalize_longitude(value):
    """Wrap degrees into [0, 360).

    ``np.mod`` can return exactly 360.0 for tiny negative inputs, so that
    case is folded back to 0.
    """
    wrapped = np.mod(value, 360.0)
    wrapped = np.where(wrapped >= 360.0, wrapped - 360.0, wrapped)
    if np.ndim(wrapped) == 0:
        return float(wrapped)
    return wrapped
