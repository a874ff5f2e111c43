# analysis/scaling.py
from __future__ import annotations

import numpy as np


def symmetric_limits(values) -> tuple[float, float]:
    """
    Color-scale bounds centered on zero: (-max|v|, +max|v|), NaNs ignored.
    Zero residuals then always sit on the scale midpoint.
    """
    v = np.abs(np.asarray(values, dtype=float))
    v = v[~np.isnan(v)]
    if v.size == 0:
        raise ValueError("Cannot derive scale limits from an empty set of values")
    m = float(v.max())
    return -m, m


def rescale(values, to: tuple[float, float] = (1.0, 5.0)) -> np.ndarray:
    """
    Linearly map values onto `to`, min -> to[0], max -> to[1].
    A zero-width input range maps everything to the midpoint of `to`.
    """
    x = np.asarray(values, dtype=float)
    lo, hi = float(to[0]), float(to[1])
    if x.size == 0:
        return x
    xmin, xmax = np.nanmin(x), np.nanmax(x)
    if np.isclose(xmax, xmin):
        return np.where(np.isnan(x), np.nan, (lo + hi) / 2)
    return lo + (x - xmin) / (xmax - xmin) * (hi - lo)
