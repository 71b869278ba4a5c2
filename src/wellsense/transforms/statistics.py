"""Order statistics shared by thresholding and level estimation.

Every percentile uses linear interpolation between closest ranks
(Hyndman-Fan type 7, numpy's ``linear`` method).
"""

from __future__ import annotations

import numpy as np
import numpy.typing as npt


FloatArray = npt.NDArray[np.float64]
PERCENTILE_METHOD = "linear"


def percentile(values: npt.ArrayLike, q: float) -> float:
    """Linear-interpolation percentile of a non-empty sample, `q` in [0, 100]."""
    if not 0.0 <= q <= 100.0:
        raise ValueError("q must be in [0, 100]")
    x = _as_sample(values)
    return float(np.percentile(x, q, method=PERCENTILE_METHOD))


def median(values: npt.ArrayLike) -> float:
    return percentile(values, 50.0)


def _as_sample(values: npt.ArrayLike) -> FloatArray:
    x = np.asarray(values, dtype=np.float64).reshape(-1)
    if x.size == 0:
        raise ValueError("sample must not be empty")
    if not np.all(np.isfinite(x)):
        raise ValueError("sample must contain only finite values")
    return x
