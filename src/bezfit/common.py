"""Central module containing type definitions shared by the fitting modules."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

###############################################################################
# Types
###############################################################################

# Anything convertible to an (n, 2) float array: [(x, y), ...] or an array with >= 2 columns
PointsLike = Union[Sequence[Tuple[float, float]], Sequence[Sequence[float]], NDArray[np.float64]]

# Tangent hint: None or zero vector for "estimate from data", otherwise a unit vector
TangentHint = Optional[Union[Tuple[float, float], NDArray[np.float64]]]


###############################################################################
# Functions
###############################################################################


def as_points_array(points: PointsLike) -> NDArray[np.float64]:
    """Convert the given points into a float64 array of shape (n, 2).

    Additional columns (e.g. a point type) are dropped.

    Args:
        points: Sequence of (x, y) tuples or array with at least two columns.

    Returns:
        NDArray[np.float64]: The (n, 2) point array (a view if no conversion was needed).

    Raises:
        ValueError: If the input is not a two-dimensional point collection.
    """
    if isinstance(points, np.ndarray) and points.dtype == np.float64:
        points_array = points
    else:
        points_array = np.asarray(points, dtype=np.float64)
    if points_array.ndim != 2 or points_array.shape[1] < 2:
        raise ValueError("Bezier fitting requires (x, y) formatted points.")
    return points_array[:, :2]
