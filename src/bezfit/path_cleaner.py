"""Point cleaning utilities preparing digitized input for curve fitting."""

from __future__ import annotations

from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from bezfit.common import PointsLike, as_points_array


###############################################################################
# PointCleaner
###############################################################################
class PointCleaner:
    """Collection of static point-cleaning utilities."""

    @staticmethod
    def remove_nans_and_adjacent_duplicates(
        points: PointsLike,
    ) -> Tuple[NDArray[np.float64], NDArray[np.intp]]:
        """Remove points containing NaN and points equal to their predecessor.

        A point is compared against the last point that was kept, so a run of
        identical points separated only by NaN points collapses to one point.
        The order of the remaining points is preserved.

        Args:
            points: Raw digitized points, sequence of (x, y) or array with >= 2 columns

        Returns:
            Tuple of (cleaned points of shape (m, 2), raw index of every kept point)
        """
        points_array = as_points_array(points)

        valid = ~np.isnan(points_array).any(axis=1)
        valid_indices = np.flatnonzero(valid)
        if valid_indices.size == 0:
            return np.empty((0, 2), dtype=np.float64), valid_indices

        # after dropping NaNs the predecessor of a point is the previous valid point
        valid_points = points_array[valid_indices]
        keep = np.ones(valid_indices.size, dtype=bool)
        keep[1:] = np.any(valid_points[1:] != valid_points[:-1], axis=1)

        kept_indices = valid_indices[keep]
        return np.array(points_array[kept_indices], dtype=np.float64), kept_indices

    @staticmethod
    def is_clean(points: NDArray[np.float64]) -> bool:
        """True if the points contain no NaN and no two adjacent points are equal."""
        if np.isnan(points).any():
            return False
        if points.shape[0] < 2:
            return True
        return bool(np.all(np.any(points[1:] != points[:-1], axis=1)))
