"""Handling 2D geometry primitives"""

from __future__ import annotations

import math

import numpy as np
from numpy.typing import NDArray

from bezfit.common import TangentHint


###############################################################################
# GeomMath
###############################################################################
class GeomMath:
    """Class to provide various static methods related to 2D vector handling.

    Points and vectors are numpy arrays of shape (2,).
    """

    @staticmethod
    def length(vec: NDArray[np.float64]) -> float:
        """Euclidean (L2) norm of a 2D vector."""
        return math.hypot(vec[0], vec[1])

    @staticmethod
    def unit_vector(vec: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Return the given vector scaled to length 1.

        The vector is divided by its norm without any check, so a zero vector
        yields NaN components. Callers only pass vectors between distinct points.

        Args:
            vec (NDArray[np.float64]): 2D vector

        Returns:
            NDArray[np.float64]: the normalized vector
        """
        with np.errstate(divide="ignore", invalid="ignore"):
            return np.asarray(vec, dtype=np.float64) / math.hypot(vec[0], vec[1])

    @staticmethod
    def rot90(vec: NDArray[np.float64]) -> NDArray[np.float64]:
        """Rotate a 2D vector by 90 degrees counter-clockwise: (x, y) -> (-y, x)."""
        return np.array([-vec[1], vec[0]], dtype=np.float64)

    @staticmethod
    def is_zero(vec: TangentHint) -> bool:
        """True if the vector is None or both components are exactly zero."""
        if vec is None:
            return True
        return vec[0] == 0.0 and vec[1] == 0.0

    @staticmethod
    def points_equal(point_a: NDArray[np.float64], point_b: NDArray[np.float64]) -> bool:
        """Exact coordinate equality of two 2D points."""
        return point_a[0] == point_b[0] and point_a[1] == point_b[1]
