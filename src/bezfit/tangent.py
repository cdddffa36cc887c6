"""Estimation of unit tangents at the ends and at split points of digitized data."""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from bezfit.geom import GeomMath


###############################################################################
# TangentEstimator
###############################################################################
class TangentEstimator:
    """Approximate unit tangents of a digitized curve.

    The left tangent points forward (towards increasing index). The right and
    center tangents point backward (towards decreasing index), i.e. both end
    tangents point from the curve end into the curve.
    All methods require at least two points and no adjacent duplicates.
    """

    @staticmethod
    def left_tangent(points: NDArray[np.float64], tolerance_sq: Optional[float] = None) -> NDArray[np.float64]:
        """
        Estimate the forward unit tangent at points[0].

        Without tolerance the direction to points[1] is used. With tolerance the
        direction to the first point whose squared distance from points[0]
        exceeds tolerance_sq is used; if there is none the direction to the last
        point is used (or to points[1] if the last point coincides with points[0]).

        Args:
            points (NDArray[np.float64]): Digitized points of shape (n, 2), n >= 2
            tolerance_sq (float, optional): Squared distance to look beyond. Defaults to None.

        Returns:
            NDArray[np.float64]: unit vector of shape (2,)
        """
        if points.shape[0] < 2:
            raise ValueError("Tangent estimation requires at least two points.")
        if tolerance_sq is None:
            return GeomMath.unit_vector(points[1] - points[0])
        if tolerance_sq < 0.0:
            raise ValueError(f"tolerance_sq must not be negative, got {tolerance_sq}")

        deltas = points[1:] - points[0]
        dist_sq = np.einsum("ij,ij->i", deltas, deltas)
        far = np.flatnonzero(dist_sq > tolerance_sq)
        if far.size > 0:
            return GeomMath.unit_vector(deltas[far[0]])
        if dist_sq[-1] == 0.0:
            return GeomMath.unit_vector(points[1] - points[0])
        return GeomMath.unit_vector(deltas[-1])

    @staticmethod
    def right_tangent(points: NDArray[np.float64], tolerance_sq: Optional[float] = None) -> NDArray[np.float64]:
        """
        Estimate the backward unit tangent at points[-1].

        Mirror image of left_tangent(): the search runs from points[-2] down to points[0].

        Args:
            points (NDArray[np.float64]): Digitized points of shape (n, 2), n >= 2
            tolerance_sq (float, optional): Squared distance to look beyond. Defaults to None.

        Returns:
            NDArray[np.float64]: unit vector of shape (2,)
        """
        if points.shape[0] < 2:
            raise ValueError("Tangent estimation requires at least two points.")
        if tolerance_sq is None:
            return GeomMath.unit_vector(points[-2] - points[-1])
        if tolerance_sq < 0.0:
            raise ValueError(f"tolerance_sq must not be negative, got {tolerance_sq}")

        deltas = points[-2::-1] - points[-1]
        dist_sq = np.einsum("ij,ij->i", deltas, deltas)
        far = np.flatnonzero(dist_sq > tolerance_sq)
        if far.size > 0:
            return GeomMath.unit_vector(deltas[far[0]])
        if dist_sq[-1] == 0.0:
            return GeomMath.unit_vector(points[-2] - points[-1])
        return GeomMath.unit_vector(deltas[-1])

    @staticmethod
    def center_tangent(points: NDArray[np.float64], center: int) -> NDArray[np.float64]:
        """
        Estimate the backward unit tangent at points[center].

        Averages the two chords adjacent to the center point. If both neighbours
        coincide the chord from the previous point to the center is rotated by 90
        degrees, giving a deterministic direction instead of a zero tangent.

        Args:
            points (NDArray[np.float64]): Digitized points of shape (n, 2)
            center (int): Index with 0 < center < n - 1

        Returns:
            NDArray[np.float64]: unit vector of shape (2,)
        """
        if not 0 < center < points.shape[0] - 1:
            raise ValueError(f"center must be an interior index, got {center} for {points.shape[0]} points")

        if GeomMath.points_equal(points[center + 1], points[center - 1]):
            tangent = GeomMath.rot90(points[center] - points[center - 1])
        else:
            tangent = points[center - 1] - points[center + 1]
        return GeomMath.unit_vector(tangent)
