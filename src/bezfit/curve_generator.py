"""Least-squares generation of a single cubic Bezier segment."""

from __future__ import annotations

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from bezfit.bezier import BezierCurve
from bezfit.common import TangentHint
from bezfit.consts import DEFAULT_FIT_SETTINGS, FitSettings
from bezfit.geom import GeomMath
from bezfit.tangent import TangentEstimator


###############################################################################
# BezierGenerator
###############################################################################
class BezierGenerator:
    """Place the inner control points of a cubic segment by least squares.

    The end control points are fixed at the first and last data point. The
    inner control points lie on the (given or estimated) end tangents; their
    distances alpha_l and alpha_r from the ends are fitted to the data.
    """

    @classmethod
    def generate(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: NDArray[np.float64],
        u: NDArray[np.float64],
        left_tangent: TangentHint,
        right_tangent: TangentHint,
        tolerance_sq: float,
        settings: Optional[FitSettings] = None,
    ) -> NDArray[np.float64]:
        """
        Fit one cubic segment to the points at the given parameterization.

        A zero (or None) tangent is estimated from the data, looking beyond
        points closer than tolerance_sq. If the left tangent was estimated, P1 is
        additionally solved for directly, the left tangent is re-derived from
        P0 -> P1 and the lengths are estimated again. This second pass gives
        better curves for freehand input than the symmetric solve alone.

        Args:
            points: Digitized points of shape (n, 2), n >= 2
            u: Parameters of shape (n,)
            left_tangent: Forward unit tangent at points[0] or None/zero
            right_tangent: Backward unit tangent at points[-1] or None/zero
            tolerance_sq: Squared tolerance, used only for tangent estimation

        Returns:
            NDArray[np.float64]: control points of shape (4, 2)
        """
        settings = settings or DEFAULT_FIT_SETTINGS
        estimate_left = GeomMath.is_zero(left_tangent)
        estimate_right = GeomMath.is_zero(right_tangent)

        if estimate_left:
            est_left = TangentEstimator.left_tangent(points, tolerance_sq)
        else:
            est_left = np.asarray(left_tangent, dtype=np.float64)
        if estimate_right:
            est_right = TangentEstimator.right_tangent(points, tolerance_sq)
        else:
            est_right = np.asarray(right_tangent, dtype=np.float64)

        curve = cls.estimate_lengths(points, u, est_left, est_right, settings)
        if estimate_left:
            curve[1] = cls.estimate_bi(curve, 1, points, u)
            if not GeomMath.points_equal(curve[1], curve[0]):
                est_left = GeomMath.unit_vector(curve[1] - curve[0])
            curve = cls.estimate_lengths(points, u, est_left, est_right, settings)
        return curve

    @classmethod
    def estimate_lengths(
        # pylint: disable=too-many-arguments,too-many-positional-arguments,too-many-locals
        cls,
        points: NDArray[np.float64],
        u: NDArray[np.float64],
        left_tangent: NDArray[np.float64],
        right_tangent: NDArray[np.float64],
        settings: Optional[FitSettings] = None,
    ) -> NDArray[np.float64]:
        """
        Solve the 2x2 least-squares system for the tangent lengths alpha_l, alpha_r.

        C * (alpha_l, alpha_r) = X is solved by Cramer's rule. If C is singular,
        alpha_l == alpha_r is required and the first row with a non-zero column
        sum is solved instead. Lengths below alpha_min (including negative ones)
        are replaced by one third of the distance between the end points.

        Args:
            points: Digitized points of shape (n, 2)
            u: Parameters of shape (n,)
            left_tangent: Unit vector the P1 offset from P0 lies on
            right_tangent: Unit vector the P2 offset from P3 lies on

        Returns:
            NDArray[np.float64]: control points of shape (4, 2)
        """
        settings = settings or DEFAULT_FIT_SETTINGS
        start = points[0]
        end = points[-1]

        basis = BezierCurve.bernstein_cubic(u)
        a1 = basis[:, 1:2] * left_tangent
        a2 = basis[:, 2:3] * right_tangent

        c00 = float(np.einsum("ij,ij->", a1, a1))
        c01 = float(np.einsum("ij,ij->", a1, a2))
        c11 = float(np.einsum("ij,ij->", a2, a2))

        # offset of each data point from the curve with P1 = P0 and P2 = P3
        shortfall = points - (basis[:, 0:1] + basis[:, 1:2]) * start - (basis[:, 2:3] + basis[:, 3:4]) * end
        x0 = float(np.einsum("ij,ij->", a1, shortfall))
        x1 = float(np.einsum("ij,ij->", a2, shortfall))

        det_c0_c1 = c00 * c11 - c01 * c01
        if det_c0_c1 != 0.0:
            alpha_l = (x0 * c11 - x1 * c01) / det_c0_c1
            alpha_r = (c00 * x1 - c01 * x0) / det_c0_c1
        else:
            # under-determined: treat alpha_l and alpha_r as one variable, try each row
            row0 = c00 + c01
            row1 = c01 + c11
            if row0 != 0.0:
                alpha_l = alpha_r = x0 / row0
            elif row1 != 0.0:
                alpha_l = alpha_r = x1 / row1
            else:
                alpha_l = alpha_r = 0.0

        # zero or negative lengths give coincident control points (Wu/Barsky heuristic)
        if not alpha_l >= settings.alpha_min or not alpha_r >= settings.alpha_min:
            alpha_l = alpha_r = GeomMath.length(end - start) / 3.0

        curve = np.empty((4, 2), dtype=np.float64)
        curve[0] = start
        curve[1] = start + alpha_l * np.asarray(left_tangent, dtype=np.float64)
        curve[2] = end + alpha_r * np.asarray(right_tangent, dtype=np.float64)
        curve[3] = end
        return curve

    @classmethod
    def estimate_bi(
        cls,
        curve: NDArray[np.float64],
        index: int,
        points: NDArray[np.float64],
        u: NDArray[np.float64],
    ) -> NDArray[np.float64]:
        """
        Least-squares solve for the single inner control point curve[index].

        The other three control points are held fixed. If the system is
        degenerate the point is placed at its one-third blend of the end points.

        Args:
            curve: Current control points of shape (4, 2)
            index: 1 for P1 or 2 for P2
            points: Digitized points of shape (n, 2)
            u: Parameters of shape (n,)

        Returns:
            NDArray[np.float64]: the new control point of shape (2,)
        """
        if index not in (1, 2):
            raise ValueError(f"index must be 1 or 2, got {index}")
        other = 3 - index

        basis = BezierCurve.bernstein_cubic(u)
        b_index = basis[:, index]
        fixed = (
            basis[:, 0:1] * curve[0]
            + basis[:, other : other + 1] * curve[other]
            + basis[:, 3:4] * curve[3]
            - points
        )
        numerator = b_index @ fixed
        denominator = -float(b_index @ b_index)

        if denominator != 0.0:
            return numerator / denominator
        return (other * curve[0] + index * curve[3]) / 3.0
