"""Fitting error measurement and corner (hook) detection."""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from bezfit.bezier import BezierCurve
from bezfit.consts import DEFAULT_FIT_SETTINGS, FitSettings
from bezfit.geom import GeomMath


###############################################################################
# FitErrorEvaluator
###############################################################################
class FitErrorEvaluator:
    """Measure how well a cubic segment fits its data points.

    Two criteria are combined:
        - every data point must be close to the curve at its parameter, and
        - the curve between two consecutive points must stay near the chord
          connecting them ("hook" check). A curve can pass all points closely
          and still snap back outward between them, which hints at a corner.
    """

    @classmethod
    def compute_max_error_ratio(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: NDArray[np.float64],
        u: NDArray[np.float64],
        curve: NDArray[np.float64],
        tolerance: float,
        settings: Optional[FitSettings] = None,
    ) -> Tuple[float, int]:
        """
        Compute the error ratio of the fit and the index to split at.

        The distance ratio is max|Q(u[i]) - points[i]| / tolerance over the
        interior points (the end points are exact by construction). If the
        worst hook ratio is larger, the negated hook ratio is returned and the
        split index is the first point of the hooking pair.

        Args:
            points: Digitized points of shape (n, 2), n >= 2
            u: Parameters of shape (n,) with u[0] == 0 and u[-1] == 1
            curve: Cubic Bezier control points of shape (4, 2)
            tolerance: Allowed (not squared) distance, must be positive

        Returns:
            Tuple of (ratio, split index). A ratio within [-1, 1] means the fit is
            accepted, a negative ratio means a probable corner.
        """
        settings = settings or DEFAULT_FIT_SETTINGS
        num_points = points.shape[0]
        if num_points < 2:
            raise ValueError("Error evaluation requires at least two points.")

        split_point = 0
        max_dist_sq = 0.0
        if num_points > 2:
            delta = BezierCurve.evaluate(3, curve, u[1:-1]) - points[1:-1]
            dist_sq = np.einsum("ij,ij->i", delta, delta)
            worst = int(np.argmax(dist_sq))
            if dist_sq[worst] > 0.0:
                max_dist_sq = float(dist_sq[worst])
                split_point = worst + 1

        hook_ratios = cls.compute_hooks(points, u, curve, tolerance, settings.hook_allowance_factor)
        worst_hook = int(np.argmax(hook_ratios))
        max_hook_ratio = float(hook_ratios[worst_hook])

        dist_ratio = float(np.sqrt(max_dist_sq)) / tolerance
        if max_hook_ratio <= dist_ratio:
            return dist_ratio, split_point
        # hook_ratios[k] belongs to the pair (k, k + 1)
        return -max_hook_ratio, worst_hook

    @classmethod
    def compute_hooks(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: NDArray[np.float64],
        u: NDArray[np.float64],
        curve: NDArray[np.float64],
        tolerance: float,
        allowance_factor: float,
    ) -> NDArray[np.float64]:
        """
        Vectorized compute_hook() for every pair of consecutive points.

        Returns:
            NDArray[np.float64]: hook ratios of shape (n - 1,), entry k for points k and k + 1
        """
        mid_curve = BezierCurve.evaluate(3, curve, 0.5 * (u[:-1] + u[1:]))
        mid_chord = 0.5 * (points[:-1] + points[1:])
        diff = mid_chord - mid_curve
        dist = np.hypot(diff[:, 0], diff[:, 1])
        chords = np.diff(points, axis=0)
        allowed = np.hypot(chords[:, 0], chords[:, 1]) * allowance_factor + tolerance
        return np.where(dist < tolerance, 0.0, dist / allowed)

    @staticmethod
    def compute_hook(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        point_a: NDArray[np.float64],
        point_b: NDArray[np.float64],
        u: float,
        curve: NDArray[np.float64],
        tolerance: float,
        allowance_factor: float = DEFAULT_FIT_SETTINGS.hook_allowance_factor,
    ) -> float:
        """
        Hook ratio of the curve between two consecutive data points.

        The curve is tested at parameter u (the mean of the two point parameters)
        against a circle around the midpoint of a..b with radius
        allowance_factor * |b - a| + tolerance.

        Args:
            point_a: First data point
            point_b: Second data point
            u: Parameter halfway between the parameters of point_a and point_b
            curve: Cubic Bezier control points of shape (4, 2)
            tolerance: Allowed (not squared) distance
            allowance_factor: Allowed curviness relative to the chord length

        Returns:
            float: 0.0 if within tolerance, otherwise distance / allowance
        """
        curve_point = BezierCurve.evaluate(3, curve, u)
        dist = GeomMath.length(0.5 * (np.asarray(point_a) + np.asarray(point_b)) - curve_point)
        if dist < tolerance:
            return 0.0
        allowed = GeomMath.length(np.asarray(point_b) - np.asarray(point_a)) * allowance_factor + tolerance
        return dist / allowed
