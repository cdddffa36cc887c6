"""Parameter assignment of digitized points along a Bezier curve."""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from bezfit.bezier import BezierCurve
from bezfit.consts import DEFAULT_FIT_SETTINGS, FitSettings

logger = logging.getLogger(__name__)


###############################################################################
# Parameterizer
###############################################################################
class Parameterizer:
    """Chord-length parameterization and Newton-Raphson re-parameterization.

    A parameter array holds one value per data point. It is non-decreasing,
    starts at exactly 0.0 and ends at exactly 1.0.
    """

    @classmethod
    def chord_length(
        cls, points: NDArray[np.float64], settings: Optional[FitSettings] = None
    ) -> NDArray[np.float64]:
        """
        Assign parameter values proportional to the distance travelled along the polyline.

        If the total length is zero the un-normalized (all zero) array is returned;
        callers detect this by ``u[-1] == 0.0``. A non-finite total length falls back
        to uniform spacing.

        Args:
            points (NDArray[np.float64]): Digitized points of shape (n, 2), n >= 2

        Returns:
            NDArray[np.float64]: Parameter values of shape (n,)
        """
        settings = settings or DEFAULT_FIT_SETTINGS
        num_points = points.shape[0]
        if num_points < 2:
            raise ValueError("Chord-length parameterization requires at least two points.")

        deltas = np.diff(points, axis=0)
        chord_lengths = np.hypot(deltas[:, 0], deltas[:, 1])
        u = np.empty(num_points, dtype=np.float64)
        u[0] = 0.0
        u[1:] = np.cumsum(chord_lengths)

        # pairwise sum, may differ from the running sum in the last bits
        total_length = float(np.sum(chord_lengths))
        if total_length == 0.0:
            return u

        if math.isfinite(total_length):
            u[1:] /= total_length
        else:
            u[1:] = np.arange(1, num_points, dtype=np.float64) / (num_points - 1)

        if u[-1] != 1.0:
            diff = float(u[-1]) - 1.0
            if abs(diff) > settings.param_end_epsilon:
                logger.warning("u[-1] = %.19g (= 1 + %.19g), expecting exactly 1", u[-1], diff)
            u[-1] = 1.0
        return u

    @classmethod
    def newton_raphson_root_find(
        cls,
        curve: NDArray[np.float64],
        point: NDArray[np.float64],
        u: float,
        settings: Optional[FitSettings] = None,
    ) -> float:
        """
        Improve the parameter of one data point by one Newton-Raphson step.

        The step searches a stationary point of 0.5 * |Q(u) - P|^2. If the
        denominator is not positive the step would head for a maximum, so the
        parameter is nudged by a fixed asymmetric amount in the indicated
        direction instead. The result is clamped to [0, 1] and blended back
        towards the old value until it is not worse than the old value.

        Args:
            curve: Cubic Bezier control points of shape (4, 2)
            point: The data point (x, y)
            u: Current parameter of the point, within [0, 1]

        Returns:
            float: The improved parameter
        """
        settings = settings or DEFAULT_FIT_SETTINGS

        q1 = BezierCurve.derivative_control_points(curve)
        q2 = BezierCurve.derivative_control_points(q1)

        q_u = BezierCurve.evaluate(3, curve, u)
        q1_u = BezierCurve.evaluate(2, q1, u)
        q2_u = BezierCurve.evaluate(1, q2, u)

        diff_x = q_u[0] - point[0]
        diff_y = q_u[1] - point[1]
        numerator = diff_x * q1_u[0] + diff_y * q1_u[1]
        denominator = q1_u[0] * q1_u[0] + q1_u[1] * q1_u[1] + diff_x * q2_u[0] + diff_y * q2_u[1]

        if denominator > 0.0:
            improved_u = u - numerator / denominator
        elif numerator > 0.0:
            improved_u = u * settings.newton_nudge_scale - settings.newton_nudge_down
        elif numerator < 0.0:
            improved_u = settings.newton_nudge_up + u * settings.newton_nudge_scale
        else:
            improved_u = u

        if not math.isfinite(improved_u):
            improved_u = u
        elif improved_u < 0.0:
            improved_u = 0.0
        elif improved_u > 1.0:
            improved_u = 1.0

        diff_lensq = diff_x * diff_x + diff_y * diff_y
        proportion = settings.newton_blend_step
        while True:
            q_improved = BezierCurve.evaluate(3, curve, improved_u)
            dx = q_improved[0] - point[0]
            dy = q_improved[1] - point[1]
            if dx * dx + dy * dy <= diff_lensq:
                break
            if proportion > 1.0:
                improved_u = u
                break
            improved_u = (1.0 - proportion) * improved_u + proportion * u
            proportion += settings.newton_blend_step
        return float(improved_u)

    @classmethod
    def reparameterize(
        cls,
        points: NDArray[np.float64],
        u: NDArray[np.float64],
        curve: NDArray[np.float64],
        settings: Optional[FitSettings] = None,
    ) -> NDArray[np.float64]:
        """
        Apply one Newton-Raphson step to every interior parameter (vectorized).

        Computes the same result as calling newton_raphson_root_find() for each
        point with index 1..n-2. The end parameters stay 0.0 and 1.0.

        Args:
            points: Digitized points of shape (n, 2)
            u: Current parameters of shape (n,)
            curve: Cubic Bezier control points of shape (4, 2)

        Returns:
            NDArray[np.float64]: New parameter array of shape (n,)
        """
        settings = settings or DEFAULT_FIT_SETTINGS
        new_u = np.array(u, dtype=np.float64)
        if points.shape[0] <= 2:
            return new_u

        inner_u = new_u[1:-1]
        inner_points = points[1:-1]

        q1 = BezierCurve.derivative_control_points(curve)
        q2 = BezierCurve.derivative_control_points(q1)
        q_u = BezierCurve.evaluate(3, curve, inner_u)
        q1_u = BezierCurve.evaluate(2, q1, inner_u)
        q2_u = BezierCurve.evaluate(1, q2, inner_u)

        diff = q_u - inner_points
        numerator = np.einsum("ij,ij->i", diff, q1_u)
        denominator = np.einsum("ij,ij->i", q1_u, q1_u) + np.einsum("ij,ij->i", diff, q2_u)

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            newton_u = inner_u - numerator / denominator
        nudged_u = np.where(
            numerator > 0.0,
            inner_u * settings.newton_nudge_scale - settings.newton_nudge_down,
            np.where(numerator < 0.0, settings.newton_nudge_up + inner_u * settings.newton_nudge_scale, inner_u),
        )
        improved_u = np.where(denominator > 0.0, newton_u, nudged_u)
        improved_u = np.where(np.isfinite(improved_u), np.clip(improved_u, 0.0, 1.0), inner_u)

        diff_lensq = np.einsum("ij,ij->i", diff, diff)
        pending = np.arange(inner_u.shape[0])
        proportion = settings.newton_blend_step
        while pending.size > 0:
            q_improved = BezierCurve.evaluate(3, curve, improved_u[pending])
            delta = q_improved - inner_points[pending]
            worse = np.einsum("ij,ij->i", delta, delta) > diff_lensq[pending]
            pending = pending[worse]
            if pending.size == 0:
                break
            if proportion > 1.0:
                improved_u[pending] = inner_u[pending]
                break
            improved_u[pending] = (1.0 - proportion) * improved_u[pending] + proportion * inner_u[pending]
            proportion += settings.newton_blend_step

        new_u[1:-1] = improved_u
        return new_u
