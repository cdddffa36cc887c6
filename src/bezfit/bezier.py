"""Bezier curve evaluation and sampling utilities for curve fitting."""

from __future__ import annotations

from typing import Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Pascal's triangle rows for degree 0..3
_PASCAL: Tuple[Tuple[int, ...], ...] = ((1,), (1, 1), (1, 2, 1), (1, 3, 3, 1))


class BezierCurve:
    """Class to handle Bezier curve operations needed by the fitter.

    Provides evaluation of curves up to degree 3 (Bernstein / Pascal form),
    derivative control points, the cubic Bernstein basis and polygonization of
    cubic curves into point sequences.
    """

    @classmethod
    def evaluate(
        cls,
        degree: int,
        control_points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]],
        t: Union[float, Sequence[float], NDArray[np.float64]],
    ) -> NDArray[np.float64]:
        """
        Evaluate a Bezier curve of the given degree at parameter value(s) t.

        With s = 1 - t:
            degree 1: (s, t) * V
            degree 2: (s**2, 2*s*t, t**2) * V
            degree 3: (s**3, 3*s**2*t, 3*s*t**2, t**3) * V

        Args:
            degree: Degree of the curve, 1 (linear), 2 (quadratic) or 3 (cubic)
            control_points: degree + 1 control points (x, y)
            t: Scalar parameter or 1D array of parameters, typically within [0, 1]

        Returns:
            Point of shape (2,) for scalar t, otherwise array of shape (len(t), 2)

        Raises:
            ValueError: If degree is not 1..3 or the number of control points does not match.
        """
        ctrl = cls._control_points_array(degree, control_points)

        if np.ndim(t) == 0:
            t_val = float(t)
            s_val = 1.0 - t_val
            spow = [1.0] * (degree + 1)
            tpow = [1.0] * (degree + 1)
            for i in range(1, degree + 1):
                spow[i] = spow[i - 1] * s_val
                tpow[i] = tpow[i - 1] * t_val
            ret_x = spow[degree] * ctrl[0, 0]
            ret_y = spow[degree] * ctrl[0, 1]
            for i in range(1, degree + 1):
                weight = _PASCAL[degree][i] * spow[degree - i] * tpow[i]
                ret_x += weight * ctrl[i, 0]
                ret_y += weight * ctrl[i, 1]
            return np.array([ret_x, ret_y], dtype=np.float64)

        t_arr = np.asarray(t, dtype=np.float64)
        s_arr = 1.0 - t_arr
        weights = np.empty((t_arr.shape[0], degree + 1), dtype=np.float64)
        for i in range(degree + 1):
            weights[:, i] = _PASCAL[degree][i] * s_arr ** (degree - i) * t_arr**i
        return weights @ ctrl

    @classmethod
    def derivative_control_points(
        cls, control_points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]]
    ) -> NDArray[np.float64]:
        """
        Control points of the derivative curve.

        The derivative of a degree-n curve with control points V is the
        degree-(n-1) curve with control points n * (V[j+1] - V[j]).

        Args:
            control_points: 2..4 control points (x, y)

        Returns:
            NDArray[np.float64]: array of shape (len(control_points) - 1, 2)
        """
        ctrl = np.asarray(control_points, dtype=np.float64)
        degree = ctrl.shape[0] - 1
        if degree < 1:
            raise ValueError("A derivative requires at least two control points.")
        return degree * np.diff(ctrl[:, :2], axis=0)

    @staticmethod
    def bernstein_cubic(u: Union[Sequence[float], NDArray[np.float64]]) -> NDArray[np.float64]:
        """
        Cubic Bernstein basis weights B0..B3 for every parameter value.

        Args:
            u: 1D array of parameter values

        Returns:
            NDArray[np.float64]: array of shape (len(u), 4)
        """
        u_arr = np.asarray(u, dtype=np.float64)
        omu = 1.0 - u_arr
        basis = np.empty((u_arr.shape[0], 4), dtype=np.float64)
        basis[:, 0] = omu * omu * omu
        basis[:, 1] = 3.0 * u_arr * omu * omu
        basis[:, 2] = 3.0 * u_arr * u_arr * omu
        basis[:, 3] = u_arr * u_arr * u_arr
        return basis

    @classmethod
    def polygonize_cubic_curve(
        cls, points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]], steps: int
    ) -> NDArray[np.float64]:
        """
        Polygonize a cubic Bezier curve into line segments.

        Args:
            points: Control points as Sequence[Tuple[float, float]] or NDArray[np.float64]
                    Must contain exactly 4 points: start, control1, control2, end
            steps: Number of segments to divide the curve into

        Returns:
            NDArray[np.float64] of shape (steps+1, 2) containing the polygonized points (x, y)
        """
        if steps < 1:
            raise ValueError(f"steps must be at least 1, got {steps}")
        points_array = cls._control_points_array(3, points)

        t = np.linspace(0, 1, steps + 1, dtype=np.float64)

        # Cubic Bezier basis functions
        omt = 1 - t
        omt2 = omt**2
        omt3 = omt2 * omt
        t2 = t**2
        t3 = t2 * t

        result = np.empty((steps + 1, 2), dtype=np.float64)
        result[:, 0] = (
            omt3 * points_array[0, 0]
            + 3 * omt2 * t * points_array[1, 0]
            + 3 * omt * t2 * points_array[2, 0]
            + t3 * points_array[3, 0]
        )
        result[:, 1] = (
            omt3 * points_array[0, 1]
            + 3 * omt2 * t * points_array[1, 1]
            + 3 * omt * t2 * points_array[2, 1]
            + t3 * points_array[3, 1]
        )
        # End point exactly, independent of rounding in the basis
        result[-1] = points_array[3]
        return result

    @classmethod
    def polygonize_cubic_curves(cls, segments: NDArray[np.float64], steps: int) -> NDArray[np.float64]:
        """
        Polygonize a chain of cubic Bezier segments into one polyline.

        The first point of every segment after the first one is skipped, as it
        equals the end point of the previous segment.

        Args:
            segments: Array of shape (N, 4, 2) with the control points of N chained segments
            steps: Number of line segments per Bezier segment

        Returns:
            NDArray[np.float64] of shape (N*steps+1, 2), or (0, 2) if there are no segments
        """
        segments_array = np.asarray(segments, dtype=np.float64)
        if segments_array.shape[0] == 0:
            return np.empty((0, 2), dtype=np.float64)

        result = np.empty((segments_array.shape[0] * steps + 1, 2), dtype=np.float64)
        result[0] = segments_array[0, 0, :2]
        for seg_idx, segment in enumerate(segments_array):
            start = seg_idx * steps + 1
            result[start : start + steps] = cls.polygonize_cubic_curve(segment, steps)[1:]
        return result

    @staticmethod
    def _control_points_array(
        degree: int, control_points: Union[Sequence[Tuple[float, float]], NDArray[np.float64]]
    ) -> NDArray[np.float64]:
        """Validate degree and control point count, return the (degree+1, 2) array."""
        if degree < 1 or degree >= len(_PASCAL):
            raise ValueError(f"Bezier degree must be 1, 2 or 3, got {degree}")
        ctrl = np.asarray(control_points, dtype=np.float64)
        if ctrl.ndim != 2 or ctrl.shape[0] != degree + 1 or ctrl.shape[1] < 2:
            raise ValueError(f"A Bezier curve of degree {degree} requires {degree + 1} (x, y) control points.")
        return ctrl[:, :2]
