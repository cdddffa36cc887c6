"""Recursive fitting of chained cubic Bezier segments to digitized points.

Based on "An Algorithm for Automatically Fitting Digitized Curves"
by Philip J. Schneider, "Graphics Gems", Academic Press, 1990,
extended by hook (corner) detection and a two-pass tangent refinement.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from bezfit.bezier import BezierCurve
from bezfit.common import PointsLike, TangentHint, as_points_array
from bezfit.consts import DEFAULT_FIT_SETTINGS, MAX_SEGMENTS_LIMIT, FitSettings
from bezfit.curve_generator import BezierGenerator
from bezfit.fit_error import FitErrorEvaluator
from bezfit.geom import GeomMath
from bezfit.parameterize import Parameterizer
from bezfit.path_cleaner import PointCleaner
from bezfit.tangent import TangentEstimator

logger = logging.getLogger(__name__)

_UNCONSTRAINED: NDArray[np.float64] = np.zeros(2, dtype=np.float64)


###############################################################################
# Errors
###############################################################################
class BezierFitError(RuntimeError):
    """Raised if the data cannot be fitted within tolerance using the segment budget."""


###############################################################################
# BezierFit
###############################################################################
@dataclass
class BezierFit:
    """
    Result of a fitting call: a chain of cubic Bezier segments.

    Attributes:
        segments (NDArray[np.float64]): Control points of shape (N, 4, 2).
            segments[k, 3] equals segments[k + 1, 0].
        split_indices (NDArray[np.intp]): Shape (N - 1,). Index of the data point at
            which segment k ends and segment k + 1 starts.
    """

    segments: NDArray[np.float64] = field(default_factory=lambda: np.empty((0, 4, 2), dtype=np.float64))
    split_indices: NDArray[np.intp] = field(default_factory=lambda: np.empty(0, dtype=np.intp))

    @property
    def segment_count(self) -> int:
        """int: Number of Bezier segments."""
        return int(self.segments.shape[0])

    def __len__(self) -> int:
        return self.segment_count

    def polygonize(self, steps: int) -> NDArray[np.float64]:
        """
        Sample the segment chain into a polyline.

        Args:
            steps (int): Number of line segments per Bezier segment

        Returns:
            NDArray[np.float64]: points of shape (N * steps + 1, 2), or (0, 2) for an empty fit
        """
        return BezierCurve.polygonize_cubic_curves(self.segments, steps)

    def svg_path_string(self, scale: float = 1.0, translate_x: float = 0.0, translate_y: float = 0.0) -> str:
        """
        Returns the SVG path representation (absolute coordinates) of the segment chain.

        Args:
            scale (float): The scale factor to apply to the points.
            translate_x (float): X-coordinate translation applied after scaling.
            translate_y (float): Y-coordinate translation applied after scaling.

        Returns:
            str: "M x0 y0 C ..." with one C command per segment.
                 Returns "M 0 0" if there are no segments.
        """
        if self.segment_count == 0:
            return "M 0 0"
        points_transformed = self.segments * scale + (translate_x, translate_y)

        x0, y0 = points_transformed[0, 0]
        parts: List[str] = [f"M {x0:g} {y0:g}"]
        for segment in points_transformed:
            (x1, y1), (x2, y2), (x3, y3) = segment[1], segment[2], segment[3]
            parts.append(f"C {x1:g} {y1:g} {x2:g} {y2:g} {x3:g} {y3:g}")
        return " ".join(parts)


###############################################################################
# BezierFitter
###############################################################################
class BezierFitter:
    """Fit chained cubic Bezier segments to digitized points within a tolerance.

    The tolerance is a bound on the squared distance between data points and
    the curve. A single segment is tried first. If it cannot meet the tolerance
    the data is split (at the worst point or at a detected corner) and both halves
    are fitted recursively, sharing the segment budget max_segments.
    """

    @classmethod
    def fit_cubic(cls, points: PointsLike, tolerance: float, settings: Optional[FitSettings] = None) -> BezierFit:
        """
        Fit a single cubic segment to the points.

        Args:
            points: Digitized points, sequence of (x, y) or array with >= 2 columns
            tolerance: Squared error bound (>= 0)
            settings: Fitting heuristics. Defaults to DEFAULT_FIT_SETTINGS.

        Returns:
            BezierFit: one segment, or none for degenerate input

        Raises:
            ValueError: On invalid arguments
            BezierFitError: If one segment does not meet the tolerance
        """
        return cls.fit_cubic_multi(points, tolerance, 1, settings)

    @classmethod
    def fit_cubic_multi(
        cls,
        points: PointsLike,
        tolerance: float,
        max_segments: int,
        settings: Optional[FitSettings] = None,
    ) -> BezierFit:
        """
        Fit up to max_segments chained cubic segments to raw digitized points.

        Points containing NaN and points equal to their predecessor are removed
        first. The split indices of the result refer to the given (raw) points.

        Args:
            points: Digitized points, sequence of (x, y) or array with >= 2 columns
            tolerance: Squared error bound (>= 0)
            max_segments: Segment budget, 1 <= max_segments < 2**27
            settings: Fitting heuristics. Defaults to DEFAULT_FIT_SETTINGS.

        Returns:
            BezierFit: the fitted segments; empty if fewer than two usable points remain

        Raises:
            ValueError: On invalid arguments
            BezierFitError: If the budget does not suffice
        """
        points_array = as_points_array(points)
        cls._validate_arguments(points_array, tolerance, max_segments)

        cleaned, kept_indices = PointCleaner.remove_nans_and_adjacent_duplicates(points_array)
        if cleaned.shape[0] < 2:
            return BezierFit()

        fit = cls._fit_cubic_full(cleaned, _UNCONSTRAINED, _UNCONSTRAINED, tolerance, max_segments, settings)
        fit.split_indices = kept_indices[fit.split_indices]
        return fit

    @classmethod
    def fit_cubic_full(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: PointsLike,
        tolerance: float,
        max_segments: int,
        left_tangent: TangentHint = None,
        right_tangent: TangentHint = None,
        settings: Optional[FitSettings] = None,
    ) -> BezierFit:
        """
        Fit up to max_segments chained cubic segments to already cleaned points.

        Args:
            points: Digitized points without NaN and without adjacent duplicates
            tolerance: Squared error bound (>= 0)
            max_segments: Segment budget, 1 <= max_segments < 2**27
            left_tangent: Forward unit tangent at the first point, None/zero to estimate it
            right_tangent: Backward unit tangent at the last point, None/zero to estimate it
            settings: Fitting heuristics. Defaults to DEFAULT_FIT_SETTINGS.

        Returns:
            BezierFit: the fitted segments, split indices refer to the given points

        Raises:
            ValueError: On invalid arguments or if the points are not cleaned
            BezierFitError: If the budget does not suffice
        """
        points_array = as_points_array(points)
        cls._validate_arguments(points_array, tolerance, max_segments)
        if not PointCleaner.is_clean(points_array):
            raise ValueError("Points must not contain NaN or adjacent duplicates, clean them first.")
        tangent1 = cls._tangent_hint_array(left_tangent, "left_tangent")
        tangent2 = cls._tangent_hint_array(right_tangent, "right_tangent")
        return cls._fit_cubic_full(points_array, tangent1, tangent2, tolerance, max_segments, settings)

    @classmethod
    def fit_cubic_multi_inplace(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: PointsLike,
        tolerance: float,
        max_segments: int,
        output_buffer: NDArray[np.float64],
        split_indices_buffer: Optional[NDArray[np.integer]] = None,
        settings: Optional[FitSettings] = None,
    ) -> int:
        """
        Fit like fit_cubic_multi() and write the result into pre-allocated buffers.

        Args:
            points: Digitized points, sequence of (x, y) or array with >= 2 columns
            tolerance: Squared error bound (>= 0)
            max_segments: Segment budget, 1 <= max_segments < 2**27
            output_buffer: Buffer of shape (>= 4 * max_segments, >= 2); segment k occupies rows 4k..4k+3
            split_indices_buffer: Optional buffer of length >= max_segments - 1 for the split indices
            settings: Fitting heuristics. Defaults to DEFAULT_FIT_SETTINGS.

        Returns:
            int: Number N of segments written; the first 4 * N rows of output_buffer are valid

        Raises:
            ValueError: On invalid arguments or too small buffers
            BezierFitError: If the budget does not suffice; the buffers are left untouched
        """
        if output_buffer.ndim != 2 or output_buffer.shape[0] < 4 * max_segments or output_buffer.shape[1] < 2:
            raise ValueError(f"output_buffer must hold at least {4 * max_segments} (x, y) points.")
        if split_indices_buffer is not None and split_indices_buffer.shape[0] < max_segments - 1:
            raise ValueError(f"split_indices_buffer must hold at least {max_segments - 1} indices.")

        fit = cls.fit_cubic_multi(points, tolerance, max_segments, settings)
        num_segments = fit.segment_count
        output_buffer[: 4 * num_segments, :2] = fit.segments.reshape(-1, 2)
        if split_indices_buffer is not None:
            split_indices_buffer[: fit.split_indices.shape[0]] = fit.split_indices
        return num_segments

    @classmethod
    def _fit_cubic_full(
        # pylint: disable=too-many-arguments,too-many-positional-arguments
        cls,
        points: NDArray[np.float64],
        left_tangent: NDArray[np.float64],
        right_tangent: NDArray[np.float64],
        tolerance: float,
        max_segments: int,
        settings: Optional[FitSettings],
    ) -> BezierFit:
        """Run the recursive fit and pack the segment lists into a BezierFit."""
        settings = settings or DEFAULT_FIT_SETTINGS
        segments, split_indices = cls._fit_range(points, left_tangent, right_tangent, tolerance, max_segments, settings)
        if not segments:
            return BezierFit()
        return BezierFit(
            segments=np.stack(segments).astype(np.float64, copy=False),
            split_indices=np.asarray(split_indices, dtype=np.intp),
        )

    @classmethod
    def _fit_range(
        # pylint: disable=too-many-arguments,too-many-positional-arguments,too-many-locals,too-many-branches
        cls,
        points: NDArray[np.float64],
        left_tangent: NDArray[np.float64],
        right_tangent: NDArray[np.float64],
        tolerance: float,
        max_segments: int,
        settings: FitSettings,
    ) -> Tuple[List[NDArray[np.float64]], List[int]]:
        """
        Fit one range of cleaned points (recursive core).

        Sub-ranges are numpy views of the same array, so nothing is copied.

        Returns:
            Tuple of (list of (4, 2) segments, list of split indices relative to points)

        Raises:
            BezierFitError: If the budget is exhausted in this frame or any sub-frame
        """
        num_points = points.shape[0]
        if num_points < 2:
            return [], []
        if num_points == 2:
            return [cls._fit_two_points(points, left_tangent, right_tangent)], []

        u = Parameterizer.chord_length(points, settings)
        if u[-1] == 0.0:
            # zero-length path, cleaned data never gets here
            return [], []

        error_tolerance = math.sqrt(tolerance + settings.tolerance_epsilon)

        curve = BezierGenerator.generate(points, u, left_tangent, right_tangent, tolerance, settings)
        u = Parameterizer.reparameterize(points, u, curve, settings)
        error_ratio, split_point = FitErrorEvaluator.compute_max_error_ratio(
            points, u, curve, error_tolerance, settings
        )
        if abs(error_ratio) <= 1.0:
            return [curve], []

        # error not too large: try some more reparameterization and iteration
        if 0.0 <= error_ratio <= settings.max_iteration_error_ratio:
            for _ in range(settings.max_iterations):
                curve = BezierGenerator.generate(points, u, left_tangent, right_tangent, tolerance, settings)
                u = Parameterizer.reparameterize(points, u, curve, settings)
                error_ratio, split_point = FitErrorEvaluator.compute_max_error_ratio(
                    points, u, curve, error_tolerance, settings
                )
                if abs(error_ratio) <= 1.0:
                    return [curve], []

        is_corner = error_ratio < 0.0
        if is_corner:
            if split_point == 0:
                if GeomMath.is_zero(left_tangent):
                    # spike even with unconstrained initial tangent
                    split_point = 1
                else:
                    return cls._fit_range(points, _UNCONSTRAINED, right_tangent, tolerance, max_segments, settings)
            elif split_point == num_points - 2 and not GeomMath.is_zero(right_tangent):
                return cls._fit_range(points, left_tangent, _UNCONSTRAINED, tolerance, max_segments, settings)

        if max_segments <= 1:
            logger.debug("fit_cubic: segment budget exhausted on %d points (error ratio %g)", num_points, error_ratio)
            raise BezierFitError(
                f"Cannot fit {num_points} points within tolerance {tolerance:g} using the remaining segment budget."
            )

        if is_corner:
            if not 0 < split_point < num_points - 1:
                raise BezierFitError(f"Invalid corner split index {split_point} for {num_points} points.")
            rec_right_tangent = _UNCONSTRAINED
            rec_left_tangent = _UNCONSTRAINED
        else:
            rec_right_tangent = TangentEstimator.center_tangent(points, split_point)
            rec_left_tangent = -rec_right_tangent

        try:
            segments1, splits1 = cls._fit_range(
                points[: split_point + 1], left_tangent, rec_right_tangent, tolerance, max_segments - 1, settings
            )
        except BezierFitError:
            logger.debug("fit_cubic[1]: recursive call failed")
            raise
        nsegs1 = len(segments1)

        try:
            segments2, splits2 = cls._fit_range(
                points[split_point:], rec_left_tangent, right_tangent, tolerance, max_segments - nsegs1, settings
            )
        except BezierFitError:
            logger.debug("fit_cubic[2]: recursive call failed")
            raise

        logger.debug(
            "fit_cubic: success[nsegs: %d+%d=%d] on max_segments: %d",
            nsegs1,
            len(segments2),
            nsegs1 + len(segments2),
            max_segments,
        )
        split_indices = splits1 + [split_point] + [index + split_point for index in splits2]
        return segments1 + segments2, split_indices

    @staticmethod
    def _fit_two_points(
        points: NDArray[np.float64], left_tangent: NDArray[np.float64], right_tangent: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        """Closed-form segment through exactly two points."""
        curve = np.empty((4, 2), dtype=np.float64)
        curve[0] = points[0]
        curve[3] = points[1]
        dist = GeomMath.length(points[1] - points[0]) / 3.0
        if not math.isfinite(dist):
            # numerical problem, fall back to a straight line segment
            curve[1] = curve[0]
            curve[2] = curve[3]
            return curve

        if GeomMath.is_zero(left_tangent):
            curve[1] = (2.0 * curve[0] + curve[3]) / 3.0
        else:
            curve[1] = curve[0] + dist * left_tangent
        if GeomMath.is_zero(right_tangent):
            curve[2] = (curve[0] + 2.0 * curve[3]) / 3.0
        else:
            curve[2] = curve[3] + dist * right_tangent
        return curve

    @staticmethod
    def _validate_arguments(points: NDArray[np.float64], tolerance: float, max_segments: int) -> None:
        """Raise ValueError for arguments no fit can be computed for."""
        if points.shape[0] == 0:
            raise ValueError("At least one point is required.")
        if not tolerance >= 0.0:
            raise ValueError(f"tolerance must be a non-negative squared distance, got {tolerance}")
        if not 1 <= max_segments < MAX_SEGMENTS_LIMIT:
            raise ValueError(f"max_segments must be within [1, {MAX_SEGMENTS_LIMIT}), got {max_segments}")

    @staticmethod
    def _tangent_hint_array(tangent: TangentHint, name: str) -> NDArray[np.float64]:
        """Convert a tangent hint into a (2,) array, zero meaning unconstrained."""
        if tangent is None:
            return _UNCONSTRAINED
        tangent_array = np.asarray(tangent, dtype=np.float64)
        if tangent_array.shape != (2,) or not np.all(np.isfinite(tangent_array)):
            raise ValueError(f"{name} must be None or a finite (x, y) vector, got {tangent!r}")
        return tangent_array
