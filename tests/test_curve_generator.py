"""Test module for BezierGenerator in bezfit.curve_generator

The tests are run using pytest.
"""

import numpy as np
import pytest

from bezfit.bezier import BezierCurve
from bezfit.curve_generator import BezierGenerator
from bezfit.parameterize import Parameterizer

COLLINEAR = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]], dtype=np.float64)


class TestGenerate:
    """Test the fit of a single segment at a fixed parameterization."""

    def test_collinear_points_give_straight_segment(self):
        """Equidistant points on a line are reproduced exactly."""
        u = Parameterizer.chord_length(COLLINEAR)
        curve = BezierGenerator.generate(COLLINEAR, u, None, None, 1e-6)
        np.testing.assert_allclose(curve, COLLINEAR, atol=1e-12)

    def test_end_points_are_fixed(self):
        """The first and last control point are the first and last data point."""
        t = np.linspace(0.0, 1.0, 12)
        points = BezierCurve.evaluate(3, [(0.0, 0.0), (2.0, 5.0), (6.0, 5.0), (8.0, 0.0)], t)
        u = Parameterizer.chord_length(points)
        curve = BezierGenerator.generate(points, u, np.zeros(2), np.zeros(2), 0.01)
        np.testing.assert_array_equal(curve[0], points[0])
        np.testing.assert_array_equal(curve[3], points[-1])

    def test_given_tangents_are_kept(self):
        """Inner control points lie on the given tangents."""
        t = np.linspace(0.0, 1.0, 12)
        points = BezierCurve.evaluate(3, [(0.0, 0.0), (0.0, 5.0), (6.0, 5.0), (8.0, 0.0)], t)
        u = Parameterizer.chord_length(points)
        curve = BezierGenerator.generate(points, u, np.array([0.0, 1.0]), np.array([0.0, 1.0]), 0.01)
        assert curve[1, 0] == 0.0
        assert curve[1, 1] > 0.0
        assert curve[2, 0] == 8.0
        assert curve[2, 1] > 0.0

    def test_approximates_sampled_cubic(self):
        """Samples of a cubic are approximated closely by the generated segment."""
        original = np.array([[0.0, 0.0], [2.0, 5.0], [6.0, 5.0], [8.0, 0.0]])
        points = BezierCurve.evaluate(3, original, np.linspace(0.0, 1.0, 30))
        u = Parameterizer.chord_length(points)
        for _ in range(5):
            curve = BezierGenerator.generate(points, u, None, None, 0.01)
            u = Parameterizer.reparameterize(points, u, curve)
        deviation = np.linalg.norm(BezierCurve.evaluate(3, curve, u) - points, axis=1)
        assert deviation.max() < 0.2


class TestEstimateLengths:
    """Test the least-squares solve for the tangent lengths."""

    def test_singular_system_falls_back_to_third_of_chord(self):
        """With only the end points the system is singular and chord / 3 is used."""
        points = np.array([[0.0, 0.0], [3.0, 0.0]])
        u = np.array([0.0, 1.0])
        curve = BezierGenerator.estimate_lengths(points, u, np.array([1.0, 0.0]), np.array([-1.0, 0.0]))
        np.testing.assert_allclose(curve, COLLINEAR)

    def test_negative_lengths_fall_back_to_third_of_chord(self):
        """Tangents pointing away from the data give negative lengths, replaced by chord / 3."""
        u = Parameterizer.chord_length(COLLINEAR)
        curve = BezierGenerator.estimate_lengths(COLLINEAR, u, np.array([-1.0, 0.0]), np.array([1.0, 0.0]))
        np.testing.assert_allclose(curve, [[0.0, 0.0], [-1.0, 0.0], [4.0, 0.0], [3.0, 0.0]])

    def test_exact_solution(self):
        """Data on a straight cubic recovers its tangent lengths."""
        u = Parameterizer.chord_length(COLLINEAR)
        curve = BezierGenerator.estimate_lengths(COLLINEAR, u, np.array([1.0, 0.0]), np.array([-1.0, 0.0]))
        np.testing.assert_allclose(curve, COLLINEAR, atol=1e-12)


class TestEstimateBi:
    """Test the least-squares solve for a single inner control point."""

    def test_recovers_inner_control_point(self):
        """With the other control points fixed, an exactly sampled P1 is found again."""
        original = np.array([[0.0, 0.0], [2.0, 5.0], [6.0, 5.0], [8.0, 0.0]])
        u = np.linspace(0.0, 1.0, 9)
        points = BezierCurve.evaluate(3, original, u)
        guess = original.copy()
        guess[1] = (10.0, -3.0)
        np.testing.assert_allclose(BezierGenerator.estimate_bi(guess, 1, points, u), original[1], atol=1e-9)
        guess = original.copy()
        guess[2] = (0.0, 0.0)
        np.testing.assert_allclose(BezierGenerator.estimate_bi(guess, 2, points, u), original[2], atol=1e-9)

    def test_degenerate_system(self):
        """Without interior parameters the point is blended from the end points."""
        curve = np.array([[0.0, 0.0], [5.0, 5.0], [5.0, 5.0], [3.0, 3.0]])
        points = np.array([[0.0, 0.0], [3.0, 3.0]])
        u = np.array([0.0, 1.0])
        np.testing.assert_allclose(BezierGenerator.estimate_bi(curve, 1, points, u), [1.0, 1.0])
        np.testing.assert_allclose(BezierGenerator.estimate_bi(curve, 2, points, u), [2.0, 2.0])

    def test_invalid_index(self):
        """Only the inner control points can be estimated."""
        with pytest.raises(ValueError):
            BezierGenerator.estimate_bi(COLLINEAR, 0, COLLINEAR, np.linspace(0.0, 1.0, 4))
