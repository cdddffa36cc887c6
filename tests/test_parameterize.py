"""Test module for Parameterizer in bezfit.parameterize

The tests are run using pytest.
"""

import logging

import numpy as np
import pytest

from bezfit.bezier import BezierCurve
from bezfit.consts import DEFAULT_FIT_SETTINGS, FitSettings
from bezfit.parameterize import Parameterizer

ARCH = np.array([[0.0, 0.0], [0.0, 1.0], [1.0, 1.0], [1.0, 0.0]], dtype=np.float64)
LINE = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0], [3.0, 0.0]], dtype=np.float64)


def _noisy_points(num_points: int, seed: int = 1) -> np.ndarray:
    rng = np.random.default_rng(seed)
    t = np.linspace(0.0, 1.0, num_points)
    points = BezierCurve.evaluate(3, ARCH * 10.0, t)
    return points + rng.normal(scale=0.2, size=points.shape)


class TestChordLength:
    """Test chord-length parameterization."""

    def test_proportional_to_distance(self):
        """Parameters are the travelled distance divided by the total length."""
        u = Parameterizer.chord_length(np.array([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]]))
        np.testing.assert_allclose(u, [0.0, 1.0 / 3.0, 1.0])

    def test_end_values_and_monotonicity(self):
        """Parameters start at exactly 0, end at exactly 1 and never decrease."""
        u = Parameterizer.chord_length(_noisy_points(57))
        assert u[0] == 0.0
        assert u[-1] == 1.0
        assert np.all(np.diff(u) >= 0.0)

    def test_zero_length(self):
        """A path of zero length is returned un-normalized (all zero)."""
        u = Parameterizer.chord_length(np.array([[1.0, 1.0], [1.0, 1.0], [1.0, 1.0]]))
        np.testing.assert_array_equal(u, [0.0, 0.0, 0.0])

    def test_infinite_length_falls_back_to_uniform(self):
        """An overflowing total length gives uniform spacing."""
        points = np.array([[0.0, 0.0], [1e308, 0.0], [-1e308, 0.0]])
        with np.errstate(over="ignore"):
            u = Parameterizer.chord_length(points)
        np.testing.assert_array_equal(u, [0.0, 0.5, 1.0])

    def test_too_few_points(self):
        """At least two points are required."""
        with pytest.raises(ValueError):
            Parameterizer.chord_length(np.array([[0.0, 0.0]]))

    def test_end_deviation_is_logged(self, monkeypatch, caplog):
        """A last parameter noticeably off 1.0 is reported and set to exactly 1.0."""
        cumsum = np.cumsum
        monkeypatch.setattr(np, "cumsum", lambda values: cumsum(values) * (1.0 + 1e-10))
        with caplog.at_level(logging.WARNING, logger="bezfit.parameterize"):
            u = Parameterizer.chord_length(np.array([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]]))
        assert u[-1] == 1.0
        assert "expecting exactly 1" in caplog.text

    def test_small_end_deviation_is_silent(self, monkeypatch, caplog):
        """Rounding noise below the threshold is corrected without a warning."""
        cumsum = np.cumsum
        monkeypatch.setattr(np, "cumsum", lambda values: cumsum(values) * (1.0 + 1e-10))
        settings = FitSettings(param_end_epsilon=1e-6)
        with caplog.at_level(logging.WARNING, logger="bezfit.parameterize"):
            u = Parameterizer.chord_length(np.array([[0.0, 0.0], [1.0, 0.0], [3.0, 0.0]]), settings)
        assert u[-1] == 1.0
        assert caplog.text == ""


class TestNewtonRaphson:
    """Test the single point Newton-Raphson step."""

    def test_step_on_straight_curve(self):
        """On a uniformly parameterized line the step jumps to the foot of the perpendicular."""
        improved = Parameterizer.newton_raphson_root_find(LINE, np.array([1.5, 1.0]), 0.3)
        assert improved == pytest.approx(0.5)

    def test_point_on_curve_is_stable(self):
        """A parameter that already hits its point is kept."""
        point = BezierCurve.evaluate(3, ARCH, 0.4)
        assert Parameterizer.newton_raphson_root_find(ARCH, point, 0.4) == pytest.approx(0.4)

    def test_nudge_away_from_maximum(self):
        """If the step would head for a distance maximum the parameter is nudged instead."""
        # below the arch, the top of the arch is a local maximum of the distance
        improved = Parameterizer.newton_raphson_root_find(ARCH, np.array([0.6, -10.0]), 0.5)
        assert improved == pytest.approx(
            DEFAULT_FIT_SETTINGS.newton_nudge_up + 0.5 * DEFAULT_FIT_SETTINGS.newton_nudge_scale
        )

    def test_result_is_clamped(self):
        """Parameters never leave [0, 1]."""
        improved = Parameterizer.newton_raphson_root_find(LINE, np.array([10.0, 0.0]), 0.9)
        assert improved == 1.0
        improved = Parameterizer.newton_raphson_root_find(LINE, np.array([-10.0, 0.0]), 0.1)
        assert improved == 0.0

    def test_never_worse(self):
        """The improved parameter is never farther from the point than the old one."""
        points = _noisy_points(40)
        u = Parameterizer.chord_length(points)
        curve = ARCH * 10.0 + np.array([[0.0, 0.0], [3.0, -2.0], [-1.0, 4.0], [0.0, 0.0]])
        for point, u_old in zip(points, u):
            u_new = Parameterizer.newton_raphson_root_find(curve, point, float(u_old))
            old_dist = np.linalg.norm(BezierCurve.evaluate(3, curve, float(u_old)) - point)
            new_dist = np.linalg.norm(BezierCurve.evaluate(3, curve, u_new) - point)
            assert new_dist <= old_dist + 1e-12


class TestReparameterize:
    """Test the vectorized re-parameterization."""

    def test_matches_scalar_step(self):
        """The vectorized version gives the same parameters as the scalar step."""
        points = _noisy_points(33)
        u = Parameterizer.chord_length(points)
        curve = ARCH * 10.0 + np.array([[0.0, 0.0], [3.0, -2.0], [-1.0, 4.0], [0.0, 0.0]])
        vectorized = Parameterizer.reparameterize(points, u, curve)
        expected = [u[0]] + [
            Parameterizer.newton_raphson_root_find(curve, points[i], float(u[i])) for i in range(1, len(u) - 1)
        ] + [u[-1]]
        np.testing.assert_allclose(vectorized, expected, rtol=1e-12, atol=1e-12)

    def test_matches_scalar_step_with_nudge(self):
        """The nudge branch is the same in the vectorized version."""
        points = np.array([[0.0, 0.0], [0.6, -10.0], [1.0, 0.0]])
        u = np.array([0.0, 0.5, 1.0])
        vectorized = Parameterizer.reparameterize(points, u, ARCH)
        assert vectorized[1] == pytest.approx(Parameterizer.newton_raphson_root_find(ARCH, points[1], 0.5))

    def test_end_parameters_unchanged(self):
        """The first and last parameter stay 0 and 1, the input array is not modified."""
        points = _noisy_points(20)
        u = Parameterizer.chord_length(points)
        u_copy = u.copy()
        new_u = Parameterizer.reparameterize(points, u, ARCH * 10.0)
        assert new_u[0] == 0.0
        assert new_u[-1] == 1.0
        np.testing.assert_array_equal(u, u_copy)

    def test_two_points(self):
        """Two points have no interior parameter to improve."""
        new_u = Parameterizer.reparameterize(np.array([[0.0, 0.0], [1.0, 0.0]]), np.array([0.0, 1.0]), LINE)
        np.testing.assert_array_equal(new_u, [0.0, 1.0])
