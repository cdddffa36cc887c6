"""Test module for SvgPage in bezfit.page

The tests are run using pytest.
"""

import gzip
import math

import numpy as np

from bezfit.fitter import BezierFitter
from bezfit.page import SvgPage

POINTS = np.array([[0.0, 0.0], [1.0, 0.5], [2.0, 2.0], [3.0, 1.0], [math.nan, 0.0], [4.0, 0.0]])


def _page_with_fit() -> SvgPage:
    page = SvgPage.create_page_for_points(POINTS)
    page.add_points(POINTS)
    page.add_fit(BezierFitter.fit_cubic_multi(POINTS, 0.01, 10))
    return page


class TestSvgPage:
    """Test the SVG visualization of fits."""

    def test_to_string_contains_fit(self):
        """The main layer holds the input polyline and the curve path."""
        svg = _page_with_fit().to_string()
        assert "<svg" in svg
        assert "<polyline" in svg
        assert "<path" in svg
        assert 'd="M 0 0 C' in svg
        assert 'inkscape:label="main"' in svg
        assert "nan" not in svg

    def test_debug_layer(self):
        """Control polygons are written only on request."""
        page = _page_with_fit()
        assert 'inkscape:label="debug"' not in page.to_string()
        assert 'inkscape:label="debug"' in page.to_string(include_debug_layer=True)

    def test_to_string_is_repeatable(self):
        """Assembling the tree does not change the page."""
        page = _page_with_fit()
        assert page.to_string(pretty=True) == page.to_string(pretty=True)

    def test_save_as(self, tmp_path):
        """Plain and compressed files hold the same document."""
        page = _page_with_fit()
        svg_file = tmp_path / "fit.svg"
        svgz_file = tmp_path / "fit.svgz"
        page.save_as(str(svg_file))
        page.save_as(str(svgz_file), compressed=True)
        assert gzip.decompress(svgz_file.read_bytes()) == svg_file.read_bytes()

    def test_page_size_covers_points(self):
        """The page is as large as the point bounds plus the margins."""
        page = SvgPage.create_page_for_points(POINTS, margin=2.0)
        assert page.drawing["width"] == "8.0mm"
        assert page.drawing["height"] == "6.0mm"
