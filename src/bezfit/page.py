"""SVG page for visualizing digitized points and their fitted Bezier curves."""

from __future__ import annotations

import copy
import gzip
import io
from typing import Optional, Union

import numpy as np
import svgwrite
import svgwrite.base
import svgwrite.container
import svgwrite.elementfactory
from numpy.typing import NDArray
from svgwrite.extensions import Inkscape

from bezfit.common import PointsLike, as_points_array
from bezfit.fitter import BezierFit


class SvgPage:
    """A page (canvas) described by SVG with a viewbox to draw inside.

    The viewbox has its own coordinate-system left-to-right and bottom-to-top.
    Contains groups/layers:
        - root       -- (group) just contains the y-flip and translation to bottom left
            - main   -- fitted curves and input points
            - debug  -- control polygons, hidden->display="none"
    """

    _inkscape: Inkscape  # extension to support layers

    drawing: svgwrite.Drawing
    root_group: svgwrite.container.Group
    main_layer: svgwrite.container.Group
    debug_layer: svgwrite.container.Group

    def __init__(
        self,
        canvas_width_mm: float,
        canvas_height_mm: float,
        viewbox_x_mm: float = 0.0,
        viewbox_y_mm: float = 0.0,
        viewbox_height_mm: Optional[float] = None,
        viewbox_scale: float = 1.0,
    ):
        """
        Initialize the SVG page with specified canvas and viewbox dimensions.

        Args:
            canvas_width_mm (float): The width of the canvas (=whole page) in millimeters.
            canvas_height_mm (float): The height of the canvas (=whole page) in millimeters.
            viewbox_x_mm (float, optional): The x-coordinate of the viewbox's top-left point. Defaults to 0.
            viewbox_y_mm (float, optional): The y-coordinate of the viewbox's top-left point. Defaults to 0.
            viewbox_height_mm (float, optional): The height of the viewbox. Defaults to the canvas height.
            viewbox_scale (float, optional): The scale factor for the viewbox. Defaults to 1.0.
        """
        if viewbox_height_mm is None:
            viewbox_height_mm = canvas_height_mm

        # canvas coordinates from viewbox perspective
        vb_x: float = -viewbox_x_mm * viewbox_scale
        vb_y: float = -viewbox_y_mm * viewbox_scale
        vb_width: float = viewbox_scale * canvas_width_mm
        vb_height: float = viewbox_scale * canvas_height_mm

        # profile="full" to support numbers with more than 4 decimal digits
        self.drawing = svgwrite.Drawing(
            size=(f"{canvas_width_mm}mm", f"{canvas_height_mm}mm"),
            viewBox=(f"{vb_x} {vb_y} {vb_width} {vb_height}"),
            profile="full",
        )

        # flip y-axis and set origin to bottom-left
        y_translate = -viewbox_height_mm * viewbox_scale
        self.root_group = self.drawing.g(id="root", transform=f"scale(1,-1) translate(0,{y_translate})")

        self._inkscape = Inkscape(self.drawing)
        self.main_layer = self._inkscape.layer(label="main", locked=False)
        self.debug_layer = self._inkscape.layer(label="debug", locked=False, display="none")

    def add(
        self,
        element: Union[svgwrite.base.BaseElement, svgwrite.elementfactory.ElementBuilder],
        add_to_debug_layer: bool = False,
    ) -> Union[svgwrite.base.BaseElement, svgwrite.elementfactory.ElementBuilder]:
        """Add a SVG element as subelement either to main or debug layer.

        Args:
            element (svgwrite.base.BaseElement): append this SVG element
            add_to_debug_layer (bool, optional): True if element should be added to debug layer.
                Defaults to False.

        Returns:
            svgwrite.base.BaseElement: the added element
        """
        if add_to_debug_layer:
            return self.debug_layer.add(element)
        return self.main_layer.add(element)

    def add_points(
        self,
        points: PointsLike,
        stroke: str = "red",
        stroke_width: float = 0.1,
    ) -> svgwrite.base.BaseElement:
        """Add the digitized input points as polyline to the main layer."""
        points_array = as_points_array(points)
        points_array = points_array[~np.isnan(points_array).any(axis=1)]
        polyline = self.drawing.polyline(
            points=[(float(x), float(y)) for x, y in points_array],
            stroke=stroke,
            stroke_width=stroke_width,
            fill="none",
        )
        return self.add(polyline)

    def add_fit(
        self,
        fit: BezierFit,
        stroke: str = "black",
        stroke_width: float = 0.2,
        debug_stroke: str = "blue",
    ) -> svgwrite.base.BaseElement:
        """Add the fitted curve to the main layer and its control polygons to the debug layer.

        Args:
            fit (BezierFit): the fitted segment chain
            stroke (str, optional): Color of the curve. Defaults to "black".
            stroke_width (float, optional): Width of the curve. Defaults to 0.2.
            debug_stroke (str, optional): Color of the control polygons. Defaults to "blue".

        Returns:
            svgwrite.base.BaseElement: the added curve path element
        """
        for segment in fit.segments:
            self.add(
                self.drawing.polyline(
                    points=[(float(x), float(y)) for x, y in segment],
                    stroke=debug_stroke,
                    stroke_width=stroke_width / 2,
                    fill="none",
                ),
                add_to_debug_layer=True,
            )
        path = self.drawing.path(d=fit.svg_path_string(), stroke=stroke, stroke_width=stroke_width, fill="none")
        return self.add(path)

    def to_string(self, include_debug_layer: bool = False, pretty: bool = False, indent: int = 2) -> str:
        """Return the assembled SVG document as string."""
        drawing_for_save = self.assemble_tree(
            copy.deepcopy(self.drawing),
            copy.deepcopy(self.root_group),
            copy.deepcopy(self.main_layer),
            copy.deepcopy(self.debug_layer),
            include_debug_layer,
        )
        svg_buffer = io.StringIO()
        drawing_for_save.write(svg_buffer, pretty=pretty, indent=indent)
        return svg_buffer.getvalue()

    def save_as(
        self,
        filename: str,
        include_debug_layer: bool = False,
        pretty: bool = False,
        indent: int = 2,
        compressed: bool = False,
    ):
        """Save as SVG file

        Args:
            filename (str): path and filename
            include_debug_layer (bool, optional): True if file should contain debug_layer. Defaults to False.
            pretty (bool, optional): True for easy readable output. Defaults to False.
            indent (int, optional): Indention if pretty is enabled. Defaults to 2 spaces.
            compressed (bool, optional): Save as compressed svgz-file. Defaults to False.
        """
        output_data = self.to_string(include_debug_layer, pretty, indent).encode("utf-8")
        if compressed:
            output_data = gzip.compress(output_data)

        with open(filename, "wb") as svg_file:
            svg_file.write(output_data)

    @classmethod
    def assemble_tree(
        cls,
        drawing: svgwrite.Drawing,
        root_group: svgwrite.container.Group,
        main_layer: svgwrite.container.Group,
        debug_layer: Optional[svgwrite.container.Group] = None,
        include_debug_layer: bool = False,
    ) -> svgwrite.Drawing:
        """Assemble a tree out of the given SVG elements.

        Returns:
            svgwrite.Drawing: The given drawing with assembled SVG drawing elements.
        """
        drawing.add(root_group)
        if include_debug_layer and debug_layer:
            root_group.add(debug_layer)
        root_group.add(main_layer)
        return drawing

    @classmethod
    def create_page_for_points(cls, points: NDArray[np.float64], margin: float = 5.0) -> SvgPage:
        """
        Create a page just large enough to show the given points plus a margin.

        Args:
            points (NDArray[np.float64]): points of shape (n, 2) which must contain a valid point
            margin (float, optional): space around the points. Defaults to 5.0.

        Returns:
            SvgPage: a page whose viewbox coordinates equal the point coordinates
        """
        points_array = as_points_array(points)
        valid = points_array[~np.isnan(points_array).any(axis=1)]
        xmin, ymin = valid.min(axis=0)
        xmax, ymax = valid.max(axis=0)
        width = float(xmax - xmin) + 2 * margin
        height = float(ymax - ymin) + 2 * margin
        page = SvgPage(width, height, viewbox_x_mm=margin - float(xmin), viewbox_y_mm=0.0)
        # shift so that ymin ends up at the bottom margin
        page.root_group.translate(0, margin - float(ymin))
        return page
