"""Fit Bezier curves to a simulated freehand stroke and save the result as SVG."""

import math
import random
from typing import List, Tuple

from bezfit.fitter import BezierFitter
from bezfit.page import SvgPage

OUTPUT_FILE = "data/output/example/svg/freehand_stroke_fit.svg"

NUM_SAMPLES = 200  # number of digitized points of the stroke
JITTER = 0.15  # +/- random deviation of each sample in mm
TOLERANCE = 0.5**2  # squared error bound in mm^2
MAX_SEGMENTS = 32


def freehand_stroke(num_samples: int, jitter: float, seed: int = 4711) -> List[Tuple[float, float]]:
    """Sample a spiral-like stroke with a sharp corner, some jitter and a few repeated samples."""
    rnd = random.Random(seed)
    points = []
    for i in range(num_samples):
        pos = i / (num_samples - 1)
        if pos < 0.7:
            angle = pos / 0.7 * 1.5 * math.pi
            radius = 20 + 30 * pos
            x, y = 60 + radius * math.cos(angle), 60 + radius * math.sin(angle)
        else:
            # straight leg leaving the spiral at an angle
            x, y = 60 + (pos - 0.7) * 150, 60 - 41 + (pos - 0.7) * 10
        points.append((x + rnd.uniform(-jitter, jitter), y + rnd.uniform(-jitter, jitter)))
        if i % 37 == 0:
            points.append(points[-1])  # a digitizer repeating a sample
    return points


def main(output_file: str = OUTPUT_FILE):
    """Main"""
    points = freehand_stroke(NUM_SAMPLES, JITTER)
    fit = BezierFitter.fit_cubic_multi(points, TOLERANCE, MAX_SEGMENTS)
    print(f"{len(points)} points fitted by {fit.segment_count} cubic Bezier segments")
    print(f"split at input indices {fit.split_indices.tolist()}")

    page = SvgPage.create_page_for_points(points)
    page.add_points(points, stroke="red", stroke_width=0.3)
    page.add_fit(fit, stroke="black", stroke_width=0.2)

    print(f"save file {output_file} ...")
    page.save_as(output_file, include_debug_layer=True, pretty=True, indent=2)
    print("save done.")
    return fit


if __name__ == "__main__":
    main()
