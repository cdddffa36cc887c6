"""Central module containing the tunable constants of the Bezier fitting algorithm"""

from __future__ import annotations

from dataclasses import dataclass

###############################################################################
# Constants
###############################################################################

# Number of additional generate/reparameterize/evaluate rounds per fit attempt
FIT_MAX_ITERATIONS: int = 4
# Only iterate further while the error ratio is within [0, this value]
FIT_MAX_ITERATION_ERROR_RATIO: float = 3.0

# Allowed deviation of the curve from a chord midpoint, relative to chord length
HOOK_ALLOWANCE_FACTOR: float = 0.2

# Control point distances below this value are replaced by chord/3
ALPHA_MIN: float = 1.0e-6

# Newton-Raphson: blend back towards the old parameter in steps of this size
NEWTON_BLEND_STEP: float = 0.125
# Newton-Raphson: fixed nudge if the step would move towards a maximum
NEWTON_NUDGE_SCALE: float = 0.98
NEWTON_NUDGE_DOWN: float = 0.01
NEWTON_NUDGE_UP: float = 0.031  # not symmetric to NEWTON_NUDGE_DOWN

# Added to the squared tolerance before taking the square root
TOLERANCE_EPSILON: float = 1.0e-9

# Largest accepted deviation of the last chord-length parameter from 1.0
PARAM_END_EPSILON: float = 1.0e-13

# Exclusive upper bound for the segment budget
MAX_SEGMENTS_LIMIT: int = 1 << 27


###############################################################################
# FitSettings
###############################################################################
@dataclass(frozen=True)
class FitSettings:
    """Heuristic parameters of one fitting call.

    The defaults are the module constants. A custom instance can be handed to
    every public entry point of the fitter.

    Attributes:
        max_iterations (int): Extra refinement rounds per fit attempt.
        max_iteration_error_ratio (float): Refine only while the error ratio is below this.
        hook_allowance_factor (float): Hook allowance relative to the chord length.
        alpha_min (float): Smallest accepted control point distance.
        newton_blend_step (float): Blend step of the Newton-Raphson safety check.
        newton_nudge_scale (float): Scale of the Newton-Raphson nudge.
        newton_nudge_down (float): Offset of the downward nudge.
        newton_nudge_up (float): Offset of the upward nudge.
        tolerance_epsilon (float): Added to the squared tolerance.
        param_end_epsilon (float): Accepted deviation of the last parameter from 1.0.
    """

    max_iterations: int = FIT_MAX_ITERATIONS
    max_iteration_error_ratio: float = FIT_MAX_ITERATION_ERROR_RATIO
    hook_allowance_factor: float = HOOK_ALLOWANCE_FACTOR
    alpha_min: float = ALPHA_MIN
    newton_blend_step: float = NEWTON_BLEND_STEP
    newton_nudge_scale: float = NEWTON_NUDGE_SCALE
    newton_nudge_down: float = NEWTON_NUDGE_DOWN
    newton_nudge_up: float = NEWTON_NUDGE_UP
    tolerance_epsilon: float = TOLERANCE_EPSILON
    param_end_epsilon: float = PARAM_END_EPSILON

    def __post_init__(self):
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must not be negative, got {self.max_iterations}")
        if self.newton_blend_step <= 0.0:
            raise ValueError(f"newton_blend_step must be positive, got {self.newton_blend_step}")
        if self.hook_allowance_factor < 0.0:
            raise ValueError(f"hook_allowance_factor must not be negative, got {self.hook_allowance_factor}")


DEFAULT_FIT_SETTINGS: FitSettings = FitSettings()
