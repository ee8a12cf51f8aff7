"""Configuration parameters for the bird flocking simulation."""

from typing import NamedTuple, Tuple


class BirdConfig(NamedTuple):
    """Configuration for bird simulation parameters.

    Immutable and hashable, so it can be passed to jitted functions as a
    static argument. Use ``_replace`` to derive a modified copy.
    """

    # Drawing hints for whoever renders the flock
    size: Tuple[float, float] = (15.0, 15.0)
    color: Tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0)

    # Simulation parameters
    num_birds: int = 200
    speed: float = 1.5  # Distance travelled per tick

    # Perception radii
    detection_radius: float = 60.0
    min_distance: float = 30.0

    # Steering blend factors
    separation_factor: float = 0.3
    alignment_factor: float = 0.01
    cohesion_factor: float = 1e-4


# Default configuration
default_config = BirdConfig()
