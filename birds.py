"""Core bird flocking simulation logic using JAX."""

import functools
import logging
from typing import NamedTuple, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np
from jax import random

from config import BirdConfig, default_config

logger = logging.getLogger(__name__)


class Bounds(NamedTuple):
    """Rectangle the birds fly in. The y axis points up, so top > bottom."""
    left: float
    right: float
    top: float
    bottom: float

    @classmethod
    def from_size(cls, width: float, height: float) -> "Bounds":
        """Bounds centred on the origin, like a window rect."""
        return cls(-width / 2, width / 2, height / 2, -height / 2)


class BirdState(NamedTuple):
    """State of the bird simulation."""
    positions: jnp.ndarray  # (N, 2)
    velocities: jnp.ndarray  # (N, 2)


def validate_bounds(bounds) -> Bounds:
    """Check that bounds enclose a non-empty area.

    Args:
        bounds: Bounds or any (left, right, top, bottom) sequence

    Returns:
        Bounds with float fields

    Raises:
        ValueError: if the width or height is not positive
    """
    bounds = Bounds(*(float(edge) for edge in bounds))
    if not (bounds.right > bounds.left and bounds.top > bounds.bottom):
        raise ValueError(f"Bounds must have positive width and height, got {bounds}")
    return bounds


def initialize_birds(key: random.PRNGKey, bounds: Bounds, num_birds: int,
                     config: BirdConfig) -> BirdState:
    """Initialize bird positions and velocities randomly.

    Positions are uniform inside the bounds. Headings are a uniform angle,
    so the unit vector is never zero before it is scaled to the speed.

    Args:
        key: JAX random key
        bounds: Area to scatter the birds over
        num_birds: Population size
        config: Simulation configuration

    Returns:
        Initial bird state
    """
    key_pos, key_vel = random.split(key)

    positions = random.uniform(
        key_pos,
        shape=(num_birds, 2),
        minval=jnp.array([bounds.left, bounds.bottom]),
        maxval=jnp.array([bounds.right, bounds.top])
    )

    angles = random.uniform(key_vel, shape=(num_birds,), minval=0, maxval=2 * jnp.pi)
    velocities = jnp.stack([jnp.cos(angles), jnp.sin(angles)], axis=1) * config.speed

    return BirdState(positions=positions, velocities=velocities)


def wrap_position(position: jnp.ndarray, bounds: Bounds) -> jnp.ndarray:
    """Move a position that left the bounds to the opposite edge.

    A position lying exactly on an edge stays where it is.

    Args:
        position: Bird position (2,)
        bounds: Current world bounds

    Returns:
        Position inside the bounds (2,)
    """
    x, y = position[0], position[1]
    x = jnp.where(x < bounds.left, bounds.right, jnp.where(x > bounds.right, bounds.left, x))
    y = jnp.where(y > bounds.top, bounds.bottom, jnp.where(y < bounds.bottom, bounds.top, y))
    return jnp.stack([x, y]).astype(position.dtype)


def perpendicular(vector: jnp.ndarray) -> jnp.ndarray:
    """Rotate a 2D vector by 90 degrees counter-clockwise.

    Args:
        vector: Input vector (2,)

    Returns:
        Perpendicular vector of the same length (2,)
    """
    return jnp.stack([-vector[1], vector[0]])


def rescale(vector: jnp.ndarray, fallback: jnp.ndarray, speed: float) -> jnp.ndarray:
    """Scale a vector to the given length.

    A zero vector takes the direction of ``fallback`` instead, and a zero
    fallback points along the x axis, so the result always has length
    ``speed``.

    Args:
        vector: Vector to rescale (2,)
        fallback: Direction to use when ``vector`` is zero (2,)
        speed: Length of the result

    Returns:
        Rescaled vector (2,)
    """
    fallback = jnp.where(
        jnp.linalg.norm(fallback) > 0,
        fallback,
        jnp.array([1.0, 0.0], dtype=fallback.dtype)
    )
    direction = jnp.where(jnp.linalg.norm(vector) > 0, vector, fallback)
    return direction / jnp.linalg.norm(direction) * speed


def steer_bird(index: int, snapshot: BirdState, bounds: Bounds,
               config: BirdConfig) -> Tuple[jnp.ndarray, jnp.ndarray]:
    """Compute the next position and velocity of one bird.

    Every read goes against ``snapshot``, the state at the start of the
    tick, so the result does not depend on which birds were updated first.

    Args:
        index: Row of the bird in the snapshot
        snapshot: Bird state at the start of the tick
        bounds: Current world bounds
        config: Simulation configuration

    Returns:
        New (position, velocity) of the bird
    """
    velocity = snapshot.velocities[index]
    position = wrap_position(snapshot.positions[index] + velocity, bounds)

    def accumulate(carry, other):
        velocity_sum, position_sum, count = carry
        other_index, other_position, other_velocity = other

        distance = jnp.linalg.norm(position - other_position)
        is_neighbor = (
            (other_index != index)
            & (distance > 0)
            & (distance < config.detection_radius)
        )

        # Nudge sideways from the running heading when too close.
        # Note the push grows with distance.
        summed = velocity_sum + other_velocity
        nudge = perpendicular(summed) * config.separation_factor * distance / config.min_distance
        summed = jnp.where(distance < config.min_distance, summed + nudge, summed)

        velocity_sum = jnp.where(is_neighbor, summed, velocity_sum)
        position_sum = jnp.where(is_neighbor, position_sum + other_position, position_sum)
        return (velocity_sum, position_sum, count + is_neighbor), None

    init = (jnp.zeros_like(velocity), jnp.zeros_like(position), jnp.zeros((), dtype=jnp.int32))
    others = (jnp.arange(snapshot.positions.shape[0]), snapshot.positions, snapshot.velocities)
    (velocity_sum, position_sum, count), _ = jax.lax.scan(accumulate, init, others)

    has_neighbors = count > 0
    average_velocity = velocity_sum / jnp.maximum(count, 1)
    average_position = position_sum / jnp.maximum(count, 1)

    # Alignment: drift toward the neighbours' heading
    steered = velocity + (average_velocity - velocity) * config.alignment_factor

    # Cohesion: drift toward the neighbours' centre
    steered = jnp.where(
        has_neighbors,
        steered + (average_position - position) * config.cohesion_factor,
        steered
    )

    return position, rescale(steered, velocity, config.speed)


def step_birds(state: BirdState, bounds: Bounds, config: BirdConfig) -> BirdState:
    """Advance every bird by one tick.

    Args:
        state: Current bird state
        bounds: Current world bounds
        config: Simulation configuration

    Returns:
        Updated bird state
    """
    indices = jnp.arange(state.positions.shape[0])
    steer = functools.partial(steer_bird, config=config)
    positions, velocities = jax.vmap(steer, in_axes=(0, None, None))(indices, state, bounds)
    return BirdState(positions=positions, velocities=velocities)


# JIT compile the update function for performance
step_birds_jit = jax.jit(step_birds, static_argnames=['config'])


class AgentPool:
    """Fixed population of birds advanced one tick at a time.

    The driver calls ``step`` once per frame and reads ``positions`` and
    ``headings()`` to draw the flock.
    """

    def __init__(self, state: BirdState, config: BirdConfig = default_config):
        """Wrap an existing bird state.

        Args:
            state: Bird positions and velocities
            config: Simulation configuration
        """
        self.state = state
        self.config = config
        self.ticks = 0

    @classmethod
    def initialize(cls, bounds, population_size: Optional[int] = None,
                   config: BirdConfig = default_config, seed: int = 0) -> "AgentPool":
        """Create a pool of randomly placed birds.

        Args:
            bounds: Area to scatter the birds over
            population_size: Number of birds, ``config.num_birds`` if omitted
            config: Simulation configuration
            seed: Seed for the JAX random key

        Returns:
            New pool

        Raises:
            ValueError: on empty bounds or a population below one
        """
        bounds = validate_bounds(bounds)
        if population_size is None:
            population_size = config.num_birds
        if population_size < 1:
            raise ValueError(f"Population size must be at least 1, got {population_size}")

        state = initialize_birds(random.PRNGKey(seed), bounds, population_size, config)
        logger.info(f"Initialized {population_size} birds in {bounds}")
        return cls(state, config)

    def step(self, bounds) -> None:
        """Advance every bird one tick inside the given bounds."""
        bounds = validate_bounds(bounds)
        self.state = step_birds_jit(self.state, bounds, config=self.config)
        self.ticks += 1
        logger.debug(f"Tick {self.ticks} done")

    def __len__(self) -> int:
        """Number of birds in the pool."""
        return self.state.positions.shape[0]

    @property
    def positions(self) -> np.ndarray:
        """Copy of the bird positions (N, 2)."""
        return np.array(self.state.positions)

    @property
    def velocities(self) -> np.ndarray:
        """Copy of the bird velocities (N, 2)."""
        return np.array(self.state.velocities)

    def headings(self) -> np.ndarray:
        """Rotation angle of each bird in radians, measured from the x axis."""
        velocities = self.velocities
        return np.arctan2(velocities[:, 1], velocities[:, 0])
