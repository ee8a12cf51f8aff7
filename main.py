"""Main entry point for the bird flocking simulation."""

import argparse
import logging

import numpy as np

from birds import AgentPool, Bounds
from config import default_config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Run a headless bird flocking simulation in JAX')
    parser.add_argument('--num-birds', type=int, default=default_config.num_birds, help='Number of birds')
    parser.add_argument('--frames', type=int, default=500, help='Number of ticks to simulate')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    parser.add_argument('--width', type=float, default=1280.0, help='World width')
    parser.add_argument('--height', type=float, default=720.0, help='World height')
    parser.add_argument('--speed', type=float, default=default_config.speed, help='Bird speed per tick')
    parser.add_argument('--detection-radius', type=float, default=default_config.detection_radius,
                        help='Distance at which birds see each other')
    parser.add_argument('--min-distance', type=float, default=default_config.min_distance,
                        help='Distance below which birds push apart')
    parser.add_argument('--verbose', action='store_true', help='Log every tick')
    return parser.parse_args(argv)


def heading_alignment(velocities: np.ndarray) -> float:
    """Length of the mean unit heading: 1 when all birds fly the same way."""
    headings = velocities / np.linalg.norm(velocities, axis=1, keepdims=True)
    return float(np.linalg.norm(headings.mean(axis=0)))


def run(args) -> AgentPool:
    """Run the bird simulation described by parsed arguments."""
    # Create configuration
    config = default_config._replace(
        num_birds=args.num_birds,
        speed=args.speed,
        detection_radius=args.detection_radius,
        min_distance=args.min_distance,
    )
    bounds = Bounds.from_size(args.width, args.height)

    print(f"Initializing simulation with {config.num_birds} birds...")
    print(f"World size: {args.width} x {args.height}")
    print(f"Detection radius: {config.detection_radius}")
    print(f"Minimum distance: {config.min_distance}")

    pool = AgentPool.initialize(bounds, config=config, seed=args.seed)
    print(f"Initial heading alignment: {heading_alignment(pool.velocities):.3f}")

    print(f"Simulating {args.frames} frames...")
    for _ in range(args.frames):
        pool.step(bounds)

    speeds = np.linalg.norm(pool.velocities, axis=1)
    print(f"Finished after {pool.ticks} ticks")
    print(f"Mean speed: {speeds.mean():.3f}")
    print(f"Final heading alignment: {heading_alignment(pool.velocities):.3f}")
    return pool


def main(argv=None):
    """Run the bird simulation."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s %(message)s'
    )
    # Only our own logger goes verbose, JAX stays quiet
    logging.getLogger('birds').setLevel(logging.DEBUG if args.verbose else logging.WARNING)
    run(args)


if __name__ == '__main__':
    main()
