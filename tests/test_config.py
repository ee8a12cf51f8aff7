"""
Tests for the simulation configuration.
"""

import pytest

from config import BirdConfig, default_config


class TestBirdConfig:
    """Tests for BirdConfig."""

    def test_default_config(self):
        """Default config has expected values."""
        assert default_config.num_birds == 200
        assert default_config.speed == 1.5
        assert default_config.detection_radius == 60.0
        assert default_config.min_distance == 30.0
        assert default_config.separation_factor == 0.3
        assert default_config.alignment_factor == 0.01
        assert default_config.cohesion_factor == 1e-4
        assert default_config.size == (15.0, 15.0)
        assert default_config.color == (1.0, 1.0, 1.0, 1.0)

    def test_replace(self):
        """Overrides produce a new config and leave the default untouched."""
        config = default_config._replace(num_birds=10, speed=3.0)
        assert config.num_birds == 10
        assert config.speed == 3.0
        assert default_config.num_birds == 200

    def test_immutable(self):
        """Fields cannot be reassigned."""
        with pytest.raises(AttributeError):
            default_config.speed = 2.0

    def test_hashable(self):
        """Configs can be used as static jit arguments."""
        assert hash(BirdConfig()) == hash(default_config)
