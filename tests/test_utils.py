"""
Tests for configuration and unit conversion utilities.
"""

import pytest
import numpy as np
import tempfile
import os

from mechanism_kinematics.unit_converter import UnitConverter
from mechanism_kinematics.utils import (
    DEFAULT_CONFIG_PATH, KinematicsConfig, load_config, save_config
)


class TestKinematicsConfig:
    """Test kinematics configuration functionality."""

    def test_default_config(self):
        """Test default configuration creation."""
        config = KinematicsConfig()

        assert config.linear_unit_scale == 0.001
        assert np.allclose(config.up_axis, [0, 0, 1])
        assert config.default_lower_limit == pytest.approx(-np.pi)
        assert config.default_upper_limit == pytest.approx(np.pi)
        assert config.animation_duration > 0

    def test_default_limits(self):
        """Test joint limits built from config defaults."""
        limits = KinematicsConfig(default_max_velocity=2.5).default_limits()
        assert limits.max_velocity == 2.5
        assert limits.lower == pytest.approx(-np.pi)

    def test_config_from_dict(self):
        """Test configuration creation from dictionary."""
        config = KinematicsConfig.from_dict({
            'linear_unit_scale': 1.0,
            'up_axis': [0, 2, 0],
            'animation_duration': 1.5,
            'not_a_setting': 7,
        })

        assert config.linear_unit_scale == 1.0
        assert np.allclose(config.up_axis, [0, 1, 0])
        assert config.animation_duration == 1.5
        assert not hasattr(config, 'not_a_setting')

    def test_config_to_dict(self):
        """Test configuration conversion to dictionary."""
        config_dict = KinematicsConfig().to_dict()

        assert isinstance(config_dict, dict)
        assert 'linear_unit_scale' in config_dict
        assert isinstance(config_dict['up_axis'], list)

    def test_invalid_values(self):
        """Test rejection of invalid configuration values."""
        with pytest.raises(ValueError):
            KinematicsConfig(linear_unit_scale=0.0)


class TestConfigIO:
    """Test configuration file I/O."""

    def test_save_and_load_config(self):
        """Test saving and loading configuration."""
        config = KinematicsConfig()
        config.animation_duration = 3.25
        config.ground_volume_weight = 0.5

        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            config_path = f.name

        try:
            save_config(config, config_path)
            assert os.path.exists(config_path)

            loaded_config = load_config(config_path)

            assert loaded_config.animation_duration == 3.25
            assert loaded_config.ground_volume_weight == 0.5
            assert np.allclose(loaded_config.up_axis, config.up_axis)

        finally:
            if os.path.exists(config_path):
                os.unlink(config_path)

    def test_load_nonexistent_config(self):
        """Test loading non-existent configuration file."""
        config = load_config('/nonexistent/path/config.yaml')

        assert isinstance(config, KinematicsConfig)
        assert config.linear_unit_scale == 0.001

    def test_load_malformed_config(self, tmp_path):
        """Test loading a malformed configuration file."""
        path = tmp_path / 'bad.yaml'
        path.write_text('linear_unit_scale: [unterminated')

        config = load_config(str(path))
        assert config.linear_unit_scale == 0.001

    def test_packaged_default(self):
        """Test the packaged default configuration."""
        assert os.path.exists(DEFAULT_CONFIG_PATH)
        packaged = load_config()
        defaults = KinematicsConfig()

        assert packaged.linear_unit_scale == defaults.linear_unit_scale
        assert packaged.limit_arc_segments == defaults.limit_arc_segments
        assert packaged.default_upper_limit == pytest.approx(defaults.default_upper_limit)


class TestUnitConverter:
    """Test unit conversions."""

    def test_lengths(self):
        """Test millimeter and meter conversions."""
        assert UnitConverter.mm_to_m(1500.0) == pytest.approx(1.5)
        assert UnitConverter.m_to_mm(0.25) == pytest.approx(250.0)
        assert np.allclose(UnitConverter.mm_to_m(np.array([100.0, 200.0])), [0.1, 0.2])

    def test_angles(self):
        """Test radian and degree conversions."""
        assert UnitConverter.rad_to_deg(np.pi) == pytest.approx(180.0)
        assert UnitConverter.deg_to_rad(90.0) == pytest.approx(np.pi / 2)

    def test_display_values(self):
        """Test inspector display values."""
        assert UnitConverter.joint_value_to_display(np.pi / 4, True) == pytest.approx(45.0)
        assert UnitConverter.joint_value_to_display(12.5, False) == 12.5
        assert UnitConverter.display_to_joint_value(45.0, True) == pytest.approx(np.pi / 4)

    def test_quaternion_to_rpy(self):
        """Test quaternion to roll/pitch/yaw conversion."""
        rpy = UnitConverter.quaternion_to_rpy_deg(np.array([0.0, 0.0, np.sin(np.pi / 4), np.cos(np.pi / 4)]))
        assert np.allclose(rpy, [0, 0, 90])
