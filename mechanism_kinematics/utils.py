"""
Configuration management for mechanism kinematics.
"""

import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np
import yaml

from .exceptions import KinematicsError
from .joints import JointLimits, normalize_axis

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), 'config', 'default_config.yaml')

_VECTOR_FIELDS = ('up_axis', 'default_axis')


@dataclass
class KinematicsConfig:
    """Configuration class for kinematics parameters."""

    # Units: joint working unit -> scene base unit (mm -> m)
    linear_unit_scale: float = 0.001
    up_axis: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))

    # Joint creation defaults
    default_axis: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    default_lower_limit: float = -math.pi
    default_upper_limit: float = math.pi
    default_max_velocity: float = 1.0
    default_max_effort: float = 10.0

    # Animation parameters (seconds)
    animation_duration: float = 2.0
    animation_return_delay: float = 0.5
    animation_frame_interval: float = 1.0 / 60.0

    # Ground suggestion heuristic
    ground_volume_weight: float = 0.1

    # Debug visual geometry (scene base units)
    axis_visual_length: float = 0.15
    limit_arc_radius: float = 0.08
    limit_arc_segments: int = 32

    def __post_init__(self):
        self.up_axis = normalize_axis(self.up_axis)
        self.default_axis = normalize_axis(self.default_axis)
        if self.linear_unit_scale <= 0:
            raise ValueError(f"linear_unit_scale must be positive, got {self.linear_unit_scale}")
        if self.limit_arc_segments < 1:
            raise ValueError("limit_arc_segments must be at least 1")

    def default_limits(self) -> JointLimits:
        return JointLimits(
            lower=self.default_lower_limit,
            upper=self.default_upper_limit,
            max_velocity=self.default_max_velocity,
            max_effort=self.default_max_effort,
        )

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'KinematicsConfig':
        """Create config from dictionary."""
        config_dict = dict(config_dict or {})
        for key in _VECTOR_FIELDS:
            if key in config_dict:
                config_dict[key] = np.array(config_dict[key], dtype=float)

        unknown = set(config_dict) - set(cls.__dataclass_fields__)
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {sorted(unknown)}")
            for key in unknown:
                config_dict.pop(key)

        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        config_dict = {}
        for key, value in self.__dict__.items():
            if isinstance(value, np.ndarray):
                config_dict[key] = value.tolist()
            else:
                config_dict[key] = value
        return config_dict


def load_config(config_path: Optional[str] = None) -> KinematicsConfig:
    """
    Load kinematics configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, uses default config.

    Returns:
        KinematicsConfig object
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config_dict = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {config_path}")
            return KinematicsConfig.from_dict(config_dict)
        except (OSError, yaml.YAMLError, TypeError, ValueError, KinematicsError) as e:
            logger.warning(f"Failed to load config from {config_path}: {e}")

    logger.info("Using default configuration")
    return KinematicsConfig()


def save_config(config: KinematicsConfig, config_path: str):
    """
    Save kinematics configuration to YAML file.

    Args:
        config: KinematicsConfig object to save
        config_path: Path where to save the configuration
    """
    try:
        directory = os.path.dirname(config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(config_path, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False)
        logger.info(f"Saved configuration to {config_path}")
    except OSError as e:
        logger.error(f"Failed to save config to {config_path}: {e}")
