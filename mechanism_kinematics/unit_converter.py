"""
Unit conversion utilities for mechanism kinematics.

This module handles conversions between:
- Joint working units: millimeters for linear travel, radians for angles
- Scene base units: meters
- Inspector display units: millimeters and degrees
"""

import logging
from typing import Union

import numpy as np
from scipy.spatial.transform import Rotation

logger = logging.getLogger(__name__)

Scalar = Union[float, np.ndarray]


class UnitConverter:
    """Handles unit conversions between joint working units and the scene."""

    # Unit conversion constants
    M_TO_MM = 1000.0
    MM_TO_M = 1.0 / 1000.0
    RAD_TO_DEG = 180.0 / np.pi
    DEG_TO_RAD = np.pi / 180.0

    @staticmethod
    def mm_to_m(value_mm: Scalar) -> Scalar:
        """
        Convert a length from millimeters to meters.

        Args:
            value_mm: Length or position in millimeters

        Returns:
            Length or position in meters
        """
        return value_mm * UnitConverter.MM_TO_M

    @staticmethod
    def m_to_mm(value_m: Scalar) -> Scalar:
        """
        Convert a length from meters to millimeters.

        Args:
            value_m: Length or position in meters

        Returns:
            Length or position in millimeters
        """
        return value_m * UnitConverter.M_TO_MM

    @staticmethod
    def rad_to_deg(angle_rad: Scalar) -> Scalar:
        return angle_rad * UnitConverter.RAD_TO_DEG

    @staticmethod
    def deg_to_rad(angle_deg: Scalar) -> Scalar:
        return angle_deg * UnitConverter.DEG_TO_RAD

    @staticmethod
    def joint_value_to_display(value: float, is_angular: bool) -> float:
        """
        Convert a joint value to the unit shown in inspector panels.

        Args:
            value: Joint value in working units (radians or millimeters)
            is_angular: Whether the joint value is an angle

        Returns:
            Degrees for angular joints, the unchanged value otherwise
        """
        if is_angular:
            return float(value * UnitConverter.RAD_TO_DEG)
        return float(value)

    @staticmethod
    def display_to_joint_value(value: float, is_angular: bool) -> float:
        """Inverse of ``joint_value_to_display``."""
        if is_angular:
            return float(value * UnitConverter.DEG_TO_RAD)
        return float(value)

    @staticmethod
    def quaternion_to_rpy_deg(quat_xyzw: np.ndarray) -> np.ndarray:
        """
        Convert a quaternion [x, y, z, w] to roll/pitch/yaw in degrees.

        Args:
            quat_xyzw: Quaternion in scalar-last order

        Returns:
            [roll_deg, pitch_deg, yaw_deg]
        """
        return Rotation.from_quat(quat_xyzw).as_euler('xyz', degrees=True)

