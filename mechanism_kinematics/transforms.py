"""
Joint-type to local rigid transform.

Origins and axes are expressed in the parent's local frame. Linear
quantities are scaled from the joint working unit to the scene base unit
by ``linear_unit_scale``.
"""

from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation

from .joints import Joint, JointType


@dataclass
class LocalTransform:
    """Child-node pose relative to its parent, in scene base units."""
    position: np.ndarray
    rotation: Rotation

    @property
    def quaternion(self) -> np.ndarray:
        """Scalar-last quaternion [x, y, z, w]."""
        return self.rotation.as_quat()

    def as_matrix(self) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = self.rotation.as_matrix()
        T[:3, 3] = self.position
        return T


def axis_angle(axis: np.ndarray, angle: float) -> Rotation:
    return Rotation.from_rotvec(np.asarray(axis, dtype=float) * float(angle))


def compute_local_transform(joint: Joint, value: float,
                            linear_unit_scale: float = 0.001,
                            reference_axis: np.ndarray = np.array([0.0, 0.0, 1.0])) -> LocalTransform:
    """
    Compute the local transform of a joint's child for a given joint value.

    Spherical joints rotate about the fixed ``reference_axis`` and
    cylindrical/planar joints only translate along ``axis``; their remaining
    DOFs are not driven.

    Args:
        joint: Joint definition (axis is assumed unit length)
        value: Joint value, already clamped to limits
        linear_unit_scale: Working unit to scene unit factor (mm -> m)
        reference_axis: Unit axis driven by spherical joints

    Returns:
        LocalTransform with position in scene units and a rotation
    """
    position = joint.origin * linear_unit_scale
    rotation = Rotation.identity()

    joint_type = joint.type
    if joint_type is JointType.FIXED:
        pass
    elif joint_type is JointType.REVOLUTE:
        rotation = axis_angle(joint.axis, value)
    elif joint_type is JointType.PRISMATIC:
        position = position + joint.axis * (value * linear_unit_scale)
    elif joint_type is JointType.SPHERICAL:
        rotation = axis_angle(reference_axis, value)
    elif joint_type is JointType.CYLINDRICAL:
        # Rotational component needs a second driven value
        position = position + joint.axis * (value * linear_unit_scale)
    elif joint_type is JointType.PLANAR:
        # Only the first in-plane direction is driven
        position = position + joint.axis * (value * linear_unit_scale)
    else:
        raise ValueError(f"Unhandled joint type: {joint_type}")

    return LocalTransform(position=np.asarray(position, dtype=float), rotation=rotation)
