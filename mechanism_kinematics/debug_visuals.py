"""
Debug geometry for joint axes and limits.

The geometry is computed in world space (scene base units) and handed to
whatever renderer the host uses; this package only computes and tracks it.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .joints import Joint, JointType


@dataclass
class JointAxisVisual:
    """World-space marker geometry for one joint."""
    joint_id: str
    origin: np.ndarray
    direction: np.ndarray
    tip: np.ndarray
    limit_arc: Optional[np.ndarray] = None  # (segments + 3, 3) closed fan, revolute only


def _perpendicular_basis(direction: np.ndarray):
    """Two unit vectors spanning the plane orthogonal to ``direction``."""
    helper = np.array([1.0, 0.0, 0.0])
    if abs(np.dot(helper, direction)) > 0.9:
        helper = np.array([0.0, 1.0, 0.0])
    u = np.cross(direction, helper)
    u /= np.linalg.norm(u)
    v = np.cross(direction, u)
    return u, v


def compute_joint_axis_visual(joint: Joint, parent_world: np.ndarray,
                              linear_unit_scale: float,
                              axis_length: float,
                              arc_radius: float,
                              arc_segments: int) -> JointAxisVisual:
    """
    Compute the axis arrow and limit arc for a joint.

    Args:
        joint: Joint to visualize
        parent_world: 4x4 world matrix of the joint's parent node
        linear_unit_scale: Working unit to scene unit factor
        axis_length: Arrow length in scene units
        arc_radius: Limit arc radius in scene units
        arc_segments: Number of arc segments

    Returns:
        JointAxisVisual in world coordinates
    """
    origin_local = np.append(joint.origin * linear_unit_scale, 1.0)
    origin = (parent_world @ origin_local)[:3]

    direction = parent_world[:3, :3] @ joint.axis
    norm = np.linalg.norm(direction)
    direction = direction / norm if norm > 1e-12 else joint.axis.copy()
    tip = origin + direction * axis_length

    limit_arc = None
    if joint.type is JointType.REVOLUTE and joint.show_limits:
        u, v = _perpendicular_basis(direction)
        angles = np.linspace(joint.limits.lower, joint.limits.upper, arc_segments + 1)
        ring = origin + arc_radius * (np.outer(np.cos(angles), u) + np.outer(np.sin(angles), v))
        limit_arc = np.vstack([origin, ring, origin])

    return JointAxisVisual(joint_id=joint.id, origin=origin, direction=direction,
                           tip=tip, limit_arc=limit_arc)
