"""
Joint, chain and grounding records for mechanism kinematics.

Linear quantities (origin, prismatic travel) are expressed in the joint
working unit (millimeters by default); angular quantities are radians.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple, Union

import numpy as np

from .exceptions import InvalidJointConfigError
from .unit_converter import UnitConverter


class JointType(Enum):
    """Joint motion categories.

    Spherical, cylindrical and planar joints are driven by a single scalar
    value; ``active_dof`` reports what is actually driven and
    ``nominal_dof`` what the category has physically.
    """
    FIXED = "fixed"
    REVOLUTE = "revolute"
    PRISMATIC = "prismatic"
    SPHERICAL = "spherical"
    CYLINDRICAL = "cylindrical"
    PLANAR = "planar"

    @property
    def nominal_dof(self) -> int:
        return _NOMINAL_DOF[self]

    @property
    def active_dof(self) -> int:
        return 0 if self is JointType.FIXED else 1

    @property
    def is_angular(self) -> bool:
        return self in (JointType.REVOLUTE, JointType.SPHERICAL)

    @property
    def is_partial(self) -> bool:
        """True when only some of the nominal DOFs are driven."""
        return self.active_dof < self.nominal_dof

    @classmethod
    def parse(cls, value: Union['JointType', str]) -> 'JointType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidJointConfigError(f"Unknown joint type: {value!r}") from None


_NOMINAL_DOF = {
    JointType.FIXED: 0,
    JointType.REVOLUTE: 1,
    JointType.PRISMATIC: 1,
    JointType.SPHERICAL: 3,
    JointType.CYLINDRICAL: 2,
    JointType.PLANAR: 2,
}


class ChainType(Enum):
    """Chain topology tag (informational only)."""
    SERIAL = "serial"
    PARALLEL = "parallel"
    TREE = "tree"
    CLOSED = "closed"

    @classmethod
    def parse(cls, value: Union['ChainType', str]) -> 'ChainType':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidJointConfigError(f"Unknown chain type: {value!r}") from None


@dataclass
class JointLimits:
    """Joint position limits and actuator ratings."""
    lower: float = -math.pi
    upper: float = math.pi
    max_velocity: float = 1.0
    max_effort: float = 10.0

    def __post_init__(self):
        try:
            self.lower = float(self.lower)
            self.upper = float(self.upper)
            self.max_velocity = float(self.max_velocity)
            self.max_effort = float(self.max_effort)
        except (TypeError, ValueError):
            raise InvalidJointConfigError(f"Joint limits must be numbers: {self!r}") from None
        if math.isnan(self.lower) or math.isnan(self.upper):
            raise InvalidJointConfigError("Joint limits must be numbers")
        if self.lower > self.upper:
            raise InvalidJointConfigError(
                f"Joint lower limit {self.lower} exceeds upper limit {self.upper}"
            )

    def clamp(self, value: float) -> float:
        return max(self.lower, min(self.upper, float(value)))

    def contains(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    @property
    def span(self) -> float:
        return self.upper - self.lower

    @classmethod
    def from_dict(cls, data: Dict[str, Any], defaults: 'JointLimits') -> 'JointLimits':
        """Build limits from a possibly partial payload.

        Accepts both ``max_velocity``/``max_effort`` and the shorter
        ``velocity``/``effort`` keys used by robot-description importers.
        """
        return cls(
            lower=data.get('lower', defaults.lower),
            upper=data.get('upper', defaults.upper),
            max_velocity=data.get('max_velocity', data.get('velocity', defaults.max_velocity)),
            max_effort=data.get('max_effort', data.get('effort', defaults.max_effort)),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            'lower': self.lower,
            'upper': self.upper,
            'max_velocity': self.max_velocity,
            'max_effort': self.max_effort,
        }


def as_vector3(value, name: str = 'vector') -> np.ndarray:
    """Coerce a sequence or ``{x, y, z}`` mapping into a float array of shape (3,)."""
    if isinstance(value, dict):
        value = [value.get('x', 0.0), value.get('y', 0.0), value.get('z', 0.0)]
    try:
        vec = np.asarray(value, dtype=float).reshape(-1)
    except (TypeError, ValueError):
        raise InvalidJointConfigError(f"{name} must be numeric: {value!r}") from None
    if vec.shape != (3,):
        raise InvalidJointConfigError(f"{name} must have 3 components, got {vec.shape[0]}")
    if not np.all(np.isfinite(vec)):
        raise InvalidJointConfigError(f"{name} must be finite: {vec}")
    return vec


def normalize_axis(axis) -> np.ndarray:
    vec = as_vector3(axis, 'axis')
    norm = np.linalg.norm(vec)
    if norm < 1e-12:
        raise InvalidJointConfigError("Joint axis must be non-zero")
    return vec / norm


@dataclass
class Joint:
    """A joint connecting two scene nodes.

    Attributes:
        id: Registry-unique identifier
        name: Display name
        type: Joint motion category
        parent_node_id: Scene node the joint frame is attached to
        child_node_id: Scene node moved by the joint
        axis: Unit motion axis in the parent's local frame
        origin: Joint frame offset in the parent's local frame (working unit)
        limits: Position limits and actuator ratings
        value: Current angle (rad) or travel (working unit), always within limits
    """
    id: str
    name: str
    type: JointType
    parent_node_id: str
    child_node_id: str
    axis: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    limits: JointLimits = field(default_factory=JointLimits)
    value: float = 0.0
    velocity: float = 0.0
    effort: float = 0.0
    show_axis: bool = True
    show_limits: bool = True

    @property
    def dof(self) -> int:
        return self.type.active_dof

    def set_value(self, value: float) -> float:
        """Clamp and store a new joint value, returning the stored value."""
        self.value = self.limits.clamp(value)
        return self.value

    def summary(self) -> Dict[str, Any]:
        """Inspector-facing joint state, written onto the child node metadata."""
        return {
            'joint_id': self.id,
            'joint_type': self.type.value,
            'axis': self.axis.tolist(),
            'limits': {
                'min': UnitConverter.joint_value_to_display(self.limits.lower, self.type.is_angular),
                'max': UnitConverter.joint_value_to_display(self.limits.upper, self.type.is_angular),
            },
            'current_value': UnitConverter.joint_value_to_display(self.value, self.type.is_angular),
            'velocity': self.velocity,
            'effort': self.effort,
        }


@dataclass(frozen=True)
class KinematicChain:
    """Snapshot of the joints reachable from a root node at creation time."""
    id: str
    name: str
    type: ChainType
    root_node_id: str
    joint_ids: Tuple[str, ...]
    dof: int

    def __len__(self) -> int:
        return len(self.joint_ids)

    def __contains__(self, joint_id: object) -> bool:
        return joint_id in self.joint_ids


@dataclass(frozen=True)
class GroundSnapshot:
    """Pose of a node captured when it was grounded."""
    node_id: str
    position: Tuple[float, float, float]
    rotation: Tuple[float, float, float, float]
    locked: bool = True
