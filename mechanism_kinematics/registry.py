"""
Joint graph and grounding registry.

Owns every Joint record and the set of grounded scene nodes. Scene nodes are
only referenced by id and accessed through the SceneAdapter.
"""

import itertools
import logging
from dataclasses import replace
from functools import partial
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .debug_visuals import JointAxisVisual, compute_joint_axis_visual
from .exceptions import (
    ErrorCode, InvalidEndpointsError, InvalidJointConfigError, JointNotFoundError,
    KinematicsError, NodeNotFoundError
)
from .joints import GroundSnapshot, Joint, JointLimits, JointType, as_vector3, normalize_axis
from .scene import SceneAdapter
from .utils import KinematicsConfig

logger = logging.getLogger(__name__)

JOINT_METADATA_KEY = 'joint'

# Scores a mesh node for ground suggestion; higher is better.
GroundScorer = Callable[[SceneAdapter, Any], float]


def default_ground_score(scene: SceneAdapter, node: Any,
                         up_axis: np.ndarray = np.array([0.0, 0.0, 1.0]),
                         volume_weight: float = 0.1) -> float:
    """
    Heuristic ground score: ``-height + volume_weight * volume``.

    Height is the node's local position along ``up_axis`` and volume is
    estimated from its scale factors. This is a rough guess at "big part near
    the floor", not a physical computation.
    """
    height = float(np.dot(scene.local_position(node), up_axis))
    volume = float(np.prod(np.abs(scene.local_scale(node))))
    return -height + volume_weight * volume


class JointRegistry:
    """Registry of joints and grounded nodes for one scene."""

    def __init__(self, scene: SceneAdapter, config: Optional[KinematicsConfig] = None,
                 ground_scorer: Optional[GroundScorer] = None):
        """
        Initialize an empty registry.

        Args:
            scene: Adapter for the host scene graph
            config: Kinematics configuration, defaults if None
            ground_scorer: Scoring function for ``suggest_ground_node``
        """
        self.scene = scene
        self.config = config or KinematicsConfig()
        self.ground_scorer = ground_scorer or partial(
            default_ground_score,
            up_axis=self.config.up_axis,
            volume_weight=self.config.ground_volume_weight,
        )

        self._joints: Dict[str, Joint] = {}
        self._grounded: Dict[str, GroundSnapshot] = {}
        self._visuals: Dict[str, JointAxisVisual] = {}
        self._id_counter = itertools.count(1)
        self.last_error: Optional[ErrorCode] = None

    # ------------------------------------------------------------------
    # Joints
    # ------------------------------------------------------------------

    def create_joint(self, config: Optional[Dict[str, Any]] = None, **overrides) -> Optional[str]:
        """
        Create a joint between two existing scene nodes.

        Args:
            config: Joint payload ``{id?, name?, type?, parent_node_id,
                child_node_id, axis?, origin?, limits?}``
            **overrides: Payload keys given as keyword arguments

        Returns:
            The new joint id, or None if the payload is invalid
        """
        payload = dict(config or {})
        payload.update(overrides)

        try:
            joint = self._build_joint(payload)
        except KinematicsError as e:
            self.last_error = e.code
            logger.error(f"Joint creation failed: {e}")
            return None

        self._joints[joint.id] = joint
        child = self.scene.get_node(joint.child_node_id)
        self.scene.set_metadata(child, JOINT_METADATA_KEY, joint.summary())

        self.last_error = None
        logger.info(f"Created {joint.type.value} joint {joint.name} ({joint.id}): "
                    f"{joint.parent_node_id} -> {joint.child_node_id}")
        if joint.type.is_partial:
            logger.warning(f"Joint {joint.name}: {joint.type.value} joints drive "
                           f"{joint.type.active_dof} of {joint.type.nominal_dof} DOF")
        return joint.id

    def _build_joint(self, payload: Dict[str, Any]) -> Joint:
        parent_id = payload.get('parent_node_id')
        child_id = payload.get('child_node_id')
        if not parent_id or not child_id or parent_id == child_id:
            raise InvalidEndpointsError(parent_id, child_id)
        if self.scene.get_node(parent_id) is None or self.scene.get_node(child_id) is None:
            raise InvalidEndpointsError(parent_id, child_id)

        joint_id = payload.get('id') or self._next_joint_id()
        if joint_id in self._joints:
            raise InvalidJointConfigError(f"Duplicate joint id: {joint_id}")

        joint_type = JointType.parse(payload.get('type') or JointType.REVOLUTE)

        limits = payload.get('limits')
        if limits is None:
            limits = self.config.default_limits()
        elif isinstance(limits, dict):
            limits = JointLimits.from_dict(limits, self.config.default_limits())
        elif isinstance(limits, JointLimits):
            limits = replace(limits)
        else:
            raise InvalidJointConfigError(f"Unsupported limits payload: {limits!r}")

        axis = payload.get('axis')
        origin = payload.get('origin')
        joint = Joint(
            id=joint_id,
            name=payload.get('name') or f"Joint_{len(self._joints) + 1}",
            type=joint_type,
            parent_node_id=parent_id,
            child_node_id=child_id,
            axis=normalize_axis(axis) if axis is not None else self.config.default_axis.copy(),
            origin=as_vector3(origin, 'origin') if origin is not None else np.zeros(3),
            limits=limits,
            show_axis=bool(payload.get('show_axis', True)),
            show_limits=bool(payload.get('show_limits', True)),
        )
        joint.set_value(0.0)
        return joint

    def _next_joint_id(self) -> str:
        while True:
            candidate = f"joint_{next(self._id_counter)}"
            if candidate not in self._joints:
                return candidate

    def delete_joint(self, joint_id: str) -> bool:
        try:
            joint = self.require_joint(joint_id)
        except JointNotFoundError as e:
            self.last_error = e.code
            logger.warning(f"Cannot delete joint: {e}")
            return False

        self.hide_joint_visuals(joint_id)
        del self._joints[joint_id]

        child = self.scene.get_node(joint.child_node_id)
        if child is not None:
            self.scene.clear_metadata(child, JOINT_METADATA_KEY)

        self.last_error = None
        logger.info(f"Deleted joint {joint.name} ({joint_id})")
        return True

    def require_joint(self, joint_id: str) -> Joint:
        """Return the joint or raise JointNotFoundError."""
        joint = self._joints.get(joint_id)
        if joint is None:
            raise JointNotFoundError(joint_id)
        return joint

    def require_node(self, node_id: str) -> Any:
        """Return the scene node handle or raise NodeNotFoundError."""
        node = self.scene.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_joint(self, joint_id: str) -> Optional[Joint]:
        return self._joints.get(joint_id)

    def get_all_joints(self) -> List[Joint]:
        return list(self._joints.values())

    def get_node_joints(self, node_id: str) -> List[Joint]:
        """Joints where ``node_id`` is the parent or the child."""
        return [j for j in self._joints.values()
                if j.parent_node_id == node_id or j.child_node_id == node_id]

    def get_child_joints(self, node_id: str) -> List[Joint]:
        """Joints whose parent is ``node_id``, in registry order."""
        return [j for j in self._joints.values() if j.parent_node_id == node_id]

    def refresh_joint_metadata(self, joint: Joint) -> None:
        child = self.scene.get_node(joint.child_node_id)
        if child is not None:
            self.scene.set_metadata(child, JOINT_METADATA_KEY, joint.summary())

    def __len__(self) -> int:
        return len(self._joints)

    def __contains__(self, joint_id: object) -> bool:
        return joint_id in self._joints

    # ------------------------------------------------------------------
    # Grounding
    # ------------------------------------------------------------------

    def ground_node(self, node_id: str, lock_position: bool = True) -> bool:
        """
        Mark a node as a fixed reference frame and snapshot its pose.

        Args:
            node_id: Scene node id
            lock_position: Whether to flag the node as locked for editing

        Returns:
            True on success, False if the node does not exist
        """
        try:
            node = self.require_node(node_id)
        except NodeNotFoundError as e:
            self.last_error = e.code
            logger.warning(f"Cannot ground node: {e}")
            return False

        snapshot = GroundSnapshot(
            node_id=node_id,
            position=tuple(float(x) for x in self.scene.local_position(node)),
            rotation=tuple(float(x) for x in self.scene.local_rotation(node)),
            locked=lock_position,
        )
        self._grounded[node_id] = snapshot

        self.scene.set_metadata(node, 'grounded', True)
        self.scene.set_metadata(node, 'ground_position', snapshot.position)
        self.scene.set_metadata(node, 'ground_rotation', snapshot.rotation)
        if lock_position:
            self.scene.set_metadata(node, 'locked', True)

        self.last_error = None
        logger.info(f"Grounded node: {node_id}")
        return True

    def unground_node(self, node_id: str) -> bool:
        try:
            node = self.require_node(node_id)
        except NodeNotFoundError as e:
            self.last_error = e.code
            logger.warning(f"Cannot unground node: {e}")
            return False

        self._grounded.pop(node_id, None)
        for key in ('grounded', 'ground_position', 'ground_rotation', 'locked'):
            self.scene.clear_metadata(node, key)

        self.last_error = None
        logger.info(f"Ungrounded node: {node_id}")
        return True

    def is_grounded(self, node_id: str) -> bool:
        return node_id in self._grounded

    def get_grounded_nodes(self) -> List[str]:
        return list(self._grounded)

    def get_ground_snapshot(self, node_id: str) -> Optional[GroundSnapshot]:
        return self._grounded.get(node_id)

    def suggest_ground_node(self, root_node_id: str,
                            scorer: Optional[GroundScorer] = None) -> Optional[str]:
        """
        Suggest the most likely base part under ``root_node_id``.

        Every mesh node in the subtree (root included) is scored and the
        highest score wins; ties keep the first node found depth-first.

        Args:
            root_node_id: Root of the subtree to search
            scorer: Optional scoring function overriding the registry default

        Returns:
            Best candidate node id, or None if there are no mesh nodes
        """
        try:
            root = self.require_node(root_node_id)
        except NodeNotFoundError as e:
            self.last_error = e.code
            logger.warning(f"Cannot suggest ground part: {e}")
            return None

        score_fn = scorer or self.ground_scorer
        best_id = None
        best_score = -np.inf
        for node in self.scene.iter_descendants(root):
            if not self.scene.is_mesh(node):
                continue
            score = score_fn(self.scene, node)
            if best_id is None or score > best_score:
                best_id = self.scene.node_id(node)
                best_score = score

        if best_id is not None:
            logger.debug(f"Suggested ground node {best_id} (score {best_score:.3f})")
        return best_id

    # ------------------------------------------------------------------
    # Debug visuals
    # ------------------------------------------------------------------

    def show_joint_axis(self, joint_id: str) -> Optional[JointAxisVisual]:
        """Compute and track axis/limit geometry for a joint."""
        try:
            joint = self.require_joint(joint_id)
            parent = self.require_node(joint.parent_node_id)
        except KinematicsError as e:
            self.last_error = e.code
            logger.warning(f"Cannot show joint axis: {e}")
            return None

        self.hide_joint_visuals(joint_id)
        visual = compute_joint_axis_visual(
            joint,
            self.scene.world_matrix(parent),
            linear_unit_scale=self.config.linear_unit_scale,
            axis_length=self.config.axis_visual_length,
            arc_radius=self.config.limit_arc_radius,
            arc_segments=self.config.limit_arc_segments,
        )
        self._visuals[joint_id] = visual
        return visual

    def hide_joint_visuals(self, joint_id: str) -> bool:
        return self._visuals.pop(joint_id, None) is not None

    def get_joint_visual(self, joint_id: str) -> Optional[JointAxisVisual]:
        return self._visuals.get(joint_id)

    def reset(self) -> None:
        """Clear all joints, grounding and visuals; scene metadata is cleaned up too."""
        for joint in list(self._joints.values()):
            child = self.scene.get_node(joint.child_node_id)
            if child is not None:
                self.scene.clear_metadata(child, JOINT_METADATA_KEY)
        for node_id in list(self._grounded):
            self.unground_node(node_id)
        self._joints.clear()
        self._grounded.clear()
        self._visuals.clear()
        self.last_error = None
        logger.info("Joint registry reset")
