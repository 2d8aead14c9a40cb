#!/usr/bin/env python3
"""
Forward kinematics solver.

Turns joint values into local transforms of the joints' child nodes and
propagates each update down the joint graph, parents before children.
Results are written through the SceneAdapter; nothing here owns scene nodes.
"""

import logging
from typing import Dict, List, Mapping, Optional, Set

import numpy as np

from .exceptions import CyclicGraphError, ErrorCode, InvalidJointConfigError, KinematicsError
from .joints import Joint
from .registry import JointRegistry
from .transforms import LocalTransform, compute_local_transform
from .utils import KinematicsConfig

logger = logging.getLogger(__name__)


class ForwardKinematicsSolver:
    """Applies joint values to the scene and propagates them to descendants."""

    def __init__(self, registry: JointRegistry, config: Optional[KinematicsConfig] = None):
        """
        Initialize the solver.

        Args:
            registry: Joint registry providing joints and the scene adapter
            config: Kinematics configuration, defaults to the registry's
        """
        self.registry = registry
        self.scene = registry.scene
        self.config = config or registry.config
        self.last_error: Optional[ErrorCode] = None

    def compute_joint_transform(self, joint: Joint, value: Optional[float] = None) -> LocalTransform:
        """Local transform of ``joint`` at ``value`` (defaults to its current value)."""
        if value is None:
            value = joint.value
        return compute_local_transform(
            joint,
            joint.limits.clamp(value),
            linear_unit_scale=self.config.linear_unit_scale,
            reference_axis=self.config.up_axis,
        )

    def update_joint_position(self, joint_id: str, value: float) -> bool:
        """
        Set a joint value and update the child node and all descendants.

        The value is clamped into the joint limits before it is stored.

        Args:
            joint_id: Joint to drive
            value: Requested angle (rad) or travel (working unit)

        Returns:
            True on success, False if the joint is unknown, its nodes are
            missing, or the joint graph below it contains a cycle
        """
        try:
            joint = self.registry.require_joint(joint_id)
            if not np.isfinite(value):
                raise InvalidJointConfigError(f"Rejected non-finite value {value}")
            order = self._propagation_order(joint)

            clamped = joint.set_value(value)
            if clamped != value:
                logger.debug(f"Joint {joint.name}: value {value} clamped to {clamped}")
            self.registry.refresh_joint_metadata(joint)

            self._apply_joint_transform(joint)
        except KinematicsError as e:
            self.last_error = e.code
            logger.error(f"Cannot update joint {joint_id}: {e}")
            return False

        skipped: Set[str] = set()
        for descendant in order[1:]:
            if descendant.parent_node_id in skipped:
                skipped.add(descendant.child_node_id)
                continue
            try:
                self._apply_joint_transform(descendant)
            except KinematicsError as e:
                logger.warning(f"Skipping joint {descendant.name} and its descendants: {e}")
                skipped.add(descendant.child_node_id)

        self.last_error = None
        return True

    def _propagation_order(self, joint: Joint) -> List[Joint]:
        """
        Joints to update for a change of ``joint``, parents before children.

        Depth-first with an explicit stack of child-joint iterators, one per
        node on the current path.

        Raises:
            CyclicGraphError: if a joint leads back to a node on the current path
        """
        order: List[Joint] = []
        placed: Set[str] = set()
        path = [joint.parent_node_id]
        on_path = {joint.parent_node_id}
        stack = [iter([joint])]

        while stack:
            current = next(stack[-1], None)
            if current is None:
                stack.pop()
                on_path.discard(path.pop())
                continue

            child_id = current.child_node_id
            if child_id in on_path:
                raise CyclicGraphError(child_id, path)
            if child_id in placed:
                logger.warning(f"Node {child_id} already positioned in this update; "
                               f"skipping joint {current.name}")
                continue
            placed.add(child_id)
            order.append(current)

            path.append(child_id)
            on_path.add(child_id)
            stack.append(iter(self.registry.get_child_joints(child_id)))

        return order

    def _apply_joint_transform(self, joint: Joint):
        """
        Write the joint's local transform onto its child node.

        Raises:
            NodeNotFoundError: if the parent or child node is missing
            CyclicGraphError: if the scene refuses to re-parent the child
        """
        parent = self.registry.require_node(joint.parent_node_id)
        child = self.registry.require_node(joint.child_node_id)

        transform = self.compute_joint_transform(joint)

        if self.scene.get_parent(child) is not parent:
            try:
                self.scene.set_parent(child, parent)
            except ValueError as e:
                raise CyclicGraphError(joint.child_node_id, [joint.parent_node_id]) from e

        self.scene.set_local_position(child, transform.position)
        self.scene.set_local_rotation(child, transform.quaternion)

        if self.scene.has_physics_body(child):
            self.scene.resync_physics(child)

    def solve_chain(self, joint_values: Mapping[str, float]) -> bool:
        """
        Apply several joint values in the given order.

        Updates are not rolled back if one of them fails.

        Args:
            joint_values: Mapping of joint id to requested value

        Returns:
            True only if every update succeeded; ``last_error`` keeps the
            first failure
        """
        first_error = None
        for joint_id, value in joint_values.items():
            if not self.update_joint_position(joint_id, value) and first_error is None:
                first_error = self.last_error
        self.last_error = first_error
        return first_error is None

    def reset_to_home(self) -> bool:
        """Drive every joint to zero, clamped into its limits."""
        return self.solve_chain({joint.id: 0.0 for joint in self.registry.get_all_joints()})

    def get_joint_values(self) -> Dict[str, float]:
        """Current value of every joint, for saving."""
        return {joint.id: joint.value for joint in self.registry.get_all_joints()}

    def set_joint_values(self, values: Mapping[str, float]) -> bool:
        """Restore joint values captured by ``get_joint_values``."""
        return self.solve_chain(values)

    def get_world_transform(self, node_id: str) -> Optional[np.ndarray]:
        """
        World transform of a scene node.

        Args:
            node_id: Scene node id

        Returns:
            4x4 homogeneous matrix in scene units, or None if the node is missing
        """
        node = self.scene.get_node(node_id)
        if node is None:
            return None
        return self.scene.world_matrix(node)
