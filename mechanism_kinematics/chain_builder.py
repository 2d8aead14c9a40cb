"""
Kinematic chain discovery.
"""

import itertools
import logging
from typing import Dict, List, Optional, Union

from .exceptions import ErrorCode, InvalidJointConfigError
from .joints import ChainType, Joint, JointType, KinematicChain
from .registry import JointRegistry

logger = logging.getLogger(__name__)


class ChainBuilder:
    """Builds chain snapshots by walking the joint graph from a root node."""

    def __init__(self, registry: JointRegistry):
        self.registry = registry
        self._chains: Dict[str, KinematicChain] = {}
        self._id_counter = itertools.count(1)
        self.last_error: Optional[ErrorCode] = None

    def find_chain_joints(self, root_node_id: str) -> List[Joint]:
        """
        Collect joints reachable from ``root_node_id``, parents before children.

        Depth-first over parent -> child edges, using an explicit stack of
        child-joint iterators. A node is expanded at most once, so cycles and
        re-convergent branches terminate; every joint edge leaving an
        expanded node is recorded once.

        Args:
            root_node_id: Node to start the traversal from

        Returns:
            Joints in discovery order
        """
        joints: List[Joint] = []
        visited = {root_node_id}
        stack = [iter(self.registry.get_child_joints(root_node_id))]

        while stack:
            joint = next(stack[-1], None)
            if joint is None:
                stack.pop()
                continue

            joints.append(joint)
            if joint.child_node_id not in visited:
                visited.add(joint.child_node_id)
                stack.append(iter(self.registry.get_child_joints(joint.child_node_id)))

        return joints

    def create_chain(self, name: str, root_node_id: str,
                     chain_type: Union[ChainType, str] = ChainType.SERIAL) -> KinematicChain:
        """
        Snapshot the joints reachable from a root node as a named chain.

        Args:
            name: Chain name
            root_node_id: Base node of the mechanism (usually grounded)
            chain_type: Topology tag, not enforced

        Returns:
            A new KinematicChain; later graph edits do not affect it
        """
        try:
            chain_type = ChainType.parse(chain_type)
        except InvalidJointConfigError as e:
            logger.warning(f"{e}; tagging chain {name} as serial")
            chain_type = ChainType.SERIAL

        chain_joints = self.find_chain_joints(root_node_id)

        chain = KinematicChain(
            id=f"chain_{next(self._id_counter)}",
            name=name,
            type=chain_type,
            root_node_id=root_node_id,
            joint_ids=tuple(j.id for j in chain_joints),
            dof=sum(1 for j in chain_joints if j.type is not JointType.FIXED),
        )
        self._chains[chain.id] = chain
        self.last_error = None

        logger.info(f"Created kinematic chain: {name} with {chain.dof} DOF "
                    f"({len(chain.joint_ids)} joints)")
        return chain

    def get_chain(self, chain_id: str) -> Optional[KinematicChain]:
        return self._chains.get(chain_id)

    def get_all_chains(self) -> List[KinematicChain]:
        return list(self._chains.values())

    def delete_chain(self, chain_id: str) -> bool:
        if self._chains.pop(chain_id, None) is None:
            self.last_error = ErrorCode.NOT_FOUND
            logger.warning(f"Cannot delete unknown chain: {chain_id}")
            return False
        self.last_error = None
        return True

    def clear(self):
        self._chains.clear()
