"""
Error taxonomy for the kinematics core.

Exceptions are raised inside the package and converted at the public
boundary into boolean/None results plus a recorded ``ErrorCode``.
"""

from enum import Enum
from typing import List, Optional


class ErrorCode(Enum):
    """Error categories reported through ``last_error``."""
    NOT_FOUND = "not_found"
    INVALID_ENDPOINTS = "invalid_endpoints"
    INVALID_CONFIG = "invalid_config"
    CYCLIC_GRAPH = "cyclic_graph"


class KinematicsError(Exception):
    """Base class for kinematics errors."""
    code: ErrorCode = ErrorCode.INVALID_CONFIG


class JointNotFoundError(KinematicsError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, joint_id: str):
        super().__init__(f"Joint not found: {joint_id}")
        self.joint_id = joint_id


class NodeNotFoundError(KinematicsError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, node_id: str):
        super().__init__(f"Scene node not found: {node_id}")
        self.node_id = node_id


class InvalidEndpointsError(KinematicsError):
    code = ErrorCode.INVALID_ENDPOINTS

    def __init__(self, parent_node_id: Optional[str], child_node_id: Optional[str]):
        super().__init__(
            f"Invalid joint endpoints: parent={parent_node_id!r}, child={child_node_id!r}"
        )
        self.parent_node_id = parent_node_id
        self.child_node_id = child_node_id


class InvalidJointConfigError(KinematicsError):
    code = ErrorCode.INVALID_CONFIG


class CyclicGraphError(KinematicsError):
    """Raised when propagation re-enters a node already updated in the same pass."""
    code = ErrorCode.CYCLIC_GRAPH

    def __init__(self, node_id: str, path: Optional[List[str]] = None):
        self.node_id = node_id
        self.path = list(path or [])
        trail = " -> ".join(self.path + [node_id]) if self.path else node_id
        super().__init__(f"Cyclic joint graph detected at node {node_id} ({trail})")
