"""
Scene node adapter boundary.

The kinematics core never owns scene nodes; it reads and writes their local
transforms through a ``SceneAdapter``. ``InMemoryScene`` is a small
numpy-backed implementation for headless hosts, examples and tests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import numpy as np
from scipy.spatial.transform import Rotation

logger = logging.getLogger(__name__)

NODE_KIND_MESH = 'mesh'
NODE_KIND_COLLECTION = 'collection'


class SceneAdapter(ABC):
    """Capabilities the kinematics core requires from the host scene graph.

    Node handles are opaque to the core; positions are in scene base units
    and rotations are quaternions in scalar-last ``[x, y, z, w]`` order.
    """

    @abstractmethod
    def get_node(self, node_id: str) -> Optional[Any]:
        """Return a handle for ``node_id`` or None if the node does not exist."""

    @abstractmethod
    def set_local_position(self, node: Any, position: np.ndarray) -> None: ...

    @abstractmethod
    def set_local_rotation(self, node: Any, quaternion: np.ndarray) -> None: ...

    @abstractmethod
    def set_parent(self, node: Any, parent: Any) -> None: ...

    @abstractmethod
    def get_parent(self, node: Any) -> Optional[Any]: ...

    @abstractmethod
    def resync_physics(self, node: Any) -> None:
        """Push the node pose to its physics body; no-op without one."""

    @abstractmethod
    def has_physics_body(self, node: Any) -> bool: ...

    @abstractmethod
    def world_matrix(self, node: Any) -> np.ndarray:
        """4x4 homogeneous world transform of the node."""

    @abstractmethod
    def children(self, node: Any) -> List[Any]: ...

    @abstractmethod
    def node_id(self, node: Any) -> str: ...

    @abstractmethod
    def local_position(self, node: Any) -> np.ndarray: ...

    @abstractmethod
    def local_rotation(self, node: Any) -> np.ndarray: ...

    @abstractmethod
    def local_scale(self, node: Any) -> np.ndarray: ...

    @abstractmethod
    def is_mesh(self, node: Any) -> bool: ...

    @abstractmethod
    def set_metadata(self, node: Any, key: str, value: Any) -> None: ...

    @abstractmethod
    def get_metadata(self, node: Any, key: str, default: Any = None) -> Any: ...

    @abstractmethod
    def clear_metadata(self, node: Any, key: str) -> None: ...

    def iter_descendants(self, node: Any) -> Iterator[Any]:
        """Depth-first walk of ``node`` and everything below it."""
        stack = [node]
        seen = set()
        while stack:
            current = stack.pop()
            key = self.node_id(current)
            if key in seen:
                continue
            seen.add(key)
            yield current
            stack.extend(reversed(self.children(current)))


@dataclass(eq=False)
class SceneNode:
    """In-memory scene node with a local TRS transform."""
    id: str
    name: str = ''
    kind: str = NODE_KIND_MESH
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 0.0, 1.0]))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    parent: Optional['SceneNode'] = None
    children: List['SceneNode'] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    has_physics_body: bool = False
    physics_sync_count: int = 0

    def local_matrix(self) -> np.ndarray:
        T = np.eye(4)
        T[:3, :3] = Rotation.from_quat(self.rotation).as_matrix() * self.scale
        T[:3, 3] = self.position
        return T


class InMemoryScene(SceneAdapter):
    """Reference scene graph keyed by node id."""

    def __init__(self):
        self.nodes: Dict[str, SceneNode] = {}

    def add_node(self, node_id: str, name: Optional[str] = None,
                 kind: str = NODE_KIND_MESH,
                 position=None, rotation=None, scale=None,
                 parent_id: Optional[str] = None,
                 has_physics_body: bool = False) -> SceneNode:
        """
        Create a node and optionally attach it under ``parent_id``.

        Args:
            node_id: Unique node id
            name: Display name, defaults to the id
            kind: ``'mesh'`` or ``'collection'``
            position: Local position in meters
            rotation: Local quaternion [x, y, z, w]
            scale: Local scale factors
            parent_id: Optional parent node id
            has_physics_body: Whether the node carries a physics body

        Returns:
            The created SceneNode
        """
        if node_id in self.nodes:
            raise ValueError(f"Duplicate scene node id: {node_id}")

        node = SceneNode(id=node_id, name=name or node_id, kind=kind,
                         has_physics_body=has_physics_body)
        if position is not None:
            node.position = np.asarray(position, dtype=float)
        if rotation is not None:
            node.rotation = np.asarray(rotation, dtype=float)
        if scale is not None:
            node.scale = np.asarray(scale, dtype=float)
        self.nodes[node_id] = node

        if parent_id is not None:
            self.set_parent(node, self.nodes[parent_id])
        return node

    def remove_node(self, node_id: str) -> bool:
        node = self.nodes.pop(node_id, None)
        if node is None:
            return False
        if node.parent is not None:
            node.parent.children.remove(node)
        for child in list(node.children):
            child.parent = None
        node.children.clear()
        return True

    def get_node(self, node_id: str) -> Optional[SceneNode]:
        return self.nodes.get(node_id)

    def set_local_position(self, node: SceneNode, position: np.ndarray) -> None:
        node.position = np.asarray(position, dtype=float).copy()

    def set_local_rotation(self, node: SceneNode, quaternion: np.ndarray) -> None:
        node.rotation = np.asarray(quaternion, dtype=float).copy()

    def set_parent(self, node: SceneNode, parent: Optional[SceneNode]) -> None:
        ancestor = parent
        while ancestor is not None:
            if ancestor is node:
                raise ValueError(f"Parenting {node.id} under {parent.id} would create a cycle")
            ancestor = ancestor.parent

        if node.parent is not None:
            node.parent.children.remove(node)
        node.parent = parent
        if parent is not None:
            parent.children.append(node)

    def get_parent(self, node: SceneNode) -> Optional[SceneNode]:
        return node.parent

    def resync_physics(self, node: SceneNode) -> None:
        if node.has_physics_body:
            node.physics_sync_count += 1

    def has_physics_body(self, node: SceneNode) -> bool:
        return node.has_physics_body

    def world_matrix(self, node: SceneNode) -> np.ndarray:
        T = node.local_matrix()
        parent = node.parent
        while parent is not None:
            T = parent.local_matrix() @ T
            parent = parent.parent
        return T

    def children(self, node: SceneNode) -> List[SceneNode]:
        return list(node.children)

    def node_id(self, node: SceneNode) -> str:
        return node.id

    def local_position(self, node: SceneNode) -> np.ndarray:
        return node.position.copy()

    def local_rotation(self, node: SceneNode) -> np.ndarray:
        return node.rotation.copy()

    def local_scale(self, node: SceneNode) -> np.ndarray:
        return node.scale.copy()

    def is_mesh(self, node: SceneNode) -> bool:
        return node.kind == NODE_KIND_MESH

    def set_metadata(self, node: SceneNode, key: str, value: Any) -> None:
        node.metadata[key] = value

    def get_metadata(self, node: SceneNode, key: str, default: Any = None) -> Any:
        return node.metadata.get(key, default)

    def clear_metadata(self, node: SceneNode, key: str) -> None:
        node.metadata.pop(key, None)
