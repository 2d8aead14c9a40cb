"""
Owned kinematics context for one scene.

Bundles the joint registry, chain builder, forward kinematics solver and
animator, and serialises every public call behind a single re-entrant lock.
Create one per scene and pass it to whatever needs kinematics.
"""

import functools
import logging
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import numpy as np

from .animation import AnimationHandle, FrameScheduler, JointAnimator
from .chain_builder import ChainBuilder
from .debug_visuals import JointAxisVisual
from .exceptions import ErrorCode
from .fk_solver import ForwardKinematicsSolver
from .joints import ChainType, GroundSnapshot, Joint, KinematicChain
from .registry import GroundScorer, JointRegistry
from .scene import SceneAdapter
from .utils import KinematicsConfig, load_config

logger = logging.getLogger(__name__)


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _recording(component: str):
    """Like ``_locked``, and records the component's ``last_error`` for this call."""
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            with self._lock:
                source = getattr(self, component)
                source.last_error = None
                result = method(self, *args, **kwargs)
                self._last_error = source.last_error
                return result
        return wrapper
    return decorator


class KinematicsContext:
    """Single-writer facade over the kinematics components."""

    def __init__(self, scene: SceneAdapter, config: Optional[KinematicsConfig] = None,
                 scheduler: Optional[FrameScheduler] = None,
                 ground_scorer: Optional[GroundScorer] = None):
        """
        Initialize the context.

        Args:
            scene: Host scene graph adapter
            config: Kinematics configuration, loaded from the packaged default if None
            scheduler: Frame scheduler for animations, a real-time one if None
            ground_scorer: Optional scorer for ground suggestions
        """
        self.config = config or load_config()
        self.scene = scene
        self.scheduler = scheduler or FrameScheduler(
            frame_interval=self.config.animation_frame_interval)

        self.registry = JointRegistry(scene, self.config, ground_scorer=ground_scorer)
        self.chains = ChainBuilder(self.registry)
        self.solver = ForwardKinematicsSolver(self.registry, self.config)
        self.animator = JointAnimator(self.solver, self.scheduler, self.config)

        self._lock = threading.RLock()
        self._last_error: Optional[ErrorCode] = None
        logger.info("Kinematics context initialized")

    @property
    def last_error(self) -> Optional[ErrorCode]:
        """Error code left by the most recent mutating call, None if it succeeded."""
        return self._last_error

    # Queries

    @_locked
    def get_joint(self, joint_id: str) -> Optional[Joint]:
        return self.registry.get_joint(joint_id)

    @_locked
    def get_all_joints(self) -> List[Joint]:
        return self.registry.get_all_joints()

    @_locked
    def get_node_joints(self, node_id: str) -> List[Joint]:
        return self.registry.get_node_joints(node_id)

    @_locked
    def is_grounded(self, node_id: str) -> bool:
        return self.registry.is_grounded(node_id)

    @_locked
    def get_grounded_nodes(self) -> List[str]:
        return self.registry.get_grounded_nodes()

    @_locked
    def get_ground_snapshot(self, node_id: str) -> Optional[GroundSnapshot]:
        return self.registry.get_ground_snapshot(node_id)

    @_locked
    def get_joint_values(self) -> Dict[str, float]:
        return self.solver.get_joint_values()

    @_locked
    def get_chain(self, chain_id: str) -> Optional[KinematicChain]:
        return self.chains.get_chain(chain_id)

    @_locked
    def get_all_chains(self) -> List[KinematicChain]:
        return self.chains.get_all_chains()

    @_locked
    def get_world_transform(self, node_id: str) -> Optional[np.ndarray]:
        return self.solver.get_world_transform(node_id)

    @_recording('registry')
    def suggest_ground_node(self, root_node_id: str,
                            scorer: Optional[GroundScorer] = None) -> Optional[str]:
        return self.registry.suggest_ground_node(root_node_id, scorer)

    # Mutations

    @_recording('registry')
    def create_joint(self, config: Optional[Dict[str, Any]] = None, **overrides) -> Optional[str]:
        return self.registry.create_joint(config, **overrides)

    @_recording('registry')
    def delete_joint(self, joint_id: str) -> bool:
        animation = self.animator.get_active_animation(joint_id)
        if animation is not None:
            animation.cancel()
        return self.registry.delete_joint(joint_id)

    @_recording('registry')
    def ground_node(self, node_id: str, lock_position: bool = True) -> bool:
        return self.registry.ground_node(node_id, lock_position)

    @_recording('registry')
    def unground_node(self, node_id: str) -> bool:
        return self.registry.unground_node(node_id)

    @_recording('chains')
    def create_chain(self, name: str, root_node_id: str,
                     chain_type: Union[ChainType, str] = ChainType.SERIAL) -> KinematicChain:
        return self.chains.create_chain(name, root_node_id, chain_type)

    @_recording('chains')
    def delete_chain(self, chain_id: str) -> bool:
        return self.chains.delete_chain(chain_id)

    @_recording('solver')
    def update_joint_position(self, joint_id: str, value: float) -> bool:
        return self.solver.update_joint_position(joint_id, value)

    @_recording('solver')
    def solve_chain(self, joint_values: Mapping[str, float]) -> bool:
        return self.solver.solve_chain(joint_values)

    @_recording('solver')
    def reset_to_home(self) -> bool:
        return self.solver.reset_to_home()

    @_recording('solver')
    def set_joint_values(self, values: Mapping[str, float]) -> bool:
        return self.solver.set_joint_values(values)

    @_recording('animator')
    def animate_joint(self, joint_id: str, duration: Optional[float] = None,
                      on_update: Optional[Callable[[float], None]] = None) -> Optional[AnimationHandle]:
        return self.animator.animate_joint(joint_id, duration, on_update)

    @_locked
    def tick(self, now: Optional[float] = None) -> int:
        """Advance animations by one frame."""
        return self.scheduler.tick(now)

    def run_animations(self, max_frames: int = 100000) -> int:
        """
        Tick until every pending animation frame and timer has run.

        The lock is taken once per frame and released while waiting for the
        next one, so other threads can query or edit between frames.
        """
        return self.scheduler.run_until_idle(max_frames, tick=self.tick)

    @_recording('registry')
    def show_joint_axis(self, joint_id: str) -> Optional[JointAxisVisual]:
        return self.registry.show_joint_axis(joint_id)

    @_locked
    def hide_joint_visuals(self, joint_id: str) -> bool:
        return self.registry.hide_joint_visuals(joint_id)

    @_locked
    def reset(self):
        """Drop all joints, chains, grounding and pending animations."""
        self.animator.cancel_all()
        self.scheduler.clear()
        self.chains.clear()
        self.registry.reset()
        self.solver.last_error = None
        self._last_error = None
