"""
Mechanism Kinematics Library

Joint graphs, kinematic chain discovery and forward kinematics for
articulated assemblies (robot arms, grippers, linkages) in a 3D scene.
"""

__version__ = "1.0.0"
__author__ = "Robot Planning Team"

# Import main classes for easy access
from .animation import AnimationHandle, AnimationPhase, FrameScheduler, JointAnimator, ManualClock
from .chain_builder import ChainBuilder
from .context import KinematicsContext
from .exceptions import CyclicGraphError, ErrorCode, KinematicsError
from .fk_solver import ForwardKinematicsSolver
from .joints import ChainType, Joint, JointLimits, JointType, KinematicChain
from .registry import JointRegistry, default_ground_score
from .scene import InMemoryScene, SceneAdapter
from .utils import KinematicsConfig, load_config, save_config

__all__ = [
    "AnimationHandle",
    "AnimationPhase",
    "FrameScheduler",
    "JointAnimator",
    "ManualClock",
    "ChainBuilder",
    "KinematicsContext",
    "CyclicGraphError",
    "ErrorCode",
    "KinematicsError",
    "ForwardKinematicsSolver",
    "ChainType",
    "Joint",
    "JointLimits",
    "JointType",
    "KinematicChain",
    "JointRegistry",
    "default_ground_score",
    "InMemoryScene",
    "SceneAdapter",
    "KinematicsConfig",
    "load_config",
    "save_config",
]
