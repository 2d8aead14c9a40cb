#!/usr/bin/env python3
"""
Gripper Demo - builds a small arm with a two-finger gripper in an in-memory
scene, discovers its kinematic chain, drives it with forward kinematics and
animates one joint through its range.
"""

import logging
import os
import sys

import numpy as np

# Add mechanism_kinematics to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from mechanism_kinematics import (
    ChainType, FrameScheduler, InMemoryScene, KinematicsContext, ManualClock, load_config
)
from mechanism_kinematics.scene import NODE_KIND_COLLECTION
from mechanism_kinematics.unit_converter import UnitConverter
from mechanism_kinematics.visualization import ChainVisualizer, summarize_chain

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_scene() -> InMemoryScene:
    scene = InMemoryScene()
    scene.add_node('cell', kind=NODE_KIND_COLLECTION)
    scene.add_node('pedestal', scale=[3, 3, 1], parent_id='cell')
    for node_id in ('turret', 'upper_arm', 'forearm', 'wrist'):
        scene.add_node(node_id, position=[0, 0, 1.0], parent_id='cell')
    for node_id in ('finger_l', 'finger_r'):
        scene.add_node(node_id, position=[0, 0, 1.0], parent_id='cell', has_physics_body=True)
    return scene


def build_joints(ctx: KinematicsContext):
    ctx.create_joint(id='base_yaw', parent_node_id='pedestal', child_node_id='turret',
                     origin=[0, 0, 150])
    ctx.create_joint(id='shoulder', parent_node_id='turret', child_node_id='upper_arm',
                     axis=[0, 1, 0], origin=[0, 0, 120],
                     limits={'lower': -np.pi / 2, 'upper': np.pi / 2})
    ctx.create_joint(id='elbow', parent_node_id='upper_arm', child_node_id='forearm',
                     axis=[0, 1, 0], origin=[0, 0, 300],
                     limits={'lower': -2.5, 'upper': 2.5})
    ctx.create_joint(id='tool_mount', parent_node_id='forearm', child_node_id='wrist',
                     type='fixed', origin=[0, 0, 250])
    for side, sign in (('l', 1), ('r', -1)):
        ctx.create_joint(id=f'finger_{side}', parent_node_id='wrist',
                         child_node_id=f'finger_{side}', type='prismatic',
                         axis=[0, sign, 0], origin=[0, 0, 60],
                         limits={'lower': 0, 'upper': 40})


def main():
    """Run the gripper demo."""
    print("\n" + "=" * 60)
    print("MECHANISM KINEMATICS DEMO")
    print("=" * 60)

    scene = build_scene()
    config = load_config()
    clock = ManualClock()
    ctx = KinematicsContext(scene, config,
                            scheduler=FrameScheduler(clock, config.animation_frame_interval))

    base = ctx.suggest_ground_node('cell')
    print(f"\nSuggested ground part: {base}")
    ctx.ground_node(base)

    build_joints(ctx)
    chain = ctx.create_chain('arm_with_gripper', base, ChainType.TREE)
    print(f"Chain '{chain.name}': {len(chain)} joints, {chain.dof} DOF")

    ctx.reset_to_home()
    ctx.solve_chain({'shoulder': 0.4, 'elbow': -0.9, 'finger_l': 25.0, 'finger_r': 99.0})

    print("\nJoint state:")
    for joint_id, info in summarize_chain(ctx, chain).items():
        position_mm = np.round(UnitConverter.m_to_mm(np.array(info['position'])), 1)
        print(f"  {info['name']:<12} {info['type']:<10} value={info['value']:+.3f}  "
              f"child at {position_mm} mm")

    saved = ctx.get_joint_values()

    print("\nAnimating elbow through its range...")
    handle = ctx.animate_joint('elbow', duration=1.0)
    frames = ctx.run_animations()
    print(f"  {frames} frames, final phase: {handle.phase.value}")

    ctx.set_joint_values(saved)
    print(f"Restored values: {ctx.get_joint_values() == saved}")

    output_dir = os.path.join(os.path.dirname(__file__), 'output')
    os.makedirs(output_dir, exist_ok=True)
    ChainVisualizer(ctx).plot_chain(chain, save_path=os.path.join(output_dir, 'gripper_chain.html'))


if __name__ == "__main__":
    main()
