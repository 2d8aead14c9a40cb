"""
Tests for kinematic chain discovery.
"""

import pytest

from mechanism_kinematics.chain_builder import ChainBuilder
from mechanism_kinematics.exceptions import ErrorCode
from mechanism_kinematics.joints import ChainType, JointType
from mechanism_kinematics.registry import JointRegistry
from mechanism_kinematics.scene import InMemoryScene
from mechanism_kinematics.utils import KinematicsConfig


@pytest.fixture
def registry():
    scene = InMemoryScene()
    for node_id in ('base', 'shoulder', 'elbow', 'wrist', 'finger_l', 'finger_r', 'loose'):
        scene.add_node(node_id)
    return JointRegistry(scene, KinematicsConfig())


@pytest.fixture
def builder(registry):
    return ChainBuilder(registry)


@pytest.fixture
def gripper_arm(registry):
    """Serial arm ending in a fixed wrist mount and two prismatic fingers."""
    registry.create_joint(id='j_shoulder', parent_node_id='base', child_node_id='shoulder')
    registry.create_joint(id='j_elbow', parent_node_id='shoulder', child_node_id='elbow')
    registry.create_joint(id='j_wrist', parent_node_id='elbow', child_node_id='wrist', type='fixed')
    registry.create_joint(id='j_left', parent_node_id='wrist', child_node_id='finger_l',
                          type='prismatic', limits={'lower': 0, 'upper': 40})
    registry.create_joint(id='j_right', parent_node_id='wrist', child_node_id='finger_r',
                          type='prismatic', limits={'lower': 0, 'upper': 40})
    return registry


class TestChainCreation:
    """Test chain discovery and DOF counting."""

    def test_discovery_order(self, builder, gripper_arm):
        """Test depth-first discovery order of a branching arm."""
        chain = builder.create_chain('arm', 'base', ChainType.TREE)

        assert chain.joint_ids == ('j_shoulder', 'j_elbow', 'j_wrist', 'j_left', 'j_right')
        assert chain.root_node_id == 'base'
        assert chain.type is ChainType.TREE
        assert len(chain) == 5
        assert 'j_elbow' in chain

    def test_dof_excludes_fixed(self, builder, gripper_arm):
        """Test that fixed joints do not count toward chain DOF."""
        chain = builder.create_chain('arm', 'base')
        joints = [gripper_arm.get_joint(jid) for jid in chain.joint_ids]

        assert chain.dof == 4
        assert chain.dof == sum(1 for j in joints if j.type is not JointType.FIXED)

    def test_subchain_from_inner_node(self, builder, gripper_arm):
        """Test building a chain from a node inside the mechanism."""
        chain = builder.create_chain('hand', 'wrist')
        assert chain.joint_ids == ('j_left', 'j_right')
        assert chain.dof == 2

    def test_parents_precede_children(self, builder, gripper_arm):
        """Test that each joint comes after the joint driving its parent."""
        chain = builder.create_chain('arm', 'base')
        seen_children = {'base'}
        for jid in chain.joint_ids:
            joint = gripper_arm.get_joint(jid)
            assert joint.parent_node_id in seen_children
            seen_children.add(joint.child_node_id)

    def test_empty_root(self, builder, gripper_arm):
        """Test a root node without joints."""
        chain = builder.create_chain('nothing', 'loose')
        assert chain.joint_ids == ()
        assert chain.dof == 0

    def test_repeatable(self, builder, gripper_arm):
        """Test that rebuilding gives the same joints under a new id."""
        first = builder.create_chain('arm', 'base')
        second = builder.create_chain('arm', 'base')

        assert first is not second
        assert first.id != second.id
        assert first.joint_ids == second.joint_ids
        assert first.dof == second.dof

    def test_snapshot_not_updated(self, builder, gripper_arm):
        """Test that chains are not changed by later joint edits."""
        chain = builder.create_chain('arm', 'base')
        gripper_arm.create_joint(parent_node_id='finger_l', child_node_id='loose')
        gripper_arm.delete_joint('j_elbow')

        assert chain.joint_ids == ('j_shoulder', 'j_elbow', 'j_wrist', 'j_left', 'j_right')
        rebuilt = builder.create_chain('arm', 'base')
        assert rebuilt.joint_ids == ('j_shoulder',)

    def test_cycle_terminates(self, builder, registry):
        """Test that a closed loop is walked once."""
        registry.create_joint(id='ab', parent_node_id='base', child_node_id='shoulder')
        registry.create_joint(id='ba', parent_node_id='shoulder', child_node_id='base')

        chain = builder.create_chain('loop', 'base', 'closed')
        assert chain.joint_ids == ('ab', 'ba')
        assert chain.dof == 2
        assert chain.type is ChainType.CLOSED

    def test_long_serial_chain(self):
        """Test discovery on a chain of two thousand joints."""
        scene = InMemoryScene()
        for i in range(2001):
            scene.add_node(f'n{i}')
        registry = JointRegistry(scene, KinematicsConfig())
        for i in range(2000):
            registry.create_joint(id=f'j{i}', parent_node_id=f'n{i}', child_node_id=f'n{i + 1}')

        chain = ChainBuilder(registry).create_chain('long', 'n0')
        assert chain.joint_ids == tuple(f'j{i}' for i in range(2000))
        assert chain.dof == 2000

    def test_unknown_chain_type_defaults_to_serial(self, builder, gripper_arm):
        """Test the fallback for an unrecognised chain type."""
        chain = builder.create_chain('arm', 'base', 'spaghetti')
        assert chain.type is ChainType.SERIAL


class TestChainTable:
    """Test the builder's chain table."""

    def test_lookup_and_delete(self, builder, gripper_arm):
        """Test chain lookup and deletion."""
        chain = builder.create_chain('arm', 'base')

        assert builder.get_chain(chain.id) is chain
        assert builder.get_all_chains() == [chain]
        assert builder.delete_chain(chain.id)
        assert builder.get_chain(chain.id) is None
        assert not builder.delete_chain(chain.id)
        assert builder.last_error is ErrorCode.NOT_FOUND

    def test_clear(self, builder, gripper_arm):
        """Test clearing the chain table."""
        builder.create_chain('a', 'base')
        builder.create_chain('b', 'wrist')
        builder.clear()
        assert builder.get_all_chains() == []
