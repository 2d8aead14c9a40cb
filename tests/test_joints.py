"""
Tests for joint records and joint-type transforms.
"""

import pytest
import numpy as np
from scipy.spatial.transform import Rotation

from mechanism_kinematics.exceptions import InvalidJointConfigError
from mechanism_kinematics.joints import (
    ChainType, Joint, JointLimits, JointType, as_vector3, normalize_axis
)
from mechanism_kinematics.transforms import compute_local_transform


def make_joint(joint_type, axis=(0, 0, 1), origin=(0, 0, 0), lower=-np.pi, upper=np.pi):
    return Joint(
        id='j', name='J', type=joint_type,
        parent_node_id='p', child_node_id='c',
        axis=normalize_axis(axis), origin=as_vector3(origin),
        limits=JointLimits(lower, upper),
    )


class TestJointType:
    """Test joint type metadata."""

    def test_parse(self):
        """Test parsing joint types from strings."""
        assert JointType.parse('revolute') is JointType.REVOLUTE
        assert JointType.parse('  Prismatic ') is JointType.PRISMATIC
        assert JointType.parse(JointType.FIXED) is JointType.FIXED

        with pytest.raises(InvalidJointConfigError):
            JointType.parse('floating')

    def test_dof_counts(self):
        """Test nominal and active DOF per joint type."""
        assert JointType.FIXED.active_dof == 0
        for joint_type in JointType:
            if joint_type is not JointType.FIXED:
                assert joint_type.active_dof == 1

        assert JointType.SPHERICAL.nominal_dof == 3
        assert JointType.CYLINDRICAL.nominal_dof == 2
        assert JointType.PLANAR.nominal_dof == 2

    def test_partial_types(self):
        """Test which types drive fewer DOF than they have."""
        partial = {t for t in JointType if t.is_partial}
        assert partial == {JointType.SPHERICAL, JointType.CYLINDRICAL, JointType.PLANAR}

    def test_angular_types(self):
        """Test which types carry an angle."""
        assert JointType.REVOLUTE.is_angular
        assert JointType.SPHERICAL.is_angular
        assert not JointType.PRISMATIC.is_angular

    def test_chain_type_parse(self):
        """Test parsing chain types from strings."""
        assert ChainType.parse('tree') is ChainType.TREE
        with pytest.raises(InvalidJointConfigError):
            ChainType.parse('mesh')


class TestJointLimits:
    """Test joint limit handling."""

    def test_clamp(self):
        """Test clamping into limits."""
        limits = JointLimits(-1.0, 2.0)
        assert limits.clamp(5.0) == 2.0
        assert limits.clamp(-5.0) == -1.0
        assert limits.clamp(0.5) == 0.5

    def test_swapped_bounds_rejected(self):
        """Test that lower must not exceed upper."""
        with pytest.raises(InvalidJointConfigError):
            JointLimits(1.0, -1.0)

    def test_non_numeric_rejected(self):
        """Test limits given as non-numeric values."""
        with pytest.raises(InvalidJointConfigError):
            JointLimits('low', 1.0)

    def test_from_partial_dict(self):
        """Test filling missing limit keys from defaults."""
        defaults = JointLimits(-np.pi, np.pi, 1.0, 10.0)
        limits = JointLimits.from_dict({'lower': 0.0, 'velocity': 3.0}, defaults)

        assert limits.lower == 0.0
        assert limits.upper == pytest.approx(np.pi)
        assert limits.max_velocity == 3.0
        assert limits.max_effort == 10.0

    def test_joint_set_value_clamps(self):
        """Test that joint values are clamped on assignment."""
        joint = make_joint(JointType.REVOLUTE, lower=-0.5, upper=0.5)
        assert joint.set_value(3.0) == 0.5
        assert joint.value == 0.5


class TestVectors:
    """Test vector coercion."""

    def test_mapping_input(self):
        """Test vectors given as x/y/z mappings."""
        assert np.allclose(as_vector3({'x': 1, 'y': 2, 'z': 3}), [1, 2, 3])

    def test_wrong_length(self):
        """Test vectors with the wrong number of components."""
        with pytest.raises(InvalidJointConfigError):
            as_vector3([1, 2])

    def test_normalize_axis(self):
        """Test axis normalization."""
        assert np.allclose(normalize_axis([0, 0, 5]), [0, 0, 1])
        with pytest.raises(InvalidJointConfigError):
            normalize_axis([0, 0, 0])


class TestLocalTransform:
    """Test the joint-type transform table."""

    def test_fixed(self):
        """Test the fixed joint transform."""
        joint = make_joint(JointType.FIXED, origin=(10, 20, 30))
        transform = compute_local_transform(joint, 1.0)

        assert np.allclose(transform.position, [0.01, 0.02, 0.03])
        assert np.allclose(transform.quaternion, [0, 0, 0, 1])

    def test_revolute(self):
        """Test the revolute joint transform."""
        joint = make_joint(JointType.REVOLUTE, axis=(1, 0, 0), origin=(0, 0, 100))
        transform = compute_local_transform(joint, np.pi / 2)

        assert np.allclose(transform.position, [0, 0, 0.1])
        expected = Rotation.from_rotvec([np.pi / 2, 0, 0]).as_matrix()
        assert np.allclose(transform.rotation.as_matrix(), expected)

    def test_prismatic(self):
        """Test the prismatic joint transform."""
        joint = make_joint(JointType.PRISMATIC, axis=(2, 0, 0), origin=(0, 0, 10),
                           lower=0, upper=100)
        transform = compute_local_transform(joint, 50.0)

        assert np.allclose(transform.position, [0.05, 0, 0.01])
        assert np.allclose(transform.quaternion, [0, 0, 0, 1])

    def test_spherical_uses_reference_axis(self):
        """Test that spherical joints rotate about the up axis."""
        joint = make_joint(JointType.SPHERICAL, axis=(1, 0, 0))
        transform = compute_local_transform(joint, 0.3, reference_axis=np.array([0.0, 1.0, 0.0]))

        expected = Rotation.from_rotvec([0, 0.3, 0]).as_matrix()
        assert np.allclose(transform.rotation.as_matrix(), expected)

    @pytest.mark.parametrize('joint_type', [JointType.CYLINDRICAL, JointType.PLANAR])
    def test_single_axis_translation(self, joint_type):
        """Test translation for cylindrical and planar joints."""
        joint = make_joint(joint_type, axis=(0, 1, 0), lower=-100, upper=100)
        transform = compute_local_transform(joint, -20.0)

        assert np.allclose(transform.position, [0, -0.02, 0])
        assert np.allclose(transform.quaternion, [0, 0, 0, 1])

    def test_custom_unit_scale(self):
        """Test a non-default linear unit scale."""
        joint = make_joint(JointType.FIXED, origin=(1, 2, 3))
        transform = compute_local_transform(joint, 0.0, linear_unit_scale=1.0)
        assert np.allclose(transform.position, [1, 2, 3])

    def test_as_matrix(self):
        """Test the homogeneous matrix of a local transform."""
        joint = make_joint(JointType.REVOLUTE, origin=(0, 0, 100))
        T = compute_local_transform(joint, np.pi).as_matrix()

        assert T.shape == (4, 4)
        assert np.allclose(T[:3, 3], [0, 0, 0.1])
        assert np.allclose(T[:3, :3], np.diag([-1, -1, 1]))
