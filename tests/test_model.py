"""Tests for the support-foot state model."""

import jax.numpy as jnp
import numpy as np
import pytest

from jax_humanoid import StaleDerivedStateError, SupportFootModel
from jax_humanoid.chain import ChainSolvers
from jax_humanoid.core import Joint, JointConfiguration, SupportFoot
from jax_humanoid.transforms import se3, so3


def _stub_solvers():
    """Solvers returning constants that tell the chains apart."""

    def pose(x):
        return lambda q: se3.from_euler(x, 0.0, 0.0, 0.0, 0.0, 0.0)

    def point(x):
        return lambda q: jnp.array([x, 0.0, 0.0])

    return ChainSolvers(
        left_to_right=pose(1.0),
        right_to_left=pose(2.0),
        left_to_torso=lambda q: se3.from_euler(0.0, 0.0, 0.0, 0.0, 0.0, 0.1),
        right_to_torso=lambda q: se3.from_euler(0.0, 0.0, 0.0, 0.0, 0.0, 0.2),
        left_to_com=point(3.0),
        right_to_com=point(4.0),
    )


def _assert_state_equal(model, expected_vector, expected_foot):
    assert model.support_foot is expected_foot
    np.testing.assert_allclose(model.state_vector(), expected_vector, atol=1e-9)


def test_reads_before_init_are_stale(model):
    """Test derived quantities cannot be read before init."""
    assert model.is_stale
    for read in (
        lambda: model.swing_foot_pose,
        lambda: model.torso_orientation,
        lambda: model.com,
        model.get_com,
        model.get_swing_foot_position,
    ):
        with pytest.raises(StaleDerivedStateError, match="refresh"):
            read()


def test_switch_before_init_is_rejected(model):
    """Test switching without a fresh swing foot pose leaves the state alone."""
    q = model.state_vector()

    with pytest.raises(StaleDerivedStateError):
        model.switch_support_foot()
    _assert_state_equal(model, q, SupportFoot.LEFT)


def test_init_validates_arguments(model):
    """Test init rejects bad anchors and unknown feet without changing state."""
    q = model.state_vector()

    with pytest.raises(ValueError):
        model.init(SupportFoot.LEFT, [0.0, 0.0], jnp.eye(3))
    with pytest.raises(ValueError):
        model.init(SupportFoot.LEFT, [0.0, 0.0, 0.0], jnp.eye(2))
    with pytest.raises(ValueError):
        model.init("middle", [0.0, 0.0, 0.0], jnp.eye(3))

    _assert_state_equal(model, q, SupportFoot.LEFT)
    assert model.is_stale


def test_init_accepts_column_major_orientation(model):
    """Test the anchor orientation can be given as its nine stored entries."""
    R = so3.from_euler(0.0, 0.0, 0.4)
    model.init(SupportFoot.RIGHT, [0.1, 0.2, 0.0], so3.to_column_major(R))

    assert model.support_foot is SupportFoot.RIGHT
    np.testing.assert_allclose(model.configuration.anchor.rotation, R, atol=1e-12)
    np.testing.assert_allclose(model.state_vector()[24:27], jnp.array([0.1, 0.2, 0.0]))


@pytest.mark.parametrize(
    "support_foot, swing_x, torso_yaw, com_x",
    [(SupportFoot.LEFT, 1.0, 0.1, 3.0), (SupportFoot.RIGHT, 2.0, 0.2, 4.0)],
)
def test_refresh_dispatches_on_support_foot(bounds, support_foot, swing_x, torso_yaw, com_x):
    """Test each support foot uses its own three chains."""
    model = SupportFootModel(_stub_solvers(), bounds)
    model.init(support_foot, jnp.zeros(3), jnp.eye(3))

    assert not model.is_stale
    np.testing.assert_allclose(model.get_swing_foot_position(), jnp.array([swing_x, 0.0, 0.0]))
    np.testing.assert_allclose(model.torso_orientation, so3.from_euler(0.0, 0.0, torso_yaw), atol=1e-12)
    np.testing.assert_allclose(model.get_com(), jnp.array([com_x, 0.0, 0.0]))


def test_derived_state_matches_solvers(model, solvers):
    """Test the cached quantities are the chain results for the state vector."""
    model.init(SupportFoot.LEFT, [0.2, -0.1, 0.0], so3.from_euler(0.0, 0.0, 0.3))
    q = model.state_vector()

    np.testing.assert_allclose(model.swing_foot_pose, solvers.left_to_right(q), atol=1e-12)
    np.testing.assert_allclose(model.torso_orientation, se3.get_rotation(solvers.left_to_torso(q)), atol=1e-12)
    np.testing.assert_allclose(model.com, solvers.left_to_com(q), atol=1e-12)


def test_refresh_after_joint_writes_matches_solvers(model, solvers):
    """Test a refresh after moving both legs gives the chain results for the new vector."""
    model.init(SupportFoot.RIGHT, [0.1, 0.3, 0.0], so3.from_euler(0.0, 0.0, -0.4))
    before = model.get_com()

    model.set_joint_angle(Joint.L_HIP_ROLL, 0.15)
    model.set_joint_angle(Joint.L_KNEE_PITCH, 1.1)
    model.set_joint_angle(Joint.R_ANKLE_PITCH, -0.2)
    model.refresh()
    q = model.state_vector()

    np.testing.assert_allclose(model.get_com(), solvers.right_to_com(q), atol=1e-12)
    np.testing.assert_allclose(model.get_swing_foot_position(), se3.get_position(solvers.right_to_left(q)), atol=1e-12)
    np.testing.assert_allclose(model.torso_orientation, se3.get_rotation(solvers.right_to_torso(q)), atol=1e-12)
    assert jnp.linalg.norm(model.get_com() - before) > 1e-6


def test_switch_keeps_the_world_pose(model):
    """Test a switch swaps the feet and leaves torso and center of mass in place."""
    model.set_joint_angle(Joint.L_HIP_ROLL, 0.1)
    model.set_joint_angle(Joint.R_KNEE_PITCH, 0.9)
    model.init(SupportFoot.LEFT, [0.3, 0.2, 0.0], so3.from_euler(0.0, 0.0, 0.5))

    old_anchor = se3.from_position_and_rotation(model.configuration.anchor.position, model.configuration.anchor.rotation)
    old_swing = model.swing_foot_pose
    old_torso = model.torso_orientation
    old_com = model.com

    model.switch_support_foot()

    assert model.support_foot is SupportFoot.RIGHT
    np.testing.assert_allclose(model.configuration.anchor.position, se3.get_position(old_swing), atol=1e-9)
    np.testing.assert_allclose(model.configuration.anchor.rotation, se3.get_rotation(old_swing), atol=1e-9)
    np.testing.assert_allclose(model.swing_foot_pose, old_anchor, atol=1e-9)
    np.testing.assert_allclose(model.torso_orientation, old_torso, atol=1e-9)
    np.testing.assert_allclose(model.com, old_com, atol=1e-9)


def test_double_switch_restores_state(model):
    """Test switching twice returns to the original support foot and anchor."""
    model.set_joint_angle(Joint.L_ANKLE_ROLL, -0.05)
    model.init(SupportFoot.RIGHT, [1.0, -0.5, 0.02], so3.from_euler(0.01, -0.02, 1.2))
    q = model.state_vector()

    model.switch_support_foot()
    model.switch_support_foot()

    _assert_state_equal(model, q, SupportFoot.RIGHT)


def test_switch_after_write_is_rejected(model):
    """Test a configuration write blocks switching until refresh."""
    model.init(SupportFoot.LEFT, jnp.zeros(3), jnp.eye(3))
    model.set_joint_angle(Joint.R_HIP_PITCH, -0.6)
    q = model.state_vector()

    with pytest.raises(StaleDerivedStateError):
        model.switch_support_foot()
    _assert_state_equal(model, q, SupportFoot.LEFT)

    model.refresh()
    model.switch_support_foot()
    assert model.support_foot is SupportFoot.RIGHT


def test_writes_invalidate_derived_state(model):
    """Test every configuration write marks the derived state as stale."""
    writes = (
        lambda: model.set_joint_angle(Joint.HEAD_YAW, 0.3),
        lambda: model.set_joint_angles(JointConfiguration.default().joint_angles),
        lambda: model.set_configuration(JointConfiguration.default()),
        model.reset_joint_angles,
        lambda: model.set_base_pose(0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
    )
    for write in writes:
        model.refresh()
        assert not model.is_stale
        write()
        assert model.is_stale
        with pytest.raises(StaleDerivedStateError):
            model.com


def test_get_updated_com(model, solvers):
    """Test the center of mass can be refreshed on its own."""
    model.init(SupportFoot.LEFT, jnp.zeros(3), jnp.eye(3))
    model.set_joint_angle(Joint.L_SHOULDER_PITCH, 0.0)

    com = model.get_updated_com()
    np.testing.assert_allclose(com, solvers.left_to_com(model.state_vector()), atol=1e-12)
    np.testing.assert_allclose(model.com, com)

    # The other quantities still need a refresh
    with pytest.raises(StaleDerivedStateError):
        model.swing_foot_pose
    with pytest.raises(StaleDerivedStateError):
        model.torso_orientation


def test_get_updated_swing_foot(model, solvers):
    """Test the swing foot can be refreshed on its own."""
    model.init(SupportFoot.RIGHT, jnp.zeros(3), jnp.eye(3))
    model.set_joint_angle(Joint.L_KNEE_PITCH, 1.2)

    position = model.get_updated_swing_foot()
    np.testing.assert_allclose(position, se3.get_position(solvers.right_to_left(model.state_vector())), atol=1e-12)
    np.testing.assert_allclose(model.get_swing_foot_position(), position)

    with pytest.raises(StaleDerivedStateError):
        model.com


def test_set_com(model):
    """Test an externally supplied center of mass is returned as is."""
    model.set_com(0.01, -0.02, 0.25)
    np.testing.assert_allclose(model.get_com(), jnp.array([0.01, -0.02, 0.25]))


def test_reset_joint_angles(model):
    """Test the body joints return to the standard posture, the anchor is kept."""
    model.set_base_pose(1.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    model.set_joint_angles(jnp.zeros(24))
    model.reset_joint_angles()

    expected = JointConfiguration.default().replace(anchor=model.configuration.anchor)
    np.testing.assert_allclose(model.state_vector(), expected.to_vector())
    np.testing.assert_allclose(model.state_vector()[24:27], jnp.array([1.0, 0.0, 0.0]))


def test_set_base_pose_moves_the_anchor(model):
    """Test set_base_pose places the support foot in the world."""
    model.set_base_pose(0.5, 0.0, 0.0, 0.0, 0.0, jnp.pi / 2)
    model.refresh()

    np.testing.assert_allclose(model.get_swing_foot_position(), jnp.array([0.6, 0.0, 0.0]), atol=1e-9)


def test_bounds_through_the_model(model):
    """Test limit checks and overrides on the model."""
    assert model.check_bounds() is None

    model.set_joint_angle(Joint.R_SHOULDER_ROLL, 0.5)
    assert model.check_bounds() is Joint.R_SHOULDER_ROLL

    model.set_bound(Joint.R_SHOULDER_ROLL, -1.3265, 0.6)
    assert model.check_bounds() is None

    with pytest.raises(ValueError):
        model.set_bound(30, 0.0, 1.0)


def test_from_urdf():
    """Test building a model straight from the shipped description."""
    model = SupportFootModel.from_urdf(support_foot=SupportFoot.RIGHT)
    model.init(SupportFoot.RIGHT, jnp.zeros(3), jnp.eye(3))

    np.testing.assert_allclose(model.get_swing_foot_position(), jnp.array([0.0, 0.1, 0.0]), atol=1e-9)
