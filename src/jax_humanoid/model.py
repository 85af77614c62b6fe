"""Support-foot relative kinematic state of the humanoid.

The model owns the joint configuration, the identity of the support foot and
a cache of the quantities derived from them: swing foot pose, torso
orientation and center of mass. The support foot pose is the ground truth
anchor; everything else is computed relative to it by the chain solvers.

The model is not thread safe. Callers that share an instance must serialise
the whole write-refresh-read sequence.
"""

import logging
from typing import Optional

import jax.numpy as jnp
from jax import Array

from .chain import ChainSolvers, build_chain_solvers
from .core import (
    BoundsTable,
    Joint,
    JointConfiguration,
    SupportFoot,
    check_bounds,
    default_joint_angles,
    set_base_pose,
)
from .core.configuration import JointIndex
from .io import load_urdf
from .transforms import se3

logger = logging.getLogger(__name__)

_SWING = "swing foot pose"
_TORSO = "torso orientation"
_COM = "center of mass"


class StaleDerivedStateError(RuntimeError):
    """A derived quantity was read after the configuration changed."""


class SupportFootModel:
    """Kinematic state anchored at the current support foot.

    Two states, LEFT and RIGHT support; the only transition is
    `switch_support_foot`. `init` must be called once before derived
    quantities are read.

    Args:
        solvers: the six chain functions evaluating the robot
        bounds: joint limit table of the body joints
        joint_angles: initial body joint angles, standard posture by default
        support_foot: initial support foot, left by default
    """

    def __init__(
        self,
        solvers: ChainSolvers,
        bounds: BoundsTable,
        joint_angles: Optional[Array] = None,
        support_foot: SupportFoot = SupportFoot.LEFT,
    ):
        self._solvers = solvers
        self._bounds = bounds
        self._configuration = JointConfiguration.default()
        if joint_angles is not None:
            self._configuration = self._configuration.with_joint_angles(joint_angles)
        self._support_foot = SupportFoot(support_foot)

        # (swing foot, torso, center of mass) solvers of each support foot
        self._dispatch = {
            SupportFoot.LEFT: (solvers.left_to_right, solvers.left_to_torso, solvers.left_to_com),
            SupportFoot.RIGHT: (solvers.right_to_left, solvers.right_to_torso, solvers.right_to_com),
        }

        self._swing_foot_pose: Optional[Array] = None
        self._torso_orientation: Optional[Array] = None
        self._com: Optional[Array] = None
        self._stale = {_SWING, _TORSO, _COM}

    @classmethod
    def from_urdf(cls, urdf_path=None, **kwargs) -> "SupportFootModel":
        """Build a model whose solvers and limits come from a URDF description."""
        robot = load_urdf(urdf_path)
        return cls(build_chain_solvers(robot), BoundsTable.from_robot(robot), **kwargs)

    # State
    @property
    def support_foot(self) -> SupportFoot:
        return self._support_foot

    @property
    def configuration(self) -> JointConfiguration:
        return self._configuration

    @property
    def solvers(self) -> ChainSolvers:
        return self._solvers

    @property
    def bounds(self) -> BoundsTable:
        return self._bounds

    @property
    def is_stale(self) -> bool:
        """True when any cached quantity needs a refresh."""
        return bool(self._stale)

    def state_vector(self) -> Array:
        """Flat state vector as passed to the chain solvers."""
        return self._configuration.to_vector()

    def init(self, support_foot: SupportFoot, position, orientation) -> None:
        """Anchor the robot in the world and compute the derived state.

        Args:
            support_foot: foot used as the anchor
            position: (3,) world position of the support foot
            orientation: (3, 3) world orientation of the support foot, or its
                         (9,) column-major entries
        """
        support_foot = SupportFoot(support_foot)
        configuration = self._configuration.with_anchor(position, orientation)

        self._configuration = configuration
        self._support_foot = support_foot
        logger.debug("Init with %s support at %s", support_foot.value, configuration.anchor.position)
        self.refresh()

    def refresh(self) -> None:
        """Recompute swing foot pose, torso orientation and center of mass."""
        to_swing, to_torso, to_com = self._dispatch[self._support_foot]
        q = self.state_vector()

        self._swing_foot_pose = to_swing(q)
        self._torso_orientation = se3.get_rotation(to_torso(q))
        self._com = to_com(q)
        self._stale.clear()

    def switch_support_foot(self) -> None:
        """Make the swing foot the new support foot.

        The new anchor is the swing foot pose computed under the old support
        foot, so the world pose of the robot does not change; only the frame
        the state is expressed in does.
        """
        swing_foot_pose = self._fresh(_SWING, self._swing_foot_pose)

        self._support_foot = self._support_foot.other
        self._configuration = self._configuration.with_anchor(
            se3.get_position(swing_foot_pose),
            se3.get_rotation(swing_foot_pose),
        )
        logger.debug("Switched to %s support at %s", self._support_foot.value, self._configuration.anchor.position)
        self.refresh()

    # Derived state
    @property
    def swing_foot_pose(self) -> Array:
        """(4, 4) world pose of the swing foot."""
        return self._fresh(_SWING, self._swing_foot_pose)

    @property
    def torso_orientation(self) -> Array:
        """(3, 3) world orientation of the torso."""
        return self._fresh(_TORSO, self._torso_orientation)

    @property
    def com(self) -> Array:
        """(3,) world position of the center of mass."""
        return self._fresh(_COM, self._com)

    def get_com(self) -> Array:
        return self.com

    def get_swing_foot_position(self) -> Array:
        return se3.get_position(self.swing_foot_pose)

    def get_updated_com(self) -> Array:
        """Evaluate only the center of mass for the current configuration."""
        _, _, to_com = self._dispatch[self._support_foot]
        self._com = to_com(self.state_vector())
        self._stale.discard(_COM)
        return self._com

    def get_updated_swing_foot(self) -> Array:
        """Evaluate only the swing foot pose and return its position."""
        to_swing, _, _ = self._dispatch[self._support_foot]
        self._swing_foot_pose = to_swing(self.state_vector())
        self._stale.discard(_SWING)
        return se3.get_position(self._swing_foot_pose)

    def set_com(self, x: float, y: float, z: float) -> None:
        """Overwrite the cached center of mass with an externally supplied value."""
        self._com = jnp.array([x, y, z], dtype=float)
        self._stale.discard(_COM)

    # Configuration writes
    def set_configuration(self, configuration: JointConfiguration) -> None:
        self._configuration = configuration
        self._invalidate()

    def set_joint_angles(self, joint_angles) -> None:
        self._configuration = self._configuration.with_joint_angles(joint_angles)
        self._invalidate()

    def set_joint_angle(self, joint: JointIndex, value: float) -> None:
        self._configuration = self._configuration.with_joint_angle(joint, value)
        self._invalidate()

    def reset_joint_angles(self) -> None:
        """Return the body joints to the standard initial posture."""
        self._configuration = self._configuration.replace(joint_angles=default_joint_angles())
        self._invalidate()

    def set_base_pose(self, x, y, z, roll, pitch, yaw) -> None:
        """Redefine the world pose of the support foot, see core.set_base_pose."""
        self._configuration = set_base_pose(self._configuration, x, y, z, roll, pitch, yaw)
        self._invalidate()

    # Joint limits
    def set_bound(self, joint: JointIndex, lower: float, upper: float) -> None:
        self._bounds = self._bounds.set_bound(joint, lower, upper)

    def check_bounds(self) -> Optional[Joint]:
        """First body joint outside its limits, or None. No collision checks."""
        return check_bounds(self._configuration, self._bounds)

    def _invalidate(self) -> None:
        self._stale.update((_SWING, _TORSO, _COM))

    def _fresh(self, name: str, value: Optional[Array]) -> Array:
        if name in self._stale or value is None:
            raise StaleDerivedStateError(
                f"{name} is out of date: call refresh() after changing the configuration"
            )
        return value
