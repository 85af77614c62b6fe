"""Joint configuration record and joint limit table.

The configuration is kept as a structured record (body joint angles plus the
support foot anchor pose) and converted to the flat state vector layout
described in `joints` only at the boundary with the chain solvers.
"""

import logging
from typing import Optional, Union

import jax.numpy as jnp
import numpy as np
from jax import Array
from flax import struct

from .joints import (
    ANCHOR_ORIENTATION_START,
    ANCHOR_POSITION_START,
    NUM_JOINTS,
    STATE_SIZE,
    Joint,
)
from .robot_model import RobotModel
from ..transforms import so3

logger = logging.getLogger(__name__)

JointIndex = Union[Joint, int]


def default_joint_angles() -> Array:
    """Standard initial posture of the robot: slightly bent legs, arms down."""
    q = [0.0] * NUM_JOINTS

    for hip_pitch, knee, ankle_pitch in (
        (Joint.L_HIP_PITCH, Joint.L_KNEE_PITCH, Joint.L_ANKLE_PITCH),
        (Joint.R_HIP_PITCH, Joint.R_KNEE_PITCH, Joint.R_ANKLE_PITCH),
    ):
        q[hip_pitch] = -0.436332
        q[knee] = 0.698132
        q[ankle_pitch] = -0.349066

    # LEFT ARM
    q[Joint.L_SHOULDER_PITCH] = 1.396263
    q[Joint.L_SHOULDER_ROLL] = 0.349066
    q[Joint.L_ELBOW_YAW] = -1.396263
    q[Joint.L_ELBOW_ROLL] = -1.047198

    # RIGHT ARM
    q[Joint.R_SHOULDER_PITCH] = 1.396263
    q[Joint.R_SHOULDER_ROLL] = -0.349066
    q[Joint.R_ELBOW_YAW] = 1.396263
    q[Joint.R_ELBOW_ROLL] = 1.047198

    return jnp.array(q)


def _body_joint(joint: JointIndex) -> int:
    if isinstance(joint, bool) or not isinstance(joint, (int, np.integer)):
        raise ValueError(f"{joint!r} is not a body joint index, expected a Joint or an integer")
    if not 0 <= int(joint) < NUM_JOINTS:
        raise ValueError(f"{joint} is not a body joint index (0..{NUM_JOINTS - 1})")
    return int(joint)


@struct.dataclass
class AnchorPose:
    """World pose of the support foot.

    Attributes:
        position: (3,) support foot position in the world frame
        rotation: (3, 3) support foot orientation in the world frame
    """
    position: Array
    rotation: Array

    @classmethod
    def identity(cls) -> "AnchorPose":
        return cls(position=jnp.zeros(3), rotation=jnp.eye(3))

    @classmethod
    def create(cls, position, orientation) -> "AnchorPose":
        """Build an anchor, accepting a 3x3 or column-major 9-vector orientation."""
        position = jnp.asarray(position, dtype=float)
        orientation = jnp.asarray(orientation, dtype=float)
        if position.shape != (3,):
            raise ValueError(f"support foot position must have shape (3,), got {position.shape}")
        if orientation.shape == (9,):
            orientation = so3.from_column_major(orientation)
        elif orientation.shape != (3, 3):
            raise ValueError(
                f"support foot orientation must have shape (3, 3) or (9,), got {orientation.shape}"
            )
        return cls(position=position, rotation=orientation)


@struct.dataclass
class JointConfiguration:
    """Body joint angles together with the support foot anchor pose.

    Attributes:
        joint_angles: (NUM_JOINTS,) body joint angles, indexed by Joint
        anchor: world pose of the current support foot
    """
    joint_angles: Array
    anchor: AnchorPose

    @classmethod
    def default(cls) -> "JointConfiguration":
        return cls(joint_angles=default_joint_angles(), anchor=AnchorPose.identity())

    @classmethod
    def from_vector(cls, q) -> "JointConfiguration":
        """Split a flat state vector into its three regions."""
        q = jnp.asarray(q, dtype=float)
        if q.shape != (STATE_SIZE,):
            raise ValueError(f"state vector must have shape ({STATE_SIZE},), got {q.shape}")
        return cls(
            joint_angles=q[:NUM_JOINTS],
            anchor=AnchorPose(
                position=q[ANCHOR_POSITION_START:ANCHOR_ORIENTATION_START],
                rotation=so3.from_column_major(q[ANCHOR_ORIENTATION_START:STATE_SIZE]),
            ),
        )

    def to_vector(self) -> Array:
        """Flat state vector as consumed by the chain solvers."""
        return jnp.concatenate([
            self.joint_angles,
            self.anchor.position,
            so3.to_column_major(self.anchor.rotation),
        ])

    def joint_angle(self, joint: JointIndex) -> Array:
        return self.joint_angles[_body_joint(joint)]

    def with_joint_angle(self, joint: JointIndex, value) -> "JointConfiguration":
        return self.replace(joint_angles=self.joint_angles.at[_body_joint(joint)].set(value))

    def with_joint_angles(self, angles) -> "JointConfiguration":
        angles = jnp.asarray(angles, dtype=float)
        if angles.shape != (NUM_JOINTS,):
            raise ValueError(f"joint angles must have shape ({NUM_JOINTS},), got {angles.shape}")
        return self.replace(joint_angles=angles)

    def with_anchor(self, position, orientation) -> "JointConfiguration":
        return self.replace(anchor=AnchorPose.create(position, orientation))


@struct.dataclass
class BoundsTable:
    """Lower and upper limits of every body joint, indexed by Joint."""
    lower: Array
    upper: Array

    @classmethod
    def from_robot(cls, robot: RobotModel) -> "BoundsTable":
        """Collect the limits of the body joints from a robot description."""
        missing = [joint.urdf_name for joint in Joint if joint.urdf_name not in robot.joint_names]
        if missing:
            raise ValueError(f"Robot model does not define body joints: {missing}")

        order = [robot.joint_names.index(joint.urdf_name) for joint in Joint]
        return cls(lower=robot.lower_limits[jnp.array(order)], upper=robot.upper_limits[jnp.array(order)])

    def set_bound(self, joint: JointIndex, lower: float, upper: float) -> "BoundsTable":
        """Return a table with the limits of one body joint replaced.

        No sign correction is done: an inverted pair makes every angle of the
        joint out of bounds.
        """
        joint = _body_joint(joint)
        return self.replace(
            lower=self.lower.at[joint].set(lower),
            upper=self.upper.at[joint].set(upper),
        )

    def violations(self, joint_angles: Array) -> Array:
        """Boolean mask of joints strictly outside their [lower, upper] range."""
        return (joint_angles < self.lower) | (joint_angles > self.upper)


def check_bounds(configuration: JointConfiguration, bounds: BoundsTable) -> Optional[Joint]:
    """Find the first body joint violating its limits.

    Only per-joint ranges are checked, there are no collision checks. A single
    violation is reported; correct it and check again to find the next one.

    Returns:
        The lowest-index violating joint, or None when all joints are in range.
    """
    mask = bounds.violations(configuration.joint_angles)
    if not bool(mask.any()):
        return None
    index = int(jnp.argmax(mask))
    logger.debug("Joint %s out of bounds: %f not in [%f, %f]", Joint(index).name,
                 float(configuration.joint_angles[index]), float(bounds.lower[index]), float(bounds.upper[index]))
    return Joint(index)


def set_base_pose(configuration: JointConfiguration, x, y, z, roll, pitch, yaw) -> JointConfiguration:
    """Place the support foot at a world pose given as x-y-z Euler angles.

    This redefines where the support foot is assumed to be, it does not move
    any joint.
    """
    return configuration.replace(anchor=AnchorPose(
        position=jnp.array([x, y, z], dtype=float),
        rotation=so3.from_euler(roll, pitch, yaw),
    ))
