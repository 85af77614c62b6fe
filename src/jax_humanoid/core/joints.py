"""Joint identities and the layout of the flat configuration vector.

The configuration vector has three contiguous regions with fixed indices:

    [0, NUM_JOINTS)                      body joint angles (see Joint)
    [ANCHOR_POSITION_START, +3)          support foot position, world frame
    [ANCHOR_ORIENTATION_START, +9)       support foot rotation, column-major

Only the body joint region is motor driven and subject to joint limits.
"""

import enum
from typing import Tuple


class Joint(enum.IntEnum):
    """Body joints of the robot, valued by their index in the state vector.

    Each head joint carries the limits of its own physical range: HEAD_PITCH
    (22) is limited to [-0.672, 0.5149] and HEAD_YAW (23) to +-2.0857. Legacy
    NAO limit tables list these two ranges in the opposite index order, so
    their index 22 accepts the full yaw range and index 23 the pitch range.
    """

    L_HIP_YAW_PITCH = 0
    L_HIP_ROLL = 1
    L_HIP_PITCH = 2
    L_KNEE_PITCH = 3
    L_ANKLE_PITCH = 4
    L_ANKLE_ROLL = 5

    R_HIP_YAW_PITCH = 6
    R_HIP_ROLL = 7
    R_HIP_PITCH = 8
    R_KNEE_PITCH = 9
    R_ANKLE_PITCH = 10
    R_ANKLE_ROLL = 11

    L_SHOULDER_PITCH = 12
    L_SHOULDER_ROLL = 13
    L_ELBOW_YAW = 14
    L_ELBOW_ROLL = 15
    L_WRIST_YAW = 16

    R_SHOULDER_PITCH = 17
    R_SHOULDER_ROLL = 18
    R_ELBOW_YAW = 19
    R_ELBOW_ROLL = 20
    R_WRIST_YAW = 21

    HEAD_PITCH = 22
    HEAD_YAW = 23

    @property
    def urdf_name(self) -> str:
        """Name of the joint in the robot description."""
        return JOINT_NAMES[self]

    @classmethod
    def from_urdf_name(cls, name: str) -> "Joint":
        try:
            return cls(JOINT_NAMES.index(name))
        except ValueError:
            raise ValueError(f"Joint '{name}' is not a body joint")


class SupportFoot(enum.Enum):
    """Foot currently used as the kinematic anchor."""

    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> "SupportFoot":
        return SupportFoot.RIGHT if self is SupportFoot.LEFT else SupportFoot.LEFT


JOINT_NAMES: Tuple[str, ...] = (
    "LHipYawPitch", "LHipRoll", "LHipPitch", "LKneePitch", "LAnklePitch", "LAnkleRoll",
    "RHipYawPitch", "RHipRoll", "RHipPitch", "RKneePitch", "RAnklePitch", "RAnkleRoll",
    "LShoulderPitch", "LShoulderRoll", "LElbowYaw", "LElbowRoll", "LWristYaw",
    "RShoulderPitch", "RShoulderRoll", "RElbowYaw", "RElbowRoll", "RWristYaw",
    "HeadPitch", "HeadYaw",
)

NUM_JOINTS = len(Joint)
ANCHOR_POSITION_START = NUM_JOINTS
ANCHOR_POSITION_NUM = 3
ANCHOR_ORIENTATION_START = ANCHOR_POSITION_START + ANCHOR_POSITION_NUM
ANCHOR_ORIENTATION_NUM = 9
STATE_SIZE = ANCHOR_ORIENTATION_START + ANCHOR_ORIENTATION_NUM

# Frames of the robot description the chain solvers anchor on
LEFT_SOLE_LINK = "l_sole"
RIGHT_SOLE_LINK = "r_sole"
TORSO_LINK = "torso"
