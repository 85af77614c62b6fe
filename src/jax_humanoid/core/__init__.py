"""Core data structures for JAX Humanoid.

This module provides the joint layout of the state vector, the immutable
robot description and the joint configuration and limit records.
"""

from .joints import JOINT_NAMES, NUM_JOINTS, STATE_SIZE, Joint, SupportFoot
from .robot_model import RobotModel
from .configuration import (
    AnchorPose,
    BoundsTable,
    JointConfiguration,
    check_bounds,
    default_joint_angles,
    set_base_pose,
)

__all__ = [
    "JOINT_NAMES",
    "NUM_JOINTS",
    "STATE_SIZE",
    "Joint",
    "SupportFoot",
    "RobotModel",
    "AnchorPose",
    "BoundsTable",
    "JointConfiguration",
    "check_bounds",
    "default_joint_angles",
    "set_base_pose",
]
