"""Kinematic chain algorithms: forward kinematics, center of mass and the
support-foot chain solvers.

Forward kinematics sweeps the link tree of a RobotModel with a JAX scan. The
chain solvers built on top of it take the full state vector (body joints plus
the support foot anchor) and return swing foot, torso and center of mass in
the world frame anchored at the support foot.
"""

from typing import Callable, Dict, NamedTuple

import jax
import jax.numpy as jnp
from jax import Array

from .core import RobotModel
from .core.joints import (
    ANCHOR_ORIENTATION_START,
    ANCHOR_POSITION_START,
    LEFT_SOLE_LINK,
    NUM_JOINTS,
    RIGHT_SOLE_LINK,
    STATE_SIZE,
    TORSO_LINK,
    Joint,
)
from .transforms import se3, so3


def forward_kinematics(robot: RobotModel, q: Array) -> Dict[str, Array]:
    """Compute forward kinematics for all links in the robot.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint angles array of shape (num_dof,) in robot.joint_names order

    Returns:
        Dictionary mapping link names to their 4x4 SE(3) poses in the root frame
    """
    world_transforms = forward_kinematics_world(robot, q)
    return {name: world_transforms[i] for i, name in enumerate(robot.link_names)}


def forward_kinematics_world(robot: RobotModel, q: Array) -> Array:
    """Internal FK function returning array of root-frame transforms.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint angles array of shape (num_dof,) in robot.joint_names order

    Returns:
        Array of shape (num_links, 4, 4) with root-frame poses for all links
    """
    num_links = len(robot.link_names)

    # Scatter the actuated values onto the links they move
    q_full = jnp.zeros(num_links, dtype=robot.joint_axes.dtype)
    q_full = q_full.at[robot.actuated_joint_to_link_idx].set(q)

    world_transforms = jnp.broadcast_to(jnp.identity(4, dtype=robot.joint_transforms.dtype), (num_links, 4, 4))

    def scan_body(carry, i):
        """Processes link `i` using its parent's pose from `carry`."""
        T_world_to_parent = carry[robot.parent_indices[i]]

        T_joint_motion = se3.exp(robot.joint_axes[i] * q_full[i])
        T_parent_to_child = robot.joint_transforms[i] @ T_joint_motion

        carry = carry.at[i].set(T_world_to_parent @ T_parent_to_child)
        return carry, None

    # Links are ordered parents first; the root (0) is the base case.
    final_transforms, _ = jax.lax.scan(scan_body, world_transforms, jnp.arange(1, num_links))

    return final_transforms


def center_of_mass(robot: RobotModel, q: Array) -> Array:
    """Whole-body center of mass in the root frame.

    Args:
        robot: RobotModel with link masses and link-frame centers of mass
        q: Joint angles array of shape (num_dof,) in robot.joint_names order

    Returns:
        (3,) mass-weighted average of the link centers of mass
    """
    return _center_of_mass(robot, forward_kinematics_world(robot, q))


def _center_of_mass(robot: RobotModel, world_transforms: Array) -> Array:
    link_coms = se3.apply(world_transforms, robot.link_coms)
    return jnp.einsum("i,ij->j", robot.link_masses, link_coms) / robot.total_mass


def anchor_transform(q: Array) -> Array:
    """World pose of the support foot stored in a state vector."""
    return se3.from_position_and_rotation(
        q[ANCHOR_POSITION_START:ANCHOR_ORIENTATION_START],
        so3.from_column_major(q[ANCHOR_ORIENTATION_START:STATE_SIZE]),
    )


class ChainSolvers(NamedTuple):
    """The six support-foot chain functions.

    Every function takes the full state vector of shape (STATE_SIZE,) and
    returns its result in the world frame anchored by the support foot pose
    stored in that vector.
    """
    left_to_right: Callable[[Array], Array]
    right_to_left: Callable[[Array], Array]
    left_to_torso: Callable[[Array], Array]
    right_to_torso: Callable[[Array], Array]
    left_to_com: Callable[[Array], Array]
    right_to_com: Callable[[Array], Array]


def build_chain_solvers(robot: RobotModel) -> ChainSolvers:
    """Build JIT-compiled chain solvers from a robot description.

    The robot must define every body joint, a torso link and both sole links.

    Args:
        robot: RobotModel of the humanoid

    Returns:
        ChainSolvers evaluating the robot's forward kinematics
    """
    unknown = [name for name in robot.joint_names if name not in {joint.urdf_name for joint in Joint}]
    missing = [joint.urdf_name for joint in Joint if joint.urdf_name not in robot.joint_names]
    if unknown or missing:
        raise ValueError(f"Robot joints do not match the body joints: unknown {unknown}, missing {missing}")

    # Body joint index of each actuated robot joint
    order = jnp.array([int(Joint.from_urdf_name(name)) for name in robot.joint_names], dtype=jnp.int32)
    torso = robot.link_index(TORSO_LINK)
    left_sole = robot.link_index(LEFT_SOLE_LINK)
    right_sole = robot.link_index(RIGHT_SOLE_LINK)

    def support_frame(q, support):
        """Root-frame transforms and the world pose of the root link."""
        world_transforms = forward_kinematics_world(robot, q[:NUM_JOINTS][order])
        T_world_root = anchor_transform(q) @ se3.inverse(world_transforms[support])
        return world_transforms, T_world_root

    def make_solvers(support, swing):
        def to_swing(q):
            world_transforms, T_world_root = support_frame(q, support)
            return T_world_root @ world_transforms[swing]

        def to_torso(q):
            world_transforms, T_world_root = support_frame(q, support)
            return T_world_root @ world_transforms[torso]

        def to_com(q):
            world_transforms, T_world_root = support_frame(q, support)
            return se3.apply(T_world_root, _center_of_mass(robot, world_transforms))

        return jax.jit(to_swing), jax.jit(to_torso), jax.jit(to_com)

    left_to_right, left_to_torso, left_to_com = make_solvers(left_sole, right_sole)
    right_to_left, right_to_torso, right_to_com = make_solvers(right_sole, left_sole)

    return ChainSolvers(
        left_to_right=left_to_right,
        right_to_left=right_to_left,
        left_to_torso=left_to_torso,
        right_to_torso=right_to_torso,
        left_to_com=left_to_com,
        right_to_com=right_to_com,
    )
