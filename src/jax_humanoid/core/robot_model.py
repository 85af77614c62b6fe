"""RobotModel PyTree data structure for the humanoid kinematic tree.

This module defines the immutable description of the robot's mechanism that
the chain solvers evaluate: link topology, joint placements and axes, joint
limits and the mass distribution used for the center of mass.
"""

from jax import Array
from flax import struct
from typing import Tuple


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a robot's kinematic structure.

    The robot is stored as a flattened tree using integer indices for
    parent-child relationships, with links ordered so that every parent
    precedes its children.

    Attributes:
        link_names: Tuple of all link names. Index corresponds to link ID.
                    Marked as a static field for JIT compilation.
        joint_names: Tuple of all actuated (non-fixed) joint names.
                     Marked as a static field for JIT compilation.
        parent_indices: (num_links,) parent link index of each link. Root
                        link parents itself.
        joint_transforms: (num_links, 4, 4) SE(3) placement of each link's
                          joint frame in its parent link.
        joint_axes: (num_links, 6) se(3) twist [vx,vy,vz,wx,wy,wz] of each
                    link's joint; zero for fixed joints and the root.
        actuated_joint_to_link_idx: (num_dof,) link moved by each actuated
                                    joint, in joint_names order.
        lower_limits: (num_dof,) lower joint limits, joint_names order.
        upper_limits: (num_dof,) upper joint limits, joint_names order.
        link_masses: (num_links,) link masses; zero when not specified.
        link_coms: (num_links, 3) link center of mass in the link frame.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_joint_to_link_idx: Array
    lower_limits: Array
    upper_limits: Array
    link_masses: Array
    link_coms: Array

    @property
    def total_mass(self) -> Array:
        return self.link_masses.sum()

    def link_index(self, link_name: str) -> int:
        try:
            return self.link_names.index(link_name)
        except ValueError:
            raise ValueError(f"Link '{link_name}' not found in robot model")
