"""URDF parser for loading the humanoid description into JAX-native data structures.

This module parses URDF files into RobotModel PyTree structures, including
the joint limits and link mass distribution, and builds the joint limit table
of the body joints. The default NAO H25 description ships with the package.
"""

import logging
from collections import deque
from pathlib import Path
from typing import Dict, Optional, Union

import jax.numpy as jnp
import numpy as np
from lxml import etree

from jax_humanoid.core.configuration import BoundsTable
from jax_humanoid.core.robot_model import RobotModel
from jax_humanoid.transforms import se3

logger = logging.getLogger(__name__)

DEFAULT_URDF_PATH = Path(__file__).parent / "data" / "nao_h25.urdf"

PathLike = Union[str, Path]


def load_urdf(urdf_path: Optional[PathLike] = None) -> RobotModel:
    """Load a URDF file and convert it to a RobotModel PyTree.

    Args:
        urdf_path: Path to the URDF file to load. Defaults to the shipped
                   NAO H25 description.

    Returns:
        RobotModel: A JAX-native robot representation.
    """
    if urdf_path is None:
        urdf_path = DEFAULT_URDF_PATH

    tree = etree.parse(str(urdf_path))
    root = tree.getroot()

    # First pass: Build topology mappings
    link_elems: Dict[str, etree._Element] = {}
    child_to_parent_map: Dict[str, str] = {}
    child_links = set()

    for link in root.findall('link'):
        link_elems[link.get('name')] = link

    joints_info = []
    for joint in root.findall('joint'):
        parent_elem = joint.find('parent')
        child_elem = joint.find('child')

        if parent_elem is not None and child_elem is not None:
            parent_name = parent_elem.get('link')
            child_name = child_elem.get('link')

            child_to_parent_map[child_name] = parent_name
            child_links.add(child_name)

            joints_info.append({
                'name': joint.get('name'),
                'type': joint.get('type'),
                'parent': parent_name,
                'child': child_name,
                'joint_elem': joint
            })

    # Find root link (not a child of any joint)
    root_links = set(link_elems) - child_links
    if len(root_links) != 1:
        raise ValueError(f"Expected exactly one root link, found: {root_links}")
    root_link = root_links.pop()

    # Order links using breadth-first traversal from root
    ordered_links = []
    queue = deque([root_link])
    visited = set()

    while queue:
        current_link = queue.popleft()
        if current_link in visited:
            continue

        visited.add(current_link)
        ordered_links.append(current_link)

        for joint_info in joints_info:
            if joint_info['parent'] == current_link and joint_info['child'] not in visited:
                queue.append(joint_info['child'])

    link_map = {link_name: i for i, link_name in enumerate(ordered_links)}

    actuated_joints = [info for info in joints_info if info['type'] != 'fixed']
    joint_by_child = {info['child']: info for info in joints_info}

    # Second pass: Populate data arrays
    parent_indices_list = []
    joint_transforms_list = []
    joint_axes_list = []
    masses_list = []
    coms_list = []

    for i, link_name in enumerate(ordered_links):
        if link_name == root_link:
            parent_indices_list.append(i)  # Root parents itself
        else:
            parent_indices_list.append(link_map[child_to_parent_map[link_name]])

        mass, com = _parse_inertial(link_elems.get(link_name))
        masses_list.append(mass)
        coms_list.append(com)

        if link_name not in joint_by_child:
            # Root link has identity transform and zero axis
            joint_transforms_list.append(jnp.eye(4))
            joint_axes_list.append(jnp.zeros(6))
            continue

        joint_info = joint_by_child[link_name]
        joint_elem = joint_info['joint_elem']
        joint_type = joint_info['type']

        xyz, rpy = _parse_origin(joint_elem.find('origin'))
        joint_transforms_list.append(se3.from_position_and_rotation(xyz, _rpy_to_rotation_matrix(rpy)))

        if joint_type == 'fixed':
            axis = jnp.zeros(6)
        else:
            axis_elem = joint_elem.find('axis')
            if axis_elem is not None:
                axis_xyz = np.array([float(v) for v in axis_elem.get('xyz', '0 0 1').split()])
            else:
                axis_xyz = np.array([0.0, 0.0, 1.0])  # Default Z axis
            axis_xyz = axis_xyz / np.linalg.norm(axis_xyz)

            if joint_type in ('revolute', 'continuous'):
                # Revolute: [0, 0, 0, wx, wy, wz]
                axis = jnp.concatenate([jnp.zeros(3), jnp.asarray(axis_xyz)])
            elif joint_type == 'prismatic':
                # Prismatic: [vx, vy, vz, 0, 0, 0]
                axis = jnp.concatenate([jnp.asarray(axis_xyz), jnp.zeros(3)])
            else:
                raise ValueError(f"Unsupported joint type '{joint_type}' for joint '{joint_info['name']}'")

        joint_axes_list.append(axis)

    lower_list = []
    upper_list = []
    for joint_info in actuated_joints:
        lower, upper = _parse_limit(joint_info['joint_elem'])
        lower_list.append(lower)
        upper_list.append(upper)

    robot = RobotModel(
        link_names=tuple(ordered_links),
        joint_names=tuple(info['name'] for info in actuated_joints),
        parent_indices=jnp.array(parent_indices_list, dtype=jnp.int32),
        joint_transforms=jnp.stack(joint_transforms_list),
        joint_axes=jnp.stack(joint_axes_list),
        actuated_joint_to_link_idx=jnp.array([link_map[info['child']] for info in actuated_joints],
                                             dtype=jnp.int32),
        lower_limits=jnp.array(lower_list),
        upper_limits=jnp.array(upper_list),
        link_masses=jnp.array(masses_list),
        link_coms=jnp.array(coms_list),
    )
    logger.debug("Loaded %s: %d links, %d actuated joints, %.4f kg",
                 urdf_path, len(robot.link_names), len(robot.joint_names), float(robot.total_mass))
    return robot


def load_bounds(urdf_path: Optional[PathLike] = None) -> BoundsTable:
    """Build the body joint limit table from a URDF file."""
    return BoundsTable.from_robot(load_urdf(urdf_path))


def _parse_origin(origin_elem):
    if origin_elem is None:
        return np.zeros(3), np.zeros(3)
    xyz = np.array([float(v) for v in origin_elem.get('xyz', '0 0 0').split()])
    rpy = np.array([float(v) for v in origin_elem.get('rpy', '0 0 0').split()])
    return xyz, rpy


def _parse_limit(joint_elem):
    limit_elem = joint_elem.find('limit')
    if limit_elem is None or joint_elem.get('type') == 'continuous':
        return -np.inf, np.inf
    return float(limit_elem.get('lower', '-inf')), float(limit_elem.get('upper', 'inf'))


def _parse_inertial(link_elem):
    """Mass and center of mass of a link, zero when not specified."""
    if link_elem is None:
        return 0.0, np.zeros(3)
    inertial_elem = link_elem.find('inertial')
    if inertial_elem is None:
        return 0.0, np.zeros(3)
    mass_elem = inertial_elem.find('mass')
    mass = float(mass_elem.get('value')) if mass_elem is not None else 0.0
    com, _ = _parse_origin(inertial_elem.find('origin'))
    return mass, com


def _rpy_to_rotation_matrix(rpy: np.ndarray) -> np.ndarray:
    """Convert URDF roll-pitch-yaw angles to rotation matrix.

    URDF rpy is about fixed axes: R = R_z(yaw) @ R_y(pitch) @ R_x(roll).

    Args:
        rpy: Array of [roll, pitch, yaw] angles in radians.

    Returns:
        3x3 rotation matrix.
    """
    roll, pitch, yaw = rpy

    R_x = np.array([
        [1, 0, 0],
        [0, np.cos(roll), -np.sin(roll)],
        [0, np.sin(roll), np.cos(roll)]
    ])

    R_y = np.array([
        [np.cos(pitch), 0, np.sin(pitch)],
        [0, 1, 0],
        [-np.sin(pitch), 0, np.cos(pitch)]
    ])

    R_z = np.array([
        [np.cos(yaw), -np.sin(yaw), 0],
        [np.sin(yaw), np.cos(yaw), 0],
        [0, 0, 1]
    ])

    return R_z @ R_y @ R_x
