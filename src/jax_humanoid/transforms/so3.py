"""SO(3) rotation operations in JAX.

This module implements 3D rotations as 3x3 matrices acting on column vectors.
Euler angles follow the intrinsic x-y-z convention used throughout the
package: roll about x, then pitch about the new y axis, then yaw about the new
z axis, so that R = Rx(roll) @ Ry(pitch) @ Rz(yaw). All functions are pure,
JIT-able, and operate on JAX arrays.
"""

import jax
import jax.numpy as jnp
from typing import Union

Array = jax.Array
Scalar = Union[float, Array]


def from_euler(roll: Scalar, pitch: Scalar, yaw: Scalar) -> Array:
    """
    Form the rotation matrix for a set of roll-pitch-yaw angles.

    Closed form of Rx(roll) @ Ry(pitch) @ Rz(yaw). Defined for all real
    inputs and orthonormal by construction.

    Args:
        roll: (...,) rotation about the x axis [rad]
        pitch: (...,) rotation about the new y axis [rad]
        yaw: (...,) rotation about the new z axis [rad]

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    roll, pitch, yaw = jnp.broadcast_arrays(
        jnp.asarray(roll, dtype=float), jnp.asarray(pitch, dtype=float), jnp.asarray(yaw, dtype=float)
    )

    sr, cr = jnp.sin(roll), jnp.cos(roll)
    sp, cp = jnp.sin(pitch), jnp.cos(pitch)
    sy, cy = jnp.sin(yaw), jnp.cos(yaw)

    return jnp.stack([
        jnp.stack([cp * cy, -cp * sy, sp], axis=-1),
        jnp.stack([sr * sp * cy + cr * sy, -sr * sp * sy + cr * cy, -sr * cp], axis=-1),
        jnp.stack([-cr * sp * cy + sr * sy, cr * sp * sy + sr * cy, cr * cp], axis=-1)
    ], axis=-2)


def rotation_offset(R: Array, angles: Array) -> Array:
    """
    Apply a rotation offset expressed in the local frame of R.

    Args:
        R: (3, 3) current rotation matrix
        angles: (3,) offset as (alpha, beta, gamma) x-y-z Euler angles

    Returns:
        (3, 3) rotation R @ from_euler(alpha, beta, gamma)
    """
    angles = jnp.asarray(angles, dtype=float)
    if angles.shape != (3,):
        raise ValueError(f"rotation offset must have shape (3,), got {angles.shape}")
    return multiply(R, from_euler(angles[0], angles[1], angles[2]))


def exp(log_r: Array) -> Array:
    """
    SO(3) exponential map: convert axis-angle vector to rotation matrix.

    Implements Rodrigues' formula to convert a 3D axis-angle vector (so(3))
    to a rotation matrix (SO(3)). Used to apply revolute joint motion.

    Args:
        log_r: (..., 3) array of axis-angle vectors

    Returns:
        (..., 3, 3) array of rotation matrices
    """
    angle = jnp.linalg.norm(log_r, axis=-1, keepdims=True)

    # Taylor expansion near zero
    small_angle = angle < 1e-8
    cos_angle = jnp.where(small_angle, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_angle = jnp.where(small_angle, angle - angle**3 / 6.0, jnp.sin(angle))

    axis = jnp.where(angle > 1e-8, log_r / jnp.where(angle > 1e-8, angle, 1.0), log_r)

    K = skew_symmetric(axis)

    # Rodrigues formula: R = I + sin(θ) * K + (1 - cos(θ)) * K²
    I = jnp.eye(3, dtype=log_r.dtype)
    I = jnp.broadcast_to(I, log_r.shape[:-1] + (3, 3))

    R = (I +
         sin_angle[..., None] * K +
         (1.0 - cos_angle)[..., None] * jnp.matmul(K, K))

    return R


def multiply(R1: Array, R2: Array) -> Array:
    """
    Multiply two rotation matrices.

    Args:
        R1: (..., 3, 3) first rotation matrix
        R2: (..., 3, 3) second rotation matrix

    Returns:
        (..., 3, 3) result of R1 @ R2
    """
    return jnp.matmul(R1, R2)


def inverse(R: Array) -> Array:
    """Inverse of a rotation matrix, which is its transpose."""
    return jnp.swapaxes(R, -1, -2)


def apply(R: Array, v: Array) -> Array:
    """
    Apply rotation to vector(s).

    Args:
        R: (..., 3, 3) rotation matrix
        v: (..., 3) or (..., N, 3) vector(s) to rotate

    Returns:
        (..., 3) or (..., N, 3) rotated vector(s)
    """
    if v.ndim == R.ndim - 1:  # Single vector case
        return jnp.einsum('...ij,...j->...i', R, v)
    else:  # Multiple vectors case
        return jnp.einsum('...ij,...nj->...ni', R, v)


def skew_symmetric(v: Array) -> Array:
    """
    Convert 3D vector to skew-symmetric matrix.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) skew-symmetric matrix
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)

    return jnp.stack([
        jnp.stack([zeros, -v[..., 2], v[..., 1]], axis=-1),
        jnp.stack([v[..., 2], zeros, -v[..., 0]], axis=-1),
        jnp.stack([-v[..., 1], v[..., 0], zeros], axis=-1)
    ], axis=-2)


def to_column_major(R: Array) -> Array:
    """
    Flatten rotation matrices column by column (Fortran order).

    Args:
        R: (..., 3, 3) rotation matrices

    Returns:
        (..., 9) array with v[k] = R[k % 3, k // 3]
    """
    return jnp.swapaxes(R, -1, -2).reshape(R.shape[:-2] + (9,))


def from_column_major(v: Array) -> Array:
    """Inverse of to_column_major: (..., 9) -> (..., 3, 3)."""
    return jnp.swapaxes(v.reshape(v.shape[:-1] + (3, 3)), -1, -2)
