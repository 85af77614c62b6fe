"""SE(3) rigid body transforms in JAX.

Poses are 4x4 homogeneous matrices with the rotation block in [:3, :3], the
translation in the last column [:3, 3] and a bottom row of [0, 0, 0, 1]. This
layout is used by every module of the package. All functions are pure,
JIT-able, and operate on JAX arrays.
"""


import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Construct SE(3) transform from position and rotation.

    Args:
        p: (..., 3) position vector
        R: (..., 3, 3) rotation matrix

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    p = jnp.asarray(p, dtype=float)
    R = jnp.asarray(R, dtype=float)

    # Ensure consistent batch shapes
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    T = jnp.zeros(batch_shape + (4, 4), dtype=p.dtype)
    T = T.at[..., :3, :3].set(R)
    T = T.at[..., :3, 3].set(p)
    T = T.at[..., 3, 3].set(1.0)

    return T


def from_euler(x, y, z, roll, pitch, yaw) -> Array:
    """
    Homogeneous matrix from a translation and x-y-z Euler angles.

    Args:
        x, y, z: translation
        roll, pitch, yaw: rotation, see so3.from_euler

    Returns:
        (..., 4, 4) homogeneous transformation matrix
    """
    R = so3.from_euler(roll, pitch, yaw)
    p = jnp.stack(jnp.broadcast_arrays(
        jnp.asarray(x, dtype=float), jnp.asarray(y, dtype=float), jnp.asarray(z, dtype=float)
    ), axis=-1)
    return from_position_and_rotation(p, R)


def posture_offset(T: Array, offset: Array) -> Array:
    """
    Add an offset, expressed in the local frame of T, to the posture T.

    The offset is (dx, dy, dz, alpha, beta, gamma). Translation and rotation
    are not composed independently: the result is T @ from_euler(*offset).

    Args:
        T: (4, 4) current posture
        offset: (6,) offset parameters

    Returns:
        (4, 4) posture including the offset
    """
    offset = jnp.asarray(offset, dtype=float)
    if offset.shape != (6,):
        raise ValueError(f"posture offset must have shape (6,), got {offset.shape}")
    return multiply(T, from_euler(*offset))


def exp(twist: Array) -> Array:
    """
    SE(3) exponential map: convert twist to transformation matrix.

    This function is numerically stable, using Taylor series approximations
    for small angles to avoid division by zero.

    Args:
        twist: (..., 6) array of twists [vx, vy, vz, wx, wy, wz].
               The first 3 elements are linear velocity, last 3 are angular.

    Returns:
        (..., 4, 4) array of transformation matrices.
    """
    v, w = twist[..., :3], twist[..., 3:]
    angle = jnp.linalg.norm(w, axis=-1, keepdims=True)

    eps = jnp.finfo(twist.dtype).eps

    # Rotation part is just the SO(3) exponential map
    R = so3.exp(w)

    angle_sq = angle * angle
    is_small_angle = angle < 1e-6

    # Coefficient A = (1 - cos(theta)) / theta^2
    A = jnp.where(is_small_angle, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(angle)) / (angle_sq + eps))

    # Coefficient B = (theta - sin(theta)) / theta^3
    B = jnp.where(is_small_angle, 1.0 / 6.0 - angle_sq / 120.0, (angle - jnp.sin(angle)) / (angle_sq * angle + eps))

    K = so3.skew_symmetric(w)
    K_sq = jnp.matmul(K, K)

    I = jnp.eye(3, dtype=twist.dtype)
    I = jnp.broadcast_to(I, K.shape)

    # V = I + A*K + B*K^2
    V = I + A[..., None] * K + B[..., None] * K_sq

    t = jnp.einsum("...ij,...j->...i", V, v)

    return from_position_and_rotation(t, R)


def multiply(T1: Array, T2: Array) -> Array:
    """
    Multiply two SE(3) transformation matrices.

    Args:
        T1: (..., 4, 4) first transformation matrix
        T2: (..., 4, 4) second transformation matrix

    Returns:
        (..., 4, 4) result of T1 @ T2
    """
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Compute inverse of SE(3) transformation matrix.

    Uses the block structure for efficient computation:
    T^-1 = [[R^T, -R^T @ t], [0, 1]]

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 4, 4) inverse transformation matrix
    """
    R = T[..., :3, :3]
    t = T[..., :3, 3]

    R_inv = so3.inverse(R)
    t_inv = -so3.apply(R_inv, t)

    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Apply SE(3) transformation to points.

    Args:
        T: (..., 4, 4) transformation matrix
        points: (..., 3) or (..., N, 3) points to transform

    Returns:
        (..., 3) or (..., N, 3) transformed points
    """
    ones = jnp.ones_like(points[..., 0:1])
    points_h = jnp.concatenate([points, ones], axis=-1)

    if points.ndim == T.ndim - 1:
        transformed_h = jnp.einsum("...ij,...j->...i", T, points_h)
    else:
        transformed_h = jnp.einsum("...ij,...nj->...ni", T, points_h)

    return transformed_h[..., :3]


def get_position(T: Array) -> Array:
    """
    Extract position from SE(3) transformation matrix.

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 3) position vector
    """
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """
    Extract rotation matrix from SE(3) transformation matrix, discarding
    the translation.

    Args:
        T: (..., 4, 4) transformation matrix

    Returns:
        (..., 3, 3) rotation matrix
    """
    return T[..., :3, :3]
