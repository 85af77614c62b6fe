"""
JAX-based transform algebra for the humanoid kinematic state.

This module provides JIT-compilable implementations of:
- SO(3) rotations and x-y-z Euler conversions (so3 module)
- SE(3) homogeneous poses and local-frame offsets (se3 module)

All functions are pure, stateless, and designed for high-performance computation.
"""

from . import so3
from . import se3

__all__ = [
    "so3",
    "se3",
]
