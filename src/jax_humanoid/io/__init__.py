"""I/O utilities for loading the robot description.

This module parses URDF robot descriptions into JAX-native data structures
and exposes the joint limit table they define.
"""

from .urdf_parser import DEFAULT_URDF_PATH, load_bounds, load_urdf

__all__ = ["DEFAULT_URDF_PATH", "load_bounds", "load_urdf"]
