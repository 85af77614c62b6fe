"""
JAX Humanoid: support-foot relative kinematic state for biped humanoids.

This library keeps the joint configuration, the support foot anchor and the
derived swing foot, torso and center of mass state of a walking humanoid,
with JIT-compilable transform and kinematic chain computations using JAX.
"""

import jax
jax.config.update("jax_enable_x64", True)

# Import core modules
from . import transforms
from . import core
from . import io
from . import chain
from .model import StaleDerivedStateError, SupportFootModel

__version__ = "0.1.0"
__all__ = ["transforms", "core", "io", "chain", "StaleDerivedStateError", "SupportFootModel"]
