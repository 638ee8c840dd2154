"""
Core functionality for ndkharness.

This package contains the foundational modules that other components depend on.
"""

from .exceptions import NdkHarnessError, ConfigError
from .locking import LockManager, LockTimeout

__all__ = ["NdkHarnessError", "ConfigError", "LockManager", "LockTimeout"]
