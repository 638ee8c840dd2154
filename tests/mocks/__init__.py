"""
Mock implementations for testing ndkharness components.
"""

from .backend import FakeBackend
from .device import FakeBridge

__all__ = ["FakeBackend", "FakeBridge"]
