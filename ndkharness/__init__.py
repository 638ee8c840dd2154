"""
ndkharness - Android NDK cross-build and on-device test harness.
"""

__version__ = "0.1.0"
