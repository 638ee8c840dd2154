"""
Device access for running test executables on Android.
"""

from ndkharness.device.bridge import AdbBridge, DeviceBridge, parse_adb_devices
from ndkharness.device.emulator import EmulatorSession

__all__ = ["AdbBridge", "DeviceBridge", "EmulatorSession", "parse_adb_devices"]
