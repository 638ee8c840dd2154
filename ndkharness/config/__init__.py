"""
Project configuration for ndkharness.
"""

from ndkharness.config.parser import (
    CONFIG_FILENAME,
    DeviceConfig,
    NdkHarnessConfig,
    load_config,
    parse_config,
)

__all__ = [
    "CONFIG_FILENAME",
    "DeviceConfig",
    "NdkHarnessConfig",
    "load_config",
    "parse_config",
]
