"""
Toolchain configuration for Android cross-compilation.
"""

from ndkharness.toolchain.configurator import (
    ToolchainEnvironment,
    configure_toolchain,
    generate_linker_config,
)
from ndkharness.toolchain.standalone import StandaloneToolchain, default_toolchain_prefix

__all__ = [
    "ToolchainEnvironment",
    "configure_toolchain",
    "generate_linker_config",
    "StandaloneToolchain",
    "default_toolchain_prefix",
]
