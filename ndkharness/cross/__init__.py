"""
Cross-compilation support for ndkharness.

Provides the Android architecture profile registry.
"""

from ndkharness.cross.profiles import (
    ArchitectureProfile,
    SUPPORTED_ARCHITECTURES,
    get_profile,
    list_profiles,
)

__all__ = [
    "ArchitectureProfile",
    "SUPPORTED_ARCHITECTURES",
    "get_profile",
    "list_profiles",
]
