"""
Android architecture profiles.

This module maps the supported architecture names to the fixed parameters
needed to cross-compile for each Android CPU target: compiler triplet,
NDK tool prefix, ABI, minimum API level and sysroot library directory.
"""

from dataclasses import dataclass
from typing import Dict, List

from ndkharness.core.exceptions import UnknownArchitecture


@dataclass(frozen=True)
class ArchitectureProfile:
    """
    Cross-compilation profile for one Android architecture.

    Attributes:
        name: Architecture name as given on the command line (e.g., 'arm64')
        triplet: Compiler target triplet (e.g., 'aarch64-linux-android')
        toolchain_triplet: Prefix of the NDK tool binaries. Differs from
            ``triplet`` only where the build target is more specific than
            the toolchain (armv7 builds with the arm-linux-androideabi tools)
        ndk_arch: Architecture passed to the NDK standalone toolchain generator
        api_level: Target Android API level
        abi: Android ABI identifier (e.g., 'arm64-v8a')
        sysroot_lib_dir: Library directory name inside the sysroot ('lib' or 'lib64')
        dependency_arch: Architecture suffix of prebuilt dependency directories
            (``openssl_<dependency_arch>``); armv7 reuses the arm builds
    """

    name: str
    triplet: str
    toolchain_triplet: str
    ndk_arch: str
    api_level: int
    abi: str
    sysroot_lib_dir: str
    dependency_arch: str


_PROFILES: Dict[str, ArchitectureProfile] = {
    profile.name: profile
    for profile in (
        ArchitectureProfile(
            name="arm",
            triplet="arm-linux-androideabi",
            toolchain_triplet="arm-linux-androideabi",
            ndk_arch="arm",
            api_level=16,
            abi="armeabi-v7a",
            sysroot_lib_dir="lib",
            dependency_arch="arm",
        ),
        ArchitectureProfile(
            name="armv7",
            triplet="armv7-linux-androideabi",
            toolchain_triplet="arm-linux-androideabi",
            ndk_arch="arm",
            api_level=16,
            abi="armeabi-v7a",
            sysroot_lib_dir="lib",
            dependency_arch="arm",
        ),
        ArchitectureProfile(
            name="arm64",
            triplet="aarch64-linux-android",
            toolchain_triplet="aarch64-linux-android",
            ndk_arch="arm64",
            api_level=21,
            abi="arm64-v8a",
            sysroot_lib_dir="lib",
            dependency_arch="arm64",
        ),
        ArchitectureProfile(
            name="x86",
            triplet="i686-linux-android",
            toolchain_triplet="i686-linux-android",
            ndk_arch="x86",
            api_level=16,
            abi="x86",
            sysroot_lib_dir="lib",
            dependency_arch="x86",
        ),
        ArchitectureProfile(
            name="x86_64",
            triplet="x86_64-linux-android",
            toolchain_triplet="x86_64-linux-android",
            ndk_arch="x86_64",
            api_level=21,
            abi="x86_64",
            sysroot_lib_dir="lib64",
            dependency_arch="x86_64",
        ),
    )
}

SUPPORTED_ARCHITECTURES = tuple(_PROFILES)


def get_profile(name: str) -> ArchitectureProfile:
    """
    Look up the profile for an architecture name.

    Args:
        name: One of 'arm', 'armv7', 'arm64', 'x86', 'x86_64'

    Returns:
        The matching ArchitectureProfile

    Raises:
        UnknownArchitecture: If the name is not a supported architecture

    Example:
        >>> get_profile("arm64").triplet
        'aarch64-linux-android'
    """
    try:
        return _PROFILES[name]
    except KeyError:
        raise UnknownArchitecture(name, SUPPORTED_ARCHITECTURES) from None


def list_profiles() -> List[ArchitectureProfile]:
    """Return every supported profile in enumeration order."""
    return list(_PROFILES.values())
