"""
Profiles command implementation.

Lists the supported architecture profiles.
"""

import logging

from ndkharness.cross.profiles import list_profiles

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the profiles command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    header = f"{'NAME':<8} {'TRIPLET':<26} {'API':>3}  {'ABI':<12} NDK ARCH"
    print(header)
    print("-" * len(header))
    for profile in list_profiles():
        print(
            f"{profile.name:<8} {profile.triplet:<26} {profile.api_level:>3}  "
            f"{profile.abi:<12} {profile.ndk_arch}"
        )
    return 0
