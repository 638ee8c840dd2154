"""
Build-all command implementation.

Builds several architectures one after another.
"""

import logging

from ndkharness.cli.utils import create_pipeline, format_success_message

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the build-all command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    pipeline = create_pipeline(args)

    contexts = pipeline.build_all(
        args.arch,
        download_all=args.download_all,
        package=args.package,
        version=args.package_version,
    )

    details = {}
    for ctx in contexts:
        details[ctx.architecture] = ctx.package_path or ctx.profile.triplet
    print(format_success_message(f"Built {len(contexts)} architecture(s)", details))
    return 0
