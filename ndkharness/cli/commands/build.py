"""
Build command implementation.

Builds the library for one architecture and optionally packages it.
"""

import logging

from ndkharness.cli.utils import (
    create_pipeline,
    format_success_message,
    parse_dependency_overrides,
)

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)
    """
    pipeline = create_pipeline(args)
    overrides = parse_dependency_overrides(args.dep)

    ctx = pipeline.build_architecture(
        args.arch,
        download_all=args.download_all,
        overrides=overrides,
        package=args.package,
        version=args.package_version,
    )

    details = {
        "Architecture": f"{ctx.architecture} ({ctx.profile.triplet})",
        "Toolchain": ctx.toolchain_dir,
        "Environment": ctx.env.fingerprint()[:12],
    }
    for artifact in ctx.artifacts:
        details[artifact.kind.value] = artifact.path
    if ctx.package_path:
        details["Package"] = ctx.package_path

    print(format_success_message("Build complete", details))
    return 0
