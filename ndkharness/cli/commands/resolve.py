"""
Resolve command implementation.

Shows where each dependency of one architecture would come from.
"""

import logging

from ndkharness.cli.utils import create_pipeline, parse_dependency_overrides

logger = logging.getLogger(__name__)


def run(args) -> int:
    """
    Run the resolve command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success)

    Raises:
        UnknownArchitecture: If the architecture has no profile
        MissingDependency: If any dependency cannot be resolved
    """
    pipeline = create_pipeline(args)
    overrides = parse_dependency_overrides(args.dep)

    ctx = pipeline.create_context(args.arch, args.download_all, overrides)
    dependencies = pipeline.resolve(ctx)

    print(f"Dependencies for {ctx.architecture} ({ctx.profile.triplet}):")
    for name, spec in dependencies.items():
        print(f"  {name:<12} {spec.source.value:<10} {spec.path}")
    return 0
