"""
Dependency definitions, bundle fetching and resolution.
"""

from ndkharness.deps.definitions import (
    DependencyDefinition,
    DependencyKind,
    BUILTIN_DEFINITIONS,
    DEFAULT_DEPENDENCIES,
    lookup_definitions,
)
from ndkharness.deps.bundle import BundleFetcher, DependencyBundle, DEFAULT_BUNDLE
from ndkharness.deps.resolver import (
    DependencyResolver,
    DependencySpec,
    ResolutionSource,
)

__all__ = [
    "DependencyDefinition",
    "DependencyKind",
    "BUILTIN_DEFINITIONS",
    "DEFAULT_DEPENDENCIES",
    "lookup_definitions",
    "BundleFetcher",
    "DependencyBundle",
    "DEFAULT_BUNDLE",
    "DependencyResolver",
    "DependencySpec",
    "ResolutionSource",
]
