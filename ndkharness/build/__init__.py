"""
Build runner and artifact records.
"""

from ndkharness.backends.base import BuildMode
from ndkharness.build.artifacts import ArtifactKind, BuildArtifact
from ndkharness.build.runner import BuildRunner, library_file_stem

__all__ = ["ArtifactKind", "BuildArtifact", "BuildMode", "BuildRunner", "library_file_stem"]
