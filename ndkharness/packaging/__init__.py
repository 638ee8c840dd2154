"""
Packaging of built libraries into distributable archives.
"""

from ndkharness.packaging.packager import ArtifactPackager, bundle_name

__all__ = ["ArtifactPackager", "bundle_name"]
