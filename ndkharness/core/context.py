"""
Per-architecture build context.

One BuildContext is created for each architecture being built and is passed
explicitly from stage to stage. Stages record their results on it instead of
exporting anything into the process environment.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ndkharness.build.artifacts import ArtifactKind, BuildArtifact
from ndkharness.cross.profiles import ArchitectureProfile
from ndkharness.deps.resolver import DependencySpec
from ndkharness.toolchain.configurator import ToolchainEnvironment


@dataclass
class BuildContext:
    """
    State of one single-architecture build session.

    Attributes:
        profile: Architecture being built
        project_dir: Root of the project being compiled
        build_folder: Folder holding the bundle, toolchains and packages
        download_all: Fetch the prebuilt bundle before resolving
        overrides: Explicit dependency paths keyed by name
        dependencies: Resolved dependencies (set by the resolve stage)
        toolchain_dir: Standalone toolchain location (set by the configure stage)
        env: Toolchain environment (set by the configure stage)
        artifacts: Build outputs (set by the build stage)
        package_path: Distributable archive (set by the package stage)
    """

    profile: ArchitectureProfile
    project_dir: Path
    build_folder: Path
    download_all: bool = False
    overrides: Dict[str, Path] = field(default_factory=dict)
    dependencies: Dict[str, DependencySpec] = field(default_factory=dict)
    toolchain_dir: Optional[Path] = None
    env: Optional[ToolchainEnvironment] = None
    artifacts: List[BuildArtifact] = field(default_factory=list)
    package_path: Optional[Path] = None

    @property
    def architecture(self) -> str:
        return self.profile.name

    def artifacts_of(self, kind: ArtifactKind) -> List[BuildArtifact]:
        return [a for a in self.artifacts if a.kind is kind]
