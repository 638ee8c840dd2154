"""
Build artifact records.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path


class ArtifactKind(Enum):
    SHARED_LIBRARY = "shared-library"
    STATIC_LIBRARY = "static-library"
    TEST_EXECUTABLE = "test-executable"


@dataclass(frozen=True)
class BuildArtifact:
    """
    A file produced by one successful compile.

    Attributes:
        architecture: Architecture the artifact was built for
        kind: Shared library, static library or test executable
        path: Absolute location of the file
        produced_at: Modification time of the file when it was collected
    """

    architecture: str
    kind: ArtifactKind
    path: Path
    produced_at: datetime

    @classmethod
    def from_path(cls, architecture: str, kind: ArtifactKind, path: Path) -> "BuildArtifact":
        path = Path(path).resolve()
        return cls(
            architecture=architecture,
            kind=kind,
            path=path,
            produced_at=datetime.fromtimestamp(path.stat().st_mtime),
        )

    @property
    def name(self) -> str:
        return self.path.name
