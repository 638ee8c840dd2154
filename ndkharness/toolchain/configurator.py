"""
Cross-compilation environment configuration.

Derives the complete set of environment bindings the compile capability
reads (compiler, archiver, linker, search paths, dependency locations) from
one architecture profile and the resolved dependencies. The result is an
immutable value; nothing here touches ``os.environ``.
"""

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from ndkharness.core.exceptions import ToolchainPathMissing
from ndkharness.cross.profiles import ArchitectureProfile
from ndkharness.deps.resolver import DependencySpec

logger = logging.getLogger(__name__)

STL_LIBRARY = "gnustl_shared"

# Fixed cross-compilation switches read by cargo build scripts
CROSS_FLAGS = (
    ("PKG_CONFIG_ALLOW_CROSS", "1"),
    ("CARGO_INCREMENTAL", "1"),
    ("RUST_BACKTRACE", "1"),
    ("RUST_TEST_THREADS", "1"),
    ("OPENSSL_STATIC", "1"),
    ("TARGET", "android"),
)


@dataclass(frozen=True)
class ToolchainEnvironment:
    """
    Immutable environment for one single-architecture build.

    Attributes:
        architecture: Architecture name the environment was computed for
        triplet: Compiler target triplet
        variables: Ordered (name, value) pairs
        bin_dir: Toolchain ``bin`` directory to put in front of PATH
        linker_config: Fragment binding the triplet to its archiver/linker
    """

    architecture: str
    triplet: str
    variables: Tuple[Tuple[str, str], ...]
    bin_dir: str
    linker_config: str

    def __getitem__(self, name: str) -> str:
        for key, value in self.variables:
            if key == name:
                return value
        raise KeyError(name)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        try:
            return self[name]
        except KeyError:
            return default

    def as_dict(self) -> Dict[str, str]:
        return dict(self.variables)

    def as_environ(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Merge the bindings over a base environment for a child process.

        Args:
            base: Base environment (default: a copy of ``os.environ``)

        Returns:
            A new dictionary; the base mapping is not modified
        """
        merged = dict(os.environ if base is None else base)
        merged.update(self.variables)
        existing_path = merged.get("PATH", "")
        merged["PATH"] = (
            f"{self.bin_dir}{os.pathsep}{existing_path}" if existing_path else self.bin_dir
        )
        return merged

    def serialize(self) -> str:
        lines = [f"{key}={value}" for key, value in self.variables]
        lines.append(f"PATH+={self.bin_dir}")
        lines.append("")
        lines.append(self.linker_config)
        return "\n".join(lines)

    def fingerprint(self) -> str:
        """SHA-256 of the serialized environment."""
        return hashlib.sha256(self.serialize().encode("utf-8")).hexdigest()


def _require(field: str, path: Path) -> str:
    if not path.exists():
        raise ToolchainPathMissing(field, path)
    return str(path)


def generate_linker_config(triplet: str, archiver: str, linker: str) -> str:
    """
    Generate the cargo target section binding a triplet to its tools.

    Example:
        >>> print(generate_linker_config("i686-linux-android", "/tc/bin/ar", "/tc/bin/cc"))
        [target.i686-linux-android]
        ar = "/tc/bin/ar"
        linker = "/tc/bin/cc"
    """
    return "\n".join(
        [
            f"[target.{triplet}]",
            f'ar = "{archiver}"',
            f'linker = "{linker}"',
        ]
    )


def configure_toolchain(
    profile: ArchitectureProfile,
    dependencies: Mapping[str, DependencySpec],
    toolchain_dir: Path,
) -> ToolchainEnvironment:
    """
    Compute the toolchain environment for one architecture.

    Args:
        profile: Target architecture profile
        dependencies: Resolved dependencies keyed by name (order is preserved)
        toolchain_dir: Root of the standalone toolchain for this architecture

    Returns:
        ToolchainEnvironment; identical inputs give identical environments

    Raises:
        ToolchainPathMissing: If any path to be embedded does not exist
    """
    toolchain_dir = Path(toolchain_dir).absolute()
    _require("TOOLCHAIN_DIR", toolchain_dir)

    bin_dir = toolchain_dir / "bin"
    prefix = profile.toolchain_triplet
    tools = [
        ("CC", bin_dir / f"{prefix}-clang"),
        ("CXX", bin_dir / f"{prefix}-clang++"),
        ("AR", bin_dir / f"{prefix}-ar"),
        ("CXXLD", bin_dir / f"{prefix}-ld"),
        ("RANLIB", bin_dir / f"{prefix}-ranlib"),
    ]

    variables: List[Tuple[str, str]] = [
        ("TOOLCHAIN_DIR", str(toolchain_dir)),
        ("TARGET_ARCH", profile.name),
        ("TARGET_API", str(profile.api_level)),
        ("TRIPLET", profile.triplet),
        ("ANDROID_TRIPLET", profile.toolchain_triplet),
        ("ABI", profile.abi),
    ]
    for field, path in tools:
        variables.append((field, _require(field, path)))

    sysroot_lib = _require(
        "SYSROOT_LIB_DIR", toolchain_dir / "sysroot" / "usr" / profile.sysroot_lib_dir
    )
    stl_lib = _require(
        "STL_LIB_DIR", toolchain_dir / prefix / profile.sysroot_lib_dir
    )
    variables.append(("SYSROOT_LIB_DIR", sysroot_lib))
    variables.append(("STL_LIB_DIR", stl_lib))

    lib_flags = [f"-L{sysroot_lib}", "-lz", f"-L{stl_lib}"]
    include_flags = []

    for spec in dependencies.values():
        env_prefix = spec.definition.env_prefix
        variables.append((f"{env_prefix}_DIR", _require(f"{env_prefix}_DIR", spec.path)))

        lib_dir = _require(f"{env_prefix}_LIB_DIR", spec.lib_dir)
        variables.append((f"{env_prefix}_LIB_DIR", lib_dir))
        lib_flags.append(f"-L{lib_dir}")
        lib_flags.extend(f"-l{lib}" for lib in spec.definition.link_libs)

        if spec.definition.has_headers:
            include_dir = _require(f"{env_prefix}_INCLUDE_DIR", spec.include_dir)
            variables.append((f"{env_prefix}_INCLUDE_DIR", include_dir))
            include_flags.append(f"-I{include_dir}")

    lib_flags.append(f"-l{STL_LIBRARY}")

    variables.append(("RUSTFLAGS", " ".join(lib_flags)))
    variables.append(("LDFLAGS", " ".join(f for f in lib_flags if f.startswith("-L"))))
    variables.append(("CFLAGS", " ".join(include_flags)))
    variables.extend(CROSS_FLAGS)

    env = ToolchainEnvironment(
        architecture=profile.name,
        triplet=profile.triplet,
        variables=tuple(variables),
        bin_dir=str(bin_dir),
        linker_config=generate_linker_config(
            profile.triplet, dict(variables)["AR"], dict(variables)["CC"]
        ),
    )
    logger.debug(f"Toolchain environment for {profile.name}: {env.fingerprint()[:12]}")
    return env
