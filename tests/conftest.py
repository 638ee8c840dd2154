"""
Pytest configuration and shared fixtures for ndkharness tests.
"""

import tempfile
from pathlib import Path
from typing import Generator, Iterable

import pytest

from ndkharness.cross.profiles import ArchitectureProfile


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a minimal cargo project directory."""
    project = temp_dir / "project"
    project.mkdir()
    (project / "Cargo.toml").write_text('[package]\nname = "nullpay"\nversion = "0.1.0"\n')
    return project


def create_dependency_dir(
    root: Path,
    name: str,
    arch: str,
    headers: bool = True,
    libs: Iterable[str] = (),
) -> Path:
    """Lay out ``<root>/<name>_<arch>`` with ``lib`` and optionally ``include``."""
    dep_dir = root / f"{name}_{arch}"
    (dep_dir / "lib").mkdir(parents=True)
    if headers:
        (dep_dir / "include").mkdir()
    for lib in libs:
        (dep_dir / "lib" / lib).write_bytes(b"\x7fELF")
    return dep_dir


def create_toolchain_dir(root: Path, profile: ArchitectureProfile) -> Path:
    """Lay out a standalone toolchain tree with every path the configurator checks."""
    toolchain = root / "toolchains" / profile.ndk_arch
    bin_dir = toolchain / "bin"
    bin_dir.mkdir(parents=True)
    for suffix in ("clang", "clang++", "ar", "ld", "ranlib"):
        (bin_dir / f"{profile.toolchain_triplet}-{suffix}").write_text("#!/bin/sh\n")
    (toolchain / "sysroot" / "usr" / profile.sysroot_lib_dir).mkdir(parents=True)
    stl_dir = toolchain / profile.toolchain_triplet / profile.sysroot_lib_dir
    stl_dir.mkdir(parents=True)
    (stl_dir / "libgnustl_shared.so").write_bytes(b"\x7fELF")
    return toolchain


@pytest.fixture
def make_dependency():
    """Factory fixture for conventional dependency directories."""
    return create_dependency_dir


@pytest.fixture
def make_toolchain():
    """Factory fixture for fake standalone toolchains."""
    return create_toolchain_dir
