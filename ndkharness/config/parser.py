"""YAML configuration parser for ndkharness.

This module provides parsing and validation for ndkharness.yaml project files.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from ndkharness.core.exceptions import ConfigError
from ndkharness.deps.bundle import DEFAULT_BUNDLE, DependencyBundle
from ndkharness.deps.definitions import (
    DEFAULT_DEPENDENCIES,
    DependencyDefinition,
    parse_definition,
)
from ndkharness.harness.remote import DEFAULT_STAGING_DIR

CONFIG_FILENAME = "ndkharness.yaml"


@dataclass
class DeviceConfig:
    """Device settings for the remote test harness."""

    staging_dir: str = DEFAULT_STAGING_DIR
    serial: Optional[str] = None
    timeout: int = 600  # seconds per adb command
    adb_path: str = "adb"
    emulator_path: str = "emulator"


@dataclass
class NdkHarnessConfig:
    """Complete ndkharness project configuration."""

    version: int = 1
    library: str = "libnullpay"
    platform: str = "android"
    build_folder: Path = Path("/tmp/android_build")
    ndk_root: Optional[Path] = None
    toolchain_prefix: Optional[Path] = None
    include_dir: Optional[Path] = None
    bundle: DependencyBundle = DEFAULT_BUNDLE
    dependencies: List[str] = field(default_factory=lambda: list(DEFAULT_DEPENDENCIES))
    definitions: Dict[str, DependencyDefinition] = field(default_factory=dict)
    overrides: Dict[str, Path] = field(default_factory=dict)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    download_timeout: int = 30


def parse_config(config_path: Path) -> NdkHarnessConfig:
    """
    Parse ndkharness.yaml configuration file.

    Args:
        config_path: Path to ndkharness.yaml

    Returns:
        Parsed and validated configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if data is None:
        raise ConfigError("Configuration file is empty")
    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    return _parse_and_validate(data, config_path.parent)


def load_config(project_root: Path, config_path: Optional[Path] = None) -> NdkHarnessConfig:
    """
    Load the project configuration, falling back to defaults.

    An explicitly given ``config_path`` must exist; the default
    ``<project_root>/ndkharness.yaml`` is optional.
    """
    if config_path is not None:
        return parse_config(Path(config_path))

    default_path = Path(project_root) / CONFIG_FILENAME
    if default_path.exists():
        return parse_config(default_path)
    return NdkHarnessConfig()


def _parse_and_validate(data: dict, base_dir: Path) -> NdkHarnessConfig:
    """Parse and validate configuration data."""
    if "version" not in data:
        raise ConfigError("Missing required field: version")

    if data["version"] != 1:
        raise ConfigError(f"Unsupported version: {data['version']} (expected 1)")

    config = NdkHarnessConfig(version=1)

    for key in ("library", "platform"):
        if key in data:
            value = data[key]
            if not isinstance(value, str) or not value:
                raise ConfigError(f"'{key}' must be a non-empty string")
            setattr(config, key, value)

    for key in ("build_folder", "ndk_root", "toolchain_prefix", "include_dir"):
        if data.get(key) is not None:
            setattr(config, key, _parse_path(data[key], base_dir))

    if "bundle" in data:
        config.bundle = _parse_bundle(data["bundle"])

    if "definitions" in data:
        config.definitions = _parse_definitions(data["definitions"])

    if "dependencies" in data:
        deps = data["dependencies"]
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise ConfigError("'dependencies' must be a list of dependency names")
        config.dependencies = deps

    if "overrides" in data:
        config.overrides = _parse_overrides(data["overrides"], base_dir)

    if "device" in data:
        config.device = _parse_device(data["device"])

    if "download_timeout" in data:
        config.download_timeout = _parse_positive_int(data["download_timeout"], "download_timeout")

    return config


def _parse_path(value, base_dir: Path) -> Path:
    if not isinstance(value, str):
        raise ConfigError(f"Expected a path string, got: {value!r}")
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def _parse_positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{name}' must be a positive integer")
    return value


def _parse_bundle(data: Optional[dict]) -> DependencyBundle:
    """Parse bundle configuration."""
    if not data:
        return DEFAULT_BUNDLE
    if not isinstance(data, dict):
        raise ConfigError("'bundle' must be a mapping")
    if "url" not in data:
        raise ConfigError("Bundle missing required field: url")

    return DependencyBundle(
        url=data["url"],
        name=data.get("name", DEFAULT_BUNDLE.name),
        version=str(data.get("version", DEFAULT_BUNDLE.version)),
        sha256=data.get("sha256"),
        prebuilt_subdir=data.get("prebuilt_subdir", DEFAULT_BUNDLE.prebuilt_subdir),
    )


def _parse_definitions(data: list) -> Dict[str, DependencyDefinition]:
    """Parse custom dependency definitions."""
    if not isinstance(data, list):
        raise ConfigError("'definitions' must be a list")

    definitions = {}
    for item in data:
        if not isinstance(item, dict):
            raise ConfigError("Each dependency definition must be a mapping")
        definition = parse_definition(item)
        if definition.name in definitions:
            raise ConfigError(f"Duplicate dependency definition: {definition.name}")
        definitions[definition.name] = definition
    return definitions


def _parse_overrides(data: dict, base_dir: Path) -> Dict[str, Path]:
    if not isinstance(data, dict):
        raise ConfigError("'overrides' must be a mapping of dependency name to path")
    return {name: _parse_path(path, base_dir) for name, path in data.items()}


def _parse_device(data: Optional[dict]) -> DeviceConfig:
    """Parse device configuration."""
    if not data:
        return DeviceConfig()
    if not isinstance(data, dict):
        raise ConfigError("'device' must be a mapping")

    device = DeviceConfig()
    if "staging_dir" in data:
        staging_dir = data["staging_dir"]
        if not isinstance(staging_dir, str) or not staging_dir.startswith("/"):
            raise ConfigError("'device.staging_dir' must be an absolute device path")
        device.staging_dir = staging_dir.rstrip("/") or "/"
    if data.get("serial") is not None:
        device.serial = str(data["serial"])
    if "timeout" in data:
        device.timeout = _parse_positive_int(data["timeout"], "device.timeout")
    if "adb_path" in data:
        device.adb_path = str(data["adb_path"])
    if "emulator_path" in data:
        device.emulator_path = str(data["emulator_path"])
    return device
