"""
Catalog of third-party dependencies known to ndkharness.

A definition describes a dependency kind independently of any architecture:
how it is named on disk, where it lives inside the prebuilt bundle, which
environment prefix its paths are exported under, and what must be linked
or staged on a device.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from ndkharness.core.exceptions import ConfigError


class DependencyKind(Enum):
    """How a dependency may be obtained."""

    PREBUILT = "prebuilt"  # local directory or the downloadable bundle
    SDK = "sdk"  # consumer-supplied artifacts, never downloaded


@dataclass(frozen=True)
class DependencyDefinition:
    """
    Static description of one dependency.

    Attributes:
        name: Logical name, also the prefix of the conventional directory
            name ``<name>_<arch>``
        kind: PREBUILT or SDK
        env_prefix: Prefix of the exported variables (``<PREFIX>_DIR`` etc.)
        bundle_group: Directory under the bundle's prebuilt root holding
            this dependency's per-architecture directories
        has_headers: Whether an ``include`` directory is required
        link_libs: Library names passed to the linker as ``-l<name>``
        runtime_libs: Shared objects pushed to the device before running tests
    """

    name: str
    kind: DependencyKind
    env_prefix: str
    bundle_group: Optional[str] = None
    has_headers: bool = True
    link_libs: Tuple[str, ...] = ()
    runtime_libs: Tuple[str, ...] = ()


BUILTIN_DEFINITIONS: Dict[str, DependencyDefinition] = {
    "openssl": DependencyDefinition(
        name="openssl",
        kind=DependencyKind.PREBUILT,
        env_prefix="OPENSSL",
        bundle_group="openssl",
    ),
    "libsodium": DependencyDefinition(
        name="libsodium",
        kind=DependencyKind.PREBUILT,
        env_prefix="SODIUM",
        bundle_group="sodium",
        link_libs=("sodium",),
        runtime_libs=("libsodium.so",),
    ),
    "libzmq": DependencyDefinition(
        name="libzmq",
        kind=DependencyKind.PREBUILT,
        env_prefix="LIBZMQ",
        bundle_group="zmq",
        link_libs=("zmq",),
        runtime_libs=("libzmq.so",),
    ),
    "libindy": DependencyDefinition(
        name="libindy",
        kind=DependencyKind.SDK,
        env_prefix="LIBINDY",
        has_headers=False,
        link_libs=("indy",),
        runtime_libs=("libindy.so",),
    ),
}

DEFAULT_DEPENDENCIES = ("openssl", "libsodium", "libindy")


def parse_definition(data: dict) -> DependencyDefinition:
    """
    Build a definition from a config mapping.

    Raises:
        ConfigError: If required fields are missing or the kind is invalid
    """
    for field_name in ("name", "env_prefix"):
        if field_name not in data:
            raise ConfigError(f"Dependency missing required field: {field_name}")

    kind_value = data.get("kind", DependencyKind.PREBUILT.value)
    try:
        kind = DependencyKind(kind_value)
    except ValueError:
        raise ConfigError(
            f"Invalid dependency kind: {kind_value} "
            f"(expected one of {[k.value for k in DependencyKind]})"
        ) from None

    bundle_group = data.get("bundle_group")
    if kind is DependencyKind.PREBUILT and not bundle_group:
        bundle_group = data["name"]

    return DependencyDefinition(
        name=data["name"],
        kind=kind,
        env_prefix=str(data["env_prefix"]).upper(),
        bundle_group=bundle_group,
        has_headers=bool(data.get("has_headers", kind is DependencyKind.PREBUILT)),
        link_libs=tuple(data.get("link_libs", ())),
        runtime_libs=tuple(data.get("runtime_libs", ())),
    )


def lookup_definitions(
    names: Iterable[str],
    extra: Optional[Dict[str, DependencyDefinition]] = None,
) -> List[DependencyDefinition]:
    """
    Resolve dependency names to definitions, preferring ``extra`` entries.

    Raises:
        ConfigError: If a name is neither built in nor defined in ``extra``
    """
    catalog = dict(BUILTIN_DEFINITIONS)
    if extra:
        catalog.update(extra)

    definitions = []
    for name in names:
        if name not in catalog:
            raise ConfigError(
                f"Unknown dependency: {name}. Known: {', '.join(sorted(catalog))}"
            )
        definitions.append(catalog[name])
    return definitions
