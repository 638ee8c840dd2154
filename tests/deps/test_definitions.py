"""
Tests for dependency definitions.
"""

import pytest

from ndkharness.core.exceptions import ConfigError
from ndkharness.deps.definitions import (
    BUILTIN_DEFINITIONS,
    DEFAULT_DEPENDENCIES,
    DependencyKind,
    lookup_definitions,
    parse_definition,
)


class TestBuiltinDefinitions:
    """Test the built-in dependency catalog."""

    def test_defaults_are_builtin(self):
        """Test every default dependency has a definition."""
        assert all(name in BUILTIN_DEFINITIONS for name in DEFAULT_DEPENDENCIES)

    def test_libindy_is_sdk(self):
        """Test libindy is consumer-supplied and has no headers."""
        libindy = BUILTIN_DEFINITIONS["libindy"]
        assert libindy.kind is DependencyKind.SDK
        assert libindy.has_headers is False

    def test_sodium_group_and_prefix(self):
        """Test libsodium lives in the sodium group and exports SODIUM_*."""
        sodium = BUILTIN_DEFINITIONS["libsodium"]
        assert sodium.bundle_group == "sodium"
        assert sodium.env_prefix == "SODIUM"
        assert sodium.runtime_libs == ("libsodium.so",)


class TestParseDefinition:
    """Test custom definitions from configuration."""

    def test_minimal_prebuilt(self):
        """Test a minimal entry defaults to a prebuilt dependency with headers."""
        definition = parse_definition({"name": "libz", "env_prefix": "libz"})

        assert definition.kind is DependencyKind.PREBUILT
        assert definition.env_prefix == "LIBZ"
        assert definition.bundle_group == "libz"
        assert definition.has_headers is True

    def test_sdk_without_headers(self):
        """Test an SDK entry has no bundle group and no headers by default."""
        definition = parse_definition(
            {"name": "libvcx", "env_prefix": "VCX", "kind": "sdk", "link_libs": ["vcx"]}
        )

        assert definition.kind is DependencyKind.SDK
        assert definition.bundle_group is None
        assert definition.has_headers is False
        assert definition.link_libs == ("vcx",)

    @pytest.mark.parametrize("missing", ["name", "env_prefix"])
    def test_missing_field(self, missing):
        """Test required fields are enforced."""
        data = {"name": "libz", "env_prefix": "LIBZ"}
        del data[missing]

        with pytest.raises(ConfigError, match=missing):
            parse_definition(data)

    def test_invalid_kind(self):
        """Test an unknown kind is rejected."""
        with pytest.raises(ConfigError, match="Invalid dependency kind"):
            parse_definition({"name": "x", "env_prefix": "X", "kind": "system"})


class TestLookupDefinitions:
    """Test name to definition lookup."""

    def test_preserves_order(self):
        """Test definitions come back in the requested order."""
        names = [d.name for d in lookup_definitions(["libindy", "openssl"])]
        assert names == ["libindy", "openssl"]

    def test_extra_overrides_builtin(self):
        """Test a configured definition replaces the built-in one."""
        custom = parse_definition({"name": "openssl", "env_prefix": "SSL"})

        [definition] = lookup_definitions(["openssl"], {"openssl": custom})

        assert definition.env_prefix == "SSL"

    def test_unknown_name(self):
        """Test an unknown dependency name is a configuration error."""
        with pytest.raises(ConfigError, match="Unknown dependency: libfoo"):
            lookup_definitions(["libfoo"])
