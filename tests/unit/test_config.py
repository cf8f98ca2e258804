"""Tests for runtime settings resolution."""

from __future__ import annotations

import pytest

from dynamic_object import (
    ConfigurationError,
    DynamicObject,
    RuntimeConfigSpec,
    configure_runtime,
    reset_runtime_config,
    runtime_config,
    schema_descriptor,
)
from dynamic_object.config import (
    ENV_BUILDER_PREFIX,
    ENV_PRETTY_INDENT,
    ENV_SORT_KEYS,
    ENV_TAG_FIELD,
    config_from_env,
)
from dynamic_object.introspection import AccessorKind


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Use defaults when no variables are set."""
    for name in (ENV_TAG_FIELD, ENV_PRETTY_INDENT, ENV_SORT_KEYS, ENV_BUILDER_PREFIX):
        monkeypatch.delenv(name, raising=False)
    assert runtime_config() == RuntimeConfigSpec()
    assert runtime_config().tag_field == "__tag__"
    assert runtime_config().pretty_indent == 2


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    """Read settings from the environment."""
    monkeypatch.setenv(ENV_TAG_FIELD, "kind")
    monkeypatch.setenv(ENV_PRETTY_INDENT, "4")
    monkeypatch.setenv(ENV_SORT_KEYS, "yes")
    reset_runtime_config()
    config = runtime_config()
    assert config.tag_field == "kind"
    assert config.pretty_indent == 4
    assert config.sort_keys is True


def test_settings_resolved_once(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the resolved settings until reset."""
    first = runtime_config()
    monkeypatch.setenv(ENV_PRETTY_INDENT, "8")
    assert runtime_config() is first
    reset_runtime_config()
    assert runtime_config().pretty_indent == 8


def test_invalid_environment_value(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reject values that fail validation."""
    monkeypatch.setenv(ENV_PRETTY_INDENT, "-1")
    with pytest.raises(ConfigurationError):
        config_from_env()


def test_unparseable_integer_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the default for integers that do not parse."""
    monkeypatch.setenv(ENV_PRETTY_INDENT, "wide")
    assert config_from_env().pretty_indent == 2


def test_empty_builder_prefix_rejected() -> None:
    """Reject an empty builder prefix."""
    with pytest.raises(ValueError, match="builder_prefix"):
        RuntimeConfigSpec(builder_prefix="")


def test_configured_builder_prefix() -> None:
    """Classify schemas with the configured builder prefix."""
    configure_runtime(RuntimeConfigSpec(builder_prefix="set_"))

    class Point(DynamicObject):
        def x(self) -> int | None: ...

        def set_x(self, x: int) -> Point: ...

    builder = schema_descriptor(Point).accessors["set_x"]
    assert builder.kind is AccessorKind.BUILDER
    assert builder.key == "x"
    assert Point().set_x(3).x() == 3
