"""Runtime settings for dynamic objects."""

from __future__ import annotations

import logging
import threading

import msgspec

from core_types import NonNegativeInt
from dynamic_object.errors import ConfigurationError
from serde_msgspec import StructBaseStrict, convert, validation_error_payload
from utils.env_utils import env_bool, env_int, env_text

_LOGGER = logging.getLogger(__name__)

ENV_TAG_FIELD = "DYNAMIC_OBJECT_TAG_FIELD"
ENV_PRETTY_INDENT = "DYNAMIC_OBJECT_PRETTY_INDENT"
ENV_SORT_KEYS = "DYNAMIC_OBJECT_SORT_KEYS"
ENV_BUILDER_PREFIX = "DYNAMIC_OBJECT_BUILDER_PREFIX"


class RuntimeConfigSpec(StructBaseStrict, frozen=True):
    """Process-wide settings for classification and the codec."""

    tag_field: str = "__tag__"
    pretty_indent: NonNegativeInt = 2
    sort_keys: bool = False
    builder_prefix: str = "with_"

    def __post_init__(self) -> None:
        if not self.tag_field:
            msg = "tag_field must be a non-empty string."
            raise ValueError(msg)
        if not self.builder_prefix:
            msg = "builder_prefix must be a non-empty string."
            raise ValueError(msg)


_LOCK = threading.Lock()
_STATE: dict[str, RuntimeConfigSpec] = {}


def config_from_env() -> RuntimeConfigSpec:
    """Build settings from ``DYNAMIC_OBJECT_*`` environment variables.

    Returns
    -------
    RuntimeConfigSpec
        Validated settings; unset variables keep their defaults.

    Raises
    ------
    ConfigurationError
        If an environment value fails validation.
    """
    defaults = RuntimeConfigSpec()
    payload = {
        "tag_field": env_text(ENV_TAG_FIELD, default=defaults.tag_field),
        "pretty_indent": env_int(ENV_PRETTY_INDENT, default=defaults.pretty_indent),
        "sort_keys": env_bool(ENV_SORT_KEYS, default=defaults.sort_keys),
        "builder_prefix": env_text(ENV_BUILDER_PREFIX, default=defaults.builder_prefix),
    }
    try:
        return convert(payload, target_type=RuntimeConfigSpec, strict=True)
    except msgspec.ValidationError as exc:
        details = validation_error_payload(exc)
        msg = f"Invalid dynamic object settings: {details.get('summary', str(exc))}"
        raise ConfigurationError(msg) from exc


def runtime_config() -> RuntimeConfigSpec:
    """Return the active settings, resolving them from the environment once.

    Returns
    -------
    RuntimeConfigSpec
        Active settings.
    """
    active = _STATE.get("active")
    if active is not None:
        return active
    with _LOCK:
        active = _STATE.get("active")
        if active is None:
            active = config_from_env()
            _STATE["active"] = active
            _LOGGER.debug("Resolved dynamic object settings: %s", active)
    return active


def configure_runtime(spec: RuntimeConfigSpec) -> RuntimeConfigSpec:
    """Replace the active settings.

    Schemas classified before the call keep the builder prefix they were
    classified with.

    Returns
    -------
    RuntimeConfigSpec
        The newly active settings.
    """
    with _LOCK:
        _STATE["active"] = spec
    _LOGGER.debug("Configured dynamic object settings: %s", spec)
    return spec


def reset_runtime_config() -> None:
    """Drop the active settings so the next lookup re-reads the environment."""
    with _LOCK:
        _STATE.pop("active", None)


__all__ = [
    "ENV_BUILDER_PREFIX",
    "ENV_PRETTY_INDENT",
    "ENV_SORT_KEYS",
    "ENV_TAG_FIELD",
    "RuntimeConfigSpec",
    "config_from_env",
    "configure_runtime",
    "reset_runtime_config",
    "runtime_config",
]
