"""Environment variable resolution for runtime settings."""

from __future__ import annotations

import logging
import os
from typing import overload

_LOGGER = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "n", "off"})


def env_value(name: str) -> str | None:
    """Return stripped env var value, or None if empty/not set.

    Parameters
    ----------
    name
        Environment variable name.

    Returns
    -------
    str | None
        Stripped value or None.
    """
    raw = os.environ.get(name)
    if raw is None:
        return None
    stripped = raw.strip()
    return stripped if stripped else None


@overload
def env_text(name: str) -> str | None: ...


@overload
def env_text(name: str, *, default: str) -> str: ...


def env_text(name: str, *, default: str | None = None) -> str | None:
    """Return a stripped environment string, falling back when unset or blank.

    Returns
    -------
    str | None
        Parsed value, or default when missing.
    """
    value = env_value(name)
    return default if value is None else value


@overload
def env_bool(name: str) -> bool | None: ...


@overload
def env_bool(name: str, *, default: bool) -> bool: ...


def env_bool(name: str, *, default: bool | None = None) -> bool | None:
    """Parse environment variable as boolean.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Value returned when the variable is unset or not a recognised flag.

    Returns
    -------
    bool | None
        Parsed boolean or default.
    """
    value = env_value(name)
    if value is None:
        return default
    lowered = value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    _LOGGER.warning("Invalid boolean for %s: %r", name, value)
    return default


@overload
def env_int(name: str) -> int | None: ...


@overload
def env_int(name: str, *, default: int) -> int: ...


def env_int(name: str, *, default: int | None = None) -> int | None:
    """Parse environment variable as integer with error logging.

    Parameters
    ----------
    name
        Environment variable name.
    default
        Default value if not set or invalid.

    Returns
    -------
    int | None
        Parsed integer or default/None.
    """
    value = env_value(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        _LOGGER.warning("Invalid integer for %s: %r", name, value)
        return default


__all__ = [
    "env_bool",
    "env_int",
    "env_text",
    "env_value",
]
