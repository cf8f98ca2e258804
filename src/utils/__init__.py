"""Shared utilities for dynamic-object."""

from utils.env_utils import env_bool, env_int, env_text, env_value
from utils.registry_protocol import Registry, SnapshotRegistry

__all__ = [
    "Registry",
    "SnapshotRegistry",
    "env_bool",
    "env_int",
    "env_text",
    "env_value",
]
