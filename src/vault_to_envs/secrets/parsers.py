"""Utilities for secret paths and secret payload values."""

import json
import posixpath
from typing import Any, Tuple


def split_mount_path(path: str) -> Tuple[str, str]:
    """Split a secret path into its top-level mount segment and the rest.

    Args:
        path: Secret path such as ``secret/app/db``

    Returns:
        Tuple of (mount, remainder), e.g. ("secret", "app/db")
    """
    parts = path.strip("/").split("/", 1)
    mount = parts[0]
    rest = parts[1] if len(parts) > 1 else ""
    return mount, rest


def kv2_data_path(path: str) -> str:
    """Return the KV v2 data path for a secret path.

    A path that already names the ``data`` sub-path is returned unchanged.
    """
    mount, rest = split_mount_path(path)
    if rest == "data" or rest.startswith("data/"):
        return posixpath.join(mount, rest)
    return posixpath.join(mount, "data", rest)


def kv2_metadata_path(path: str) -> str:
    """Return the KV v2 metadata path for a secret path."""
    mount, rest = split_mount_path(path)
    if rest == "data" or rest.startswith("data/"):
        rest = rest[len("data/"):] if rest != "data" else ""
    return posixpath.join(mount, "metadata", rest)


def render_secret_value(value: Any) -> str:
    """Render a secret payload value as the string exported to the shell.

    Strings are returned as-is; other JSON values are serialized compactly
    so ``True`` becomes ``true`` and nested objects stay machine readable.
    """
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"), sort_keys=False)
