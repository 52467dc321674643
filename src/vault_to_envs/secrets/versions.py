"""Version selection for versioned key-value secrets.

A selector of zero or more is an absolute version (0 lets the store pick
the latest). A negative selector counts back from the newest version
(-1 is the newest, -2 the one before it). Starting at that position the
resolver walks towards older versions and skips any version that has been
deleted or destroyed, so an operator can ask for "the secret before the
last rotation" even when intermediate versions were tombstoned.
"""

from typing import Any, List, Mapping, Tuple

from ..exceptions import FetchError, VersionNotFoundError
from ..logging import get_logger
from .base import SecretStore
from .parsers import kv2_metadata_path

logger = get_logger(__name__)


def is_live_version(version_data: Mapping[str, Any]) -> bool:
    """A version is live unless it carries a deletion time or is destroyed."""
    return not version_data.get("deletion_time") and not version_data.get(
        "destroyed", False
    )


def select_version(
    versions: Mapping[str, Mapping[str, Any]], selector: int, path: str
) -> int:
    """Pick the concrete version for a negative selector.

    Args:
        versions: Version number (as string) -> version metadata
        selector: Negative offset from the newest version
        path: Secret path, for messages

    Returns:
        The live version number found by the walk

    Raises:
        FetchError: If a version key is not numeric or its entry is malformed
        VersionNotFoundError: If the walk runs out of versions
    """
    try:
        numbered: List[Tuple[int, str]] = sorted((int(key), key) for key in versions)
    except (TypeError, ValueError) as e:
        raise FetchError(
            f"Error converting version number for secret {path}: {e}",
            details={"path": path},
        ) from e

    index = len(numbered) + selector
    while index >= 0:
        current, key = numbered[index]
        entry = versions[key]
        if not isinstance(entry, Mapping):
            raise FetchError(
                f"Malformed metadata for version {key} of secret {path}",
                details={"path": path, "version": key},
            )
        logger.debug(
            f"Checking secret version {current} as valid match for provided value "
            f"'{selector}' for secret {path}",
            extra={"vault_path": path},
        )
        if is_live_version(entry):
            return current
        logger.warning(
            f"Version {current} of secret {path} has been deleted, "
            "checking next version...",
            extra={"event_type": "version_skipped", "vault_path": path},
        )
        index -= 1

    raise VersionNotFoundError(
        f"Unable to find desired version {selector} for secret {path}",
        version=selector,
        path=path,
    )


def resolve_version(store: SecretStore, path: str, selector: int) -> int:
    """Turn a version selector into the version to read.

    Args:
        store: Secret store to read metadata from
        path: Secret path as configured
        selector: Configured version selector

    Returns:
        Effective version to pass as the ``version`` query parameter
    """
    if selector >= 0:
        return selector

    metadata_path = kv2_metadata_path(path)
    metadata = store.read_metadata(metadata_path)
    if not metadata:
        raise FetchError(
            f"Could not get secret metadata {metadata_path}: Secret does not exist",
            details={"path": path, "metadata_path": metadata_path},
        )

    data = metadata.get("data")
    versions = data.get("versions") if isinstance(data, Mapping) else None
    if not isinstance(versions, Mapping) or not versions:
        raise VersionNotFoundError(
            f"Unable to find desired version {selector} for secret {path}: "
            "no versions recorded",
            version=selector,
            path=path,
        )
    return select_version(versions, selector, path)
