"""Mount classification: which secret engine serves a secret path."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from ..exceptions import ClassificationError
from .parsers import split_mount_path

KV_MOUNT_TYPE = "kv"
AWS_MOUNT_TYPE = "aws"


@dataclass(frozen=True)
class MountInfo:
    """Engine type declared by the store for one mount path."""

    path: str
    type: str
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_versioned(self) -> bool:
        """True for KV v2 mounts; a KV mount explicitly at version 1 is not."""
        if self.type != KV_MOUNT_TYPE:
            return False
        return str(self.options.get("version", "2")) != "1"

    @property
    def issues_cloud_credentials(self) -> bool:
        return self.type == AWS_MOUNT_TYPE


class MountTable:
    """Pass-scoped cache of the store's mounts, read-only once built."""

    def __init__(self, mounts: Mapping[str, MountInfo]):
        self._mounts: Dict[str, MountInfo] = dict(mounts)

    @classmethod
    def from_listing(cls, listing: Mapping[str, Any]) -> "MountTable":
        """Build the table from a store mount listing.

        Args:
            listing: Mount path -> description with at least a 'type' key

        Returns:
            MountTable keyed by mount path with trailing slash
        """
        mounts: Dict[str, MountInfo] = {}
        for mount_path, description in listing.items():
            if not isinstance(description, Mapping) or "type" not in description:
                continue
            key = mount_path if mount_path.endswith("/") else mount_path + "/"
            mounts[key] = MountInfo(
                path=key,
                type=str(description["type"]),
                options=dict(description.get("options") or {}),
            )
        return cls(mounts)

    def __len__(self) -> int:
        return len(self._mounts)

    def classify(self, path: str) -> MountInfo:
        """Return the mount serving the top-level segment of a secret path.

        Raises:
            ClassificationError: If no mount is declared for the prefix
        """
        mount, _ = split_mount_path(path)
        prefix = mount + "/"
        try:
            return self._mounts[prefix]
        except KeyError:
            raise ClassificationError(
                f"No secret engine mounted at '{prefix}' for secret {path}",
                details={"path": path, "mount": prefix},
            ) from None
