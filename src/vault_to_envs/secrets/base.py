"""Base classes and result types shared by the secret store and engine."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional


class SecretStore(ABC):
    """Abstract secret store as seen by the resolution engine.

    Implementations return plain decoded JSON responses, or None where the
    store has nothing at the requested path.
    """

    @abstractmethod
    def list_mounts(self) -> Dict[str, Dict[str, Any]]:
        """Return mount path (with trailing slash) -> mount description."""
        pass

    @abstractmethod
    def read(
        self, path: str, version: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """Read the secret at a logical path, optionally at a version."""
        pass

    @abstractmethod
    def read_metadata(self, path: str) -> Optional[Dict[str, Any]]:
        """Read the metadata of a versioned secret at its metadata path."""
        pass

    @abstractmethod
    def renew_lease(self, lease_id: str, increment: int) -> Dict[str, Any]:
        """Renew a lease to the requested duration in seconds."""
        pass


@dataclass(frozen=True)
class ResolvedSecret:
    """Raw data and lease information for one fetched secret."""

    path: str
    data: Mapping[str, Any] = field(default_factory=dict)
    effective_version: Optional[int] = None
    lease_id: str = ""
    lease_duration: int = 0
    renewable: bool = False

    @classmethod
    def from_response(
        cls,
        path: str,
        response: Mapping[str, Any],
        data: Mapping[str, Any],
        effective_version: Optional[int] = None,
    ) -> "ResolvedSecret":
        return cls(
            path=path,
            data=dict(data),
            effective_version=effective_version,
            lease_id=response.get("lease_id") or "",
            lease_duration=int(response.get("lease_duration") or 0),
            renewable=bool(response.get("renewable", False)),
        )

    def with_lease(self, lease_id: str, lease_duration: int) -> "ResolvedSecret":
        return replace(self, lease_id=lease_id, lease_duration=lease_duration)


@dataclass(frozen=True)
class ResolvedValue:
    """Final output variable name and its string value."""

    name: str
    value: str
