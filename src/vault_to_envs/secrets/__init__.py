"""Secret store access and the per-secret resolution steps.

This package holds everything that talks to the secret store for a single
secret request:
- Mount classification (which engine serves a path)
- Version selection for versioned key-value mounts
- Fetching raw secret data
- Lease validation and TTL renewal
"""

from .base import ResolvedSecret, ResolvedValue, SecretStore
from .fetcher import SecretFetcher, map_values
from .lease import LEASE_TOLERANCE_SECONDS, LeaseManager
from .mounts import MountInfo, MountTable
from .vault import HashicorpVaultSecretStore
from .versions import resolve_version, select_version

__all__ = [
    "HashicorpVaultSecretStore",
    "LEASE_TOLERANCE_SECONDS",
    "LeaseManager",
    "MountInfo",
    "MountTable",
    "ResolvedSecret",
    "ResolvedValue",
    "SecretFetcher",
    "SecretStore",
    "map_values",
    "resolve_version",
    "select_version",
]
