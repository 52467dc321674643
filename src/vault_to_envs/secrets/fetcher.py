"""Per-mount-type secret fetching."""

from typing import Any, List, Mapping

from ..config import SecretRequest
from ..exceptions import ConfigValidationError, FetchError
from ..logging import get_logger
from .base import ResolvedSecret, ResolvedValue, SecretStore
from .mounts import MountInfo
from .parsers import kv2_data_path, render_secret_value
from .versions import resolve_version

logger = get_logger(__name__)


class SecretFetcher:
    """Fetch the raw data for a secret request from its mount."""

    def __init__(self, store: SecretStore):
        self.store = store

    def fetch(self, request: SecretRequest, mount: MountInfo) -> ResolvedSecret:
        """Fetch one secret.

        Args:
            request: Configured secret request
            mount: Mount serving the request path

        Returns:
            ResolvedSecret with data and lease information

        Raises:
            ConfigValidationError: If a version is set on a non-versioned mount
            FetchError: If the secret or a requested key is missing
        """
        if mount.is_versioned:
            return self._fetch_versioned(request)
        return self._fetch_generic(request)

    def _fetch_versioned(self, request: SecretRequest) -> ResolvedSecret:
        version = resolve_version(self.store, request.path, request.version)
        data_path = kv2_data_path(request.path)

        logger.info(
            f"Fetching secret {request.path}: version {version}",
            extra={"event_type": "secret_fetch", "vault_path": request.path},
        )
        response = self.store.read(data_path, version=version)
        if not response:
            raise FetchError(
                f"Could not find secret {request.path}: version {request.version}",
                details={"path": request.path, "version": request.version},
            )

        payload = response.get("data")
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping):
            raise FetchError(
                f"No data found in secret {request.path}",
                details={"path": request.path, "version": version},
            )

        self._check_keys(request, data)
        return ResolvedSecret.from_response(
            request.path, response, data, effective_version=version
        )

    def _fetch_generic(self, request: SecretRequest) -> ResolvedSecret:
        if request.version != 0:
            raise ConfigValidationError(
                f"Version specified on non-versioned secret: {request.path}",
                details={"path": request.path, "version": request.version},
            )

        logger.info(
            f"Fetching secret: {request.path}",
            extra={"event_type": "secret_fetch", "vault_path": request.path},
        )
        response = self.store.read(request.path)
        if not response:
            raise FetchError(
                f"Could not find secret {request.path}",
                details={"path": request.path},
            )

        data = response.get("data")
        if not isinstance(data, Mapping):
            raise FetchError(
                f"No data found in secret {request.path}",
                details={"path": request.path},
            )
        self._check_keys(request, data)
        return ResolvedSecret.from_response(request.path, response, data)

    @staticmethod
    def _check_keys(request: SecretRequest, data: Mapping[str, Any]) -> None:
        for store_key in request.mapping.values():
            if data.get(store_key) is None:
                raise FetchError(
                    f"Key {store_key} not found in secret {request.path}",
                    details={"path": request.path, "key": store_key},
                )


def map_values(request: SecretRequest, secret: ResolvedSecret) -> List[ResolvedValue]:
    """Pair each output name with its rendered value, in mapping order."""
    return [
        ResolvedValue(name=name, value=render_secret_value(secret.data[store_key]))
        for name, store_key in request.mapping.items()
    ]
