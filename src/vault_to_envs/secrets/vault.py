"""HashiCorp Vault secret store."""

import os
from typing import Any, Callable, Dict, Optional

import hvac
import requests
from hvac.exceptions import InvalidPath, VaultError

from ..exceptions import ConfigurationError, FetchError, LeaseError, wrap_exception
from ..logging import get_logger
from .base import SecretStore

logger = get_logger(__name__)


class HashicorpVaultSecretStore(SecretStore):
    """Read secrets, metadata, and mounts from Vault and renew leases."""

    def __init__(
        self,
        address: Optional[str] = None,
        namespace: Optional[str] = None,
        auth_method: str = "token",
        token: Optional[str] = None,
        role_id: Optional[str] = None,
        secret_id: Optional[str] = None,
        verify: bool = True,
        timeout: float = 30,
        client_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.address = address or os.getenv("VAULT_ADDR")
        if not self.address:
            raise ConfigurationError(
                "Vault address is required (set 'address' or VAULT_ADDR)."
            )
        self.namespace = namespace or os.getenv("VAULT_NAMESPACE")
        self.auth_method = auth_method
        self.token = token or os.getenv("VAULT_TOKEN")
        self.role_id = role_id or os.getenv("VAULT_ROLE_ID")
        self.secret_id = secret_id or os.getenv("VAULT_SECRET_ID")
        self.verify = verify
        self.timeout = timeout
        self._client_factory = client_factory or self._build_client
        self._client: Optional[Any] = None

    @property
    def client(self) -> Any:
        """Vault client, built and authenticated on first use."""
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def list_mounts(self) -> Dict[str, Dict[str, Any]]:
        try:
            response = self.client.sys.list_mounted_secrets_engines()
        except (VaultError, requests.RequestException) as e:
            raise wrap_exception(e, FetchError, f"Error fetching mounts: {e}") from e

        mounts = response.get("data") if isinstance(response, dict) else None
        if not mounts:
            # Older servers return the mounts at the top level of the response
            mounts = {
                k: v for k, v in (response or {}).items() if k.endswith("/")
            }
        return dict(mounts)

    def read(
        self, path: str, version: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        try:
            if version is None:
                return self.client.read(path)
            return self.client.adapter.get(
                f"/v1/{path.lstrip('/')}", params={"version": version}
            )
        except InvalidPath:
            return None
        except (VaultError, requests.RequestException) as e:
            raise wrap_exception(
                e, FetchError, f"Error fetching secret {path}: {e}", {"path": path}
            ) from e

    def read_metadata(self, path: str) -> Optional[Dict[str, Any]]:
        return self.read(path)

    def renew_lease(self, lease_id: str, increment: int) -> Dict[str, Any]:
        try:
            return self.client.sys.renew_lease(lease_id=lease_id, increment=increment)
        except (VaultError, requests.RequestException) as e:
            raise wrap_exception(
                e,
                LeaseError,
                f"Error renewing secret (setting TTL): {e}",
                {"lease_id": lease_id, "increment": increment},
            ) from e

    def _build_client(self) -> Any:
        """Build and authenticate Vault client.

        Returns:
            Authenticated Vault client

        Raises:
            ConfigurationError: If credentials are missing or authentication fails
        """
        client = hvac.Client(
            url=self.address,
            namespace=self.namespace,
            verify=self.verify,
            timeout=self.timeout,
        )

        if self.auth_method == "token":
            if not self.token:
                raise ConfigurationError(
                    "Vault token is required for token authentication."
                )
            client.token = self.token
        elif self.auth_method == "approle":
            if not self.role_id or not self.secret_id:
                raise ConfigurationError(
                    "role_id and secret_id are required for approle auth."
                )
            client.auth.approle.login(role_id=self.role_id, secret_id=self.secret_id)
        else:
            raise ConfigurationError(
                f"Unsupported Vault auth_method: {self.auth_method}"
            )

        logger.debug(
            f"Vault client configured for {self.address}",
            extra={
                "event_type": "vault_client",
                "extra_data": {"auth": self.auth_method},
            },
        )
        return client
