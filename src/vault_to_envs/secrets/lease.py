"""Lease validation and TTL renewal."""

from ..config import SecretRequest
from ..exceptions import LeaseError, LeaseToleranceError
from ..logging import get_logger
from .base import ResolvedSecret, SecretStore

logger = get_logger(__name__)

# Allowed drift between requested and granted lease duration (seconds)
LEASE_TOLERANCE_SECONDS = 5


class LeaseManager:
    """Apply the requested TTL to a fetched secret's lease."""

    def __init__(
        self, store: SecretStore, tolerance_seconds: int = LEASE_TOLERANCE_SECONDS
    ):
        self.store = store
        self.tolerance_seconds = tolerance_seconds

    def apply(self, request: SecretRequest, secret: ResolvedSecret) -> ResolvedSecret:
        """Validate and optionally renew the lease of a fetched secret.

        Args:
            request: Secret request carrying the desired TTL
            secret: Fetched secret with its lease information

        Returns:
            The secret, with renewed lease information if a renewal happened

        Raises:
            LeaseError: If a TTL is requested on a non-renewable secret
            LeaseToleranceError: If the granted duration is outside tolerance
        """
        if request.ttl != 0 and not secret.renewable:
            raise LeaseError(
                f"Cannot set TTL on secret {request.path}. TTL can only be set on "
                "dynamic/renewable secrets like AWS credentials",
                details={"path": request.path, "ttl": request.ttl},
            )

        if request.ttl == 0:
            if secret.renewable:
                logger.info(
                    f"Lease for {request.path}: {secret.lease_id}; "
                    f"Duration: {secret.lease_duration}",
                    extra={"event_type": "lease_info", "vault_path": request.path},
                )
            return secret

        logger.info(
            f"Renewing lease on {request.path} to {request.ttl} seconds",
            extra={
                "event_type": "lease_renew",
                "vault_path": request.path,
                "extra_data": {
                    "lease_id": secret.lease_id,
                    "lease_duration": secret.lease_duration,
                },
            },
        )
        renewed = self.store.renew_lease(secret.lease_id, request.ttl) or {}
        granted = int(renewed.get("lease_duration") or 0)
        lease_id = renewed.get("lease_id") or secret.lease_id
        logger.info(
            f"New Lease Info {lease_id}, {granted}",
            extra={"event_type": "lease_renewed", "vault_path": request.path},
        )

        if abs(request.ttl - granted) > self.tolerance_seconds:
            raise LeaseToleranceError(
                f"Not able to set TTL to desired amount on {request.path}. "
                f"Desired: {request.ttl}; Actual: {granted}",
                desired=request.ttl,
                actual=granted,
                details={"path": request.path},
            )

        return secret.with_lease(lease_id, granted)
