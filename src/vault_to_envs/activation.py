"""Wait for freshly issued AWS credentials to become usable.

Credentials issued by Vault's AWS secrets engine are not recognised by AWS
straight away. The poller calls STS GetCallerIdentity with the new key pair
until it succeeds, backing off exponentially while AWS still answers
InvalidClientTokenId.
"""

import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import ActivationConfig, SecretRequest
from .exceptions import ActivationConfigError, ActivationError, ActivationTimeoutError
from .logging import get_logger, mask_identifier
from .retry_policy import AttemptOutcome, AttemptResult, RetryPolicy

logger = get_logger(__name__)

ACCESS_KEY_FIELD = "access_key"
SECRET_KEY_FIELD = "secret_key"
SECURITY_TOKEN_FIELD = "security_token"


@dataclass(frozen=True)
class CredentialKeys:
    """Output variable names holding each credential role."""

    access_key: str
    secret_key: str
    security_token: Optional[str] = None


def credential_keys(request: SecretRequest) -> CredentialKeys:
    """Find the output names mapped to the access and secret key fields.

    Raises:
        ActivationConfigError: If either role is not mapped
    """
    roles: Dict[str, str] = {}
    for name, store_key in request.mapping.items():
        if store_key in (ACCESS_KEY_FIELD, SECRET_KEY_FIELD, SECURITY_TOKEN_FIELD):
            roles.setdefault(store_key, name)

    for field in (ACCESS_KEY_FIELD, SECRET_KEY_FIELD):
        if field not in roles:
            raise ActivationConfigError(
                f"Vault key '{field}' for AWS credential provider {request.path} "
                "not assigned to ENV var",
                details={"path": request.path, "key": field},
            )

    return CredentialKeys(
        access_key=roles[ACCESS_KEY_FIELD],
        secret_key=roles[SECRET_KEY_FIELD],
        security_token=roles.get(SECURITY_TOKEN_FIELD),
    )


class StsIdentityVerifier:
    """Verify a key pair by calling STS GetCallerIdentity with it."""

    def __init__(
        self,
        region_name: Optional[str] = None,
        session_kwargs: Optional[Dict[str, Any]] = None,
        client_factory: Optional[Callable[..., Any]] = None,
    ):
        self.region_name = (
            region_name
            or os.getenv("AWS_REGION")
            or os.getenv("AWS_DEFAULT_REGION")
            or "us-east-1"
        )
        self.session_kwargs = session_kwargs or {}
        self._client_factory = client_factory or self._build_client

    def verify(
        self,
        access_key: str,
        secret_key: str,
        security_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Return the caller identity; raises botocore errors on failure."""
        client = self._client_factory(access_key, secret_key, security_token)
        return client.get_caller_identity()

    def _build_client(
        self, access_key: str, secret_key: str, security_token: Optional[str]
    ) -> Any:
        session = boto3.session.Session(
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            aws_session_token=security_token,
            region_name=self.region_name,
            **self.session_kwargs,
        )
        return session.client("sts")


class CredentialActivationPoller:
    """Poll identity verification until issued credentials are active."""

    def __init__(
        self,
        verifier: Optional[StsIdentityVerifier] = None,
        config: Optional[ActivationConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.verifier = verifier or StsIdentityVerifier()
        self.config = config or ActivationConfig()
        self.policy = RetryPolicy(self.config, sleep=sleep)

    def classify(self, error: Exception) -> AttemptResult:
        """Decide whether a verification failure is worth another attempt."""
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            if code in self.config.transient_error_codes:
                return AttemptResult.retry(error)
        return AttemptResult.fatal(error)

    def wait_for_activation(
        self, request: SecretRequest, values: Mapping[str, str]
    ) -> int:
        """Block until the request's credentials are recognised.

        Args:
            request: Request whose mapping names the credential roles
            values: Resolved output name -> value for the request

        Returns:
            Number of verification attempts made

        Raises:
            ActivationConfigError: If a credential role is not mapped or empty
            ActivationError: On a non-transient verification failure
            ActivationTimeoutError: If every attempt saw the transient failure
        """
        keys = credential_keys(request)
        access_key = values[keys.access_key]
        secret_key = values[keys.secret_key]
        security_token = (
            values.get(keys.security_token) if keys.security_token else None
        )
        for name, value in (
            (keys.access_key, access_key),
            (keys.secret_key, secret_key),
        ):
            if not value:
                raise ActivationConfigError(
                    f"ENV var {name} for AWS credential provider {request.path} "
                    "resolved to an empty value",
                    details={"path": request.path, "variable": name},
                )

        def attempt(number: int) -> AttemptResult:
            try:
                self.verifier.verify(access_key, secret_key, security_token)
            except (ClientError, BotoCoreError) as e:
                result = self.classify(e)
                if result.outcome is AttemptOutcome.RETRY:
                    logger.info(
                        "AWS credentials not yet active, waiting...",
                        extra={
                            "event_type": "activation_pending",
                            "vault_path": request.path,
                            "extra_data": {"attempt": number + 1},
                        },
                    )
                return result
            return AttemptResult.success()

        report = self.policy.run(attempt)

        if report.succeeded:
            logger.info(
                f"AWS credentials ({mask_identifier(access_key)}) from "
                f"{request.path} active",
                extra={
                    "event_type": "activation_complete",
                    "vault_path": request.path,
                    "extra_data": {"attempts": report.attempts},
                },
            )
            return report.attempts

        if report.exhausted:
            raise ActivationTimeoutError(
                f"Error validating AWS credentials from {request.path} (not active "
                f"within set duration): {report.result.error}",
                attempts=report.attempts,
                details={"path": request.path},
            )

        raise ActivationError(
            f"Error validating AWS credentials from {request.path}: "
            f"{report.result.error}",
            details={"path": request.path},
        ) from report.result.error
