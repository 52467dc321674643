"""Standardized error hierarchy for vault-to-envs.

Every failure while resolving secrets is fatal to the whole run. The
hierarchy exists so callers can tell configuration mistakes apart from
store failures, lease problems, and credential activation problems, and so
the command line can report a single descriptive message.
"""

from typing import Any, Dict, Optional


class VaultToEnvsError(Exception):
    """Base exception for all vault-to-envs errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize error.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code (e.g., "FETCH_FAILED")
            details: Additional error details (path, key, version, ...)
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__.upper()
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for serialization.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return self.message


class ConfigurationError(VaultToEnvsError):
    """Invalid run or secret configuration."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIGURATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ConfigValidationError(ConfigurationError):
    """A secret request is malformed.

    Raised for a bad output variable name, an empty path, an empty mapping,
    or a version selector on a non-versioned mount.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "CONFIG_VALIDATION_FAILED",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ClassificationError(VaultToEnvsError):
    """The secret path does not belong to any mount known to the store."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_MOUNT",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class FetchError(VaultToEnvsError):
    """Secret could not be read: missing secret, missing key, or store failure."""

    def __init__(
        self,
        message: str,
        error_code: str = "FETCH_FAILED",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class VersionNotFoundError(FetchError):
    """No live version matches a negative version selector."""

    def __init__(
        self,
        message: str,
        version: Optional[int] = None,
        path: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if details is None:
            details = {}
        if version is not None:
            details["version"] = version
        if path:
            details["path"] = path
        super().__init__(message, error_code="VERSION_NOT_FOUND", details=details)


class LeaseError(VaultToEnvsError):
    """A TTL was requested on a secret whose lease cannot honour it."""

    def __init__(
        self,
        message: str,
        error_code: str = "LEASE_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class LeaseToleranceError(LeaseError):
    """Lease renewal succeeded but granted a duration outside the tolerance."""

    def __init__(
        self,
        message: str,
        desired: Optional[int] = None,
        actual: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if details is None:
            details = {}
        if desired is not None:
            details["desired"] = desired
        if actual is not None:
            details["actual"] = actual
        super().__init__(
            message, error_code="LEASE_TOLERANCE_EXCEEDED", details=details
        )


class ActivationConfigError(ConfigurationError):
    """Cloud credential request does not map both access and secret key."""

    def __init__(
        self,
        message: str,
        error_code: str = "ACTIVATION_CONFIG_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ActivationError(VaultToEnvsError):
    """Issued cloud credentials failed identity verification."""

    def __init__(
        self,
        message: str,
        error_code: str = "ACTIVATION_FAILED",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code, details)


class ActivationTimeoutError(ActivationError):
    """Credentials were still not recognised after every polling attempt."""

    def __init__(
        self,
        message: str,
        attempts: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        if details is None:
            details = {}
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(message, error_code="ACTIVATION_TIMEOUT", details=details)


def wrap_exception(
    error: Exception,
    error_class: type = VaultToEnvsError,
    message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> VaultToEnvsError:
    """Wrap a client library exception in a vault-to-envs error.

    Args:
        error: Original exception
        error_class: Error class to wrap with
        message: Optional custom message
        details: Extra details merged with the original error's type and text

    Returns:
        Wrapped error
    """
    if isinstance(error, VaultToEnvsError):
        return error

    error_message = message or str(error)
    return error_class(
        message=error_message,
        details={
            **(details or {}),
            "original_error": type(error).__name__,
            "original_message": str(error),
        },
    )
