"""Custom exceptions for the rotating-secrets package."""

from pathlib import Path
from typing import Optional, Union


class RotatingSecretsError(Exception):
    """Base exception for all rotating-secrets errors."""

    pass


class SecretUnavailable(RotatingSecretsError):
    """Raised when a mounted secret file is missing or cannot be read."""

    def __init__(self, name: str, path: Union[str, Path], reason: Optional[str] = None):
        """
        Initialize secret unavailable error.

        Args:
            name: Logical secret name (username, password, jdbc-url)
            path: Filesystem path that was read
            reason: Optional short description of the underlying failure
        """
        message = f"Secret '{name}' unavailable at {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.name = name
        self.path = Path(path)
        self.reason = reason


class CredentialRotationFailed(RotatingSecretsError):
    """Raised when a pool adapter cannot apply a new credential pair."""

    def __init__(self, pool_name: str, message: str, stage: Optional[str] = None):
        """
        Initialize credential rotation error.

        Args:
            pool_name: Logical name of the pool that failed to converge
            message: Error message
            stage: Optional step that failed ("configure", "refresh", "evict")
        """
        super().__init__(message)
        self.pool_name = pool_name
        self.stage = stage


class PoolConfigurationError(RotatingSecretsError):
    """Raised when a managed pool configuration cannot be changed."""

    pass


class PoolNotFoundError(RotatingSecretsError):
    """Raised when a pool manager is asked about an unknown pool name."""

    def __init__(self, pool_name: str):
        super().__init__(f"No pool registered under name '{pool_name}'")
        self.pool_name = pool_name
