"""Database credential rotation for long-lived connection pools."""

from .credentials import (CredentialPair, FileCredentialsProvider,
                          PullEvictAdapter, PushRefreshAdapter,
                          RotationCoordinator, RotationRound,
                          SecretSourceReader)
from .exceptions import (CredentialRotationFailed, PoolConfigurationError,
                         PoolNotFoundError, RotatingSecretsError,
                         SecretUnavailable)
from .version import __version__

__all__ = [
    "__version__",
    "CredentialPair",
    "SecretSourceReader",
    "FileCredentialsProvider",
    "PullEvictAdapter",
    "PushRefreshAdapter",
    "RotationCoordinator",
    "RotationRound",
    "RotatingSecretsError",
    "SecretUnavailable",
    "CredentialRotationFailed",
    "PoolConfigurationError",
    "PoolNotFoundError",
]
