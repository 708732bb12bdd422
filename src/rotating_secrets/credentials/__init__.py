"""Credential reading, change detection and pool adapters.

Keeps long-lived connection pools working while a secrets manager rotates the
database credentials mounted on disk.
"""

from .adapters import (CredentialsProvider, CredentialUpdatable, PoolRefresher,
                       PullEvictAdapter, PushRefreshAdapter, SoftEvictable)
from .coordinator import RotationCoordinator, RotationRound
from .models import CredentialPair
from .reader import (JDBC_URL, PASSWORD, USERNAME, FileCredentialsProvider,
                     SecretSourceReader)

__all__ = [
    # Values and sources
    "CredentialPair",
    "SecretSourceReader",
    "FileCredentialsProvider",
    "USERNAME",
    "PASSWORD",
    "JDBC_URL",
    # Adapters
    "CredentialUpdatable",
    "CredentialsProvider",
    "SoftEvictable",
    "PoolRefresher",
    "PullEvictAdapter",
    "PushRefreshAdapter",
    # Coordination
    "RotationCoordinator",
    "RotationRound",
]
