"""SQLAlchemy pool back ends for rotated credentials."""

from .engine import (PullCredentialsBinding, create_rotating_engine,
                     default_credential_params)
from .managed import PoolDataSource, PoolManager, get_pool_manager

__all__ = [
    "PullCredentialsBinding",
    "create_rotating_engine",
    "default_credential_params",
    "PoolDataSource",
    "PoolManager",
    "get_pool_manager",
]
