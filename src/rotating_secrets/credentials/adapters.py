"""Pool adapters: translate a credential rotation into a pool's native mechanism.

Two narrow capabilities are kept apart:

- CredentialUpdatable: what the rotation coordinator calls on every change.
- CredentialsProvider: what a pull-style pool integration calls whenever it
  opens a new physical connection.

Implementations:
- PullEvictAdapter: stores the pair for the pool to pull, then soft-evicts
  pooled connections so they are rebuilt with the new pair.
- PushRefreshAdapter: writes the pair into a pool's mutable configuration and
  asks the pool manager to refresh the pool by name.
"""

import logging
import threading
from typing import TYPE_CHECKING, Optional, Protocol

from ..exceptions import CredentialRotationFailed
from .models import CredentialPair

if TYPE_CHECKING:
    from ..pools.managed import PoolDataSource

logger = logging.getLogger(__name__)


class CredentialUpdatable(Protocol):
    """Anything that can accept a rotated credential pair."""

    def update(self, username: str, password: str) -> None:
        """
        Apply a new credential pair.

        Must return promptly: enqueue or trigger convergence, never wait for
        a full pool drain.
        """
        ...


class CredentialsProvider(Protocol):
    """Pull accessor consumed by a pool when it opens a connection."""

    def provide_credentials(self) -> CredentialPair:
        ...


class SoftEvictable(Protocol):
    """Pool handle able to retire idle connections without touching busy ones."""

    def soft_evict_connections(self) -> None:
        ...


class PoolRefresher(Protocol):
    """Pool manager able to gracefully rebuild a named pool."""

    def refresh_pool(self, pool_name: str) -> None:
        ...


class PullEvictAdapter:
    """Adapter for pools that pull credentials through a provider hook.

    Two-phase construction:
        adapter = PullEvictAdapter(initial_pair)
        engine, binding = create_rotating_engine(url, adapter)  # pool uses adapter
        adapter.bind_pool(binding)                              # done for you there

    Until a pool is bound, updates only swap the stored pair.
    """

    def __init__(self, credentials: CredentialPair, name: str = "pull-evict"):
        """Initialize adapter.

        Args:
            credentials: Initial pair, usually from SecretSourceReader.read_credentials()
            name: Label used in logs and coordinator status
        """
        self.name = name
        self._credentials = credentials
        self._pool: Optional[SoftEvictable] = None
        self._lock = threading.Lock()

    @property
    def pool(self) -> Optional[SoftEvictable]:
        return self._pool

    def bind_pool(self, pool: SoftEvictable) -> None:
        """Late-bind the pool handle used for soft eviction."""
        self._pool = pool
        logger.debug(f"Adapter '{self.name}' bound to pool {pool!r}")

    def provide_credentials(self) -> CredentialPair:
        """Return the current pair.

        Lock-free: the stored value is an immutable pair replaced by a single
        reference assignment, so readers see either the old or the new pair.
        """
        return self._credentials

    def update(self, username: str, password: str) -> None:
        """Swap in the new pair, then soft-evict pooled connections.

        Raises:
            CredentialRotationFailed: If the bound pool rejects the eviction.
                The new pair is already stored at that point.
        """
        new_credentials = CredentialPair(username=username, password=password)
        with self._lock:
            self._credentials = new_credentials
            pool = self._pool

        if pool is None:
            logger.debug(f"Adapter '{self.name}' has no pool bound; eviction skipped")
            return

        try:
            pool.soft_evict_connections()
        except Exception as e:
            raise CredentialRotationFailed(
                self.name,
                f"Failed to soft-evict connections for pool {self.name}",
                stage="evict",
            ) from e

        logger.info(f"Soft-evicted connections of pool '{self.name}' for user {username}")


class PushRefreshAdapter:
    """Adapter for pools configured by mutation plus an explicit refresh."""

    def __init__(
        self,
        data_source: "PoolDataSource",
        pool_manager: Optional[PoolRefresher] = None,
    ):
        """Initialize adapter.

        Args:
            data_source: Live pool configuration (lock, pool_name, set_user, set_password)
            pool_manager: Manager used to refresh the pool. Defaults to the
                process-wide PoolManager.
        """
        if pool_manager is None:
            from ..pools.managed import get_pool_manager

            pool_manager = get_pool_manager()

        self.data_source = data_source
        self.pool_manager = pool_manager

    @property
    def name(self) -> str:
        return self.data_source.pool_name

    def update(self, username: str, password: str) -> None:
        """Push the pair into the pool configuration and refresh the pool.

        Raises:
            CredentialRotationFailed: If the configuration cannot be changed or
                the refresh cannot be triggered. Not retried.
        """
        pool_name = self.data_source.pool_name

        try:
            with self.data_source.lock:
                self.data_source.set_user(username)
                self.data_source.set_password(password)
        except Exception as e:
            raise CredentialRotationFailed(
                pool_name,
                f"Failed to update credentials in pool data source {pool_name}",
                stage="configure",
            ) from e

        try:
            self.pool_manager.refresh_pool(pool_name)
        except Exception as e:
            raise CredentialRotationFailed(
                pool_name,
                f"Failed to refresh pool {pool_name}",
                stage="refresh",
            ) from e

        logger.info(f"Refreshed pool '{pool_name}' for user {username}")
