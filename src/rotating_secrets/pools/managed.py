"""Managed pools: mutable pool configuration plus a named pool manager.

This is the push side. The pool has no provider hook of its own; instead its
configuration object carries the username/password, and rotation means
mutating that configuration and asking the manager to refresh the pool.

Refresh is graceful: ``Engine.dispose()`` closes connections sitting idle in
the pool and detaches checked-out ones, which keep working and are closed
when their holder releases them. The next checkout builds a connection from
the updated configuration.
"""

import logging
import threading
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from ..credentials.models import CredentialPair
from ..exceptions import PoolConfigurationError, PoolNotFoundError
from .engine import CredentialParams, default_credential_params

logger = logging.getLogger(__name__)


class PoolDataSource:
    """Live, mutable configuration of one managed pool.

    ``lock`` guards the credential fields; hold it when changing both so a
    connection never gets a new username with an old password.
    """

    def __init__(
        self,
        url: str,
        pool_name: str,
        user: str = "",
        password: str = "",
        engine_options: Optional[Dict[str, Any]] = None,
    ):
        self.url = url
        self.pool_name = pool_name
        self.engine_options = dict(engine_options or {})
        self.lock = threading.RLock()
        self._user = user
        self._password = password
        self._closed = False

    @property
    def user(self) -> str:
        return self._user

    @property
    def closed(self) -> bool:
        return self._closed

    def set_user(self, user: str) -> None:
        with self.lock:
            self._check_open()
            self._user = user

    def set_password(self, password: str) -> None:
        with self.lock:
            self._check_open()
            self._password = password

    def credentials(self) -> CredentialPair:
        """Consistent snapshot of the configured credentials."""
        with self.lock:
            return CredentialPair(username=self._user, password=self._password)

    def close(self) -> None:
        with self.lock:
            self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise PoolConfigurationError(f"Pool data source '{self.pool_name}' is closed")

    def __repr__(self) -> str:
        return f"PoolDataSource(pool_name={self.pool_name!r}, url={self.url!r}, user={self._user!r})"


class PoolManager:
    """Registry of named managed pools.

    Example:
        manager = get_pool_manager()
        data_source = PoolDataSource("postgresql+psycopg2://db/app", "demo-pool", "svc", "p1")
        engine = manager.create_pool(data_source)

        data_source.set_password("p2")
        manager.refresh_pool("demo-pool")
    """

    def __init__(self):
        self._pools: Dict[str, Engine] = {}
        self._data_sources: Dict[str, PoolDataSource] = {}
        self._refresh_counts: Dict[str, int] = {}
        self._lock = threading.RLock()

    def create_pool(
        self,
        data_source: PoolDataSource,
        credential_params: Optional[CredentialParams] = None,
    ) -> Engine:
        """Build and register an engine backed by ``data_source``.

        Raises:
            PoolConfigurationError: If a pool with the same name already exists
        """
        apply_credentials = credential_params or default_credential_params

        with self._lock:
            if data_source.pool_name in self._pools:
                raise PoolConfigurationError(
                    f"Pool '{data_source.pool_name}' already registered"
                )

            engine = create_engine(data_source.url, **data_source.engine_options)

            @event.listens_for(engine, "do_connect")
            def provide_credentials(dialect, conn_rec, cargs, cparams):
                """Read the current configuration for every new connection."""
                apply_credentials(cparams, data_source.credentials())

            self._pools[data_source.pool_name] = engine
            self._data_sources[data_source.pool_name] = data_source
            self._refresh_counts[data_source.pool_name] = 0

        logger.info(f"Created managed pool: {data_source.pool_name}")
        return engine

    def get_engine(self, pool_name: str) -> Engine:
        with self._lock:
            engine = self._pools.get(pool_name)
        if engine is None:
            raise PoolNotFoundError(pool_name)
        return engine

    def get_data_source(self, pool_name: str) -> PoolDataSource:
        with self._lock:
            data_source = self._data_sources.get(pool_name)
        if data_source is None:
            raise PoolNotFoundError(pool_name)
        return data_source

    def pool_names(self) -> list[str]:
        with self._lock:
            return list(self._pools)

    def refresh_count(self, pool_name: str) -> int:
        with self._lock:
            if pool_name not in self._refresh_counts:
                raise PoolNotFoundError(pool_name)
            return self._refresh_counts[pool_name]

    def refresh_pool(self, pool_name: str) -> None:
        """Gracefully replace the pool's connections.

        Raises:
            PoolNotFoundError: If no pool is registered under ``pool_name``
        """
        engine = self.get_engine(pool_name)
        engine.dispose()
        with self._lock:
            self._refresh_counts[pool_name] = self._refresh_counts.get(pool_name, 0) + 1
        logger.info(f"Refreshed managed pool: {pool_name}")

    def destroy_pool(self, pool_name: str) -> None:
        """Dispose the engine, close its data source and forget the name."""
        with self._lock:
            engine = self._pools.pop(pool_name, None)
            data_source = self._data_sources.pop(pool_name, None)
            self._refresh_counts.pop(pool_name, None)
        if engine is None:
            raise PoolNotFoundError(pool_name)
        engine.dispose()
        if data_source is not None:
            data_source.close()
        logger.info(f"Destroyed managed pool: {pool_name}")


_pool_manager: Optional[PoolManager] = None
_pool_manager_lock = threading.Lock()


def get_pool_manager() -> PoolManager:
    """Get or create the process-wide pool manager."""
    global _pool_manager
    if _pool_manager is None:
        with _pool_manager_lock:
            if _pool_manager is None:
                _pool_manager = PoolManager()
    return _pool_manager
