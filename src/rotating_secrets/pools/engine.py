"""SQLAlchemy binding for pull-style credential providers.

Each new physical connection asks the provider for the current pair through
the engine's ``do_connect`` event. Soft eviction is an epoch counter: every
connection remembers the epoch it was opened in, and a connection from an
older epoch is closed at the first pool boundary it crosses after rotation.
Connections checked out at rotation time keep working and are closed when
returned (``checkin``). Connections idle in the pool at rotation time are
closed on their next checkout, where the pool replaces them transparently;
they are never swept from the pool while idle.
"""

import logging
import threading
from typing import Any, Callable, Optional

from sqlalchemy import create_engine, event, exc
from sqlalchemy.engine import Engine

from ..credentials.adapters import CredentialsProvider, PullEvictAdapter
from ..credentials.models import CredentialPair

logger = logging.getLogger(__name__)

CredentialParams = Callable[[dict, CredentialPair], None]

_EPOCH_KEY = "credential_epoch"


def default_credential_params(cparams: dict, credentials: CredentialPair) -> None:
    """Write credentials as DBAPI ``user``/``password`` keyword arguments."""
    cparams["user"] = credentials.username
    cparams["password"] = credentials.password


class PullCredentialsBinding:
    """Attach a CredentialsProvider to an Engine and expose soft eviction."""

    def __init__(
        self,
        engine: Engine,
        provider: CredentialsProvider,
        credential_params: Optional[CredentialParams] = None,
    ):
        """
        Initialize binding and register engine/pool listeners.

        Args:
            engine: SQLAlchemy engine whose pool should use the provider
            provider: Source of credentials for each new physical connection
            credential_params: Callable writing the pair into the DBAPI connect
                kwargs. Defaults to ``user``/``password``.
        """
        self.engine = engine
        self.provider = provider
        self.credential_params = credential_params or default_credential_params
        self.evicted_count = 0
        self._epoch = 0
        self._lock = threading.Lock()

        event.listen(engine, "do_connect", self._on_do_connect)
        event.listen(engine, "checkout", self._on_checkout)
        event.listen(engine, "checkin", self._on_checkin)

    @property
    def epoch(self) -> int:
        return self._epoch

    def _on_do_connect(self, dialect: Any, conn_rec: Any, cargs: list, cparams: dict) -> None:
        # Epoch is read before the credentials: a connection opened during a
        # rotation may be evicted needlessly, but never kept with a stale pair.
        epoch = self._epoch
        credentials = self.provider.provide_credentials()
        self.credential_params(cparams, credentials)
        if conn_rec is not None:
            conn_rec.info[_EPOCH_KEY] = epoch

    def _on_checkout(self, dbapi_connection: Any, connection_record: Any, connection_proxy: Any) -> None:
        opened_in = connection_record.info.get(_EPOCH_KEY, self._epoch)
        if opened_in < self._epoch:
            with self._lock:
                self.evicted_count += 1
            logger.debug("Discarding pooled connection opened before credential rotation")
            # The pool invalidates this connection and retries with a fresh one.
            raise exc.DisconnectionError("Connection credentials rotated")

    def _on_checkin(self, dbapi_connection: Any, connection_record: Any) -> None:
        if dbapi_connection is None:
            return
        opened_in = connection_record.info.get(_EPOCH_KEY, self._epoch)
        if opened_in < self._epoch:
            with self._lock:
                self.evicted_count += 1
            logger.debug("Closing returned connection opened before credential rotation")
            connection_record.invalidate()

    def soft_evict_connections(self) -> None:
        """Mark every currently open connection for replacement."""
        with self._lock:
            self._epoch += 1
            epoch = self._epoch
        logger.info(f"Soft eviction requested for engine {self.engine.url!r} (epoch {epoch})")

    def __repr__(self) -> str:
        return f"PullCredentialsBinding(engine={self.engine.url!r}, epoch={self._epoch})"


def create_rotating_engine(
    url: Optional[str],
    provider: CredentialsProvider,
    credential_params: Optional[CredentialParams] = None,
    **engine_kwargs: Any,
) -> tuple[Engine, PullCredentialsBinding]:
    """Build an engine that pulls credentials from ``provider``.

    Explicit two-phase construction: the provider exists first, the engine is
    built around it, then the binding is handed back to the provider when it is
    a PullEvictAdapter so later rotations can soft-evict.

    Args:
        url: Database URL. When None, it is taken from the provider's
            ``connection_url()``, e.g. the mounted ``jdbc-url`` file of a
            FileCredentialsProvider.
        provider: Source of credentials for each new physical connection
        credential_params: See PullCredentialsBinding

    Returns:
        (engine, binding)

    Raises:
        ValueError: If url is None and the provider has no connection_url()
    """
    if url is None:
        connection_url = getattr(provider, "connection_url", None)
        if connection_url is None:
            raise ValueError(
                f"No database URL given and {type(provider).__name__} has no connection_url()"
            )
        url = connection_url()
        logger.info("Using connection URL from credentials provider")
    engine = create_engine(url, **engine_kwargs)
    binding = PullCredentialsBinding(engine, provider, credential_params=credential_params)
    if isinstance(provider, PullEvictAdapter):
        provider.bind_pool(binding)
    return engine, binding
