"""Credential rotation coordinator.

Owns the last successfully read credential pair, polls the secret source on a
fixed delay, and fans a detected change out to every registered adapter in
registration order.

Limitation: adapter calls are not wrapped in a timeout. A hanging adapter
stalls the remaining adapters of that round and delays the next tick.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..config import get_refresh_interval_seconds
from ..exceptions import SecretUnavailable
from .adapters import CredentialUpdatable
from .models import CredentialPair
from .reader import PASSWORD, USERNAME, SecretSourceReader

logger = logging.getLogger(__name__)


def _adapter_name(adapter: CredentialUpdatable) -> str:
    return getattr(adapter, "name", None) or type(adapter).__name__


@dataclass
class RotationRound:
    """Outcome of one notification round."""

    credentials: CredentialPair
    notified: list[str] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def to_dict(self) -> dict:
        """Convert to API-safe dictionary (no password)."""
        return {
            "changed": True,
            "username": self.credentials.username,
            "notified": list(self.notified),
            "failures": {name: str(exc) for name, exc in self.failures.items()},
        }


class RotationCoordinator:
    """Periodic check-and-notify loop for rotated database credentials.

    Example:
        reader = SecretSourceReader("/var/run/secrets/database")
        coordinator = RotationCoordinator(reader)
        coordinator.register(pull_adapter)
        coordinator.register(push_adapter)
        coordinator.start()
    """

    def __init__(self, reader: Optional[SecretSourceReader] = None):
        """Initialize coordinator.

        Args:
            reader: Secret source to poll. Defaults to the configured path.
        """
        self.reader = reader or SecretSourceReader()
        self._adapters: list[CredentialUpdatable] = []
        self._credentials: Optional[CredentialPair] = None
        self._tick_lock = threading.Lock()

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._interval: Optional[float] = None

        self.rotation_count = 0
        self.last_checked_at: Optional[datetime] = None
        self.last_rotated_at: Optional[datetime] = None
        self.last_unavailable: Optional[str] = None
        self.last_round: Optional[RotationRound] = None

    @property
    def credentials(self) -> Optional[CredentialPair]:
        """Last successfully read pair, or None before the first tick."""
        return self._credentials

    @property
    def adapters(self) -> tuple:
        return tuple(self._adapters)

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def register(self, adapter: CredentialUpdatable) -> None:
        """Append an adapter to the notification list.

        Raises:
            RuntimeError: If the periodic timer is already running
        """
        if self.is_running:
            raise RuntimeError("Adapters must be registered before the coordinator is started")
        self._adapters.append(adapter)
        logger.info(f"Registered credential adapter: {_adapter_name(adapter)}")

    def tick(self) -> Optional[RotationRound]:
        """Run one rotation check.

        Returns:
            The notification round when the credentials changed, None when they
            did not change or the secret files were unavailable.
        """
        with self._tick_lock:
            self.last_checked_at = datetime.now(timezone.utc)

            try:
                username = self.reader.read(USERNAME)
                password = self.reader.read(PASSWORD)
            except SecretUnavailable as e:
                self.last_unavailable = str(e)
                logger.info(f"Skipping credential check: {e}")
                return None

            self.last_unavailable = None
            candidate = CredentialPair(username=username, password=password)
            if candidate == self._credentials:
                return None

            self._credentials = candidate
            self.rotation_count += 1
            self.last_rotated_at = self.last_checked_at
            logger.info(
                f"Credential change detected for user {candidate.username} "
                f"(rotation #{self.rotation_count}); notifying {len(self._adapters)} adapter(s)"
            )

            rotation = self._notify(candidate)
            self.last_round = rotation
            return rotation

    def _notify(self, credentials: CredentialPair) -> RotationRound:
        rotation = RotationRound(credentials=credentials)
        for adapter in self._adapters:
            name = _adapter_name(adapter)
            try:
                adapter.update(credentials.username, credentials.password)
            except Exception as e:
                # Isolated per adapter: the rest of the round still runs.
                logger.error(f"Credential update failed for adapter {name}: {e}", exc_info=True)
                rotation.failures[name] = e
            else:
                rotation.notified.append(name)
        return rotation

    def start(self, interval_ms: Optional[int] = None) -> None:
        """Arm the periodic timer on a daemon thread.

        Args:
            interval_ms: Delay between the end of one tick and the start of the
                next. Defaults to K8S_SECRETS_REFRESH_INTERVAL_MS.

        Raises:
            RuntimeError: If a previous timer thread was asked to stop but is
                still finishing its tick
        """
        if self.is_running:
            if self._stop_event.is_set():
                raise RuntimeError("Previous credential rotation thread has not exited yet")
            return
        if interval_ms is not None and interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        self._interval = (
            interval_ms / 1000.0 if interval_ms is not None else get_refresh_interval_seconds()
        )
        # One event per run so a stopped thread can never be revived.
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop_event, self._interval),
            name="credential-rotation",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Credential rotation started (interval={self._interval}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the periodic timer and wait for the current tick to finish.

        If the thread is still inside a tick when ``timeout`` expires it is kept
        as the current thread, and start() refuses to arm a second one until it
        has exited.
        """
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("Credential rotation thread still busy after stop timeout")
            return
        self._thread = None
        logger.info("Credential rotation stopped")

    def _run(self, stop_event: threading.Event, interval: float) -> None:
        while not stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("Unexpected error during credential rotation check")
            stop_event.wait(interval)

    def get_status(self) -> dict:
        """Non-secret status report for health endpoints and the CLI."""
        last_round = self.last_round
        return {
            "running": self.is_running,
            "interval_seconds": self._interval,
            "adapters": [_adapter_name(a) for a in self._adapters],
            "username": self._credentials.username if self._credentials else None,
            "rotation_count": self.rotation_count,
            "last_checked_at": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "last_rotated_at": self.last_rotated_at.isoformat() if self.last_rotated_at else None,
            "last_unavailable": self.last_unavailable,
            "last_failures": (
                {name: str(exc) for name, exc in last_round.failures.items()} if last_round else {}
            ),
            "overall_status": (
                "degraded"
                if (last_round and last_round.failures) or self.last_unavailable
                else "healthy"
            ),
        }
