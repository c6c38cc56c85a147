"""
Connection lifecycle management for storage backends.

Each storage adapter owns exactly one ConnectionManager, which lazily
creates and caches the adapter's shared handle (an SQLite database object
or a MongoDB client). The handle is created at most once per successful
connect and reused by every request for the lifetime of the process.

State machine:

    DISCONNECTED ──get()──▶ CONNECTING ──ok──▶ CONNECTED
          ▲                      │
          └──────── failure ─────┘

A CONNECTED manager never reconnects on its own. After a failed connect the
manager is DISCONNECTED again and the *next* caller retries; there is no
background health check, retry loop or backoff.
"""
import enum
import logging
import threading
from typing import Callable, Generic, Optional, TypeVar

from core.exceptions import ConnectionUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConnectionState(str, enum.Enum):
    """Lifecycle state of a storage handle."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionManager(Generic[T]):
    """
    Lazily established, shared storage handle.

    Usage:
        manager = ConnectionManager("relational", connect=lambda: SqliteDatabase(path))
        db = manager.get()   # connects on first call, cached afterwards
    """

    def __init__(
        self,
        backend: str,
        connect: Callable[[], T],
        close: Optional[Callable[[T], None]] = None,
    ):
        """
        Args:
            backend: Backend name used in logs and error messages.
            connect: Factory that opens the handle and verifies it is usable.
                Any exception it raises is surfaced as ConnectionUnavailableError.
            close: Optional callable that releases the handle.
        """
        self.backend = backend
        self._connect = connect
        self._close = close
        self._handle: Optional[T] = None
        self._state = ConnectionState.DISCONNECTED
        # Sync endpoints run in a threadpool; serialize connection setup
        self._lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    def get(self) -> T:
        """
        Return the shared handle, connecting first if necessary.

        Raises:
            ConnectionUnavailableError: If connecting fails. The manager is
                left DISCONNECTED so a later call can try again.
        """
        if self._state is ConnectionState.CONNECTED:
            return self._handle

        with self._lock:
            # Another thread may have connected while we waited
            if self._state is ConnectionState.CONNECTED:
                return self._handle

            self._state = ConnectionState.CONNECTING
            logger.info("Connecting to storage backend", extra={"backend": self.backend})
            try:
                handle = self._connect()
            except ConnectionUnavailableError:
                self._state = ConnectionState.DISCONNECTED
                raise
            except Exception as exc:
                self._state = ConnectionState.DISCONNECTED
                logger.error(
                    "Storage connection failed",
                    extra={"backend": self.backend, "error": str(exc)}
                )
                raise ConnectionUnavailableError(backend=self.backend) from exc

            self._handle = handle
            self._state = ConnectionState.CONNECTED
            logger.info("Storage connection established", extra={"backend": self.backend})
            return handle

    def close(self) -> None:
        """Release the handle (application shutdown only)."""
        with self._lock:
            handle, self._handle = self._handle, None
            self._state = ConnectionState.DISCONNECTED
        if handle is not None and self._close is not None:
            self._close(handle)
            logger.info("Storage connection closed", extra={"backend": self.backend})
