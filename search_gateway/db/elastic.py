"""Lifecycle of the shared Elasticsearch handle.

The backend is not guaranteed to be reachable when the process starts, so
the gateway serves requests immediately and fails them one by one until a
handle has been published. A single background thread keeps trying to
connect; request threads only ever read the current handle.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from elasticsearch import Elasticsearch

from search_gateway.core.config import Settings
from search_gateway.core.errors import NotConnectedError
from search_gateway.db.mapping import apply_mapping

logger = logging.getLogger(__name__)

HandleFactory = Callable[[], Elasticsearch]


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


def connect_elasticsearch(settings: Settings) -> Elasticsearch:
    """Build a client and verify the cluster answers before handing it out."""
    client = Elasticsearch(settings.elastic_url, request_timeout=settings.elastic_timeout)
    try:
        client.info()
        apply_mapping(client, settings.elastic_index)
    except Exception:
        client.close()
        raise
    return client


class ConnectionManager:
    def __init__(self, factory: HandleFactory, retry_delay: float = 3.0) -> None:
        self._factory = factory
        self._retry_delay = retry_delay
        self._handle: Optional[Elasticsearch] = None
        self._state = ConnectionState.DISCONNECTED
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def connect(self) -> bool:
        """Try once to connect; on failure hand over to the retry loop."""
        self._state = ConnectionState.CONNECTING
        try:
            handle = self._factory()
        except Exception as exc:
            logger.warning("elasticsearch connect failed: %s", exc)
            self._start_retry_loop()
            return False
        self._publish(handle)
        return True

    def get_handle(self) -> Elasticsearch:
        handle = self._handle
        if handle is None:
            raise NotConnectedError()
        return handle

    def close(self, timeout: float = 5.0) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        handle = self._handle
        self._handle = None
        self._state = ConnectionState.DISCONNECTED
        if handle is not None:
            handle.close()

    def _publish(self, handle: Elasticsearch) -> None:
        # Single reference swap; readers see the old handle or the new one.
        self._handle = handle
        self._state = ConnectionState.CONNECTED
        logger.info("elasticsearch handle published")

    def _start_retry_loop(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._retry_loop, name="elasticsearch-reconnect", daemon=True
        )
        self._thread.start()

    def _retry_loop(self) -> None:
        attempt = 0
        while not self._stop.wait(self._retry_delay):
            attempt += 1
            try:
                handle = self._factory()
            except Exception as exc:
                logger.warning("elasticsearch reconnect attempt %d failed: %s", attempt, exc)
                continue
            if self._stop.is_set():
                handle.close()
                return
            self._publish(handle)
            return
