"""
Process-wide registry of realtime connections.

The transport layer (websocket server) registers a connection object per
user when a socket opens and removes it when the socket closes. Everything
else only uses `push_if_connected`, which is at-most-once and best-effort:
no acknowledgement, no retry, absent users are skipped silently.

A connection is any object with a ``send(text)`` method.
"""

import json
import logging
from threading import Lock
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    def __init__(self) -> None:
        self._connections: Dict[str, Any] = {}
        self._lock = Lock()

    @staticmethod
    def _key(user_id: Any) -> str:
        return str(user_id)

    def register(self, user_id: Any, connection: Any) -> None:
        with self._lock:
            self._connections[self._key(user_id)] = connection

    def unregister(self, user_id: Any, connection: Any = None) -> None:
        """Remove the user's connection; if ``connection`` is given only when it is the current one."""
        key = self._key(user_id)
        with self._lock:
            current = self._connections.get(key)
            if current is not None and (connection is None or current is connection):
                del self._connections[key]

    def get(self, user_id: Any) -> Optional[Any]:
        with self._lock:
            return self._connections.get(self._key(user_id))

    def is_connected(self, user_id: Any) -> bool:
        return self.get(user_id) is not None

    def push_if_connected(self, user_id: Any, event: Dict[str, Any]) -> bool:
        """
        Send ``event`` as JSON to the user's connection if there is one.

        Returns True if the event was handed to a connection. Errors raised
        by the connection propagate to the caller.
        """
        connection = self.get(user_id)
        if connection is None:
            logger.debug("No realtime connection for user %s; skipping %s", user_id, event.get("type"))
            return False
        connection.send(json.dumps(event))
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)


connection_registry = ConnectionRegistry()
