# harvestchain/mongo.py
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, List, Optional

from flask import current_app
from flask_pymongo import PyMongo
from pymongo import monitoring
from pymongo.errors import PyMongoError

from harvestchain.errors import ConfigurationError, StoreUnavailableError

log = logging.getLogger(__name__)

EXTENSION_KEY = "harvestchain"


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class _TopologyLogger(monitoring.TopologyListener):
    """Reports driver-level topology changes (server up/down) to the log."""

    def opened(self, event):
        log.info("Mongo topology opened (%s)", event.topology_id)

    def description_changed(self, event):
        new = event.new_description
        if new.has_readable_server():
            log.debug("Mongo topology changed: %s", new.topology_type_name)
        else:
            log.warning("Mongo topology has no readable server (%s)", new.topology_type_name)

    def closed(self, event):
        log.info("Mongo topology closed (%s)", event.topology_id)


class MongoStore:
    """
    Explicit handle around the one shared Mongo client.

    `state` is the single source of truth for connectivity. Services never
    look at it; they receive `store.db` from the request layer.
    """

    def __init__(self, app=None, client_factory: Optional[Callable] = None):
        self.app = None
        self.state = ConnectionState.DISCONNECTED
        self.cx = None
        self.db = None
        self.last_error: Optional[str] = None
        self._client_factory = client_factory
        self._pymongo = PyMongo()
        self._hooks: List[Callable] = []
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions[EXTENSION_KEY] = self

    def on_connect(self, hook: Callable):
        self._hooks.append(hook)
        return hook

    # -------------------------
    # Lifecycle
    # -------------------------
    def _set_state(self, state: ConnectionState):
        if state is not self.state:
            log.info("Mongo state: %s -> %s", self.state.value, state.value)
        self.state = state

    def _options(self) -> dict:
        cfg = self.app.config
        return {
            "maxPoolSize": cfg["MONGO_MAX_POOL_SIZE"],
            "serverSelectionTimeoutMS": cfg["MONGO_SERVER_SELECTION_TIMEOUT_MS"],
            "socketTimeoutMS": cfg["MONGO_SOCKET_TIMEOUT_MS"],
        }

    def _open_client(self, uri: str):
        options = self._options()
        if self._client_factory is not None:
            return self._client_factory(uri, **options)
        self._pymongo.init_app(self.app, uri, event_listeners=[_TopologyLogger()], **options)
        return self._pymongo.cx

    def connect(self):
        """Open the pooled client. No-op when already connected."""
        with self._lock:
            if self.state is ConnectionState.CONNECTED:
                log.debug("Mongo already connected")
                return self.db

            uri = (self.app.config.get("MONGO_URI") or "").strip()
            if not uri:
                raise ConfigurationError("MONGO_URI must be set in .env")

            self._drop_client()
            self._set_state(ConnectionState.CONNECTING)
            try:
                cx = self._open_client(uri)
                cx.admin.command("ping")
                db = cx.get_default_database(default=self.app.config["MONGO_DBNAME"])
                for hook in self._hooks:
                    hook(db)
            except PyMongoError as e:
                self.last_error = str(e)
                self._set_state(ConnectionState.ERROR)
                log.error("Mongo connection error: %s", e)
                raise StoreUnavailableError(
                    "Database connection not available. Please check MONGO_URI."
                ) from e

            self.cx, self.db = cx, db
            self.last_error = None
            self._set_state(ConnectionState.CONNECTED)
            log.info("Connected to MongoDB database '%s'", db.name)
            return db

    def ensure_connected(self):
        """Reconnect on demand, once. Raises StoreUnavailableError (503) on failure."""
        if self.state is ConnectionState.CONNECTED:
            return self.db
        log.info("Retrying MongoDB connection (state=%s)", self.state.value)
        return self.connect()

    def ping(self) -> bool:
        if self.cx is None:
            return False
        try:
            self.cx.admin.command("ping")
            return True
        except PyMongoError as e:
            log.warning("Mongo ping failed: %s", e)
            return False

    def mark_error(self):
        self._set_state(ConnectionState.ERROR)

    def _drop_client(self):
        if self.cx is not None:
            self.cx.close()
        self.cx = None
        self.db = None

    def close(self):
        with self._lock:
            if self.cx is None:
                return
            self._drop_client()
            self._set_state(ConnectionState.DISCONNECTED)
            log.info("Mongo connection closed")


def get_store() -> MongoStore:
    return current_app.extensions[EXTENSION_KEY]


def get_db():
    """Database for the current request."""
    return get_store().ensure_connected()
