# harvestchain/factory.py

import logging

from flask import Flask, request
from flask_cors import CORS

from harvestchain.app_config import configure_logging, load_config
from harvestchain.auth import init_auth
from harvestchain.errors import StoreUnavailableError, register_error_handlers
from harvestchain.mongo import MongoStore
from harvestchain.register_blueprints import register_all_blueprints
from harvestchain.services.admin.init_service import InitService

log = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"]


def create_app(config=None, client_factory=None):
    app = Flask(__name__)

    # -------------------------
    # Config & logging
    # -------------------------
    load_config(app, config)
    configure_logging(app)

    CORS(
        app,
        resources={r"/*": {"origins": "*"}},
        methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
        send_wildcard=True,
    )

    @app.before_request
    def _short_circuit_preflight():
        if request.method == "OPTIONS":
            return "", 200
        return None

    # -------------------------
    # Auth (bcrypt + JWT)
    # -------------------------
    init_auth(app)
    register_error_handlers(app)

    # -------------------------
    # Mongo
    # -------------------------
    store = MongoStore(app, client_factory=client_factory)
    store.on_connect(InitService.ensure_indexes)
    try:
        store.connect()
    except StoreUnavailableError:
        if app.config["APP_ENV"] == "production" or app.testing:
            log.error("MongoDB unavailable at startup; requests will retry the connection")
        else:
            log.critical("MongoDB unavailable at startup; exiting")
            raise SystemExit(1)

    # -------------------------
    # Blueprints
    # -------------------------
    register_all_blueprints(app)

    return app
