# harvestchain/routes/root/root_routes.py

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

from harvestchain.errors import HarvestChainError
from harvestchain.mongo import get_store

root_bp = Blueprint("root", __name__, url_prefix="/api")


# -----------------------------
# LIVENESS (never touches Mongo)
# -----------------------------
@root_bp.get("/health")
def health():
    return jsonify(
        status="OK",
        message="API is running",
        mongo=get_store().state.value,
    ), 200


# -----------------------------
# MONGO CONNECTIVITY CHECK
# -----------------------------
@root_bp.get("/test")
def mongo_test():
    store = get_store()
    env = current_app.config.get("APP_ENV")
    try:
        db = store.connect()
        collections = db.list_collection_names()
    except HarvestChainError as e:
        return jsonify(
            status="ERROR",
            message="MongoDB connection failed",
            error=e.message,
            state=store.state.value,
            environment=env,
        ), 500

    return jsonify(
        status="OK",
        message="MongoDB connection successful",
        state=store.state.value,
        ping=store.ping(),
        collections=len(collections),
        environment=env,
        timestamp=datetime.now(timezone.utc).isoformat(),
    ), 200
