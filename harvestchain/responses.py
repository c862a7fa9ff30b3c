# harvestchain/responses.py
from flask import jsonify


def ok(data=None, message=None, status=200, **extra):
    """`{success: true, message?, data?, ...}` envelope."""
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(extra)
    return jsonify(body), status


def fail(message, status=400, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status
