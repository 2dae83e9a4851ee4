"""Shared JSON response helpers for the panel API."""

from flask import jsonify


def ok_response(**extra):
    """Return the standard success payload, merged with ``extra`` fields."""
    payload = {"ok": True}
    payload.update(extra)
    return jsonify(payload)


def error_response(error):
    """Return a PanelError as ``{"ok": false, "error", "message"}`` with its status."""
    return jsonify(error.to_payload()), error.status_code


def bad_request_response(message):
    return jsonify({"ok": False, "error": "bad_request", "message": message}), 400


def internal_error_response():
    return jsonify({"ok": False, "error": "internal_error", "message": "Internal server error."}), 500
