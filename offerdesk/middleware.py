"""Request helpers for the JSON API."""
from typing import Optional

from flask import jsonify, request


def bearer_token() -> Optional[str]:
    """The ``Authorization: Bearer <token>`` credential of the current request, if any."""
    header = request.headers.get('Authorization', '')
    if not header.lower().startswith('bearer '):
        return None
    return header[7:].strip() or None


def json_payload() -> dict:
    """Request JSON body as a dict (empty when missing or not an object)."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def envelope_response(result):
    """Render an action envelope with its status code."""
    return jsonify(result), getattr(result, 'status_code', 200)
