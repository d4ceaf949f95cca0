from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import DomainError
from ..groups.model import Actor
from .datetime_utils import parse_iso_datetime

logger = logging.getLogger(__name__)


def current_actor() -> Optional[Actor]:
    """Caller as stored in the session by the authentication layer."""
    user_id = session.get("user_id")
    role = session.get("role")
    if not user_id or not role:
        return None
    try:
        return Actor(user_id=int(user_id), role=Role(str(role).upper()))
    except ValueError:
        return None


def login_required(view):
    """Resolve the session user and pass it to the view as ``actor``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        actor = current_actor()
        if actor is None:
            return jsonify({"success": False, "message": "Unauthorized"}), 401
        return view(actor, *args, **kwargs)

    return wrapper


def api_errors(view):
    """Translate domain errors into JSON responses; log anything else as a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return jsonify({"success": False, "message": str(e), "error": type(e).__name__}), e.http_status
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.path)
            return jsonify({"success": False, "message": "Internal server error"}), 500

    return wrapper


def json_body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def query_datetime(name: str) -> datetime:
    return parse_iso_datetime(request.args.get(name), name)
