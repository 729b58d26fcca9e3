from __future__ import annotations

from functools import wraps
from typing import Callable, Optional, Any
from flask import request, jsonify, g

from .. import config
from ..services.supabase_service import get_supabase_service


def _extract_user_id(user_obj: Any) -> Optional[str]:
    # supabase-py may return a dict or object with attributes
    if not user_obj:
        return None
    if isinstance(user_obj, dict):
        return user_obj.get('id') or user_obj.get('user_id')
    return getattr(user_obj, 'id', None)


def _user_id_from_token(token: str) -> Optional[str]:
    sb = get_supabase_service()
    res = sb.client.auth.get_user(token)
    return _extract_user_id(getattr(res, "user", None))


def require_auth(fn: Callable):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        auth = request.headers.get("Authorization", "")
        token = auth.split(" ", 1)[1].strip() if auth.startswith("Bearer ") else None

        # Allow disabled mode (for local dev)
        if not config.REQUIRE_JWT:
            if token:
                try:
                    uid = _user_id_from_token(token)
                except Exception:
                    # Fall through to header/env fallback below
                    uid = None
                if uid:
                    g.user_id = uid
                    return fn(*args, **kwargs)
            uid = request.headers.get('X-User-Id') or config.DEMO_USER_ID
            if not uid:
                return jsonify({
                    "success": False,
                    "error": "Unauthorized (dev): Provide X-User-Id header, set DEMO_USER_ID in .env, or enable REQUIRE_JWT=true and login."
                }), 401
            g.user_id = uid
            return fn(*args, **kwargs)

        if not token:
            return jsonify({"success": False, "error": "Missing Bearer token"}), 401
        try:
            uid = _user_id_from_token(token)
        except Exception:
            return jsonify({"success": False, "error": "Unauthorized"}), 401
        if not uid:
            return jsonify({"success": False, "error": "Invalid token"}), 401
        # Stash user id for downstream handlers
        g.user_id = uid
        return fn(*args, **kwargs)
    return wrapper
