from __future__ import annotations
from flask import Blueprint, request, jsonify, g
from .utils import require_fields
from ..middlewares.auth import require_auth
from ..controllers.user_controller import upsert_profile_controller
from ..services.supabase_service import get_supabase_service

bp = Blueprint('user', __name__, url_prefix='/api/user')


@bp.post('/profile')
@require_auth
def upsert_profile():
    data = request.get_json(force=True)
    require_fields(data, ['height_cm', 'age', 'gender'])
    # user_id from the token (g.user_id)
    payload = {**data, 'user_id': g.user_id}
    try:
        res = upsert_profile_controller(payload)
    except Exception as e:
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify(res), (200 if res.get('success') else 400)


@bp.get('/profile')
@require_auth
def get_profile():
    sb = get_supabase_service()
    prof = sb.get_user(g.user_id)
    if not prof:
        return jsonify({"success": False, "error": "Profile not found"}), 404
    prof.pop('password_hash', None)
    return jsonify({"success": True, "profile": prof})
