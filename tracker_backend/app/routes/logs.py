from __future__ import annotations
from flask import Blueprint, request, jsonify, g
from ..middlewares.auth import require_auth
from .utils import parse_day
from ..controllers.logs_controller import (
    add_log_controller,
    delete_log_controller,
    list_logs_controller,
    update_log_controller,
)


def _respond(res):
    status = res.pop('status', None) or (200 if res.get('success') else 400)
    return jsonify(res), status


def create_logs_blueprint(kind: str) -> Blueprint:
    """CRUD for one kind of per-day log; every write refreshes the day's totals."""
    bp = Blueprint(kind, __name__, url_prefix='/api')

    @bp.get(f'/{kind}')
    @require_auth
    def list_logs():
        day = parse_day(request.args.get('date'))
        return jsonify(list_logs_controller(kind, g.user_id, day))

    @bp.post(f'/{kind}')
    @require_auth
    def add_log():
        data = request.get_json(force=True) or {}
        day = parse_day(data.get('date'))
        try:
            return _respond(add_log_controller(kind, g.user_id, day, data))
        except Exception as e:
            return jsonify({"success": False, "error": f"Database insert failed: {str(e)}"}), 500

    @bp.patch(f'/{kind}/<log_id>')
    @require_auth
    def update_log(log_id: str):
        data = request.get_json(force=True) or {}
        try:
            return _respond(update_log_controller(kind, g.user_id, log_id, data))
        except Exception as e:
            return jsonify({"success": False, "error": str(e)}), 500

    @bp.delete(f'/{kind}/<log_id>')
    @require_auth
    def delete_log(log_id: str):
        try:
            return _respond(delete_log_controller(kind, g.user_id, log_id))
        except Exception as e:
            return jsonify({"success": False, "error": str(e)}), 500

    return bp


food_bp = create_logs_blueprint('food')
gym_bp = create_logs_blueprint('gym')
