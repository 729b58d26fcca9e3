from __future__ import annotations
from flask import Blueprint, request, jsonify, g
from ..middlewares.auth import require_auth
from .utils import parse_day, require_fields
from ..controllers.progress_controller import (
    daily_entry_controller,
    record_weight_controller,
    save_goal_controller,
)
from ..services.goal_service import get_goal_progress, recalculate_goal_cumulatives

bp = Blueprint('progress', __name__, url_prefix='/api')


@bp.post('/weight')
@require_auth
def record_weight():
    data = request.get_json(force=True)
    require_fields(data, ['weight_kg'])
    day = parse_day(data.get('date'))
    try:
        res = record_weight_controller(g.user_id, day, data['weight_kg'])
    except Exception as e:
        return jsonify({"success": False, "error": f"Failed to record weight: {str(e)}"}), 500
    status = res.pop('status', None) or (200 if res.get('success') else 400)
    return jsonify(res), status


@bp.get('/daily-entry')
@require_auth
def daily_entry():
    day = parse_day(request.args.get('date'))
    return jsonify(daily_entry_controller(g.user_id, day))


@bp.get('/goal')
@require_auth
def goal_progress():
    view = get_goal_progress(g.user_id)
    if not view:
        return jsonify({"success": False, "error": "No active goal"}), 404
    return jsonify({"success": True, **view})


@bp.post('/goal')
@require_auth
def save_goal():
    data = request.get_json(force=True)
    require_fields(data, ['goal_type', 'start_weight_kg', 'goal_weight_kg'])
    data['start_date'] = parse_day(data.get('start_date'))
    try:
        res = save_goal_controller(g.user_id, data)
    except Exception as e:
        return jsonify({"success": False, "error": f"Failed to save goal: {str(e)}"}), 500
    return jsonify(res), (200 if res.get('success') else 400)


@bp.post('/goal/recalculate')
@require_auth
def recalculate():
    goal = recalculate_goal_cumulatives(g.user_id)
    if not goal:
        return jsonify({"success": False, "error": "No active goal or recalculation failed"}), 404
    return jsonify({"success": True, "goal": goal})
