from __future__ import annotations
from datetime import date
from flask import Blueprint, request, jsonify, g
from ..middlewares.auth import require_auth
from .utils import parse_day, require_fields
from ..services.summary_service import weekly_summary
from ..services.supabase_service import get_supabase_service

bp = Blueprint('tracking', __name__, url_prefix='/api')


def _non_negative_int(value, name):
    try:
        v = int(value)
    except (TypeError, ValueError):
        return None, f"{name} must be an integer"
    if v < 0:
        return None, f"{name} must be >= 0"
    return v, None


@bp.post('/water')
@require_auth
def set_water():
    data = request.get_json(force=True)
    require_fields(data, ['water_glasses'])
    glasses, err = _non_negative_int(data['water_glasses'], 'water_glasses')
    if err:
        return jsonify({"success": False, "error": err}), 400
    day = parse_day(data.get('date'))
    sb = get_supabase_service()
    try:
        entry = sb.get_or_create_daily_entry(g.user_id, day)
        sb.update_daily_entry(entry['id'], {"water_glasses": glasses})
    except Exception as e:
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify({"success": True, "date": day, "water_glasses": glasses})


@bp.get('/steps')
@require_auth
def get_steps():
    day = parse_day(request.args.get('date'))
    sb = get_supabase_service()
    row = sb.get_steps(g.user_id, day)
    user = sb.get_user(g.user_id) or {}
    return jsonify({
        "success": True,
        "date": day,
        "steps": int((row or {}).get('steps') or 0),
        "steps_goal": user.get('steps_goal'),
    })


@bp.post('/steps')
@require_auth
def set_steps():
    data = request.get_json(force=True)
    require_fields(data, ['steps'])
    steps, err = _non_negative_int(data['steps'], 'steps')
    if err:
        return jsonify({"success": False, "error": err}), 400
    day = parse_day(data.get('date'))
    try:
        row = get_supabase_service().set_steps(g.user_id, day, steps)
    except Exception as e:
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify({"success": True, "log": row})


@bp.post('/steps/goal')
@require_auth
def set_steps_goal():
    data = request.get_json(force=True)
    require_fields(data, ['steps_goal'])
    goal, err = _non_negative_int(data['steps_goal'], 'steps_goal')
    if err or not goal:
        return jsonify({"success": False, "error": err or "steps_goal must be positive"}), 400
    try:
        saved = get_supabase_service().update_user(g.user_id, {"steps_goal": goal})
    except Exception as e:
        return jsonify({"success": False, "error": str(e)}), 500
    return jsonify({"success": True, "profile": saved})


@bp.get('/summary/weekly')
@require_auth
def summary_weekly():
    s = request.args.get('today')
    today = date.fromisoformat(parse_day(s)) if s else None
    return jsonify({"success": True, **weekly_summary(g.user_id, today)})
