from __future__ import annotations
from typing import Any, Dict, Optional

from ..services.daily_totals_service import record_weight
from ..services.goal_service import get_goal_progress, save_goal, validate_goal
from ..services.metrics_service import balance_color, balance_label, format_balance
from ..services.supabase_service import get_supabase_service


def record_weight_controller(user_id: str, day: str, weight: Any) -> Dict[str, Any]:
    try:
        weight_kg = float(weight)
    except (TypeError, ValueError):
        return {"success": False, "error": "weight_kg must be a number"}
    if weight_kg <= 0:
        return {"success": False, "error": "weight_kg must be positive"}
    user = get_supabase_service().get_user(user_id)
    if not user or not user.get('height_cm') or not user.get('age'):
        return {"success": False, "error": "Could not calculate BMR; complete your profile (height, age, gender) first."}
    entry = record_weight(user_id, day, weight_kg)
    if entry is None:
        return {"success": False, "error": "Could not record weight; please try again.", "status": 500}
    return {"success": True, "daily_entry": entry, "goal": get_goal_progress(user_id)}


def daily_entry_controller(user_id: str, day: str) -> Dict[str, Any]:
    sb = get_supabase_service()
    entry = sb.get_daily_entry(user_id, day)
    goal = sb.get_active_goal(user_id)
    goal_type: Optional[str] = goal.get('goal_type') if goal else None
    resp: Dict[str, Any] = {"success": True, "date": day, "daily_entry": entry}
    balance = entry.get('apparent_deficit') if entry else None
    if balance is not None:
        resp["balance"] = {
            "value": balance,
            "label": balance_label(balance, goal_type),
            "color": balance_color(balance, goal_type),
            "text": format_balance(balance, goal_type),
        }
    return resp


def save_goal_controller(user_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    goal_type = str(payload.get("goal_type", "")).lower()
    try:
        start_weight = float(payload["start_weight_kg"])
        goal_weight = float(payload["goal_weight_kg"])
    except (TypeError, ValueError):
        return {"success": False, "error": "Weights must be numbers"}
    error = validate_goal(goal_type, start_weight, goal_weight)
    if error:
        return {"success": False, "error": error}
    goal = save_goal(user_id, goal_type, start_weight, goal_weight, payload.get("start_date"))
    return {"success": True, "goal": goal, "progress": get_goal_progress(user_id)}
