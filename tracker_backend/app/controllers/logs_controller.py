from __future__ import annotations
from typing import Any, Dict, Tuple

from ..services.daily_totals_service import FOOD_TABLE, GYM_TABLE, refresh_daily_totals
from ..services.metrics_service import round_half_up
from ..services.supabase_service import get_supabase_service

# kind -> (table, calorie field, writable fields)
LOG_KINDS: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    'food': (FOOD_TABLE, 'calories',
             ('meal_name', 'meal_type', 'calories', 'protein_g', 'carbs_g', 'fats_g', 'is_healthy')),
    'gym': (GYM_TABLE, 'calories_burned',
            ('exercise_name', 'sets', 'reps', 'weight_kg', 'calories_burned',
             'warmup_done', 'cooldown_done', 'meditation_done', 'notes')),
}

MEAL_TYPES = ('breakfast', 'lunch', 'dinner', 'snack')


def _clean(kind: str, payload: Dict[str, Any]) -> Tuple[Dict[str, Any], str | None]:
    _, calorie_field, fields = LOG_KINDS[kind]
    record = {k: payload[k] for k in fields if k in payload}
    if calorie_field in record:
        try:
            record[calorie_field] = round_half_up(float(record[calorie_field]))
        except (TypeError, ValueError, OverflowError):
            return record, f"{calorie_field} must be a number"
        if record[calorie_field] < 0:
            return record, f"{calorie_field} must be >= 0"
    meal_type = record.get('meal_type')
    if meal_type is not None and meal_type not in MEAL_TYPES:
        return record, f"meal_type must be one of {', '.join(MEAL_TYPES)}"
    return record, None


def list_logs_controller(kind: str, user_id: str, day: str) -> Dict[str, Any]:
    table, calorie_field, _ = LOG_KINDS[kind]
    sb = get_supabase_service()
    logs = sb.get_logs_by_day(table, user_id, day)
    total = sum(int(r.get(calorie_field) or 0) for r in logs)
    return {"success": True, "date": day, "logs": logs, "total_calories": total}


def add_log_controller(kind: str, user_id: str, day: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    table, calorie_field, _ = LOG_KINDS[kind]
    record, error = _clean(kind, payload)
    if error:
        return {"success": False, "error": error}
    if calorie_field not in record:
        return {"success": False, "error": f"Missing fields: {calorie_field}"}
    sb = get_supabase_service()
    saved = sb.insert_log(table, {"user_id": user_id, "date": day, **record})
    if not saved:
        return {"success": False, "error": "Insert failed without details."}
    entry = refresh_daily_totals(user_id, day)
    resp = {"success": True, "log": saved, "daily_entry": entry}
    if entry is None:
        resp["warning"] = "Log saved; daily totals will refresh on the next change."
    return resp


def update_log_controller(kind: str, user_id: str, log_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    table, _, _ = LOG_KINDS[kind]
    record, error = _clean(kind, payload)
    if error:
        return {"success": False, "error": error}
    if not record:
        return {"success": False, "error": "Nothing to update"}
    sb = get_supabase_service()
    existing = sb.get_log(table, user_id, log_id)
    if not existing:
        return {"success": False, "error": "Log not found", "status": 404}
    saved = sb.update_log(table, user_id, log_id, record) or {**existing, **record}
    # Edits to a past day ripple into the goal through the recalculation
    entry = refresh_daily_totals(user_id, str(existing['date']))
    return {"success": True, "log": saved, "daily_entry": entry}


def delete_log_controller(kind: str, user_id: str, log_id: str) -> Dict[str, Any]:
    table, _, _ = LOG_KINDS[kind]
    sb = get_supabase_service()
    existing = sb.get_log(table, user_id, log_id)
    if not existing:
        return {"success": False, "error": "Log not found", "status": 404}
    deleted = sb.delete_log(table, user_id, log_id)
    entry = refresh_daily_totals(user_id, str(existing['date']))
    return {"success": True, "deleted": deleted, "daily_entry": entry}
