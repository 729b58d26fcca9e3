from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, Optional

from .goal_service import recalculate_goal_cumulatives
from .metrics_service import compute_apparent_balance, compute_bmr, compute_net_intake, round_half_up
from .supabase_service import get_supabase_service

logger = logging.getLogger(__name__)

FOOD_TABLE = 'food_logs'
GYM_TABLE = 'gym_logs'


def _sum(rows: Iterable[Dict[str, Any]], field: str) -> int:
    return round_half_up(sum(float(r.get(field) or 0) for r in rows))


def _balance_fields(entry: Dict[str, Any], total_in: int, total_out: int) -> Dict[str, Any]:
    net_intake = compute_net_intake(total_in, total_out)
    bmr = entry.get('bmr')
    return {
        "net_intake": net_intake,
        # No BMR frozen for this day yet: nothing to measure the intake against
        "apparent_deficit": compute_apparent_balance(bmr, net_intake) if bmr is not None else None,
    }


def update_daily_totals(user_id: str, day: str, food_logs: Iterable[Dict[str, Any]],
                        gym_logs: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Rewrite a day's calorie aggregates from its current food and gym logs.

    Weight, BMR and water on the entry are left as they are. The active goal is
    recalculated before returning so the next read sees fresh cumulatives.
    """
    total_in = _sum(food_logs, 'calories')
    total_out = _sum(gym_logs, 'calories_burned')
    try:
        sb = get_supabase_service()
        entry = sb.get_or_create_daily_entry(user_id, day)
        fields = {
            "total_calories_in": total_in,
            "total_calories_out": total_out,
            **_balance_fields(entry, total_in, total_out),
        }
        sb.update_daily_entry(entry['id'], fields)
        entry = {**entry, **fields}
    except Exception:
        logger.exception("Error updating daily totals for user %s on %s", user_id, day)
        return None

    recalculate_goal_cumulatives(user_id)
    return entry


def refresh_daily_totals(user_id: str, day: str) -> Optional[Dict[str, Any]]:
    """Reload the day's logs from the store and rebuild its aggregates."""
    try:
        sb = get_supabase_service()
        food_logs = sb.get_logs_by_day(FOOD_TABLE, user_id, day)
        gym_logs = sb.get_logs_by_day(GYM_TABLE, user_id, day)
    except Exception:
        logger.exception("Error loading logs for user %s on %s", user_id, day)
        return None
    return update_daily_totals(user_id, day, food_logs, gym_logs)


def record_weight(user_id: str, day: str, weight_kg: float) -> Optional[Dict[str, Any]]:
    """Store the day's weight and freeze the BMR computed from it.

    Returns None when the user has no height/age on file or the store fails.
    """
    try:
        sb = get_supabase_service()
        user = sb.get_user(user_id)
        if not user or not user.get('height_cm') or not user.get('age'):
            logger.info("User %s has no physical profile; skipping BMR for %s", user_id, day)
            return None

        bmr = compute_bmr(weight_kg, float(user['height_cm']), int(user['age']), user.get('gender') or '')
        entry = sb.get_or_create_daily_entry(user_id, day)
        total_in = int(entry.get('total_calories_in') or 0)
        total_out = int(entry.get('total_calories_out') or 0)
        fields = {
            "weight_kg": weight_kg,
            "bmr": bmr,
            **_balance_fields({"bmr": bmr}, total_in, total_out),
        }
        sb.update_daily_entry(entry['id'], fields)
        entry = {**entry, **fields}
    except Exception:
        logger.exception("Error recording weight for user %s on %s", user_id, day)
        return None

    recalculate_goal_cumulatives(user_id)
    return entry
