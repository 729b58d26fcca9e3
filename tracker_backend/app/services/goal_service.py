from __future__ import annotations
import logging
import threading
from datetime import date
from typing import Any, Dict, Optional

from .metrics_service import (
    GOAL_TYPES,
    balance_label,
    compute_adherence,
    compute_daily_target_kcal,
    compute_energy_change_from_weight,
    compute_goal_energy_needed,
    compute_progress,
    energy_toward_goal,
    format_balance,
    progress_color,
)
from .supabase_service import get_supabase_service

logger = logging.getLogger(__name__)

MAINTENANCE_TOLERANCE_KG = 2.0

# Fixed pool of locks; users hashing to the same stripe share one
LOCK_STRIPES = 64
_locks = [threading.Lock() for _ in range(LOCK_STRIPES)]


def _user_lock(user_id: str) -> threading.Lock:
    return _locks[hash(user_id) % LOCK_STRIPES]


def recalculate_goal_cumulatives(user_id: str) -> Optional[Dict[str, Any]]:
    """Rebuild the active goal's cumulative fields from the daily entries.

    Safe to call after every mutation: the values are recomputed from scratch,
    so repeated calls give the same row. Store failures are logged and leave
    the goal untouched.
    """
    with _user_lock(user_id):
        try:
            sb = get_supabase_service()
            goal = sb.get_active_goal(user_id)
            if not goal:
                return None

            entries = sb.get_balance_entries_since(user_id, str(goal['start_date']))
            cumulative_apparent = sum(int(e.get('apparent_deficit') or 0) for e in entries)

            start_weight = float(goal['start_weight_kg'])
            latest = next((e['weight_kg'] for e in entries if e.get('weight_kg') is not None), None)
            latest_weight = float(latest) if latest is not None else start_weight

            fields = {
                "cumulative_apparent_deficit": cumulative_apparent,
                "cumulative_actual_deficit": compute_energy_change_from_weight(start_weight, latest_weight),
                "current_weight_kg": latest_weight,
            }
            sb.update_goal(goal['id'], fields)
            logger.debug("Recalculated goal %s for user %s: %s", goal['id'], user_id, fields)
            return {**goal, **fields}
        except Exception:
            logger.exception("Error recalculating goal cumulatives for user %s", user_id)
            return None


def validate_goal(goal_type: str, start_weight_kg: float, goal_weight_kg: float) -> Optional[str]:
    if goal_type not in GOAL_TYPES:
        return f"goal_type must be one of {', '.join(GOAL_TYPES)}"
    if start_weight_kg <= 0 or goal_weight_kg <= 0:
        return "Weights must be positive"
    if goal_type == 'loss' and goal_weight_kg >= start_weight_kg:
        return "For weight loss, goal weight must be less than current weight"
    if goal_type == 'gain' and goal_weight_kg <= start_weight_kg:
        return "For weight gain, goal weight must be greater than current weight"
    if goal_type == 'maintenance' and abs(start_weight_kg - goal_weight_kg) > MAINTENANCE_TOLERANCE_KG:
        return f"For maintenance, goal weight should be within {MAINTENANCE_TOLERANCE_KG:g}kg of current weight"
    return None


def save_goal(user_id: str, goal_type: str, start_weight_kg: float, goal_weight_kg: float,
              start_date: Optional[str] = None) -> Dict[str, Any]:
    """Make a new goal the user's only active one.

    Previous active goals are deactivated before the insert and switched back
    on if the insert fails. Store errors propagate to the caller.
    """
    sb = get_supabase_service()
    with _user_lock(user_id):
        previous = sb.deactivate_goals(user_id)
        try:
            goal = _insert_goal(sb, user_id, goal_type, start_weight_kg, goal_weight_kg, start_date)
        except Exception:
            logger.exception("Error saving goal for user %s; restoring %d previous goal(s)", user_id, len(previous))
            for goal_id in previous:
                sb.update_goal(goal_id, {"is_active": True})
            raise
    # Entries logged before the goal existed may already count toward it
    return recalculate_goal_cumulatives(user_id) or goal


def _insert_goal(sb, user_id: str, goal_type: str, start_weight_kg: float, goal_weight_kg: float,
                 start_date: Optional[str]) -> Dict[str, Any]:
    return sb.insert_goal({
        "user_id": user_id,
        "goal_type": goal_type,
        "start_date": start_date or date.today().isoformat(),
        "start_weight_kg": start_weight_kg,
        "goal_weight_kg": goal_weight_kg,
        "current_weight_kg": start_weight_kg,
        "daily_target_kcal": compute_daily_target_kcal(goal_type),
        "total_energy_kcal_needed": compute_goal_energy_needed(start_weight_kg, goal_weight_kg, goal_type),
        "cumulative_apparent_deficit": 0,
        "cumulative_actual_deficit": 0,
        "is_active": True,
    })


def get_goal_progress(user_id: str) -> Optional[Dict[str, Any]]:
    sb = get_supabase_service()
    goal = sb.get_active_goal(user_id)
    if not goal:
        return None
    goal_type = goal.get('goal_type')
    actual = int(goal.get('cumulative_actual_deficit') or 0)
    apparent = int(goal.get('cumulative_apparent_deficit') or 0)
    progress = compute_progress(actual, goal.get('total_energy_kcal_needed'), goal_type)
    view: Dict[str, Any] = {
        "goal": goal,
        "progress": progress,
        "progress_color": progress_color(progress),
        "energy_toward_goal": energy_toward_goal(actual, goal_type),
        "actual_label": format_balance(actual, goal_type),
        "apparent_label": format_balance(apparent, goal_type),
        "apparent_quality": balance_label(apparent, goal_type),
    }
    if goal_type == 'maintenance':
        entries = sb.get_balance_entries_since(user_id, str(goal['start_date']))
        view["adherence"] = compute_adherence(e.get('apparent_deficit') for e in entries)
    return view
