from __future__ import annotations
from datetime import date, timedelta
from typing import Any, Dict, Optional

from .. import config
from .metrics_service import compute_streak, has_activity
from .supabase_service import get_supabase_service

SUMMARY_DAYS = 7

# (predicate on a calculated balance, label, description)
_GOAL_RULES = {
    'loss': (lambda b: b >= 300, 'Hit Deficit Goal', '300+ cal deficit'),
    'gain': (lambda b: b <= -300, 'Hit Surplus Goal', '300+ cal surplus'),
    'maintenance': (lambda b: abs(b) <= 200, 'Stayed Balanced', 'within ±200 cal'),
    None: (lambda b: True, 'Days Calculated', 'Set a goal in Profile'),
}


def weekly_summary(user_id: str, today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    start = (today - timedelta(days=SUMMARY_DAYS - 1)).isoformat()
    end = today.isoformat()

    sb = get_supabase_service()
    goal = sb.get_active_goal(user_id)
    entries = sb.get_daily_entries_between(user_id, start, end)
    food = sb.get_logs_between('food_logs', user_id, start, end)
    gym = sb.get_logs_between('gym_logs', user_id, start, end)

    goal_type = goal.get('goal_type') if goal else None
    hit, goal_label, goal_description = _GOAL_RULES.get(goal_type, _GOAL_RULES[None])

    days_logged = sum(1 for e in entries if has_activity(e))
    balances = [int(e['apparent_deficit']) for e in entries if e.get('apparent_deficit') is not None]
    healthy = sum(1 for f in food if f.get('is_healthy'))

    return {
        "range": {"start": start, "end": end},
        "goal_type": goal_type,
        "goal_label": goal_label,
        "goal_description": goal_description,
        "days_logged": days_logged,
        "active_days": sum(1 for e in entries if float(e.get('total_calories_out') or 0) > 0),
        "days_hit_water_goal": sum(1 for e in entries if int(e.get('water_glasses') or 0) >= config.WATER_GOAL_GLASSES),
        "days_hit_goal": sum(1 for b in balances if hit(b)),
        "avg_balance": int(round(sum(balances) / max(days_logged, 1))),
        "streak": compute_streak(entries, today),
        "consistency_score": int(round(days_logged / SUMMARY_DAYS * 100)),
        "meals_logged": len(food),
        "healthy_meal_percent": int(round(healthy / len(food) * 100)) if food else 0,
        "workouts_completed": len(gym),
    }
