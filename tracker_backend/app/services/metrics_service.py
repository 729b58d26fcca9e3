"""
Calorie-balance and goal-progress formulas.

Sign convention used everywhere in the backend:
  - apparent balance (``apparent_deficit``) = BMR - net intake; positive is a
    deficit, negative a surplus.
  - energy change from weight (``cumulative_actual_deficit``) =
    (start - current) * 7700; positive means weight was lost.
  - progress is driven by ``energy_toward_goal``, which flips the sign for
    ``gain`` so that a positive value always means "moving toward the goal".
"""
from __future__ import annotations
import math
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional

# Energy equivalent of 1 kg body weight
KCAL_PER_KG = 7700

DAILY_TARGET_KCAL = 300
MAINTENANCE_BAND_KCAL = 200

GOAL_TYPES = ('loss', 'gain', 'maintenance')


def round_half_up(x: float) -> int:
    # Half-up rounding; builtin round() is banker's rounding
    return int(math.floor(x + 0.5))


def compute_bmr(weight_kg: float, height_cm: float, age: int, gender: str) -> int:
    """Mifflin-St Jeor. Anything other than 'male' uses the female offset."""
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    if str(gender or '').lower() == 'male':
        return round_half_up(base + 5)
    return round_half_up(base - 161)


def compute_net_intake(calories_in: float, calories_out: float) -> int:
    return round_half_up(calories_in - calories_out)


def compute_apparent_balance(bmr: float, net_intake: float) -> int:
    return round_half_up(bmr - net_intake)


def compute_energy_change_from_weight(start_weight_kg: float, current_weight_kg: float) -> int:
    return round_half_up((start_weight_kg - current_weight_kg) * KCAL_PER_KG)


def compute_goal_energy_needed(start_weight_kg: float, goal_weight_kg: float, goal_type: str) -> Optional[int]:
    if goal_type == 'maintenance':
        return None
    return round_half_up(abs(start_weight_kg - goal_weight_kg) * KCAL_PER_KG)


def compute_daily_target_kcal(goal_type: str) -> int:
    if goal_type == 'loss':
        return -DAILY_TARGET_KCAL
    if goal_type == 'gain':
        return DAILY_TARGET_KCAL
    return 0


def energy_toward_goal(energy_change: float, goal_type: Optional[str]) -> float:
    if goal_type == 'loss':
        return energy_change
    if goal_type == 'gain':
        return -energy_change
    return 0


def compute_progress(energy_change: float, goal_energy_needed: Optional[float], goal_type: Optional[str]) -> float:
    """Fraction in [0, 1] of the goal energy already covered.

    ``energy_change`` is the signed value from compute_energy_change_from_weight.
    Maintenance goals never report progress; see compute_adherence.
    """
    if goal_type not in ('loss', 'gain') or not goal_energy_needed or goal_energy_needed <= 0:
        return 0.0
    fraction = energy_toward_goal(energy_change, goal_type) / float(goal_energy_needed)
    return max(0.0, min(1.0, fraction))


def compute_adherence(balances: Iterable[Optional[float]], band: float = MAINTENANCE_BAND_KCAL) -> float:
    """Share of days whose apparent balance stayed within +/- ``band``."""
    values = [b for b in balances if b is not None]
    if not values:
        return 0.0
    inside = sum(1 for b in values if abs(b) <= band)
    return inside / len(values)


# Display helpers

_SEVERITY_COLORS = {
    'excellent': '#C6EFCE',
    'great': '#E2F0D9',
    'good': '#FFF2CC',
    'low': '#FCE4D6',
    'inverted': '#F4CCCC',
}

_DIRECTIONAL_COLORS = [
    (500, '#C6EFCE'),
    (300, '#E2F0D9'),
    (100, '#FFF2CC'),
    (0, '#FCE4D6'),
    (-100, '#FDE9D9'),
    (-300, '#FADBD8'),
]

_DISTANCE_BANDS = [
    (100, 'excellent', '#C6EFCE'),
    (200, 'great', '#E2F0D9'),
    (300, 'good', '#FFF2CC'),
]


def _directional(balance: float, goal_type: Optional[str]) -> float:
    # Gain mirrors loss: a surplus (negative balance) is the good direction
    return -balance if goal_type == 'gain' else balance


def balance_severity(balance: float, goal_type: Optional[str]) -> str:
    if goal_type == 'maintenance':
        distance = abs(balance)
        for limit, name, _ in _DISTANCE_BANDS:
            if distance <= limit:
                return name
        return 'inverted'
    value = _directional(balance, goal_type)
    if value >= 500:
        return 'excellent'
    if value >= 300:
        return 'great'
    if value >= 100:
        return 'good'
    if value >= 0:
        return 'low'
    return 'inverted'


def balance_color(balance: float, goal_type: Optional[str] = None) -> str:
    if goal_type == 'maintenance':
        distance = abs(balance)
        for limit, _, color in _DISTANCE_BANDS:
            if distance <= limit:
                return color
        return _SEVERITY_COLORS['low']
    value = _directional(balance, goal_type)
    for threshold, color in _DIRECTIONAL_COLORS:
        if value >= threshold:
            return color
    return _SEVERITY_COLORS['inverted']


_LABELS = {
    'loss': {'excellent': 'Excellent Deficit', 'great': 'Great Deficit', 'good': 'Good Deficit',
             'low': 'Low Deficit', 'inverted': 'In Surplus'},
    'gain': {'excellent': 'Excellent Surplus', 'great': 'Great Surplus', 'good': 'Good Surplus',
             'low': 'Low Surplus', 'inverted': 'In Deficit'},
    'maintenance': {'excellent': 'Perfect Balance', 'great': 'Great Balance', 'good': 'Good Balance',
                    'inverted': 'Off Balance'},
}


def balance_label(balance: float, goal_type: Optional[str]) -> str:
    gt = goal_type if goal_type in _LABELS else 'loss'
    return _LABELS[gt][balance_severity(balance, gt)]


def format_balance(value: float, goal_type: Optional[str]) -> str:
    v = round_half_up(value)
    if goal_type == 'maintenance' and abs(v) <= 50:
        return 'Balanced'
    if goal_type == 'gain':
        return f"{abs(v)} cal surplus" if v <= 0 else f"{v} cal deficit"
    return f"{v} cal deficit" if v >= 0 else f"{abs(v)} cal surplus"


_PROGRESS_GRADIENT = [
    '#FFCB87', '#FFD292', '#FFD99D', '#FFE0A8', '#FFE7B3', '#FFEABB', '#FFEDC3',
    '#FFF0CB', '#FFF3D3', '#FFF6DB', '#FFF9E3', '#FFFCEB', '#FFFEF3', '#F7FBEE',
    '#F0F8E8', '#E9F5E3', '#DCF2D6', '#CFEFC9', '#C2ECBD', '#B5E9B0', '#A8E6A3',
]


def progress_color(progress: float) -> str:
    # One step per 0.05; the rounding guards against 0.3 / 0.05 == 5.999...
    step = int(math.floor(round(max(0.0, min(1.0, progress)) / 0.05, 6)))
    return _PROGRESS_GRADIENT[step]


# Streaks

def has_activity(entry: Dict[str, Any]) -> bool:
    return any(float(entry.get(k) or 0) > 0 for k in ('total_calories_in', 'total_calories_out', 'water_glasses'))


def compute_streak(entries: Iterable[Dict[str, Any]], today: date) -> int:
    """Consecutive days with logged activity, counted back from today.

    A day with nothing logged yet does not break the streak when it is today.
    """
    active = {str(e.get('date')) for e in entries if has_activity(e)}
    day = today if today.isoformat() in active else today - timedelta(days=1)
    streak = 0
    while day.isoformat() in active:
        streak += 1
        day -= timedelta(days=1)
    return streak
