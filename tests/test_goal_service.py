import copy
import logging

import pytest

from tracker_backend.app.services.daily_totals_service import record_weight, refresh_daily_totals
from tracker_backend.app.services import goal_service
from tracker_backend.app.services.goal_service import (
    get_goal_progress,
    recalculate_goal_cumulatives,
    save_goal,
    validate_goal,
)


def _active_goals(fake, user_id='user-1'):
    return [g for g in fake.rows('goals') if g['user_id'] == user_id and g['is_active']]


def test_loss_scenario(sb, fake, user):
    save_goal('user-1', 'loss', 80, 75, start_date="2026-10-01")
    record_weight('user-1', "2026-10-05", 78)

    goal = _active_goals(fake)[0]
    assert goal['total_energy_kcal_needed'] == 38500
    assert goal['daily_target_kcal'] == -300
    assert goal['cumulative_actual_deficit'] == 15400
    assert goal['current_weight_kg'] == 78

    view = get_goal_progress('user-1')
    assert view['progress'] == pytest.approx(0.4)
    assert view['energy_toward_goal'] == 15400
    assert view['actual_label'] == '15400 cal deficit'


def test_recalculation_is_idempotent(sb, fake, user):
    save_goal('user-1', 'loss', 80, 75, start_date="2026-10-01")
    fake.add('daily_entries', user_id='user-1', date="2026-10-02", weight_kg=79.4, bmr=1700, apparent_deficit=450)
    fake.add('daily_entries', user_id='user-1', date="2026-10-03", weight_kg=None, bmr=1700, apparent_deficit=-120)

    recalculate_goal_cumulatives('user-1')
    first = copy.deepcopy(fake.rows('goals'))
    recalculate_goal_cumulatives('user-1')

    assert fake.rows('goals') == first
    goal = _active_goals(fake)[0]
    assert goal['cumulative_apparent_deficit'] == 330
    assert goal['current_weight_kg'] == 79.4
    assert goal['cumulative_actual_deficit'] == 4620


def test_only_entries_since_start_with_balance_count(sb, fake, user):
    fake.add('daily_entries', user_id='user-1', date="2026-09-20", weight_kg=90, apparent_deficit=5000)
    fake.add('daily_entries', user_id='user-1', date="2026-10-02", weight_kg=None, apparent_deficit=300)
    fake.add('daily_entries', user_id='user-1', date="2026-10-03", weight_kg=76, apparent_deficit=None)
    fake.add('daily_entries', user_id='user-2', date="2026-10-04", weight_kg=60, apparent_deficit=700)

    save_goal('user-1', 'loss', 80, 75, start_date="2026-10-01")

    goal = _active_goals(fake)[0]
    assert goal['cumulative_apparent_deficit'] == 300
    # No weighed day with a balance yet: fall back to the start weight
    assert goal['current_weight_kg'] == 80
    assert goal['cumulative_actual_deficit'] == 0


def test_latest_weight_is_most_recent_weighed_day(sb, fake, user):
    fake.add('daily_entries', user_id='user-1', date="2026-10-02", weight_kg=79, apparent_deficit=100)
    fake.add('daily_entries', user_id='user-1', date="2026-10-06", weight_kg=77.5, apparent_deficit=100)
    fake.add('daily_entries', user_id='user-1', date="2026-10-04", weight_kg=78, apparent_deficit=100)
    fake.add('daily_entries', user_id='user-1', date="2026-10-07", weight_kg=None, apparent_deficit=100)

    save_goal('user-1', 'loss', 80, 75, start_date="2026-10-01")

    goal = _active_goals(fake)[0]
    assert goal['current_weight_kg'] == 77.5
    assert goal['cumulative_actual_deficit'] == 19250
    assert goal['cumulative_apparent_deficit'] == 400


def test_editing_past_food_log_ripples_into_goal(sb, fake, user):
    save_goal('user-1', 'loss', 80, 75, start_date="2026-10-01")
    for day in ("2026-10-02", "2026-10-03"):
        record_weight('user-1', day, 80)
    log = fake.add('food_logs', user_id='user-1', date="2026-10-02", calories=1000)
    fake.add('food_logs', user_id='user-1', date="2026-10-03", calories=1500)
    refresh_daily_totals('user-1', "2026-10-02")
    refresh_daily_totals('user-1', "2026-10-03")

    other_before = copy.deepcopy(next(r for r in fake.rows('daily_entries') if r['date'] == "2026-10-03"))
    before = _active_goals(fake)[0]['cumulative_apparent_deficit']

    sb.update_log('food_logs', 'user-1', log['id'], {"calories": 1200})
    refresh_daily_totals('user-1', "2026-10-02")

    edited = next(r for r in fake.rows('daily_entries') if r['date'] == "2026-10-02")
    assert edited['apparent_deficit'] == edited['bmr'] - 1200
    assert _active_goals(fake)[0]['cumulative_apparent_deficit'] == before - 200
    assert next(r for r in fake.rows('daily_entries') if r['date'] == "2026-10-03") == other_before


def test_gain_goal_progress(sb, fake, user):
    save_goal('user-1', 'gain', 60, 65, start_date="2026-10-01")
    record_weight('user-1', "2026-10-08", 61)

    goal = _active_goals(fake)[0]
    assert goal['cumulative_actual_deficit'] == -7700
    view = get_goal_progress('user-1')
    assert view['progress'] == pytest.approx(0.2)
    assert view['energy_toward_goal'] == 7700
    assert view['actual_label'] == '7700 cal surplus'


def test_maintenance_reports_adherence_not_progress(sb, fake, user):
    save_goal('user-1', 'maintenance', 70, 70.5, start_date="2026-10-01")
    fake.add('daily_entries', user_id='user-1', date="2026-10-02", apparent_deficit=150)
    fake.add('daily_entries', user_id='user-1', date="2026-10-03", apparent_deficit=-90)
    fake.add('daily_entries', user_id='user-1', date="2026-10-04", apparent_deficit=450)
    fake.add('daily_entries', user_id='user-1', date="2026-10-05", apparent_deficit=-20)

    view = get_goal_progress('user-1')
    assert view['goal']['total_energy_kcal_needed'] is None
    assert view['progress'] == 0.0
    assert view['adherence'] == pytest.approx(0.75)


def test_save_goal_keeps_single_active_goal(sb, fake, user):
    first = save_goal('user-1', 'loss', 80, 75)
    save_goal('user-1', 'gain', 80, 82)
    fake.add('goals', user_id='user-2', goal_type='loss', is_active=True, start_date="2026-10-01",
             start_weight_kg=90, goal_weight_kg=85)

    active = _active_goals(fake)
    assert len(active) == 1
    assert active[0]['goal_type'] == 'gain'
    assert next(g for g in fake.rows('goals') if g['id'] == first['id'])['is_active'] is False
    assert len(_active_goals(fake, 'user-2')) == 1


def test_failed_insert_restores_previous_goal(sb, fake, user):
    first = save_goal('user-1', 'loss', 80, 75)
    fake.failing.add(('goals', 'insert'))

    with pytest.raises(RuntimeError):
        save_goal('user-1', 'gain', 80, 82)

    active = _active_goals(fake)
    assert len(active) == 1
    assert active[0]['id'] == first['id']
    assert active[0]['goal_type'] == 'loss'


def test_failed_first_insert_leaves_no_goal(sb, fake, user):
    fake.failing.add(('goals', 'insert'))
    with pytest.raises(RuntimeError):
        save_goal('user-1', 'loss', 80, 75)
    assert fake.rows('goals') == []


def test_user_locks_come_from_a_fixed_pool(sb, fake):
    pool = list(goal_service._locks)
    for i in range(1000):
        assert recalculate_goal_cumulatives(f'stranger-{i}') is None

    assert goal_service._locks == pool
    assert len(pool) == goal_service.LOCK_STRIPES
    assert goal_service._user_lock('user-1') is goal_service._user_lock('user-1')
    assert goal_service._user_lock('user-1') in pool


def test_no_active_goal_is_noop(sb, fake):
    assert recalculate_goal_cumulatives('user-1') is None
    assert get_goal_progress('user-1') is None


def test_store_failure_is_swallowed(sb, fake, user, caplog):
    save_goal('user-1', 'loss', 80, 75, start_date="2026-10-01")
    fake.failing.add(('daily_entries', 'select'))

    with caplog.at_level(logging.ERROR):
        assert recalculate_goal_cumulatives('user-1') is None
    assert "Error recalculating goal cumulatives" in caplog.text
    assert _active_goals(fake)[0]['cumulative_apparent_deficit'] == 0


@pytest.mark.parametrize("goal_type,start,goal,ok", [
    ('loss', 80, 75, True),
    ('loss', 80, 80, False),
    ('gain', 60, 65, True),
    ('gain', 60, 59, False),
    ('maintenance', 70, 71.5, True),
    ('maintenance', 70, 73, False),
    ('bulk', 70, 75, False),
    ('loss', 0, -1, False),
])
def test_validate_goal(goal_type, start, goal, ok):
    assert (validate_goal(goal_type, start, goal) is None) is ok
