from __future__ import annotations
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from .. import config


def _first(res) -> Optional[Dict[str, Any]]:
    data = getattr(res, 'data', None) if res is not None else None
    if not data:
        return None
    if isinstance(data, list):
        return data[0] if data else None
    return data


def _rows(res) -> List[Dict[str, Any]]:
    return list(getattr(res, 'data', None) or [])


class SupabaseService:
    """Thin table access for users, goals, daily entries and the per-day logs.

    Reads return ``None``/``[]`` when nothing matches; transport errors from
    supabase-py are left to propagate so the calling service decides whether
    they are fatal.
    """

    def __init__(self, client: Optional[Client] = None) -> None:
        if client is None:
            if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_ROLE_KEY:
                raise RuntimeError("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY")
            client = create_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE_KEY)
        self.client: Client = client

    # Users
    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        # Avoid 406 from maybe_single by using list semantics
        res = self.client.table('users').select('*').eq('id', user_id).limit(1).execute()
        return _first(res)

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table('users').update(fields).eq('id', user_id).execute()
        return _first(res) or {"id": user_id, **fields}

    # Goals
    def get_active_goal(self, user_id: str) -> Optional[Dict[str, Any]]:
        res = (self.client.table('goals').select('*')
               .eq('user_id', user_id)
               .eq('is_active', True)
               .limit(1).execute())
        return _first(res)

    def deactivate_goals(self, user_id: str) -> List[Any]:
        """Turn off every active goal of the user; returns the affected ids."""
        res = (self.client.table('goals')
               .update({'is_active': False})
               .eq('user_id', user_id)
               .eq('is_active', True)
               .execute())
        return [r.get('id') for r in _rows(res)]

    def insert_goal(self, record: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table('goals').insert(record).execute()
        return _first(res) or record

    def update_goal(self, goal_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table('goals').update(fields).eq('id', goal_id).execute()
        return _first(res) or fields

    # Daily entries
    def get_daily_entry(self, user_id: str, day: str) -> Optional[Dict[str, Any]]:
        res = (self.client.table('daily_entries').select('*')
               .eq('user_id', user_id)
               .eq('date', day)
               .limit(1).execute())
        return _first(res)

    def insert_daily_entry(self, record: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table('daily_entries').insert(record).execute()
        return _first(res) or record

    def update_daily_entry(self, entry_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        res = self.client.table('daily_entries').update(fields).eq('id', entry_id).execute()
        return _first(res) or fields

    def get_or_create_daily_entry(self, user_id: str, day: str) -> Dict[str, Any]:
        """Query-then-insert; the table has no native upsert on (user_id, date)."""
        entry = self.get_daily_entry(user_id, day)
        if entry:
            return entry
        return self.insert_daily_entry({
            "user_id": user_id,
            "date": day,
            "total_calories_in": 0,
            "total_calories_out": 0,
            "water_glasses": 0,
        })

    def get_balance_entries_since(self, user_id: str, start_date: str) -> List[Dict[str, Any]]:
        """Entries with a calculated balance since ``start_date``, newest first."""
        res = (self.client.table('daily_entries')
               .select('date, apparent_deficit, weight_kg')
               .eq('user_id', user_id)
               .gte('date', start_date)
               .not_.is_('apparent_deficit', 'null')
               .order('date', desc=True).execute())
        return _rows(res)

    def get_daily_entries_between(self, user_id: str, start: str, end: str) -> List[Dict[str, Any]]:
        res = (self.client.table('daily_entries').select('*')
               .eq('user_id', user_id)
               .gte('date', start)
               .lte('date', end)
               .order('date', desc=False).execute())
        return _rows(res)

    # Food / gym logs
    def get_logs_by_day(self, table: str, user_id: str, day: str) -> List[Dict[str, Any]]:
        res = (self.client.table(table).select('*')
               .eq('user_id', user_id)
               .eq('date', day)
               .order('created_at', desc=False).execute())
        return _rows(res)

    def get_logs_between(self, table: str, user_id: str, start: str, end: str) -> List[Dict[str, Any]]:
        res = (self.client.table(table).select('*')
               .eq('user_id', user_id)
               .gte('date', start)
               .lte('date', end).execute())
        return _rows(res)

    def get_log(self, table: str, user_id: str, log_id: Any) -> Optional[Dict[str, Any]]:
        res = (self.client.table(table).select('*')
               .eq('id', log_id)
               .eq('user_id', user_id)
               .limit(1).execute())
        return _first(res)

    def insert_log(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert one log row and return it.
        Raises if insertion fails so the caller can surface the error.
        """
        res = self.client.table(table).insert(record).execute()
        return _first(res) or {}

    def update_log(self, table: str, user_id: str, log_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        res = (self.client.table(table)
               .update(fields)
               .eq('id', log_id)
               .eq('user_id', user_id)
               .execute())
        return _first(res)

    def delete_log(self, table: str, user_id: str, log_id: Any) -> int:
        res = (self.client.table(table)
               .delete()
               .eq('id', log_id)
               .eq('user_id', user_id)
               .execute())
        return len(_rows(res))

    # Steps
    def get_steps(self, user_id: str, day: str) -> Optional[Dict[str, Any]]:
        res = (self.client.table('steps_logs').select('*')
               .eq('user_id', user_id)
               .eq('date', day)
               .limit(1).execute())
        return _first(res)

    def set_steps(self, user_id: str, day: str, steps: int) -> Dict[str, Any]:
        existing = self.get_steps(user_id, day)
        if existing:
            res = self.client.table('steps_logs').update({"steps": steps}).eq('id', existing['id']).execute()
            return _first(res) or {**existing, "steps": steps}
        res = self.client.table('steps_logs').insert({"user_id": user_id, "date": day, "steps": steps}).execute()
        return _first(res) or {"user_id": user_id, "date": day, "steps": steps}


_singleton: Optional[SupabaseService] = None

def get_supabase_service() -> SupabaseService:
    global _singleton
    if _singleton is None:
        _singleton = SupabaseService()
    return _singleton


def set_supabase_service(service: Optional[SupabaseService]) -> None:
    global _singleton
    _singleton = service
