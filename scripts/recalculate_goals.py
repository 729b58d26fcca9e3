from __future__ import annotations
import logging

from tracker_backend.app.services.goal_service import recalculate_goal_cumulatives
from tracker_backend.app.services.supabase_service import get_supabase_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CHUNK = 500

if __name__ == "__main__":
    # Rebuild cumulative figures for every active goal, e.g. after a manual data fix
    sb = get_supabase_service()
    offset = 0
    done = 0
    while True:
        res = (sb.client.table('goals').select('user_id')
               .eq('is_active', True)
               .order('user_id')
               .range(offset, offset + CHUNK - 1).execute())
        rows = res.data or []
        for r in rows:
            if recalculate_goal_cumulatives(r['user_id']) is not None:
                done += 1
        if len(rows) < CHUNK:
            break
        offset += CHUNK
    logger.info("Recalculated %d active goal(s).", done)
