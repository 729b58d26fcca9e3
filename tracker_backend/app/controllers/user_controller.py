from __future__ import annotations
from typing import Dict, Any

from ..services.supabase_service import get_supabase_service

GENDERS = ('male', 'female')


def upsert_profile_controller(payload: Dict[str, Any]) -> Dict[str, Any]:
    try:
        fields: Dict[str, Any] = {
            "height_cm": float(payload["height_cm"]),
            "age": int(payload["age"]),
            "gender": str(payload["gender"]).lower(),
        }
    except (TypeError, ValueError):
        return {"success": False, "error": "height_cm and age must be numbers"}
    if fields["height_cm"] <= 0 or fields["age"] <= 0:
        return {"success": False, "error": "height_cm and age must be positive"}
    # BMR only has male/female offsets
    if fields["gender"] not in GENDERS:
        return {"success": False, "error": f"gender must be one of {', '.join(GENDERS)}"}
    sg = payload.get("steps_goal")
    if sg is not None and sg != "":
        try:
            fields["steps_goal"] = int(sg)
        except (TypeError, ValueError):
            return {"success": False, "error": "steps_goal must be an integer"}
    sb = get_supabase_service()
    saved = sb.update_user(payload["user_id"], fields)
    return {"success": True, "profile": saved}
