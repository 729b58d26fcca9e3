from __future__ import annotations
import os
from dotenv import load_dotenv

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
# Ensure we always load the project root .env, regardless of current working directory
load_dotenv(os.path.join(BASE_DIR, ".env"))

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

REQUIRE_JWT = os.getenv("REQUIRE_JWT", "true").lower() == "true"
DEMO_USER_ID = os.getenv("DEMO_USER_ID", "").strip()

CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

WATER_GOAL_GLASSES = int(os.getenv("WATER_GOAL_GLASSES", "8"))
