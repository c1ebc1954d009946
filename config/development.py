import os

from config import db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env()

DEBUG = env_flag("DEBUG", "1")

# IANA zone used for clock-in/clock-out wall-clock times; empty means server local time
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE") or None

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Also load database/seed.sql demo data
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
