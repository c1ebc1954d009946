import os

from config import db_config_from_env, env_flag

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env(database="payroll_test_db")

DEBUG = False
TESTING = True

BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE") or None
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
