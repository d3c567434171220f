import os

from .config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = Config.db_config()

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "UTC")
LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
