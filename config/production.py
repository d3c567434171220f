import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = Config.db_config()

APP_TIMEZONE = Config.APP_TIMEZONE
LOG_LEVEL = Config.LOG_LEVEL

DEBUG = False

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
