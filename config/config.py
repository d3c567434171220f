import os


class Config:
    """Settings shared by every environment; each env module reads from here."""

    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key"

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "lead_crm")
    DB_CONNECT_TIMEOUT = int(os.environ.get("DB_CONNECT_TIMEOUT", "10"))

    # Business timezone that decides where a calendar day starts and ends
    APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "UTC")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    AUTO_INIT_DB = bool(int(os.environ.get("AUTO_INIT_DB", "0")))
    AUTO_SEED_DB = bool(int(os.environ.get("AUTO_SEED_DB", "0")))

    @classmethod
    def db_config(cls) -> dict:
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
            "connect_timeout": cls.DB_CONNECT_TIMEOUT,
        }
