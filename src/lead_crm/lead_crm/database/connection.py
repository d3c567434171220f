from __future__ import annotations

from dataclasses import dataclass

import mysql.connector


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = 10


class DatabaseConnection:
    """DB connection factory bound to one DBConfig.

    Note: We create short-lived connections per operation (one per request step).
    """

    def __init__(self, config: DBConfig):
        self._config = config

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=int(self._config.connect_timeout),
            time_zone="+00:00",
        )
