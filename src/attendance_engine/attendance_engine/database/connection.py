from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    charset: str = "utf8mb4"

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        """Build from the ``DB_CONFIG`` dict of a settings module."""
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "attendance_engine")),
            charset=str(db_config.get("charset", "utf8mb4")),
        )

    def describe(self) -> str:
        """``user@host:port/database`` for log lines (never the password)."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    def open(self, *, select_database: bool = True):
        params = dict(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            charset=self.charset,
            use_pure=True,
        )
        if select_database:
            params["database"] = self.database
        return mysql.connector.connect(**params)


class DatabaseConnection:
    """Process-wide connection factory shared by the MySQL repositories.

    Note: Each repository call opens a short-lived connection, so every
    operation is its own transaction.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None or cls._instance.config != config:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return self._config.open()
