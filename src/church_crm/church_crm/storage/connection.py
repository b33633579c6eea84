from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Mapping

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "church_crm"

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "DBConfig":
        """Build from a settings `DB_CONFIG` dict; missing keys use defaults."""
        defaults = cls()
        return cls(
            host=str(raw.get("host") or defaults.host),
            port=int(raw.get("port") or defaults.port),
            user=str(raw.get("user") or defaults.user),
            password=str(raw.get("password") or defaults.password),
            database=str(raw.get("database") or defaults.database),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "use_pure": True,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Hands out short-lived MySQL connections, one factory per DBConfig."""

    _instances: ClassVar[dict[DBConfig, "DatabaseConnection"]] = {}

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        return cls._instances.setdefault(config, cls(config))

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self, *, with_database: bool = True):
        return mysql.connector.connect(**self._config.connect_kwargs(with_database=with_database))
