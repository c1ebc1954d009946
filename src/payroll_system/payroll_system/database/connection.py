from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Optional

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per operation. Inside
    `transaction()` every repository call on this thread shares one
    connection and commits or rolls back together.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        return mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
        )

    def active_connection(self) -> Optional[Any]:
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Unit of work: all-or-nothing across repository calls.

        Nested calls join the outer transaction.
        """
        current = self.active_connection()
        if current is not None:
            yield current
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            yield conn
            conn.commit()
        except Exception:
            logger.warning("rolling back transaction")
            conn.rollback()
            raise
        finally:
            self._local.conn = None
            conn.close()
