import sqlite3
import logging
from typing import Optional

from ..config import SinkConfig
from ..exceptions import PersistenceError
from ..models import FileRecord
from .db import DBManager
from .ops import DBOperations


class SQLitePersistenceSink:
    """
    Terminal stage target: stores each FileRecord as a row in `files`.

    SQLite connections are bound to the thread that opened them, so `open`,
    `store` and `close` must all run on the persistence stage's thread.
    """

    def __init__(self, sink_config: SinkConfig):
        self.config = sink_config
        self.db_manager = DBManager(sink_config.db_path)
        self._ops: Optional[DBOperations] = None
        self._pending = 0

    def open(self):
        conn = self.db_manager.connect()
        self._ops = DBOperations(conn)
        self._pending = 0

    def store(self, record: FileRecord):
        if self._ops is None:
            raise PersistenceError("Sink is not open", record.path)
        try:
            self._ops.insert_file_record(record)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot store {record.path}: {e}", record.path) from e

        logging.debug(f"Stored {record.path}")
        self._pending += 1
        if self._pending >= self.config.commit_interval:
            self._commit()

    def close(self):
        if self._ops is None:
            return
        try:
            self._commit()
        finally:
            self._ops = None
            self.db_manager.close()

    def _commit(self):
        try:
            self._ops.conn.commit()
        except sqlite3.Error as e:
            raise PersistenceError(f"Commit failed: {e}", self.config.db_path) from e
        self._pending = 0
