"""
Ledger stores.

A store loads and saves the whole ledger as one JSON blob. Loading never
fails: an absent, unreadable or malformed blob gives an empty ledger.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from config import Config
from db import create_db_and_tables, get_session, make_engine
from exceptions import MalformedPersistedState
from ledger import GameLedger, LedgerEvent
from models import SavedLedger

logger = logging.getLogger(__name__)


def decode_ledger(blob: Optional[str]) -> GameLedger:
    """Build a ledger from a stored JSON string, falling back to an empty one."""
    if not blob:
        return GameLedger()
    try:
        return GameLedger.from_dict(json.loads(blob))
    except (ValueError, RecursionError, MalformedPersistedState) as exc:
        # json.JSONDecodeError is a ValueError; deep nesting hits the recursion limit
        logger.warning(f"Failed to load game state, starting fresh: {exc}")
        return GameLedger()


def encode_ledger(ledger: GameLedger) -> str:
    return json.dumps(ledger.to_dict())


class LedgerStore:
    """Base store: subclasses provide ``_read`` and ``_write`` for the raw blob."""

    io_errors = (OSError,)

    def _read(self) -> Optional[str]:
        raise NotImplementedError

    def _write(self, blob: str) -> None:
        raise NotImplementedError

    def load(self) -> GameLedger:
        try:
            blob = self._read()
        except self.io_errors + (UnicodeDecodeError,) as exc:
            logger.warning(f"Could not read stored game state: {exc}")
            return GameLedger()
        return decode_ledger(blob)

    def save(self, ledger: GameLedger) -> None:
        self._write(encode_ledger(ledger))

    def attach(self, ledger: GameLedger) -> Callable[[], None]:
        """Save the full ledger after every mutation. Returns the unsubscribe hook."""
        def _autosave(event: LedgerEvent) -> None:
            if not event.is_mutation:
                return
            try:
                self.save(ledger)
            except self.io_errors:
                logger.exception(f"Failed to save game state after {event.kind.value}")
        return ledger.subscribe(_autosave)


class MemoryStore(LedgerStore):
    def __init__(self, blob: Optional[str] = None):
        self.blob = blob
        self.saves = 0

    def _read(self) -> Optional[str]:
        return self.blob

    def _write(self, blob: str) -> None:
        self.blob = blob
        self.saves += 1


class JsonFileStore(LedgerStore):
    def __init__(self, path):
        self.path = Path(path)

    def _read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def _write(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(blob, encoding="utf-8")
        tmp.replace(self.path)


class SqlLedgerStore(LedgerStore):
    """Keeps the blob in a single ``SavedLedger`` row addressed by ``key``."""

    io_errors = (OSError, SQLAlchemyError)

    def __init__(self, engine, key: str = Config.STORAGE_KEY):
        self.engine = engine
        self.key = key
        create_db_and_tables(engine)

    def _read(self) -> Optional[str]:
        with get_session(self.engine) as session:
            row = session.get(SavedLedger, self.key)
            return row.payload if row else None

    def _write(self, blob: str) -> None:
        with get_session(self.engine) as session:
            row = session.get(SavedLedger, self.key)
            if row is None:
                row = SavedLedger(key=self.key, payload=blob)
            else:
                row.payload = blob
                row.updated_at = datetime.utcnow()
            session.add(row)
            session.commit()


def store_from_config(config=Config) -> LedgerStore:
    if config.STORAGE == "json":
        return JsonFileStore(config.JSON_PATH)
    if config.STORAGE != "sqlite":
        logger.warning(f"Unknown storage {config.STORAGE!r}, using sqlite")
    return SqlLedgerStore(make_engine(config.DB_PATH), key=config.STORAGE_KEY)
