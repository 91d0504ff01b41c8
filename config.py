# /config.py
import os


class Config:
    # Where the SQLite-backed store keeps its single ledger row
    DB_PATH = os.environ.get("RUMMY_DB_PATH", "data/rummy.db")
    # "sqlite" or "json"
    STORAGE = os.environ.get("RUMMY_STORAGE", "sqlite").lower()
    JSON_PATH = os.environ.get("RUMMY_JSON_PATH", "data/rummy-scores-game.json")
    STORAGE_KEY = os.environ.get("RUMMY_STORAGE_KEY", "rummy-scores-game")
    LOG_LEVEL = os.environ.get("RUMMY_LOG_LEVEL", "INFO").upper()
