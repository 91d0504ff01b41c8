# /db.py
from contextlib import contextmanager
from pathlib import Path
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from config import Config


def make_engine(db_path=None):
    """SQLite engine for the ledger store; ``":memory:"`` gives a throwaway database."""
    db_path = db_path or Config.DB_PATH
    if db_path == ":memory:":
        return create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{path.as_posix()}", connect_args={"check_same_thread": False})


def create_db_and_tables(engine) -> None:
    # Ensure the table class is registered with SQLModel.metadata
    # BEFORE create_all runs.
    from models import SavedLedger  # noqa: F401
    SQLModel.metadata.create_all(engine)


@contextmanager
def get_session(engine):
    with Session(engine) as session:
        yield session
