import os
import sys
import pytest

# Ensure the repo root (containing ledger.py, storage.py, ...) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
REPO_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from db import make_engine
from ledger import GameLedger


@pytest.fixture()
def ledger():
    return GameLedger()


@pytest.fixture()
def two_players(ledger):
    a = ledger.add_player('Alice')
    b = ledger.add_player('Bob')
    return ledger, a, b


@pytest.fixture()
def engine():
    eng = make_engine(':memory:')
    yield eng
    eng.dispose()


@pytest.fixture()
def json_path(tmp_path):
    return tmp_path / 'state' / 'rummy.json'
