import json
import logging

import pytest

from exceptions import NoWinnerSelected
from ledger import GameLedger
from models import SavedLedger
from storage import (
    JsonFileStore,
    MemoryStore,
    SqlLedgerStore,
    decode_ledger,
    encode_ledger,
    store_from_config,
)
from db import get_session


def _sample_ledger():
    ledger = GameLedger()
    a = ledger.add_player('Alice')
    b = ledger.add_player('Bob')
    ledger.add_round({a.id: 20, b.id: -5}, ace_holder=a.id, winner=a.id)
    ledger.add_round({a.id: -10, b.id: 30}, winner=b.id)
    return ledger


def test_round_trip_through_json_text():
    ledger = _sample_ledger()
    restored = decode_ledger(encode_ledger(ledger))
    assert restored.totals() == ledger.totals()
    assert restored.leader() == ledger.leader()
    assert restored.next_round_id == ledger.next_round_id


def test_decode_falls_back_to_empty(caplog):
    with caplog.at_level(logging.WARNING, logger='storage'):
        for blob in [None, '', '{not json', '[1, 2]', json.dumps({'rounds': [{'id': 'x'}]}),
                     '[' * 100000 + ']' * 100000]:
            ledger = decode_ledger(blob)
            assert ledger.players == []
            assert ledger.rounds == []
    assert 'starting fresh' in caplog.text


def test_memory_store_autosaves_every_mutation():
    store = MemoryStore()
    ledger = store.load()
    store.attach(ledger)
    a = ledger.add_player('A')
    ledger.add_player('B')
    r = ledger.add_round({a.id: 3}, winner=a.id)
    ledger.edit_round(r.id, {a.id: 4}, winner=a.id)
    ledger.delete_round(r.id)
    assert store.saves == 5
    assert json.loads(store.blob)['rounds'] == []


def test_rejections_do_not_trigger_save():
    store = MemoryStore()
    ledger = store.load()
    store.attach(ledger)
    a = ledger.add_player('A')
    saves = store.saves
    with pytest.raises(NoWinnerSelected):
        ledger.add_round({a.id: 1})
    assert store.saves == saves


def test_deeply_nested_blob_loads_empty():
    ledger = MemoryStore('[' * 100000 + ']' * 100000).load()
    assert ledger.players == []
    assert ledger.rounds == []


def test_json_file_store_persists_across_instances(json_path):
    store = JsonFileStore(json_path)
    assert store.load().players == []

    ledger = store.load()
    store.attach(ledger)
    a = ledger.add_player('Alice')
    ledger.add_round({a.id: 12}, ace_holder=a.id, winner=a.id)

    reloaded = JsonFileStore(json_path).load()
    assert reloaded.totals() == {a.id: 62}
    assert reloaded.players[0].name == 'Alice'


def test_json_file_store_with_garbage_file(json_path):
    json_path.parent.mkdir(parents=True)
    json_path.write_text('definitely not json', encoding='utf-8')
    ledger = JsonFileStore(json_path).load()
    assert ledger.players == []


def test_json_file_store_with_undecodable_bytes(json_path):
    json_path.parent.mkdir(parents=True)
    json_path.write_bytes(b'\xff\xfe\x00garbage')
    assert JsonFileStore(json_path).load().rounds == []


def test_sql_store_round_trip(engine):
    store = SqlLedgerStore(engine, key='game-1')
    assert store.load().players == []

    original = _sample_ledger()
    store.save(original)
    restored = SqlLedgerStore(engine, key='game-1').load()
    assert restored.totals() == original.totals()
    assert restored.leader() == original.leader()

    # a different key is an independent ledger
    assert SqlLedgerStore(engine, key='game-2').load().players == []


def test_sql_store_overwrites_single_row(engine):
    store = SqlLedgerStore(engine, key='k')
    ledger = store.load()
    store.attach(ledger)
    ledger.add_player('A')
    ledger.add_player('B')
    with get_session(engine) as session:
        row = session.get(SavedLedger, 'k')
        assert len(json.loads(row.payload)['players']) == 2


def test_sql_store_with_malformed_row(engine):
    store = SqlLedgerStore(engine, key='k')
    with get_session(engine) as session:
        session.add(SavedLedger(key='k', payload='{"players": 5}'))
        session.commit()
    assert store.load().players == []


def test_store_from_config(tmp_path):
    class JsonConfig:
        STORAGE = 'json'
        JSON_PATH = str(tmp_path / 'x.json')

    class SqlConfig:
        STORAGE = 'sqlite'
        DB_PATH = str(tmp_path / 'x.db')
        STORAGE_KEY = 'rummy'

    assert isinstance(store_from_config(JsonConfig), JsonFileStore)
    sql_store = store_from_config(SqlConfig)
    assert isinstance(sql_store, SqlLedgerStore)
    assert sql_store.key == 'rummy'
    sql_store.engine.dispose()
