from __future__ import annotations

from church_crm.storage.connection import DatabaseConnection, DBConfig
from church_crm.storage.mysql_store import MySQLStore
from church_crm.storage.store import InMemoryStore, JsonCollection, JsonDocument, UnitOfWork


def test_collections_are_namespaced_and_upsert_by_id():
    store = InMemoryStore()
    rows = JsonCollection(store, "people")

    rows.upsert({"id": "a", "name": "Ada"})
    rows.upsert({"id": "b", "name": "Bola"})
    rows.upsert({"id": "a", "name": "Ada O."})

    assert store.keys() == ["church-crm:people"]
    assert rows.load() == [{"id": "a", "name": "Ada O."}, {"id": "b", "name": "Bola"}]


def test_missing_blob_reads_as_empty():
    store = InMemoryStore()

    assert JsonCollection(store, "tallies").load() == []
    assert JsonDocument(store, "config").load() is None


def test_unit_of_work_is_reentrant():
    uow = UnitOfWork()
    entered = []

    with uow.atomic():
        with uow.atomic():
            entered.append(True)

    assert entered == [True]


class FakeCursor:
    def __init__(self, db):
        self._db = db
        self._row = None

    def execute(self, sql, params):
        if sql.strip().startswith("SELECT"):
            value = self._db.get(params[0])
            self._row = {"blob_value": value} if value is not None else None
        else:
            self._db[params[0]] = params[1]

    def fetchone(self):
        return self._row

    def close(self):
        pass


class FakeConnection:
    def __init__(self, db):
        self._db = db
        self.commits = 0

    def cursor(self, dictionary=True):
        return FakeCursor(self._db)

    def commit(self):
        self.commits += 1

    def rollback(self):
        pass

    def close(self):
        pass


class FakeConnectionFactory:
    def __init__(self):
        self.db = {}

    def connect(self):
        return FakeConnection(self.db)


def test_mysql_store_reads_back_what_it_wrote():
    factory = FakeConnectionFactory()
    store = MySQLStore(factory)

    assert store.get("church-crm:people") is None
    store.set("church-crm:people", "[]")
    store.set("church-crm:people", '[{"id": "a"}]')

    assert store.get("church-crm:people") == '[{"id": "a"}]'


def test_db_config_from_settings_dict_fills_defaults():
    config = DBConfig.from_dict({"host": "db.internal", "port": "3307", "password": "s3cret"})

    assert config == DBConfig(host="db.internal", port=3307, user="root", password="s3cret", database="church_crm")
    assert config.connect_kwargs()["database"] == "church_crm"
    assert "database" not in config.connect_kwargs(with_database=False)


def test_one_connection_factory_per_db_config():
    first = DatabaseConnection.get_instance(DBConfig(database="crm_a"))

    assert DatabaseConnection.get_instance(DBConfig(database="crm_a")) is first
    assert DatabaseConnection.get_instance(DBConfig(database="crm_b")) is not first
