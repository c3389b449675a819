import threading
from contextlib import contextmanager
from types import SimpleNamespace

import pytest
from neo4j.exceptions import ConstraintError

from bulkimport.config import Config
from bulkimport.db import Database
from bulkimport.logging import configure_logging
from graphext import CollectionNotFoundError

COLLECTION = "TestStores"


class MockResult:
    def __init__(self, records, counters):
        self.records = records
        self.counters = counters

    def __iter__(self):
        return iter(self.records)

    def consume(self):
        return SimpleNamespace(counters=self.counters)


class MockTransaction:
    """
    Interprets the UNWIND statements of `GraphBulkExecutor` against the
    vertices and edges held by a `MockDatabase`.
    """

    def __init__(self, db):
        self.db = db

    def run(self, cmd, rows=(), **kwargs):
        with self.db.lock:
            self.db.statements.append(cmd)
            if self.db.exc:
                raise self.db.exc

            if "row.out_id" in cmd:
                written = [
                    r
                    for r in rows
                    if r["out_id"] in self.db.vertices and r["in_id"] in self.db.vertices
                ]
                for r in written:
                    self.db.edges[r["id"]] = r
                counters = SimpleNamespace(
                    nodes_created=0,
                    relationships_created=len(written),
                    properties_set=sum(len(r["properties"]) for r in written),
                    labels_added=0,
                )
            else:
                written = list(rows)
                ids = [r["id"] for r in written]
                if "MERGE" not in cmd and (
                    len(set(ids)) < len(ids)
                    or any(id in self.db.vertices for id in ids)
                ):
                    raise ConstraintError("Node already exists with property id")
                created = [r for r in written if r["id"] not in self.db.vertices]
                for r in written:
                    self.db.vertices[r["id"]] = r
                counters = SimpleNamespace(
                    nodes_created=len(created),
                    relationships_created=0,
                    properties_set=sum(len(r["properties"]) for r in written),
                    labels_added=2 * len(created),
                )

        return MockResult([{"id": r["id"]} for r in written], counters)


class MockSession:
    def __init__(self, db):
        self.db = db

    def execute_write(self, work, *args, **kwargs):
        return work(MockTransaction(self.db), *args, **kwargs)


class MockDatabase:
    """
    Stands in for `bulkimport.db.Database` without a Neo4j server.
    """

    database = "neo4j"

    def __init__(self, collections=(COLLECTION,)):
        self.collections = set(collections)
        self.vertices = {}
        self.edges = {}
        self.statements = []
        self.lock = threading.Lock()
        self.exc = None
        self.closed = False

    def raise_exception(self, exc):
        self.exc = exc

    @contextmanager
    def session(self):
        yield MockSession(self)

    def get_collection(self, collection):
        if collection not in self.collections:
            raise CollectionNotFoundError(
                database=self.database, collection=collection
            )
        return collection

    def create_collection(self, collection):
        self.collections.add(collection)
        return collection

    def delete_collection(self, collection):
        deleted = len(self.vertices)
        self.collections.discard(collection)
        self.vertices.clear()
        self.edges.clear()
        return deleted

    def recreate_collection(self, collection):
        self.delete_collection(collection)
        return self.create_collection(collection)

    def close(self):
        self.closed = True


@pytest.fixture(scope="session", autouse=True)
def enable_logging(request):
    configure_logging("debug")


@pytest.fixture(scope="function")
def config(tmp_path):
    return Config(
        collection_name=COLLECTION,
        partition_key_field="state_code",
        number_of_documents_to_import=25,
        batch_size=10,
        should_cleanup_on_start=False,
        should_cleanup_on_finish=False,
        output_dir=str(tmp_path),
    )


@pytest.fixture(scope="function")
def mock_db():
    return MockDatabase()


@pytest.fixture(scope="function")
def empty_db():
    return MockDatabase(collections=())


@pytest.fixture
def neo4j(config):
    """
    Connect to a live Neo4j instance with an empty test collection.
    """
    db = Database.from_config(config)
    db.recreate_collection(COLLECTION)
    yield db

    db.delete_collection(COLLECTION)
    db.close()
