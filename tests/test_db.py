import logging
from unittest import mock

import pytest

from bulkimport.db import Database
from bulkimport.importer import run
from graphext import CollectionNotFoundError

log = logging.getLogger(__file__)


@pytest.fixture
def driver():
    with mock.patch("bulkimport.db.GraphDatabase") as graph_database:
        yield graph_database.driver.return_value


def session_of(driver):
    return driver.session.return_value.__enter__.return_value


def test_connect(config, driver):
    db = Database.from_config(config)

    assert db.get_driver() is driver
    assert db.database == config.neo4j_database

    db.close()
    driver.close.assert_called_once()


def test_sessions_use_the_configured_database(driver):
    db = Database("bolt://localhost:7687", "neo4j", "secret", 300, database="graph")
    session_of(driver).run.return_value = [{"name": "x"}]

    assert db.execute_single("RETURN 1") == [{"name": "x"}]
    driver.session.assert_called_with(database="graph")


def test_get_collection(config, driver):
    db = Database.from_config(config)

    session_of(driver).run.return_value = [{"name": "Stores_id_unique"}]
    assert db.collection_exists("Stores")
    assert db.get_collection("Stores") == "Stores"

    session_of(driver).run.return_value = []
    assert not db.collection_exists("Stores")
    with pytest.raises(CollectionNotFoundError) as e:
        db.get_collection("Stores")
    assert str(e.value) == (
        f"collection does not exist: [{config.neo4j_database}.Stores]"
    )


def test_delete_collection_in_batches(config, driver, monkeypatch):
    monkeypatch.setattr("bulkimport.db.DELETE_BATCH_SIZE", 2)
    db = Database.from_config(config)
    session_of(driver).run.side_effect = [
        [{"count": 2}],
        [{"count": 2}],
        [{"count": 1}],
        [],
    ]

    assert db.delete_collection("Stores") == 5

    statements = [c.args[0] for c in session_of(driver).run.call_args_list]
    assert len(statements) == 4
    assert all("DETACH DELETE n" in s for s in statements[:3])
    assert "DROP CONSTRAINT `Stores_id_unique` IF EXISTS" in statements[3]


@pytest.mark.integration
def test_create_and_delete_collection(neo4j, config):
    collection = config.collection_name
    assert neo4j.get_collection(collection) == collection

    neo4j.delete_collection(collection)
    assert not neo4j.collection_exists(collection)

    neo4j.create_collection(collection)
    assert neo4j.collection_exists(collection)


@pytest.mark.integration
def test_import_into_neo4j(neo4j, config):
    collection = config.collection_name
    summary = run(config=config, db=neo4j, seed=11)
    assert summary.vertex_count == 25
    assert summary.edge_count == 25
    assert summary.total_units > 0

    # Upserts do not duplicate anything
    run(config=config, db=neo4j, seed=11)

    [nodes] = neo4j.execute_single(
        f"MATCH (n:`{collection}`:`Store`) RETURN count(n) AS count"
    )
    [relationships] = neo4j.execute_single(
        f"MATCH (:`{collection}`)-[r:`next`]->(:`{collection}`) RETURN count(r) AS count"
    )
    assert nodes["count"] == 25
    assert relationships["count"] == 25

    [store] = neo4j.execute_single(
        f"MATCH (n:`{collection}` {{ id: '1' }}) RETURN n"
    )
    log.info(store["n"])
    assert store["n"]["store_nbr"] == 1
    assert store["n"]["partitionKey"] == store["n"]["state_code"]
