import logging
from contextlib import contextmanager

from neo4j import Driver, GraphDatabase, basic_auth  # type: ignore
from typing_extensions import Protocol

from graphext import CollectionNotFoundError

from . import labels
from .config import Config

log = logging.getLogger(__name__)


# Nodes removed per transaction when a collection is deleted:
DELETE_BATCH_SIZE: int = 10000


class Transactional(Protocol):
    """
    Classes that support database transactions, etc. must implement this
    protocol.
    """

    database: str

    def get_driver(self) -> Driver:
        raise NotImplementedError

    @contextmanager
    def session(self):
        with self.get_driver().session(database=self.database) as s:
            yield s

    def execute_single(self, cmd: str, **kwargs):
        """
        Execute a single statement with autocommit, returning all records.
        """
        with self.session() as s:
            return list(s.run(cmd, **kwargs))


class Database(Transactional):
    def __init__(
        self,
        uri: str,
        user: str,
        password: str,
        max_connection_lifetime: int,
        database: str = "neo4j",
    ):
        """
        Instantiate a new database connection.
        """
        self.driver = GraphDatabase.driver(
            uri,
            auth=basic_auth(user, password),
            max_connection_lifetime=max_connection_lifetime,
        )
        self.database = database

    def get_driver(self) -> Driver:
        return self.driver

    @classmethod
    def from_config(cls, config: Config) -> "Database":
        """
        Given a configuration, create a new database connection.
        """
        return cls(
            config.neo4j_url,
            config.neo4j_user,
            config.neo4j_password,
            config.neo4j_max_connection_lifetime,
            config.neo4j_database,
        )

    def close(self) -> None:
        self.driver.close()

    def collection_exists(self, collection: str) -> bool:
        """
        A collection exists once its id uniqueness constraint does.
        """
        records = self.execute_single(
            "SHOW CONSTRAINTS YIELD name WHERE name = $name RETURN name",
            name=labels.constraint_name(collection),
        )
        return len(records) > 0

    def get_collection(self, collection: str) -> str:
        if not self.collection_exists(collection):
            raise CollectionNotFoundError(
                database=self.database, collection=collection
            )
        return collection

    def create_collection(self, collection: str) -> str:
        log.info(f"Creating collection {self.database}.{collection}")
        self.execute_single(
            f"""
            CREATE CONSTRAINT {labels.quote(labels.constraint_name(collection))}
            IF NOT EXISTS
            FOR ({labels.collection(collection, "n")})
            REQUIRE n.id IS UNIQUE
            """
        )
        return collection

    def delete_collection(self, collection: str) -> int:
        """
        Detach and delete every node of the collection, then drop its
        constraint. Returns the number of deleted nodes.
        """
        log.info(f"Deleting collection {self.database}.{collection}")
        deleted = 0
        while True:
            records = self.execute_single(
                f"""
                MATCH ({labels.collection(collection, "n")})
                WITH n LIMIT $limit
                DETACH DELETE n
                RETURN count(*) AS count
                """,
                limit=DELETE_BATCH_SIZE,
            )
            count = records[0]["count"] if records else 0
            deleted += count
            if count < DELETE_BATCH_SIZE:
                break

        self.execute_single(
            f"DROP CONSTRAINT {labels.quote(labels.constraint_name(collection))} IF EXISTS"
        )
        log.info(f"Deleted {deleted} nodes from {self.database}.{collection}")
        return deleted

    def recreate_collection(self, collection: str) -> str:
        self.delete_collection(collection)
        return self.create_collection(collection)
