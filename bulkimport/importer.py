import json
import logging
import os.path
from dataclasses import dataclass
from typing import ClassVar, Iterable, Optional

import marshmallow  # type: ignore
import structlog  # type: ignore
from marshmallow import fields  # type: ignore
from neo4j.exceptions import DriverError, Neo4jError  # type: ignore

from graphext.json import CamelCaseSchema, Serializable

from .config import Config
from .db import Database
from .executor import (
    BulkExecutor,
    BulkImportResponse,
    CancellationToken,
    GraphBulkExecutor,
    document_repr,
)
from .models import generate_edges, generate_stores, generate_vertices

log = logging.getLogger(__name__)

BAD_VERTICES_FILE = "BadVertices.txt"
BAD_EDGES_FILE = "BadEdges.txt"
STATISTICS_FILE = "statistics.json"


class ImportSummarySchema(CamelCaseSchema):
    vertex_count = fields.Integer()
    vertex_seconds = fields.Float()
    vertex_units = fields.Float()
    bad_vertex_count = fields.Integer()
    edge_count = fields.Integer()
    edge_seconds = fields.Float()
    edge_units = fields.Float()
    bad_edge_count = fields.Integer()
    element_count = fields.Integer()
    total_seconds = fields.Float()
    total_units = fields.Float()
    writes_per_second = fields.Float()
    units_per_second = fields.Float()
    average_units_per_insert = fields.Float()


@dataclass(frozen=True)
class ImportSummary(Serializable):
    """
    Aggregate statistics for the vertex and edge imports of one run.
    """

    __schema__: ClassVar[ImportSummarySchema] = ImportSummarySchema(
        unknown=marshmallow.EXCLUDE
    )

    vertex_count: int
    vertex_seconds: float
    vertex_units: float
    bad_vertex_count: int
    edge_count: int
    edge_seconds: float
    edge_units: float
    bad_edge_count: int

    @classmethod
    def from_responses(
        cls, vertices: BulkImportResponse, edges: BulkImportResponse
    ) -> "ImportSummary":
        return cls(
            vertex_count=vertices.number_of_documents_imported,
            vertex_seconds=vertices.total_time_taken.total_seconds(),
            vertex_units=vertices.total_request_units_consumed,
            bad_vertex_count=len(vertices.bad_input_documents),
            edge_count=edges.number_of_documents_imported,
            edge_seconds=edges.total_time_taken.total_seconds(),
            edge_units=edges.total_request_units_consumed,
            bad_edge_count=len(edges.bad_input_documents),
        )

    @property
    def element_count(self) -> int:
        return self.vertex_count + self.edge_count

    @property
    def total_seconds(self) -> float:
        return self.vertex_seconds + self.edge_seconds

    @property
    def total_units(self) -> float:
        return self.vertex_units + self.edge_units

    @property
    def writes_per_second(self) -> float:
        if self.total_seconds <= 0:
            return 0.0
        return round(self.element_count / self.total_seconds)

    @property
    def units_per_second(self) -> float:
        if self.total_seconds <= 0:
            return 0.0
        return round(self.total_units / self.total_seconds)

    @property
    def average_units_per_insert(self) -> float:
        if self.element_count == 0:
            return 0.0
        return self.total_units / self.element_count

    def __str__(self):
        return (
            f"Inserted {self.element_count} graph elements "
            f"({self.vertex_count} vertices, {self.edge_count} edges) "
            f"@ {self.writes_per_second} writes/s, {self.units_per_second} units/s "
            f"in {self.total_seconds:.3f} sec"
        )


def append_documents(path: str, documents: Iterable[object]) -> int:
    count = 0
    with open(path, "a") as f:
        for doc in documents:
            f.write(json.dumps(document_repr(doc), default=str) + "\n")
            count += 1
    return count


def write_bad_documents(
    output_dir: str, vertices: BulkImportResponse, edges: BulkImportResponse
) -> bool:
    """
    Append rejected vertices and edges to their sinks. Nothing is written
    unless at least one document was rejected.
    """
    if not (vertices.bad_input_documents or edges.bad_input_documents):
        return False

    bad_vertices = append_documents(
        os.path.join(output_dir, BAD_VERTICES_FILE), vertices.bad_input_documents
    )
    bad_edges = append_documents(
        os.path.join(output_dir, BAD_EDGES_FILE), edges.bad_input_documents
    )
    log.warning(
        f"Rejected {bad_vertices} vertices and {bad_edges} edges, see {output_dir}"
    )
    return True


def initialize_collection(db: Database, config: Config) -> str:
    try:
        if config.should_cleanup_on_start:
            return db.recreate_collection(config.collection_name)
        return db.get_collection(config.collection_name)
    except Exception:
        log.error("Unable to initialize", exc_info=True)
        raise


def run(
    config: Optional[Config] = None,
    db: Optional[Database] = None,
    executor: Optional[BulkExecutor] = None,
    statistics: bool = False,
    seed: Optional[int] = None,
    cancellation_token: Optional[CancellationToken] = None,
) -> Optional[ImportSummary]:
    """
    Generate stores, bulk import them as vertices and then the edges linking
    them, and report the outcome.

    Returns `None` if the import failed in the database.
    """
    if config is None:
        config = Config()

    if cancellation_token is None:
        cancellation_token = CancellationToken()

    logger = structlog.get_logger(__name__).bind(
        endpoint=config.neo4j_url,
        collection=f"{config.neo4j_database}.{config.collection_name}",
    )
    logger.info("Starting bulk import")

    if db is None:
        db = Database.from_config(config)
        close_db = True
    else:
        close_db = False

    try:
        initialize_collection(db, config)

        if executor is None:
            executor = GraphBulkExecutor(
                db, config.collection_name, batch_size=config.batch_size
            )
        executor.initialize()

        stores = list(generate_stores(config.number_of_documents_to_import, seed))

        try:
            vertices = executor.bulk_import(
                generate_vertices(stores, config.partition_key_field),
                enable_upsert=True,
                disable_automatic_id_generation=True,
                max_concurrency_per_partition_key_range=None,
                max_in_memory_sorting_batch_size=None,
                cancellation_token=cancellation_token,
            )

            edges = executor.bulk_import(
                generate_edges(stores, config.partition_key_field),
                enable_upsert=True,
                disable_automatic_id_generation=True,
                max_concurrency_per_partition_key_range=None,
                max_in_memory_sorting_batch_size=None,
                cancellation_token=cancellation_token,
            )
        except (Neo4jError, DriverError):
            logger.error("Bulk import failed", exc_info=True)
            return None

        summary = ImportSummary.from_responses(vertices, edges)
        logger.info(str(summary), **summary.to_dict(camel_case=False))

        write_bad_documents(config.output_dir, vertices, edges)

        if statistics:
            logger.info(f"Writing {STATISTICS_FILE}")
            with open(
                os.path.join(config.output_dir, STATISTICS_FILE), "w"
            ) as statistics_file:
                statistics_file.write(summary.to_json())

        if config.should_cleanup_on_finish:
            db.delete_collection(config.collection_name)

        logger.info("--- DONE ---")
        return summary
    finally:
        if close_db:
            db.close()
