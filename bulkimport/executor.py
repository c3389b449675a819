import logging
import threading
import time
import uuid
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from datetime import time as time_of_day
from typing import ClassVar, Dict, Iterable, List, Optional, Tuple

import marshmallow  # type: ignore
from marshmallow import fields  # type: ignore
from more_itertools import chunked  # type: ignore
from neo4j import ManagedTransaction  # type: ignore
from neo4j.exceptions import ConstraintError  # type: ignore
from neo4j.spatial import Point  # type: ignore
from neo4j.time import Date, DateTime, Duration, Time  # type: ignore
from typing_extensions import Protocol

from graphext import GremlinEdge, GremlinVertex, InvalidArgumentError
from graphext.json import CamelCaseSchema, Serializable

from . import labels
from .db import Database

log = logging.getLogger(__name__)

CancellationToken = threading.Event

# Documents read from the input and grouped by partition key at a time:
DEFAULT_MAX_IN_MEMORY_SORTING_BATCH_SIZE: int = 10000

# Rows per UNWIND statement:
DEFAULT_BATCH_SIZE: int = 500

MIN_INT64 = -(2 ** 63)
MAX_INT64 = 2 ** 63 - 1

STORABLE_SCALARS = (
    bool,
    int,
    float,
    str,
    bytes,
    date,
    datetime,
    time_of_day,
    timedelta,
    Date,
    DateTime,
    Time,
    Duration,
    Point,
)


def is_storable_scalar(value: object) -> bool:
    if isinstance(value, int) and not isinstance(value, bool):
        return MIN_INT64 <= value <= MAX_INT64
    return isinstance(value, STORABLE_SCALARS)


def is_storable(value: object) -> bool:
    """
    Tests if Neo4j can hold `value` as a property: a scalar, or a list of
    scalars of a single type.
    """
    if isinstance(value, (list, tuple)):
        return (
            all(v is not None and is_storable_scalar(v) for v in value)
            and len(set(type(v) for v in value)) <= 1
        )
    return is_storable_scalar(value)


def document_repr(doc: object) -> object:
    if isinstance(doc, Serializable):
        return doc.to_dict()
    return str(doc)


class BulkImportResponseSchema(CamelCaseSchema):
    number_of_documents_imported = fields.Integer()
    total_time_taken = fields.Method("get_total_time_taken")
    total_request_units_consumed = fields.Float()
    bad_input_documents = fields.Method("get_bad_input_documents")

    def get_total_time_taken(self, obj):
        return obj.total_time_taken.total_seconds()

    def get_bad_input_documents(self, obj):
        return [document_repr(doc) for doc in obj.bad_input_documents]


@dataclass(frozen=True)
class BulkImportResponse(Serializable):
    """
    The outcome of one `bulk_import` call.

    `total_request_units_consumed` is the number of write operations the
    server reported: nodes and relationships created, properties set and
    labels added.
    """

    __schema__: ClassVar[BulkImportResponseSchema] = BulkImportResponseSchema(
        unknown=marshmallow.EXCLUDE
    )

    number_of_documents_imported: int = 0
    total_time_taken: timedelta = field(default_factory=timedelta)
    total_request_units_consumed: float = 0.0
    bad_input_documents: List[object] = field(default_factory=list)


class BulkExecutor(Protocol):
    """
    Loads graph elements in bulk. Batching, partitioning, retries on
    transient errors and parallelism are the executor's concern; callers only
    hand over documents and read back a `BulkImportResponse`.
    """

    def initialize(self) -> None:
        raise NotImplementedError

    def bulk_import(
        self,
        documents: Iterable[object],
        enable_upsert: bool = False,
        disable_automatic_id_generation: bool = True,
        max_concurrency_per_partition_key_range: Optional[int] = None,
        max_in_memory_sorting_batch_size: Optional[int] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BulkImportResponse:
        raise NotImplementedError


@dataclass
class Batch:
    label: str
    rows: List[dict]
    documents: List[object]
    is_edge: bool = False


@dataclass
class BatchResult:
    imported: int = 0
    units: float = 0.0
    rejected: List[object] = field(default_factory=list)


def partition_of(key: object) -> str:
    # Partition keys may be unhashable (lists); group on their representation
    return repr(key)


class GraphBulkExecutor(BulkExecutor):
    """
    A `BulkExecutor` writing `GremlinVertex` and `GremlinEdge` documents into
    a Neo4j collection.

    Vertices become nodes carrying the collection label and the vertex label,
    with an `id` property unique within the collection. Edges become
    relationships typed by the edge label between the two vertices with the
    matching ids.
    """

    def __init__(
        self,
        db: Database,
        collection: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise InvalidArgumentError(
                argument="batch_size", reason="must be a positive integer"
            )
        self.db = db
        self.collection = collection
        self.batch_size = batch_size
        self.initialized = False

    def initialize(self) -> None:
        self.db.get_collection(self.collection)
        self.initialized = True

    def bulk_import(
        self,
        documents: Iterable[object],
        enable_upsert: bool = False,
        disable_automatic_id_generation: bool = True,
        max_concurrency_per_partition_key_range: Optional[int] = None,
        max_in_memory_sorting_batch_size: Optional[int] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BulkImportResponse:
        if not self.initialized:
            raise Exception("GraphBulkExecutor.bulk_import: call initialize() first")

        if cancellation_token is None:
            cancellation_token = CancellationToken()

        start = time.monotonic()
        total = BatchResult()

        with ThreadPoolExecutor(
            max_workers=max_concurrency_per_partition_key_range
        ) as pool:
            for window in chunked(
                documents,
                max_in_memory_sorting_batch_size
                or DEFAULT_MAX_IN_MEMORY_SORTING_BATCH_SIZE,
            ):
                if cancellation_token.is_set():
                    log.warning("Bulk import cancelled")
                    break

                vertex_batches, edge_batches, rejected = self.prepare(
                    window, disable_automatic_id_generation
                )
                total.rejected.extend(rejected)

                # All vertices of a window are written before any edge that
                # may point at them.
                for batches in (vertex_batches, edge_batches):
                    futures = [
                        pool.submit(
                            self.write_batch, batch, enable_upsert, cancellation_token
                        )
                        for batch in batches
                    ]
                    for future in futures:
                        result = future.result()
                        total.imported += result.imported
                        total.units += result.units
                        total.rejected.extend(result.rejected)

        return BulkImportResponse(
            number_of_documents_imported=total.imported,
            total_time_taken=timedelta(seconds=time.monotonic() - start),
            total_request_units_consumed=total.units,
            bad_input_documents=total.rejected,
        )

    def prepare(
        self, documents: List[object], disable_automatic_id_generation: bool
    ) -> Tuple[List[Batch], List[Batch], List[object]]:
        """
        Validate `documents`, assign missing ids where allowed, and group
        them into batches by partition key and label.
        """
        vertices: Dict[Tuple[str, str], List[GremlinVertex]] = defaultdict(list)
        edges: Dict[Tuple[str, str], List[GremlinEdge]] = defaultdict(list)
        rejected: List[object] = []

        for doc in documents:
            if not isinstance(doc, (GremlinVertex, GremlinEdge)):
                rejected.append(doc)
                continue

            if not doc.id or not str(doc.id).strip():
                if disable_automatic_id_generation:
                    rejected.append(doc)
                    continue
                doc = replace(doc, id=str(uuid.uuid4()))

            if isinstance(doc, GremlinVertex):
                if not self.is_valid_vertex(doc):
                    rejected.append(doc)
                    continue
                vertices[(partition_of(doc.partition_key), doc.label)].append(doc)
            else:
                if not self.is_valid_edge(doc):
                    rejected.append(doc)
                    continue
                edges[(partition_of(doc.partition_key), doc.label)].append(doc)

        vertex_batches = [
            Batch(label=label, rows=[vertex_row(v) for v in chunk], documents=chunk)
            for (_, label), group in vertices.items()
            for chunk in chunked(group, self.batch_size)
        ]
        edge_batches = [
            Batch(
                label=label,
                rows=[edge_row(e) for e in chunk],
                documents=chunk,
                is_edge=True,
            )
            for (_, label), group in edges.items()
            for chunk in chunked(group, self.batch_size)
        ]
        return vertex_batches, edge_batches, rejected

    @staticmethod
    def is_valid_vertex(vertex: GremlinVertex) -> bool:
        if not vertex.label or vertex.partition_key is None:
            return False
        return all(
            p.value is None or is_storable(p.value) for p in vertex.properties
        )

    @staticmethod
    def is_valid_edge(edge: GremlinEdge) -> bool:
        if not (edge.label and edge.out_vertex_id and edge.in_vertex_id):
            return False
        return all(v is None or is_storable(v) for v in edge.properties.values())

    def write_batch(
        self, batch: Batch, enable_upsert: bool, cancellation_token: CancellationToken
    ) -> BatchResult:
        if cancellation_token.is_set():
            return BatchResult()

        if batch.is_edge:
            cmd = self.edge_statement(batch.label, enable_upsert)
        else:
            cmd = self.vertex_statement(batch.label, enable_upsert)

        def work(tx: ManagedTransaction):
            result = tx.run(cmd, rows=batch.rows)
            written = set(record["id"] for record in result)
            return written, result.consume().counters

        try:
            with self.db.session() as s:
                written, counters = s.execute_write(work)
        except ConstraintError:
            # The transaction rolled back, so nothing in this batch was written
            log.warning(
                f"{len(batch.documents)} {batch.label} document(s) not imported: duplicate id",
                exc_info=True,
            )
            return BatchResult(rejected=list(batch.documents))

        units = (
            counters.nodes_created
            + counters.relationships_created
            + counters.properties_set
            + counters.labels_added
        )

        # Edges whose endpoints are missing produce no row:
        rejected = [doc for doc in batch.documents if doc.id not in written]
        if rejected:
            log.warning(
                f"{len(rejected)} of {len(batch.documents)} {batch.label} document(s) not imported"
            )

        log.debug(f"Wrote {len(written)} {batch.label} document(s), {units} operations")
        return BatchResult(imported=len(written), units=units, rejected=rejected)

    def vertex_statement(self, label: str, enable_upsert: bool) -> str:
        if enable_upsert:
            return f"""
            UNWIND $rows AS row
            MERGE ({labels.collection(self.collection, "n")} {{ id: row.id }})
            SET {labels.label(label, "n")}
            SET n += row.properties
            RETURN row.id AS id
            """
        return f"""
        UNWIND $rows AS row
        CREATE ({labels.vertex(self.collection, label, "n")} {{ id: row.id }})
        SET n += row.properties
        RETURN row.id AS id
        """

    def edge_statement(self, label: str, enable_upsert: bool) -> str:
        verb = "MERGE" if enable_upsert else "CREATE"
        return f"""
        UNWIND $rows AS row
        MATCH ({labels.collection(self.collection, "a")} {{ id: row.out_id }})
        MATCH ({labels.collection(self.collection, "b")} {{ id: row.in_id }})
        {verb} (a)-[{labels.label(label, "r")} {{ id: row.id }}]->(b)
        SET r += row.properties
        RETURN row.id AS id
        """


def without_nulls(properties: Iterable[Tuple[str, object]]) -> dict:
    return {k: v for k, v in properties if v is not None}


def vertex_row(vertex: GremlinVertex) -> dict:
    return {
        "id": vertex.id,
        "properties": without_nulls(
            (p.key, p.value) for p in vertex.properties if p.key != "id"
        ),
    }


def edge_row(edge: GremlinEdge) -> dict:
    return {
        "id": edge.id,
        "out_id": edge.out_vertex_id,
        "in_id": edge.in_vertex_id,
        "properties": without_nulls(edge.properties.items()),
    }
