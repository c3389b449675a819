import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterator, List, Optional, Sequence

from mimesis import Generic  # type: ignore
from mimesis.locales import Locale  # type: ignore
from neo4j.spatial import WGS84Point  # type: ignore

from graphext import GremlinEdge, GremlinVertex, to_vertex
from graphext.types import EdgeId, Label, VertexId

STORE_STATUSES = ["Open", "Closed", "Pending", "Relocated"]
STORE_TYPES = ["Supercenter", "Neighborhood Market", "Discount Store", "Warehouse"]

NEXT_STORE_LABEL = "next"


def to_utc(dt: datetime) -> datetime:
    """
    Convert a date time (naive or timezone-aware) to a UTC-zoned datetime.
    """

    # Naive - no timezone exists so assume UTC
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(tz=timezone.utc)


@dataclass
class Store:
    """
    A generated retail store
    """

    store_nbr: int
    name: str
    cbs_name: str
    city: str
    county: str
    county_type: int
    is_active: bool
    state_code: str
    state: str
    location: WGS84Point
    store_status: str
    store_type: str
    opened_at: datetime

    @property
    def id(self) -> int:
        return self.store_nbr


def generate_stores(count: int, seed: Optional[int] = None) -> Iterator[Store]:
    """
    Yield `count` stores numbered from 1.
    """
    g = Generic(locale=Locale.EN, seed=seed)
    rng = random.Random(seed)

    for store_nbr in range(1, count + 1):
        city = g.address.city()
        state_code = g.address.state(abbr=True)
        yield Store(
            store_nbr=store_nbr,
            name=f"{g.finance.company()} #{store_nbr}",
            cbs_name=f"{city}, {state_code}",
            city=city,
            county=f"{g.address.city()} County",
            county_type=rng.randint(1, 3),
            is_active=rng.random() < 0.9,
            state_code=state_code,
            state=g.address.state(),
            location=WGS84Point((g.address.longitude(), g.address.latitude())),
            store_status=rng.choice(STORE_STATUSES),
            store_type=rng.choice(STORE_TYPES),
            opened_at=to_utc(g.datetime.datetime()),
        )


def generate_vertices(
    stores: Sequence[Store], partition_key_field: str
) -> Iterator[GremlinVertex]:
    for store in stores:
        yield to_vertex(store, partition_key_field=partition_key_field)


def generate_edges(
    stores: Sequence[Store], partition_key_field: str
) -> Iterator[GremlinEdge]:
    """
    Link every store to the one generated after it, the last to the first.
    """
    vertices: List[GremlinVertex] = list(generate_vertices(stores, partition_key_field))
    if len(vertices) < 2:
        return

    for i, out_vertex in enumerate(vertices):
        in_vertex = vertices[(i + 1) % len(vertices)]
        edge = GremlinEdge(
            id=EdgeId(f"e{i}"),
            label=Label(NEXT_STORE_LABEL),
            out_vertex_id=VertexId(out_vertex.id),
            out_vertex_label=out_vertex.label,
            in_vertex_id=VertexId(in_vertex.id),
            in_vertex_label=in_vertex.label,
            out_vertex_partition_key=out_vertex.partition_key,
            in_vertex_partition_key=in_vertex.partition_key,
        )
        edge.add_property("order", i)
        yield edge
