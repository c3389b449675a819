from dataclasses import dataclass, field
from typing import ClassVar, Iterator, List, Optional

import marshmallow  # type: ignore
from marshmallow import fields, post_load  # type: ignore

from . import types as t
from .json import CamelCaseSchema, Serializable

PARTITION_KEY = "partitionKey"


class GremlinVertexPropertySchema(CamelCaseSchema):
    key = fields.String(required=True)
    value = fields.Raw(allow_none=True)

    @post_load
    def make(self, data, **kwargs):
        return GremlinVertexProperty(**data)


@dataclass(frozen=True)
class GremlinVertexProperty(Serializable):

    __schema__: ClassVar[GremlinVertexPropertySchema] = GremlinVertexPropertySchema(
        unknown=marshmallow.EXCLUDE
    )

    key: str
    value: t.PropertyValue


class GremlinVertexSchema(CamelCaseSchema):
    id = fields.String(required=True)
    label = fields.String(required=True)
    properties = fields.List(fields.Nested(GremlinVertexPropertySchema))

    @post_load
    def make(self, data, **kwargs):
        return GremlinVertex(**data)


@dataclass
class GremlinVertex(Serializable):
    """
    A graph node: identifier, label, and an ordered property bag.
    """

    __schema__: ClassVar[GremlinVertexSchema] = GremlinVertexSchema(
        unknown=marshmallow.EXCLUDE
    )

    id: t.VertexId
    label: t.Label
    properties: List[GremlinVertexProperty] = field(default_factory=list)

    def add_property(self, key: str, value: t.PropertyValue) -> None:
        self.properties.append(GremlinVertexProperty(key=key, value=value))

    def get_vertex_properties(
        self, key: Optional[str] = None
    ) -> Iterator[GremlinVertexProperty]:
        """
        Iterate over the properties of this vertex, optionally only those
        named `key`.
        """
        for p in self.properties:
            if key is None or p.key == key:
                yield p

    @property
    def partition_key(self) -> t.PartitionKey:
        for p in self.get_vertex_properties(PARTITION_KEY):
            return p.value
        return None


class GremlinEdgeSchema(CamelCaseSchema):
    id = fields.String(required=True)
    label = fields.String(required=True)
    out_vertex_id = fields.String(required=True)
    out_vertex_label = fields.String(required=True)
    in_vertex_id = fields.String(required=True)
    in_vertex_label = fields.String(required=True)
    out_vertex_partition_key = fields.Raw(allow_none=True)
    in_vertex_partition_key = fields.Raw(allow_none=True)
    properties = fields.Dict(keys=fields.String(), values=fields.Raw())

    @post_load
    def make(self, data, **kwargs):
        return GremlinEdge(**data)


@dataclass
class GremlinEdge(Serializable):
    """
    A directed relationship from the "out" vertex to the "in" vertex.
    """

    __schema__: ClassVar[GremlinEdgeSchema] = GremlinEdgeSchema(
        unknown=marshmallow.EXCLUDE
    )

    id: t.EdgeId
    label: t.Label
    out_vertex_id: t.VertexId
    out_vertex_label: t.Label
    in_vertex_id: t.VertexId
    in_vertex_label: t.Label
    out_vertex_partition_key: t.PartitionKey = None
    in_vertex_partition_key: t.PartitionKey = None
    properties: dict = field(default_factory=dict)

    def add_property(self, key: str, value: t.PropertyValue) -> None:
        self.properties[key] = value

    @property
    def partition_key(self) -> t.PartitionKey:
        return self.out_vertex_partition_key

    def __str__(self):
        return f"({self.out_vertex_id})-[{self.label}]->({self.in_vertex_id})"
