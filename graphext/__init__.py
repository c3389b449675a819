# flake8: noqa
from .config import Config
from .element import PARTITION_KEY, GremlinEdge, GremlinVertex, GremlinVertexProperty
from .errors import (
    CollectionNotFoundError,
    GraphError,
    InvalidArgumentError,
    MissingFieldError,
)
from .mapper import ID, has_field, to_vertex, to_vertices
from .shapes import DynamicShape, Shape, StaticShape, shape_of
