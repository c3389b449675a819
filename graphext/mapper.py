from typing import Iterable, Iterator, Optional

from .element import PARTITION_KEY, GremlinVertex
from .errors import InvalidArgumentError, MissingFieldError
from .shapes import Shape, fold, shape_of
from .types import Label, VertexId

ID = "id"

# Source fields with these names never become regular vertex properties:
RESERVED_FIELDS = frozenset([fold(ID), fold(PARTITION_KEY)])


def is_blank(s: Optional[str]) -> bool:
    return s is None or not str(s).strip()


def has_field(record: object, name: str) -> bool:
    """
    Tests if `record` exposes a field called `name`, ignoring case.
    """
    return shape_of(record).has(name)


def to_vertex(
    record: object,
    id_field: str = ID,
    partition_key_field: str = PARTITION_KEY,
    label: Optional[str] = None,
) -> GremlinVertex:
    """
    Turn an arbitrary record into a `GremlinVertex`.

    The vertex id is the value of `id_field`, converted to a string. The
    value of `partition_key_field` becomes the first vertex property, always
    named "partitionKey". Every other field of the record follows in
    enumeration order, except for fields named "id" or "partitionKey".

    Field names are matched without regard to case, so "id", "Id" and "ID"
    all resolve the same field.

    Parameters
    ----------
    record : object
        A dataclass, named tuple, plain object, mapping, or anything else
        accepted by `graphext.shapes.shape_of`.

    id_field : str (default "id")

    partition_key_field : str (default "partitionKey")

    label : str?
        The vertex label. Defaults to the type name of `record`.

    Raises
    ------
    InvalidArgumentError
        If `id_field`, `partition_key_field` or an explicit `label` is
        empty or whitespace.

    MissingFieldError
        If the id or partition key field cannot be found on `record`, or
        holds no value.
    """
    if is_blank(id_field):
        raise InvalidArgumentError(argument="id_field")

    if is_blank(partition_key_field):
        raise InvalidArgumentError(argument="partition_key_field")

    if label is not None and is_blank(label):
        raise InvalidArgumentError(argument="label")

    shape = shape_of(record)
    return build_vertex(
        shape,
        id_field=id_field,
        partition_key_field=partition_key_field,
        label=shape.type_name if label is None else label,
    )


def build_vertex(
    shape: Shape, id_field: str, partition_key_field: str, label: str
) -> GremlinVertex:
    id = shape.get(id_field)
    if id is None or is_blank(str(id)):
        raise MissingFieldError(record_type=shape.type_name, field_name=id_field)

    partition_key = shape.get(partition_key_field)
    if partition_key is None:
        raise MissingFieldError(
            record_type=shape.type_name, field_name=partition_key_field
        )

    vertex = GremlinVertex(id=VertexId(str(id)), label=Label(label))
    vertex.add_property(PARTITION_KEY, partition_key)

    for name, value in shape.items():
        if fold(name) not in RESERVED_FIELDS:
            vertex.add_property(name, value)

    return vertex


def to_vertices(
    records: Iterable[object],
    id_field: str = ID,
    partition_key_field: str = PARTITION_KEY,
    label: Optional[str] = None,
) -> Iterator[GremlinVertex]:
    """
    Lazily map `records` with `to_vertex`.
    """
    for record in records:
        yield to_vertex(
            record,
            id_field=id_field,
            partition_key_field=partition_key_field,
            label=label,
        )
