"""
Field enumeration over source records.

A record is anything with named fields. Two shapes are supported:

- `StaticShape`: the field set is declared by the record's type (dataclass
  fields, named tuple fields, `__slots__`, instance attributes, and public
  `property` objects on the class).

- `DynamicShape`: the field set is only known from the value itself
  (mappings, JSON objects, `SimpleNamespace`, and anything exposing
  `keys()` and `__getitem__`, such as a Neo4j `Record`).

Both expose the same interface: ordered `(name, value)` pairs plus
case-insensitive lookup through an index built once per record.
"""
import dataclasses
from abc import ABC, abstractmethod
from collections.abc import Mapping
from types import SimpleNamespace
from typing import Dict, Iterator, List, Optional

from more_itertools import unique_everseen  # type: ignore

from .errors import MissingFieldError
from .types import FieldPair, PropertyValue


def fold(name: str) -> str:
    return name.casefold()


def is_public(name: str) -> bool:
    return not name.startswith("_")


class Shape(ABC):
    def __init__(self, record: object):
        self.record = record
        self._names: List[str] = list(unique_everseen(self.field_names()))
        self._index: Dict[str, str] = {}
        for name in self._names:
            # First field wins when two names differ only by case:
            self._index.setdefault(fold(name), name)

    @property
    def type_name(self) -> str:
        return type(self.record).__name__

    @abstractmethod
    def field_names(self) -> Iterator[str]:
        raise NotImplementedError

    @abstractmethod
    def read(self, name: str) -> PropertyValue:
        raise NotImplementedError

    @property
    def names(self) -> List[str]:
        return list(self._names)

    def resolve(self, name: str) -> Optional[str]:
        """
        Returns the record's own spelling of `name`, matched without regard
        to case, or `None` if the record has no such field.
        """
        return self._index.get(fold(name))

    def has(self, name: str) -> bool:
        return self.resolve(name) is not None

    def get(self, name: str) -> PropertyValue:
        resolved = self.resolve(name)
        if resolved is None:
            raise MissingFieldError(record_type=self.type_name, field_name=name)
        return self.read(resolved)

    def items(self) -> Iterator[FieldPair]:
        for name in self._names:
            yield (name, self.read(name))

    def __len__(self):
        return len(self._names)


class StaticShape(Shape):
    def field_names(self) -> Iterator[str]:
        return (name for name in self._declared_names() if is_public(name))

    def _declared_names(self) -> Iterator[str]:
        record = self.record
        cls = type(record)

        if dataclasses.is_dataclass(record):
            yield from (f.name for f in dataclasses.fields(record))
        elif isinstance(record, tuple) and hasattr(cls, "_fields"):
            yield from cls._fields
        else:
            for klass in reversed(cls.__mro__):
                slots = vars(klass).get("__slots__", ())
                if isinstance(slots, str):
                    slots = (slots,)
                yield from (s for s in slots if hasattr(record, s))
            yield from vars(record) if hasattr(record, "__dict__") else ()

        for klass in reversed(cls.__mro__):
            for name, attr in vars(klass).items():
                if isinstance(attr, property):
                    yield name

    def read(self, name: str) -> PropertyValue:
        return getattr(self.record, name)


class DynamicShape(Shape):
    def field_names(self) -> Iterator[str]:
        if isinstance(self.record, SimpleNamespace):
            yield from vars(self.record)
        else:
            yield from (k for k in self.record.keys() if isinstance(k, str))

    def read(self, name: str) -> PropertyValue:
        if isinstance(self.record, SimpleNamespace):
            return getattr(self.record, name)
        return self.record[name]


def is_dynamic(record: object) -> bool:
    """
    Tests if the field set of `record` can only be discovered from its value.
    """
    if isinstance(record, (Mapping, SimpleNamespace)):
        return True
    return callable(getattr(record, "keys", None)) and hasattr(
        record, "__getitem__"
    )


def shape_of(record: object) -> Shape:
    if is_dynamic(record):
        return DynamicShape(record)
    return StaticShape(record)
