"""
Cypher cannot parameterize labels or relationship types, so collection names,
vertex labels and edge labels are interpolated into statements. Every such
name goes through `quote`.
"""
from typing import Optional


def quote(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def label(name: str, alias: Optional[str] = None) -> str:
    return f"{alias}:{quote(name)}" if alias else f":{quote(name)}"


def collection(name: str, alias: Optional[str] = None) -> str:
    return label(name, alias)


def vertex(collection_name: str, label_name: str, alias: Optional[str] = None) -> str:
    return f"{collection(collection_name, alias)}:{quote(label_name)}"


def constraint_name(collection_name: str) -> str:
    return f"{collection_name}_id_unique"
