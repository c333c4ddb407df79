"""Layout tree — arène de blocs + opérations pures + document JSON."""
from .tree import (
    LayoutTree,
    check_integrity,
    descendants,
    duplicate,
    insert,
    insert_child,
    move,
    parent_of,
    remove,
    reorder,
    replace,
    siblings_of,
    walk,
)
from .document import SCHEMA_VERSION, dumps, from_document, loads, to_document

__all__ = [
    "LayoutTree",
    "check_integrity", "descendants", "duplicate", "insert", "insert_child",
    "move", "parent_of", "remove", "reorder", "replace", "siblings_of", "walk",
    "SCHEMA_VERSION", "dumps", "from_document", "loads", "to_document",
]
