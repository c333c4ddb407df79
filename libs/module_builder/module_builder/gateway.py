"""
Persistence Gateway — chargement/sauvegarde d'un LayoutTree par module.

Politique de concurrence : optimiste. Chaque layout stocké porte une `version`
entière, incrémentée à chaque sauvegarde. save(expected_version=N) échoue avec
ConflictError si la version stockée n'est plus N ; expected_version=None force
l'écriture (last-write-wins explicite).
"""
import logging
import threading
from typing import Dict, Iterable, Optional, Protocol, Tuple, runtime_checkable

from pydantic import BaseModel

from .errors import ConflictError, LayoutNotFoundError
from .layout import LayoutTree, dumps, loads

log = logging.getLogger(__name__)


class StoredLayout(BaseModel):
    module_id: str
    tree:      LayoutTree
    version:   int = 0


class SaveAck(BaseModel):
    module_id: str
    version:   int


@runtime_checkable
class LayoutGateway(Protocol):
    def load(self, module_id: str) -> StoredLayout: ...
    def save(self, module_id: str, tree: LayoutTree,
             expected_version: Optional[int] = None) -> SaveAck: ...


def check_version(module_id: str, stored: int, expected: Optional[int]) -> None:
    """Lève ConflictError si le layout a changé depuis le chargement."""
    if expected is not None and stored != expected:
        raise ConflictError(
            f"Layout du module {module_id!r} modifié entre-temps "
            f"(version stockée {stored}, attendue {expected})",
            module_id=module_id, stored_version=stored, expected_version=expected,
        )


class InMemoryLayoutGateway:
    """
    Gateway en mémoire (tests, prévisualisation). Les layouts sont conservés
    sous forme de document JSON, comme en base.

    Usage:
        >>> gw = InMemoryLayoutGateway(["restaurant"])
        >>> stored = gw.load("restaurant")
        >>> gw.save("restaurant", stored.tree, expected_version=stored.version)
    """

    def __init__(self, module_ids: Iterable[str] = ()):
        self._store: Dict[str, Tuple[str, int]] = {}
        self._lock = threading.Lock()
        for module_id in module_ids:
            self.register(module_id)

    def register(self, module_id: str) -> None:
        """Déclare un module (layout vide, version 0) s'il n'existe pas encore."""
        with self._lock:
            self._store.setdefault(module_id, ("", 0))

    def load(self, module_id: str) -> StoredLayout:
        with self._lock:
            entry = self._store.get(module_id)
        if entry is None:
            raise LayoutNotFoundError(f"Module introuvable : {module_id!r}", module_id=module_id)
        document, version = entry
        return StoredLayout(module_id=module_id, tree=loads(document), version=version)

    def save(self, module_id: str, tree: LayoutTree,
             expected_version: Optional[int] = None) -> SaveAck:
        document = dumps(tree)
        with self._lock:
            entry = self._store.get(module_id)
            if entry is None:
                raise LayoutNotFoundError(f"Module introuvable : {module_id!r}", module_id=module_id)
            check_version(module_id, entry[1], expected_version)
            version = entry[1] + 1
            self._store[module_id] = (document, version)
        log.info("Layout %s sauvegardé en mémoire (v%d, %d blocs)", module_id, version, tree.size)
        return SaveAck(module_id=module_id, version=version)
