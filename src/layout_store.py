"""
SqlLayoutGateway — Persistence Gateway du module_builder branché sur la DB SQLite.

Contrat (module_builder.gateway.LayoutGateway) :
  load(module_id)                          → StoredLayout(tree, version)
  save(module_id, tree, expected_version)  → SaveAck(version)

Concurrence optimiste : l'UPDATE est conditionné à la version lue
(compare-and-set), deux éditeurs ne peuvent pas écraser la même version.
Erreurs SQLAlchemy opérationnelles (verrou, disque) → TransientIOError,
ligne de layout créée en parallèle (IntegrityError) → ConflictError.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from module_builder import LayoutTree, SaveAck, StoredLayout, dumps, loads
from module_builder.errors import ConflictError, LayoutNotFoundError, TransientIOError
from module_builder.gateway import check_version

from .database import db_get_layout, db_get_module, new_session
from .models import ModuleLayoutDB

log = logging.getLogger(__name__)


class SqlLayoutGateway:

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory or new_session

    def load(self, module_id: str) -> StoredLayout:
        try:
            with self._session_factory() as db:
                if db_get_module(db, module_id) is None:
                    raise LayoutNotFoundError(f"Module introuvable : {module_id!r}", module_id=module_id)
                layout = db_get_layout(db, module_id)
                document, version = (layout.document, layout.version) if layout else ("", 0)
        except OperationalError as e:
            log.warning("DB indisponible au chargement du layout %s : %s", module_id, e)
            raise TransientIOError(f"Lecture du layout {module_id!r} impossible", module_id=module_id) from e
        return StoredLayout(module_id=module_id, tree=loads(document), version=version)

    def save(self, module_id: str, tree: LayoutTree,
             expected_version: Optional[int] = None) -> SaveAck:
        document = dumps(tree)
        try:
            with self._session_factory() as db:
                if db_get_module(db, module_id) is None:
                    raise LayoutNotFoundError(f"Module introuvable : {module_id!r}", module_id=module_id)

                layout = db_get_layout(db, module_id)
                if layout is None:
                    check_version(module_id, 0, expected_version)
                    db.add(ModuleLayoutDB(module_id=module_id, document=document, version=1))
                    try:
                        db.commit()
                    except IntegrityError as e:
                        # Ligne créée entre la lecture et l'insertion
                        db.rollback()
                        raise ConflictError(
                            f"Layout du module {module_id!r} créé pendant la sauvegarde",
                            module_id=module_id, expected_version=0,
                        ) from e
                    return SaveAck(module_id=module_id, version=1)

                current = layout.version
                check_version(module_id, current, expected_version)
                updated = (
                    db.query(ModuleLayoutDB)
                    .filter_by(module_id=module_id, version=current)
                    .update({"document": document, "version": current + 1,
                             "updated_at": datetime.utcnow()},
                            synchronize_session=False)
                )
                if updated == 0:
                    db.rollback()
                    raise ConflictError(
                        f"Layout du module {module_id!r} modifié pendant la sauvegarde",
                        module_id=module_id, expected_version=current,
                    )
                db.commit()
        except OperationalError as e:
            log.warning("DB indisponible à la sauvegarde du layout %s : %s", module_id, e)
            raise TransientIOError(f"Écriture du layout {module_id!r} impossible", module_id=module_id) from e
        log.info("Layout %s sauvegardé en DB (v%d, %d blocs)", module_id, current + 1, tree.size)
        return SaveAck(module_id=module_id, version=current + 1)
