"""
Editor — coquille avec état autour d'une EditorSession, pour un contexte
d'édition interactif (un admin qui ouvre le builder d'un module).

États exposés à l'UI :
  IDLE    → aucune opération réseau en cours
  LOADING → chargement en cours
  LOADED  → chargement réussi (issue terminale du load)
  SAVING  → sauvegarde en cours : actions mutantes refusées, 2e save refusé
  ERROR   → dernier load/save en échec (last_error renseigné)
"""
import logging
import threading
from enum import Enum
from typing import Optional

from ..errors import GatewayError, SaveInProgressError
from ..gateway import LayoutGateway, SaveAck
from ..layout import to_document
from .actions import _Action
from .session import DispatchResult, EditorSession, dispatch, reject

log = logging.getLogger(__name__)


class EditorStatus(str, Enum):
    IDLE    = "idle"
    LOADING = "loading"
    LOADED  = "loaded"
    SAVING  = "saving"
    ERROR   = "error"


class Editor:
    """
    Usage:
        >>> editor = Editor.open(gateway, "restaurant")
        >>> editor.dispatch(AddBlock(block_type=BlockType.HERO))
        >>> editor.save()
    """

    def __init__(self, gateway: LayoutGateway, module_id: str,
                 session: Optional[EditorSession] = None, max_history: Optional[int] = None):
        self.gateway    = gateway
        self.module_id  = module_id
        self.session    = session or EditorSession.new(module_id, max_history=max_history)
        self.version: Optional[int] = None
        self.status     = EditorStatus.IDLE
        self.last_error: Optional[GatewayError] = None
        self._saved_tree = self.session.tree
        self._save_lock  = threading.Lock()
        self._lock       = threading.Lock()   # état (session, statut, version)

    @classmethod
    def open(cls, gateway: LayoutGateway, module_id: str,
             max_history: Optional[int] = None) -> "Editor":
        """Crée l'éditeur et charge le layout du module (lève GatewayError en cas d'échec)."""
        editor = cls(gateway, module_id, max_history=max_history)
        editor.load()
        return editor

    # ── Chargement ──────────────────────────────────────────────────────────

    def load(self) -> None:
        """Recharge le layout stocké ; l'historique local est perdu."""
        with self._lock:
            self.status = EditorStatus.LOADING
        try:
            stored = self.gateway.load(self.module_id)
        except Exception as e:
            self._fail(e, "Chargement du layout %s impossible : %s")
            raise
        with self._lock:
            self.session = EditorSession.new(self.module_id, stored.tree,
                                             max_history=self.session.max_history)
            self.version = stored.version
            self._saved_tree = stored.tree
            self.status, self.last_error = EditorStatus.LOADED, None
        log.info("Layout %s chargé (v%d, %d blocs)", self.module_id, stored.version, stored.tree.size)

    def _fail(self, e: Exception, msg: str) -> None:
        # Toute exception sort de LOADING / SAVING, sinon l'éditeur reste bloqué
        if isinstance(e, GatewayError):
            err = e
            log.warning(msg, self.module_id, e)
        else:
            err = GatewayError(f"{type(e).__name__}: {e}", module_id=self.module_id)
            log.exception(msg, self.module_id, e)
        with self._lock:
            self.status, self.last_error = EditorStatus.ERROR, err

    # ── Édition ─────────────────────────────────────────────────────────────

    @property
    def dirty(self) -> bool:
        """Modifications locales non sauvegardées."""
        return self.session.tree != self._saved_tree

    @property
    def saving(self) -> bool:
        return self.status == EditorStatus.SAVING

    def dispatch(self, action: _Action) -> DispatchResult:
        with self._lock:
            if self.saving and action.mutating:
                return reject(self.session, SaveInProgressError(
                    f"Sauvegarde en cours pour {self.module_id!r}", module_id=self.module_id))
            result = dispatch(self.session, action)
            self.session = result.session
            return result

    # ── Sauvegarde ──────────────────────────────────────────────────────────

    def save(self, force: bool = False) -> SaveAck:
        """
        Sauvegarde l'arbre courant. Une seule sauvegarde à la fois par éditeur.

        Args:
            force: ignore le contrôle de version (last-write-wins)

        Raises:
            SaveInProgressError: une sauvegarde est déjà en cours
            ConflictError: le layout stocké a changé depuis le chargement
            TransientIOError / LayoutNotFoundError: échec du gateway
            (toute autre exception du gateway passe aussi le statut à ERROR)
        """
        if not self._save_lock.acquire(blocking=False):
            raise SaveInProgressError(f"Sauvegarde déjà en cours pour {self.module_id!r}",
                                      module_id=self.module_id)
        try:
            with self._lock:
                self.status = EditorStatus.SAVING
                tree = self.session.tree
                expected = None if force else self.version
            try:
                ack = self.gateway.save(self.module_id, tree, expected_version=expected)
            except Exception as e:
                self._fail(e, "Sauvegarde du layout %s refusée : %s")
                raise
            with self._lock:
                self.version = ack.version
                self._saved_tree = tree
                self.status, self.last_error = EditorStatus.IDLE, None
            log.info("Layout %s sauvegardé (v%d)", self.module_id, ack.version)
            return ack
        finally:
            self._save_lock.release()

    def snapshot(self) -> dict:
        """État sérialisable pour l'UI (boutons undo/redo, indicateur de sauvegarde)."""
        with self._lock:
            session, saved = self.session, self._saved_tree
            status, version, error = self.status, self.version, self.last_error
        return {
            "module_id":         self.module_id,
            "status":            status.value,
            "version":           version,
            "dirty":             session.tree != saved,
            "can_undo":          session.can_undo,
            "can_redo":          session.can_redo,
            "selected_block_id": session.selected_block_id,
            "document":          to_document(session.tree),
            "error":             error.to_dict() if error else None,
        }
