"""
Editor Engine — EditorSession immuable + dispatch().

dispatch() est l'unique point de mutation : chaque action produit une nouvelle
session. Une action refusée (validation ou structure) laisse l'arbre courant et
les deux piles intactes ; l'erreur est renvoyée dans le DispatchResult, jamais levée.

Historique :
  - action mutante acceptée → arbre précédent empilé sur undo, redo vidé
  - Undo / Redo → LIFO strict, bornés à max_history snapshots (les plus anciens sautent)
  - pile vide → issue bénigne EMPTY_UNDO / EMPTY_REDO (pas une erreur)
"""
import logging
from enum import Enum
from typing import Callable, Dict, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field

from ..blocks import create_default, rename, validate_property, validate_style
from ..config import DEFAULT_HISTORY_DEPTH, load_config
from ..errors import BlockNotFoundError, BuilderError, PropertyValidationError, StructuralError
from ..layout import (
    LayoutTree,
    duplicate,
    insert,
    insert_child,
    move,
    remove,
    reorder,
    replace,
)
from .actions import (
    AddBlock,
    DuplicateBlock,
    EditProperty,
    EditStyle,
    MoveBlock,
    Redo,
    RemoveBlock,
    RenameBlock,
    ReorderBlock,
    Select,
    Undo,
    _Action,
)

log = logging.getLogger(__name__)


class Outcome(str, Enum):
    APPLIED    = "applied"
    SELECTED   = "selected"
    UNDONE     = "undone"
    REDONE     = "redone"
    EMPTY_UNDO = "empty_undo"
    EMPTY_REDO = "empty_redo"
    REJECTED   = "rejected"


class EditorSession(BaseModel):
    """Contexte d'édition d'un module : arbre courant, sélection, historique."""
    model_config = ConfigDict(frozen=True)

    module_id:         str
    tree:              LayoutTree            = Field(default_factory=LayoutTree)
    selected_block_id: Optional[str]         = None
    undo_stack:        Tuple[LayoutTree, ...] = ()
    redo_stack:        Tuple[LayoutTree, ...] = ()
    max_history:       int                   = Field(default=DEFAULT_HISTORY_DEPTH, ge=1)

    @classmethod
    def new(cls, module_id: str, tree: Optional[LayoutTree] = None,
            max_history: Optional[int] = None) -> "EditorSession":
        return cls(
            module_id=module_id,
            tree=tree if tree is not None else LayoutTree.empty(),
            max_history=max_history or load_config().history_depth,
        )

    @property
    def can_undo(self) -> bool:
        return bool(self.undo_stack)

    @property
    def can_redo(self) -> bool:
        return bool(self.redo_stack)

    @property
    def selected_block(self):
        if self.selected_block_id is None:
            return None
        return self.tree.blocks.get(self.selected_block_id)


class DispatchResult(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    session:  EditorSession
    outcome:  Outcome
    error:    Optional[BuilderError] = None
    block_id: Optional[str]          = None  # bloc créé par AddBlock / DuplicateBlock

    @property
    def ok(self) -> bool:
        return self.outcome != Outcome.REJECTED

    @property
    def tree(self) -> LayoutTree:
        return self.session.tree


# ── Handlers des actions mutantes ───────────────────────────────────────────
# Chacun renvoie (nouvel arbre, id du bloc concerné) ou lève une erreur builder.

def _add(tree: LayoutTree, a: AddBlock):
    block = create_default(a.block_type)
    if a.parent_id is None:
        return insert(tree, block, a.position), block.id
    return insert_child(tree, a.parent_id, block, a.position), block.id


def _remove(tree: LayoutTree, a: RemoveBlock):
    return remove(tree, a.block_id), a.block_id


def _duplicate(tree: LayoutTree, a: DuplicateBlock):
    return duplicate(tree, a.block_id)


def _reorder(tree: LayoutTree, a: ReorderBlock):
    return reorder(tree, a.parent_id, a.block_id, a.new_index), a.block_id


def _move(tree: LayoutTree, a: MoveBlock):
    return move(tree, a.block_id, a.new_parent_id, a.position), a.block_id


def _edit_property(tree: LayoutTree, a: EditProperty):
    return replace(tree, validate_property(tree.get(a.block_id), a.key, a.value)), a.block_id


def _edit_style(tree: LayoutTree, a: EditStyle):
    return replace(tree, validate_style(tree.get(a.block_id), a.key, a.value)), a.block_id


def _rename(tree: LayoutTree, a: RenameBlock):
    return replace(tree, rename(tree.get(a.block_id), a.label)), a.block_id


_HANDLERS: Dict[Type[_Action], Callable] = {
    AddBlock:       _add,
    RemoveBlock:    _remove,
    DuplicateBlock: _duplicate,
    ReorderBlock:   _reorder,
    MoveBlock:      _move,
    EditProperty:   _edit_property,
    EditStyle:      _edit_style,
    RenameBlock:    _rename,
}


def _keep_selection(tree: LayoutTree, selected: Optional[str]) -> Optional[str]:
    return selected if selected in tree.blocks else None


def _push(stack: Tuple[LayoutTree, ...], tree: LayoutTree, limit: int) -> Tuple[LayoutTree, ...]:
    return (stack + (tree,))[-limit:]


def reject(session: EditorSession, error: BuilderError) -> DispatchResult:
    return DispatchResult(session=session, outcome=Outcome.REJECTED, error=error)


# ── Dispatch ────────────────────────────────────────────────────────────────

def dispatch(session: EditorSession, action: _Action) -> DispatchResult:
    """Applique une action à la session et renvoie la session résultante + l'issue."""
    if isinstance(action, Select):
        if action.block_id is not None and action.block_id not in session.tree.blocks:
            return reject(session, BlockNotFoundError(
                f"Bloc introuvable : {action.block_id!r}", block_id=action.block_id))
        return DispatchResult(
            session=session.model_copy(update={"selected_block_id": action.block_id}),
            outcome=Outcome.SELECTED,
            block_id=action.block_id,
        )

    if isinstance(action, Undo):
        if not session.undo_stack:
            return DispatchResult(session=session, outcome=Outcome.EMPTY_UNDO)
        previous = session.undo_stack[-1]
        return DispatchResult(
            session=session.model_copy(update={
                "tree":              previous,
                "undo_stack":        session.undo_stack[:-1],
                "redo_stack":        _push(session.redo_stack, session.tree, session.max_history),
                "selected_block_id": _keep_selection(previous, session.selected_block_id),
            }),
            outcome=Outcome.UNDONE,
        )

    if isinstance(action, Redo):
        if not session.redo_stack:
            return DispatchResult(session=session, outcome=Outcome.EMPTY_REDO)
        following = session.redo_stack[-1]
        return DispatchResult(
            session=session.model_copy(update={
                "tree":              following,
                "redo_stack":        session.redo_stack[:-1],
                "undo_stack":        _push(session.undo_stack, session.tree, session.max_history),
                "selected_block_id": _keep_selection(following, session.selected_block_id),
            }),
            outcome=Outcome.REDONE,
        )

    handler = _HANDLERS.get(type(action))
    if handler is None:
        raise TypeError(f"Action non supportée : {type(action).__name__}")

    try:
        tree, block_id = handler(session.tree, action)
    except (PropertyValidationError, StructuralError) as e:
        log.debug("Action %s refusée sur %s : %s", action.kind, session.module_id, e.code)
        return reject(session, e)

    return DispatchResult(
        session=session.model_copy(update={
            "tree":              tree,
            "undo_stack":        _push(session.undo_stack, session.tree, session.max_history),
            "redo_stack":        (),
            "selected_block_id": _keep_selection(tree, session.selected_block_id),
        }),
        outcome=Outcome.APPLIED,
        block_id=block_id,
    )
