"""Editor Engine — actions, session immuable, dispatch, éditeur avec état."""
from .actions import (
    Action,
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
    parse_action,
)
from .session import DispatchResult, EditorSession, Outcome, dispatch
from .editor import Editor, EditorStatus

__all__ = [
    "Action", "AddBlock", "DuplicateBlock", "EditProperty", "EditStyle", "MoveBlock",
    "Redo", "RemoveBlock", "RenameBlock", "ReorderBlock", "Select", "Undo", "parse_action",
    "DispatchResult", "EditorSession", "Outcome", "dispatch",
    "Editor", "EditorStatus",
]
