"""
Actions de l'éditeur — union discriminée par `kind`.
Reçues telles quelles depuis l'UI (JSON) puis passées à dispatch().
"""
from typing import Annotated, Any, Optional, Union, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from ..blocks import BlockType


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def mutating(self) -> bool:
        return True


class AddBlock(_Action):
    kind:       Literal["add_block"] = "add_block"
    block_type: BlockType
    parent_id:  Optional[str] = None
    position:   Optional[int] = None


class RemoveBlock(_Action):
    kind:     Literal["remove_block"] = "remove_block"
    block_id: str


class DuplicateBlock(_Action):
    kind:     Literal["duplicate_block"] = "duplicate_block"
    block_id: str


class ReorderBlock(_Action):
    kind:      Literal["reorder_block"] = "reorder_block"
    block_id:  str
    new_index: int
    parent_id: Optional[str] = None


class MoveBlock(_Action):
    """Glisser-déposer vers un autre Container (ou le premier niveau si new_parent_id=None)."""
    kind:          Literal["move_block"] = "move_block"
    block_id:      str
    new_parent_id: Optional[str] = None
    position:      Optional[int] = None


class EditProperty(_Action):
    kind:     Literal["edit_property"] = "edit_property"
    block_id: str
    key:      str
    value:    Any = None


class EditStyle(_Action):
    kind:     Literal["edit_style"] = "edit_style"
    block_id: str
    key:      str
    value:    Any = None


class RenameBlock(_Action):
    kind:     Literal["rename_block"] = "rename_block"
    block_id: str
    label:    Optional[str] = None


class Select(_Action):
    kind:     Literal["select"] = "select"
    block_id: Optional[str] = None

    @property
    def mutating(self) -> bool:
        return False


class Undo(_Action):
    kind: Literal["undo"] = "undo"


class Redo(_Action):
    kind: Literal["redo"] = "redo"


Action = Annotated[
    Union[
        AddBlock, RemoveBlock, DuplicateBlock, ReorderBlock, MoveBlock,
        EditProperty, EditStyle, RenameBlock, Select, Undo, Redo,
    ],
    Field(discriminator="kind"),
]

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)


def parse_action(data: dict) -> _Action:
    """dict JSON → action typée (lève pydantic.ValidationError)."""
    return _ACTION_ADAPTER.validate_python(data)
