"""
Module Builder v1.0 — composition des pages publiques des modules du resort
à partir de blocs prédéfinis.

Usage (éditeur):
    >>> from module_builder import Editor, InMemoryLayoutGateway, AddBlock, EditProperty, Undo, BlockType
    >>> gw = InMemoryLayoutGateway(["restaurant"])
    >>> editor = Editor.open(gw, "restaurant")
    >>> res = editor.dispatch(AddBlock(block_type=BlockType.HERO))
    >>> editor.dispatch(EditProperty(block_id=res.block_id, key="title", value="Bienvenue"))
    >>> editor.save()

Usage (fonctions pures):
    >>> from module_builder import LayoutTree, create_default, insert, to_document
    >>> tree = insert(LayoutTree.empty(), create_default("hero"))
    >>> doc = to_document(tree)
"""

# ── Blocs ───────────────────────────────────────────────────────────────────
from .blocks import (
    BaseBlock, BlockStyle, BlockType, BlockUnion,
    HeroBlock, TextBlock, ImageBlock, GridBlock,
    MenuListBlock, SessionsBlock, ContainerBlock, CalendarBlock,
    catalog, create_default, editable_properties, parse_block,
    validate_property, validate_style,
)

# ── Layout tree ─────────────────────────────────────────────────────────────
from .layout import (
    LayoutTree,
    check_integrity, descendants, duplicate, insert, insert_child,
    move, parent_of, remove, reorder, replace, walk,
    dumps, from_document, loads, to_document,
)

# ── Éditeur ─────────────────────────────────────────────────────────────────
from .editor import (
    AddBlock, DuplicateBlock, EditProperty, EditStyle, MoveBlock, Redo,
    RemoveBlock, RenameBlock, ReorderBlock, Select, Undo, parse_action,
    DispatchResult, EditorSession, Outcome, dispatch,
    Editor, EditorStatus,
)

# ── Persistance ─────────────────────────────────────────────────────────────
from .gateway import InMemoryLayoutGateway, LayoutGateway, SaveAck, StoredLayout

# ── Rendu ───────────────────────────────────────────────────────────────────
from .renderer import RenderContext, render_layout, render_page

from .config import BuilderConfig, load_config
from . import errors

__version__ = "1.0.0"

__all__ = [
    # blocs
    "BaseBlock", "BlockStyle", "BlockType", "BlockUnion",
    "HeroBlock", "TextBlock", "ImageBlock", "GridBlock",
    "MenuListBlock", "SessionsBlock", "ContainerBlock", "CalendarBlock",
    "catalog", "create_default", "editable_properties", "parse_block",
    "validate_property", "validate_style",
    # layout
    "LayoutTree",
    "check_integrity", "descendants", "duplicate", "insert", "insert_child",
    "move", "parent_of", "remove", "reorder", "replace", "walk",
    "dumps", "from_document", "loads", "to_document",
    # éditeur
    "AddBlock", "DuplicateBlock", "EditProperty", "EditStyle", "MoveBlock", "Redo",
    "RemoveBlock", "RenameBlock", "ReorderBlock", "Select", "Undo", "parse_action",
    "DispatchResult", "EditorSession", "Outcome", "dispatch",
    "Editor", "EditorStatus",
    # persistance
    "InMemoryLayoutGateway", "LayoutGateway", "SaveAck", "StoredLayout",
    # rendu
    "RenderContext", "render_layout", "render_page",
    # config / erreurs
    "BuilderConfig", "load_config", "errors",
]
