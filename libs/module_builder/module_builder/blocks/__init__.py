"""
Blocs — exports publics + BlockUnion discriminé.
"""
from typing import Annotated, Union

from pydantic import Field, TypeAdapter

from .base import BaseBlock, BlockProperties, BlockStyle, BlockType, new_block_id
from .hero import HeroBlock, HeroProperties
from .text import TextBlock, TextBlockProperties
from .image import ImageBlock, ImageProperties
from .grid import GridBlock, GridProperties, MAX_GRID_COLUMNS
from .live import (
    MenuListBlock, MenuListProperties,
    SessionsBlock, SessionsProperties,
    CalendarBlock, CalendarProperties,
)
from .container import ContainerBlock, ContainerProperties
from .registry import (
    block_class,
    catalog,
    create_default,
    editable_properties,
    rename,
    style_keys,
    validate_property,
    validate_style,
)

# Union discriminée par type, utilisable dans Pydantic avec discriminator
BlockUnion = Annotated[
    Union[
        HeroBlock,
        TextBlock,
        ImageBlock,
        GridBlock,
        MenuListBlock,
        SessionsBlock,
        ContainerBlock,
        CalendarBlock,
    ],
    Field(discriminator="type"),
]

_BLOCK_ADAPTER: TypeAdapter = TypeAdapter(BlockUnion)


def parse_block(data: dict) -> BaseBlock:
    """Instancie la bonne variante depuis un dict (lève pydantic.ValidationError)."""
    return _BLOCK_ADAPTER.validate_python(data)


__all__ = [
    # Base
    "BaseBlock", "BlockProperties", "BlockStyle", "BlockType", "new_block_id",
    # Variantes
    "HeroBlock", "HeroProperties",
    "TextBlock", "TextBlockProperties",
    "ImageBlock", "ImageProperties",
    "GridBlock", "GridProperties", "MAX_GRID_COLUMNS",
    "MenuListBlock", "MenuListProperties",
    "SessionsBlock", "SessionsProperties",
    "CalendarBlock", "CalendarProperties",
    "ContainerBlock", "ContainerProperties",
    # Registry
    "block_class", "catalog", "create_default", "editable_properties",
    "rename", "style_keys", "validate_property", "validate_style",
    # Union
    "BlockUnion", "parse_block",
]
