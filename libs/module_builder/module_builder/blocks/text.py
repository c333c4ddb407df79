"""Bloc Texte — contenu libre avec échelle de taille de police."""
from typing import Literal

from .base import BaseBlock, BlockProperties

FontSize = Literal["sm", "base", "lg", "xl", "2xl"]


class TextBlockProperties(BlockProperties):
    content:   str      = ""
    font_size: FontSize = "base"


class TextBlock(BaseBlock):
    type:       Literal["text_block"] = "text_block"
    properties: TextBlockProperties = TextBlockProperties()
