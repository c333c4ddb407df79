"""Bloc Hero — bandeau titre/sous-titre avec image de fond optionnelle."""
from typing import Literal

from .base import BaseBlock, BlockProperties, ImageUrl


class HeroProperties(BlockProperties):
    title:            str = ""
    subtitle:         str = ""
    background_image: ImageUrl = ""
    text_alignment:   Literal["left", "center", "right"] = "center"


class HeroBlock(BaseBlock):
    type:       Literal["hero"] = "hero"
    properties: HeroProperties = HeroProperties()
