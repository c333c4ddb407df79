"""Bloc Image — image seule."""
from typing import Literal

from .base import BaseBlock, BlockProperties


class ImageProperties(BlockProperties):
    src:        str = ""
    alt:        str = ""
    object_fit: Literal["cover", "contain", "fill"] = "cover"


class ImageBlock(BaseBlock):
    type:       Literal["image"] = "image"
    properties: ImageProperties = ImageProperties()
