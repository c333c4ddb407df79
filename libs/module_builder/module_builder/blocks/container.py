"""Bloc Container — liste ordonnée d'ids d'enfants (arène plate, pas de pointeur parent)."""
from typing import Literal, Tuple

from .base import BaseBlock, BlockProperties


class ContainerProperties(BlockProperties):
    children: Tuple[str, ...] = ()


class ContainerBlock(BaseBlock):
    type:       Literal["container"] = "container"
    properties: ContainerProperties = ContainerProperties()

    @property
    def child_ids(self) -> tuple:
        return self.properties.children

    def with_children(self, children) -> "ContainerBlock":
        return self.model_copy(update={"properties": ContainerProperties(children=tuple(children))})
