"""Bloc Grid — grille de N colonnes alimentée par une source de données."""
from typing import Literal

from pydantic import Field, StrictInt

from .base import BaseBlock, BlockProperties

MAX_GRID_COLUMNS = 4


class GridProperties(BlockProperties):
    columns:     StrictInt = Field(default=3, ge=1, le=MAX_GRID_COLUMNS)
    data_source: Literal["menu", "sessions", "custom"] = "menu"
    gap:         Literal["8px", "16px", "24px", "32px"] = "16px"


class GridBlock(BaseBlock):
    type:       Literal["grid"] = "grid"
    properties: GridProperties = GridProperties()
