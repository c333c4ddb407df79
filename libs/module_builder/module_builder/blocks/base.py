"""
Blocs de base du module builder.
Style universel + propriétés par variante + BaseBlock discriminé par `type`.
"""
import uuid
from enum import Enum
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


class BlockType(str, Enum):
    HERO         = "hero"
    TEXT_BLOCK   = "text_block"
    IMAGE        = "image"
    GRID         = "grid"
    MENU_LIST    = "menu_list"
    SESSIONS     = "session_list"
    CONTAINER    = "container"
    CALENDAR     = "booking_calendar"


def new_block_id() -> str:
    """Identifiant unique, jamais réutilisé (uuid4 hex)."""
    return uuid.uuid4().hex


# ── Style universel ─────────────────────────────────────────────────────────

Width        = Literal["auto", "100%", "75%", "66%", "50%", "33%", "25%"]
Height       = Literal["auto", "100px", "200px", "300px", "400px", "500px", "100vh"]
Padding      = Literal["0", "8px", "16px", "24px", "32px", "48px"]
BorderRadius = Literal["0", "4px", "8px", "12px", "16px", "9999px"]

# Recopiées telles quelles dans l'attribut style HTML : pas de ; ni de guillemets
CssColor = Annotated[str, StringConstraints(
    pattern=r"^(#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})|(rgb|hsl)a?\([0-9.,%/ ]+\)|[a-zA-Z]+)$",
)]
ImageUrl = Annotated[str, StringConstraints(pattern=r"""^((https?://|/)[^\s"'()<>;\\]*)?$""")]


class BlockStyle(BaseModel):
    """Propriétés de style communes à tous les blocs, quel que soit le type."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    width:            Width        = "auto"
    height:           Height       = "auto"
    padding:          Padding      = "0"
    border_radius:    BorderRadius = "0"
    background_color: Optional[CssColor] = None
    color:            Optional[CssColor] = None


class BlockProperties(BaseModel):
    """Propriétés spécifiques à une variante (vide pour les blocs auto-alimentés)."""
    model_config = ConfigDict(frozen=True, extra="forbid")


class BaseBlock(BaseModel):
    """Bloc de base (classe parente des huit variantes)."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    id:     str           = Field(default_factory=new_block_id)
    type:   str
    label:  Optional[str] = None
    style:  BlockStyle    = BlockStyle()

    @property
    def block_type(self) -> BlockType:
        return BlockType(self.type)

    @property
    def is_container(self) -> bool:
        return self.type == BlockType.CONTAINER.value

    @property
    def child_ids(self) -> tuple:
        return ()
