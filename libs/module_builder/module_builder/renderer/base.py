"""
Protocol Renderer — interface pluggable pour les renderers (HTML, aperçu canvas…)
+ contexte de données live fourni par la page consommatrice.
"""
from typing import List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from ..blocks import BaseBlock
from ..layout import LayoutTree


class ModuleInfo(BaseModel):
    id:          str = ""
    slug:        str = ""
    name:        str = ""
    description: str = ""


class MenuItem(BaseModel):
    name:        str
    price:       float = 0.0
    description: str = ""
    category:    Optional[str] = None
    image_url:   Optional[str] = None


class SessionSlot(BaseModel):
    name:      str
    start:     str = ""
    end:       str = ""
    price:     float = 0.0
    capacity:  Optional[int] = None


class CalendarState(BaseModel):
    """Dates indisponibles (ISO) + bornes de séjour pour le sélecteur de réservation."""
    unavailable: List[str] = Field(default_factory=list)
    min_nights:  int = 1


class RenderContext(BaseModel):
    module:    ModuleInfo         = Field(default_factory=ModuleInfo)
    menu_items: List[MenuItem]    = Field(default_factory=list)
    sessions:  List[SessionSlot]  = Field(default_factory=list)
    calendar:  CalendarState      = Field(default_factory=CalendarState)
    currency:  str                = "€"


@runtime_checkable
class Renderer(Protocol):
    def render_layout(self, tree: LayoutTree, context: RenderContext) -> str: ...
    def render_block(self, tree: LayoutTree, block: BaseBlock, context: RenderContext) -> str: ...
