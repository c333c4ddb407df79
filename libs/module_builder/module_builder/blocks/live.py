"""
Blocs auto-alimentés — MenuList, Sessions, Calendar.
Aucun contenu éditable : le renderer les lie aux données live du module.
"""
from typing import Literal

from .base import BaseBlock, BlockProperties


class MenuListProperties(BlockProperties):
    pass


class SessionsProperties(BlockProperties):
    pass


class CalendarProperties(BlockProperties):
    pass


class MenuListBlock(BaseBlock):
    type:       Literal["menu_list"] = "menu_list"
    properties: MenuListProperties = MenuListProperties()


class SessionsBlock(BaseBlock):
    type:       Literal["session_list"] = "session_list"
    properties: SessionsProperties = SessionsProperties()


class CalendarBlock(BaseBlock):
    """Sélecteur de dates de réservation (arrivée/départ) lié au module."""
    type:       Literal["booking_calendar"] = "booking_calendar"
    properties: CalendarProperties = CalendarProperties()
