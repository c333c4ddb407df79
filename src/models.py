"""
Data models — Module, ModuleLayout
SQLAlchemy (SQLite) + Pydantic v2 (entrées API)
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

import sqlalchemy as sa
from pydantic import BaseModel, Field
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ── ORM ────────────────────────────────────────────────────────────────

class Base(DeclarativeBase):
    pass


class ModuleDB(Base):
    __tablename__ = "modules"
    id:            Mapped[str]      = mapped_column(sa.String, primary_key=True, default=lambda: str(uuid.uuid4()))
    slug:          Mapped[str]      = mapped_column(sa.String, unique=True, nullable=False)
    name:          Mapped[str]      = mapped_column(sa.String, nullable=False)
    description:   Mapped[str]      = mapped_column(sa.Text, default="")
    template_type: Mapped[str]      = mapped_column(sa.String, default="custom")
    is_active:     Mapped[bool]     = mapped_column(sa.Boolean, default=True)
    created_at:    Mapped[datetime] = mapped_column(sa.DateTime, default=datetime.utcnow)

    layout: Mapped[Optional["ModuleLayoutDB"]] = relationship(
        "ModuleLayoutDB", back_populates="module", uselist=False, cascade="all, delete-orphan")


class ModuleLayoutDB(Base):
    """Layout courant d'un module : document JSON + version (concurrence optimiste)."""
    __tablename__ = "module_layouts"
    module_id:  Mapped[str]      = mapped_column(sa.String, sa.ForeignKey("modules.id"), primary_key=True)
    document:   Mapped[str]      = mapped_column(sa.Text, default="")
    version:    Mapped[int]      = mapped_column(sa.Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    module: Mapped["ModuleDB"] = relationship("ModuleDB", back_populates="layout")


# ── PYDANTIC SCHEMAS ────────────────────────────────────────────────────

class ModuleCreate(BaseModel):
    name:          str
    slug:          Optional[str] = None
    description:   str           = ""
    template_type: str           = "custom"


class LayoutSaveInput(BaseModel):
    document:         Dict[str, Any] = Field(default_factory=dict)
    expected_version: Optional[int]  = None


class SessionOpenInput(BaseModel):
    module_id:   str
    max_history: Optional[int] = Field(default=None, ge=1)


class SessionSaveInput(BaseModel):
    force: bool = False
