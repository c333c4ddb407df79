"""SQLite — init + session + CRUD helpers"""
import os
from pathlib import Path
from typing import List, Optional

from slugify import slugify
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base, ModuleDB, ModuleLayoutDB

DATA_DIR = Path(__file__).parent.parent / "data"

SessionLocal = sessionmaker(autocommit=False, autoflush=False)
ENGINE = None


def db_url() -> str:
    db_path = os.getenv("DB_PATH")
    if not db_path:
        DATA_DIR.mkdir(exist_ok=True)
        db_path = str(DATA_DIR / "module_builder.db")
    return f"sqlite:///{db_path}"


def configure_engine(url: Optional[str] = None):
    """(Re)lie SessionLocal à la base désignée par DB_PATH (ou `url`)."""
    global ENGINE
    url = url or db_url()
    if ENGINE is not None and str(ENGINE.url) == url:
        return ENGINE
    if ENGINE is not None:
        ENGINE.dispose()
    ENGINE = create_engine(url, connect_args={"check_same_thread": False})
    SessionLocal.configure(bind=ENGINE)
    return ENGINE


def init_db(url: Optional[str] = None):
    engine = configure_engine(url)
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def new_session() -> Session:
    """Session indépendante (gateway, tâches hors requête)."""
    return SessionLocal()


# ── Modules ──
def db_create_module(db: Session, name: str, slug: Optional[str] = None,
                     description: str = "", template_type: str = "custom") -> ModuleDB:
    obj = ModuleDB(name=name, slug=slugify(slug or name), description=description,
                   template_type=template_type)
    obj.layout = ModuleLayoutDB(document="", version=0)
    db.add(obj); db.commit(); db.refresh(obj); return obj

def db_get_module(db: Session, module_id: str) -> Optional[ModuleDB]:
    return db.query(ModuleDB).filter_by(id=module_id).first()

def db_get_module_by_slug(db: Session, slug: str) -> Optional[ModuleDB]:
    return db.query(ModuleDB).filter_by(slug=slug).first()

def db_resolve_module(db: Session, ref: str) -> Optional[ModuleDB]:
    """Recherche par id puis par slug."""
    return db_get_module(db, ref) or db_get_module_by_slug(db, ref)

def db_list_modules(db: Session, active_only: bool = False) -> List[ModuleDB]:
    q = db.query(ModuleDB)
    if active_only: q = q.filter_by(is_active=True)
    return q.order_by(ModuleDB.created_at).all()


# ── Layouts ──
def db_get_layout(db: Session, module_id: str) -> Optional[ModuleLayoutDB]:
    return db.query(ModuleLayoutDB).filter_by(module_id=module_id).first()

