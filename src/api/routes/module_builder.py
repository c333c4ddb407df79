"""
Module Builder — modules, layouts, sessions d'édition, page publique.

POST   /api/modules                          → crée un module (layout vide v0)
GET    /api/modules                          → liste des modules
GET    /api/modules/{ref}                    → module par id ou slug
GET    /api/modules/{module_id}/layout       → document + version
PUT    /api/modules/{module_id}/layout       → sauvegarde directe (expected_version)
GET    /api/builder/catalog                  → blocs disponibles + JSON schemas
POST   /api/builder/sessions                 → ouvre un éditeur sur un module
GET    /api/builder/sessions/{sid}           → état de l'éditeur
POST   /api/builder/sessions/{sid}/actions   → dispatch d'une action
POST   /api/builder/sessions/{sid}/save      → sauvegarde (sérialisée par session)
DELETE /api/builder/sessions/{sid}           → abandon sans sauvegarde
GET    /m/{slug}                             → page publique HTML
"""
import logging
import os
import threading
import time
import uuid
from collections import OrderedDict
from typing import Optional, Tuple

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from module_builder import Editor, catalog, from_document, parse_action, render_page, to_document
from module_builder.errors import (
    BlockNotFoundError,
    BuilderError,
    ConflictError,
    LayoutNotFoundError,
    SaveInProgressError,
    TransientIOError,
)
from module_builder.renderer import ModuleInfo, RenderContext

from ...database import db_create_module, db_get_module_by_slug, db_list_modules, db_resolve_module, get_db
from ...layout_store import SqlLayoutGateway
from ...models import LayoutSaveInput, ModuleCreate, ModuleDB, SessionOpenInput, SessionSaveInput

log = logging.getLogger(__name__)
router = APIRouter(tags=["Module Builder"])

# Éditeurs ouverts, en mémoire : perdus au redémarrage (non sauvegardé = abandonné).
# Ordre LRU : les sessions inactives depuis SESSION_TTL ou au-delà de MAX_SESSIONS sont évincées.
SESSION_TTL  = float(os.getenv("MODULE_BUILDER_SESSION_TTL", "3600"))
MAX_SESSIONS = int(os.getenv("MODULE_BUILDER_MAX_SESSIONS", "256"))

_EDITORS: "OrderedDict[str, Tuple[Editor, float]]" = OrderedDict()
_EDITORS_LOCK = threading.Lock()
_clock = time.monotonic

_STATUS_BY_ERROR = [
    (LayoutNotFoundError, 404),
    (BlockNotFoundError,  404),
    (ConflictError,       409),
    (SaveInProgressError, 409),
    (TransientIOError,    503),
]


def get_gateway() -> SqlLayoutGateway:
    return SqlLayoutGateway()


def _http_error(e: BuilderError) -> HTTPException:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(e, cls):
            return HTTPException(status, e.to_dict())
    return HTTPException(422, e.to_dict())


def _module_dict(m: ModuleDB) -> dict:
    return {
        "id": m.id, "slug": m.slug, "name": m.name, "description": m.description,
        "template_type": m.template_type, "is_active": m.is_active,
        "layout_version": m.layout.version if m.layout else 0,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


def _evict_idle(now: float) -> None:
    """À appeler sous _EDITORS_LOCK."""
    while _EDITORS:
        sid, (editor, seen) = next(iter(_EDITORS.items()))
        if now - seen <= SESSION_TTL and len(_EDITORS) <= MAX_SESSIONS:
            break
        del _EDITORS[sid]
        log.info("Session %s évincée (inactive, %s)%s", sid, editor.module_id,
                 " avec des modifications non sauvegardées" if editor.dirty else "")


def _editor(sid: str) -> Editor:
    with _EDITORS_LOCK:
        entry = _EDITORS.get(sid)
        if entry is not None:
            _EDITORS[sid] = (entry[0], _clock())
            _EDITORS.move_to_end(sid)
    if entry is None:
        raise HTTPException(404, "Session d'édition introuvable")
    return entry[0]


# ── Modules ────────────────────────────────────────────────────────────────────

@router.post("/api/modules", status_code=201)
def create_module(req: ModuleCreate, db: Session = Depends(get_db)):
    try:
        module = db_create_module(db, req.name, req.slug, req.description, req.template_type)
    except IntegrityError:
        db.rollback()
        raise HTTPException(409, "Slug déjà utilisé")
    log.info("Module créé : %s (%s)", module.slug, module.id)
    return _module_dict(module)


@router.get("/api/modules")
def list_modules(active_only: bool = False, db: Session = Depends(get_db)):
    return [_module_dict(m) for m in db_list_modules(db, active_only)]


@router.get("/api/modules/{ref}")
def get_module(ref: str, db: Session = Depends(get_db)):
    module = db_resolve_module(db, ref)
    if not module:
        raise HTTPException(404, "Module introuvable")
    return _module_dict(module)


# ── Layout (accès direct) ──────────────────────────────────────────────────────

@router.get("/api/modules/{module_id}/layout")
def get_layout(module_id: str, gateway: SqlLayoutGateway = Depends(get_gateway)):
    try:
        stored = gateway.load(module_id)
    except BuilderError as e:
        raise _http_error(e)
    return {"module_id": module_id, "version": stored.version, "document": to_document(stored.tree)}


@router.put("/api/modules/{module_id}/layout")
def put_layout(module_id: str, req: LayoutSaveInput,
               gateway: SqlLayoutGateway = Depends(get_gateway)):
    try:
        tree = from_document(req.document)
        ack = gateway.save(module_id, tree, expected_version=req.expected_version)
    except BuilderError as e:
        raise _http_error(e)
    return {"module_id": module_id, "version": ack.version}


# ── Catalogue ──────────────────────────────────────────────────────────────────

@router.get("/api/builder/catalog")
def builder_catalog():
    return {"blocks": catalog()}


# ── Sessions d'édition ─────────────────────────────────────────────────────────

@router.post("/api/builder/sessions", status_code=201)
def open_session(req: SessionOpenInput, gateway: SqlLayoutGateway = Depends(get_gateway)):
    try:
        editor = Editor.open(gateway, req.module_id, max_history=req.max_history)
    except BuilderError as e:
        raise _http_error(e)
    sid = uuid.uuid4().hex
    with _EDITORS_LOCK:
        _EDITORS[sid] = (editor, _clock())
        _evict_idle(_clock())
    return {"session_id": sid, **editor.snapshot()}


@router.get("/api/builder/sessions/{sid}")
def session_state(sid: str):
    return {"session_id": sid, **_editor(sid).snapshot()}


@router.post("/api/builder/sessions/{sid}/actions")
def session_action(sid: str, payload: dict = Body(...)):
    editor = _editor(sid)
    try:
        action = parse_action(payload)
    except ValidationError as e:
        raise HTTPException(422, e.errors(include_url=False, include_context=False))
    result = editor.dispatch(action)
    if isinstance(result.error, SaveInProgressError):
        raise _http_error(result.error)
    return {
        "outcome":  result.outcome.value,
        "block_id": result.block_id,
        "error":    result.error.to_dict() if result.error else None,
        "state":    editor.snapshot(),
    }


@router.post("/api/builder/sessions/{sid}/save")
def session_save(sid: str, req: Optional[SessionSaveInput] = None):
    editor = _editor(sid)
    try:
        ack = editor.save(force=bool(req and req.force))
    except BuilderError as e:
        raise _http_error(e)
    return {"session_id": sid, "version": ack.version, "state": editor.snapshot()}


@router.delete("/api/builder/sessions/{sid}")
def close_session(sid: str):
    with _EDITORS_LOCK:
        editor, _ = _EDITORS.pop(sid, (None, None))
    if editor is None:
        raise HTTPException(404, "Session d'édition introuvable")
    if editor.dirty:
        log.info("Session %s fermée avec des modifications non sauvegardées (%s)", sid, editor.module_id)
    return {"closed": True, "discarded_changes": editor.dirty}


# ── Page publique ──────────────────────────────────────────────────────────────

@router.get("/m/{slug}", response_class=HTMLResponse)
def public_page(slug: str, db: Session = Depends(get_db),
                gateway: SqlLayoutGateway = Depends(get_gateway)):
    module = db_get_module_by_slug(db, slug)
    if not module or not module.is_active:
        raise HTTPException(404, "Module introuvable")
    try:
        stored = gateway.load(module.id)
    except BuilderError as e:
        raise _http_error(e)
    ctx = RenderContext(module=ModuleInfo(id=module.id, slug=module.slug, name=module.name,
                                          description=module.description or ""))
    return HTMLResponse(render_page(stored.tree, ctx))
