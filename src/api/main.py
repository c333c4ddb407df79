"""
MODULE BUILDER — FastAPI app
Démarrer : uvicorn src.api.main:app --reload --port 8001
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from module_builder import __version__ as builder_version, load_config

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s — %(message)s")
log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    from ..database import init_db
    init_db()
    log.info("DB initialisée (SQLite)")
    log.info("Historique d'édition : %d actions max", load_config().history_depth)
    yield


app = FastAPI(title="MODULE BUILDER — Pages des modules du resort", version=builder_version,
              docs_url="/docs", lifespan=lifespan)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.get("/health")
def health():
    return {"status": "ok", "service": "module_builder", "version": builder_version}


from .routes.module_builder import router as module_builder_router

app.include_router(module_builder_router)
