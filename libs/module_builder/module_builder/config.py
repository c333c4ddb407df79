"""Configuration du module builder — lue depuis l'environnement."""
import os

from pydantic import BaseModel, Field

DEFAULT_HISTORY_DEPTH = 50


class BuilderConfig(BaseModel):
    history_depth: int = Field(default=DEFAULT_HISTORY_DEPTH, ge=1,
                               description="Nombre max de snapshots conservés pour undo")


def load_config() -> BuilderConfig:
    """Construit la config depuis MODULE_BUILDER_HISTORY_DEPTH (défaut 50)."""
    raw = os.getenv("MODULE_BUILDER_HISTORY_DEPTH", "")
    if not raw.strip():
        return BuilderConfig()
    return BuilderConfig(history_depth=int(raw))
