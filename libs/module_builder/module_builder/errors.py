"""
Taxonomie d'erreurs du module builder.

Trois familles :
  - PropertyValidationError : édition de propriété/style refusée (modèle de bloc)
  - StructuralError         : mutation de l'arbre refusée (layout tree)
  - GatewayError            : échec de chargement/sauvegarde (persistance)

Chaque erreur porte un `code` stable, exposé tel quel à l'UI et à l'API.
"""
from typing import Optional


class BuilderError(Exception):
    """Erreur de base du module builder."""
    code: str = "BuilderError"

    def __init__(self, message: str = "", **details):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.details = details

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.details}


# ── Validation (modèle de bloc) ─────────────────────────────────────────────

class PropertyValidationError(BuilderError):
    code = "PropertyValidation"

    def __init__(self, message: str = "", *, block_type: Optional[str] = None,
                 key: Optional[str] = None, **details):
        super().__init__(message, block_type=block_type, key=key, **details)
        self.block_type = block_type
        self.key = key


class UnknownPropertyError(PropertyValidationError):
    code = "UnknownProperty"


class InvalidEnumValueError(PropertyValidationError):
    code = "InvalidEnumValue"


class TypeMismatchError(PropertyValidationError):
    code = "TypeMismatch"


# ── Structure (layout tree) ─────────────────────────────────────────────────

class StructuralError(BuilderError):
    code = "Structural"


class DuplicateIdError(StructuralError):
    code = "DuplicateId"


class BlockNotFoundError(StructuralError):
    code = "NotFound"


class NotAContainerError(StructuralError):
    code = "NotAContainer"


class CycleDetectedError(StructuralError):
    code = "CycleDetected"


class DocumentError(StructuralError):
    """Document JSON illisible ou enregistrement de bloc invalide."""
    code = "InvalidDocument"


# ── Éditeur ─────────────────────────────────────────────────────────────────

class SaveInProgressError(BuilderError):
    """Une sauvegarde est déjà en cours pour cette session d'édition."""
    code = "SaveInProgress"


# ── Persistance ─────────────────────────────────────────────────────────────

class GatewayError(BuilderError):
    code = "Gateway"


class LayoutNotFoundError(GatewayError):
    code = "NotFound"


class TransientIOError(GatewayError):
    code = "TransientIOError"


class ConflictError(GatewayError):
    code = "ConflictError"
