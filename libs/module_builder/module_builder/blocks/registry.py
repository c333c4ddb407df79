"""
Registry des blocs — création par défaut + validation des éditions.

Fonctions pures : aucune ne modifie le bloc reçu, chacune renvoie un nouveau bloc
ou lève une PropertyValidationError (UnknownProperty / InvalidEnumValue / TypeMismatch).
"""
from typing import Any, Dict, Literal, Optional, Tuple, Type, Union, get_args, get_origin

from pydantic import BaseModel, ValidationError

from ..errors import (
    InvalidEnumValueError,
    PropertyValidationError,
    TypeMismatchError,
    UnknownPropertyError,
)
from .base import BaseBlock, BlockStyle, BlockType, new_block_id
from .container import ContainerBlock
from .grid import GridBlock
from .hero import HeroBlock
from .image import ImageBlock
from .live import CalendarBlock, MenuListBlock, SessionsBlock
from .text import TextBlock

_BLOCK_REGISTRY: Dict[str, Type[BaseBlock]] = {
    BlockType.HERO.value:       HeroBlock,
    BlockType.TEXT_BLOCK.value: TextBlock,
    BlockType.IMAGE.value:      ImageBlock,
    BlockType.GRID.value:       GridBlock,
    BlockType.MENU_LIST.value:  MenuListBlock,
    BlockType.SESSIONS.value:   SessionsBlock,
    BlockType.CONTAINER.value:  ContainerBlock,
    BlockType.CALENDAR.value:   CalendarBlock,
}

# Clés gérées uniquement par les opérations du layout tree
_STRUCTURAL_KEYS = {"children"}

# Types d'erreurs pydantic qui signalent une valeur hors énumération / hors plage
_ENUM_ERROR_TYPES = {
    "literal_error", "enum", "string_pattern_mismatch",
    "greater_than", "greater_than_equal", "less_than", "less_than_equal",
}


def _type_tag(block_type: Union[BlockType, str]) -> str:
    return block_type.value if isinstance(block_type, BlockType) else str(block_type)


def block_class(block_type: Union[BlockType, str]) -> Type[BaseBlock]:
    """Classe Pydantic d'une variante. Lève ValueError si le type est inconnu."""
    tag = _type_tag(block_type)
    cls = _BLOCK_REGISTRY.get(tag)
    if cls is None:
        raise ValueError(f"Bloc inconnu : {tag!r}. Registry : {list(_BLOCK_REGISTRY)}")
    return cls


def _properties_class(block_type: Union[BlockType, str]) -> Type[BaseModel]:
    return block_class(block_type).model_fields["properties"].default.__class__


def editable_properties(block_type: Union[BlockType, str]) -> Tuple[str, ...]:
    """Clés de propriétés éditables pour une variante (hors clés structurelles)."""
    fields = _properties_class(block_type).model_fields
    return tuple(k for k in fields if k not in _STRUCTURAL_KEYS)


def style_keys() -> Tuple[str, ...]:
    return tuple(BlockStyle.model_fields)


def create_default(block_type: Union[BlockType, str], block_id: Optional[str] = None) -> BaseBlock:
    """Nouveau bloc avec id frais, propriétés et style par défaut."""
    cls = block_class(block_type)
    return cls(id=block_id or new_block_id())


def _literal_types(annotation: Any) -> set:
    """Types des membres d'un Literal, y compris sous Optional[...]."""
    if get_origin(annotation) is Literal:
        return {type(v) for v in get_args(annotation)}
    return {t for arg in get_args(annotation) for t in _literal_types(arg)}


def _classify(exc: ValidationError, model_cls: Type[BaseModel], block_type: str,
              key: str, value: Any) -> PropertyValidationError:
    """Traduit une ValidationError pydantic en erreur de la taxonomie builder."""
    errors = [e for e in exc.errors() if e.get("loc") and e["loc"][0] == key] or exc.errors()
    first = errors[0]
    err_cls = InvalidEnumValueError if first.get("type") in _ENUM_ERROR_TYPES else TypeMismatchError
    if first.get("type") == "literal_error":
        # text_alignment=5 : mauvais type, pas une valeur hors énumération
        field = model_cls.model_fields.get(key)
        if field is not None and type(value) not in _literal_types(field.annotation):
            err_cls = TypeMismatchError
    return err_cls(
        f"{key}={value!r} refusé pour {block_type} : {first.get('msg', '')}",
        block_type=block_type,
        key=key,
    )


def _apply(model: BaseModel, key: str, value: Any, block_type: str) -> BaseModel:
    data = model.model_dump()
    data[key] = value
    try:
        return model.__class__.model_validate(data)
    except ValidationError as e:
        raise _classify(e, model.__class__, block_type, key, value) from e


def validate_property(block: BaseBlock, key: str, value: Any) -> BaseBlock:
    """
    Valide une édition de propriété et renvoie un nouveau bloc.

    Raises:
        UnknownPropertyError: clé absente du schéma de la variante (ou structurelle)
        InvalidEnumValueError: valeur hors énumération / hors plage
        TypeMismatchError: type incompatible (ex: columns non entier)
    """
    if key not in editable_properties(block.type):
        raise UnknownPropertyError(
            f"Propriété inconnue pour {block.type} : {key!r}",
            block_type=block.type,
            key=key,
        )
    properties = _apply(block.properties, key, value, block.type)
    return block.model_copy(update={"properties": properties})


def validate_style(block: BaseBlock, key: str, value: Any) -> BaseBlock:
    """Même contrat que validate_property, pour le style universel."""
    if key not in style_keys():
        raise UnknownPropertyError(
            f"Propriété de style inconnue : {key!r}",
            block_type=block.type,
            key=key,
        )
    style = _apply(block.style, key, value, block.type)
    return block.model_copy(update={"style": style})


def rename(block: BaseBlock, label: Optional[str]) -> BaseBlock:
    if label is not None and not isinstance(label, str):
        raise TypeMismatchError(f"label={label!r} refusé : texte attendu",
                                block_type=block.type, key="label")
    return block.model_copy(update={"label": label or None})


def catalog() -> list:
    """Catalogue des blocs disponibles : type, propriétés éditables, JSON schema."""
    return [
        {
            "type":       tag,
            "editable":   list(editable_properties(tag)),
            "schema":     cls.model_json_schema(),
        }
        for tag, cls in _BLOCK_REGISTRY.items()
    ]
