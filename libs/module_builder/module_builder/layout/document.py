"""
Document JSON d'un layout — forme de stockage.

{
  "schema_version": 1,
  "blocks": [
    {"id": "...", "type": "hero", "label": null, "properties": {...}, "style": {...}},
    {"id": "...", "type": "container", "label": null, "properties": {}, "style": {...},
     "children": [ {...}, {...} ]}
  ]
}

Les Containers stockent leurs enfants imbriqués ; l'arène plate est reconstruite
au chargement puis vérifiée par check_integrity().
"""
import json
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..blocks import BaseBlock, parse_block
from ..errors import DocumentError, DuplicateIdError
from .tree import LayoutTree, check_integrity

SCHEMA_VERSION = 1


def _record(tree: LayoutTree, block: BaseBlock) -> Dict[str, Any]:
    properties = block.properties.model_dump(mode="json")
    record: Dict[str, Any] = {
        "id":         block.id,
        "type":       block.type,
        "label":      block.label,
        "properties": properties,
        "style":      block.style.model_dump(mode="json"),
    }
    if block.is_container:
        properties.pop("children", None)
        record["children"] = [_record(tree, tree.blocks[cid]) for cid in block.child_ids]
    return record


def to_document(tree: LayoutTree) -> Dict[str, Any]:
    """Sérialise un LayoutTree en document JSON-compatible (enfants imbriqués)."""
    return {
        "schema_version": SCHEMA_VERSION,
        "blocks": [_record(tree, tree.blocks[bid]) for bid in tree.order],
    }


def _flatten(records: List[Any], arena: Dict[str, BaseBlock], path: str) -> List[str]:
    ids: List[str] = []
    for i, raw in enumerate(records):
        where = f"{path}[{i}]"
        if not isinstance(raw, dict):
            raise DocumentError(f"{where} : objet attendu, reçu {type(raw).__name__}", path=where)
        record = dict(raw)
        children = record.pop("children", None)
        if children is not None and not isinstance(children, list):
            raise DocumentError(f"{where}.children : liste attendue", path=where)
        child_ids = _flatten(children or [], arena, f"{where}.children")

        if record.get("type") == "container":
            record["properties"] = {**(record.get("properties") or {}), "children": child_ids}
        elif child_ids:
            raise DocumentError(f"{where} : seul un container peut avoir des enfants", path=where)

        try:
            block = parse_block(record)
        except ValidationError as e:
            raise DocumentError(f"{where} : bloc invalide — {e.errors()[0].get('msg', '')}",
                                path=where) from e
        if block.id in arena:
            raise DuplicateIdError(f"Id dupliqué dans le document : {block.id!r}", block_id=block.id)
        arena[block.id] = block
        ids.append(block.id)
    return ids


def from_document(doc: Optional[Dict[str, Any]]) -> LayoutTree:
    """Reconstruit un LayoutTree depuis un document (None ou {} → arbre vide)."""
    if not doc:
        return LayoutTree.empty()
    if not isinstance(doc, dict):
        raise DocumentError("Document de layout : objet attendu")
    version = doc.get("schema_version", SCHEMA_VERSION)
    if version != SCHEMA_VERSION:
        raise DocumentError(f"schema_version non supportée : {version!r}", schema_version=version)
    records = doc.get("blocks", [])
    if not isinstance(records, list):
        raise DocumentError("blocks : liste attendue")

    arena: Dict[str, BaseBlock] = {}
    order = _flatten(records, arena, "blocks")
    return check_integrity(LayoutTree(order=tuple(order), blocks=arena))


def dumps(tree: LayoutTree) -> str:
    return json.dumps(to_document(tree), ensure_ascii=False)


def loads(text: Optional[str]) -> LayoutTree:
    if not text:
        return LayoutTree.empty()
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError(f"JSON invalide : {e}") from e
    return from_document(doc)
