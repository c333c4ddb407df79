"""
Layout Tree — arène plate id → bloc + listes d'ordre explicites.

Structure :
  order   : ids des blocs de premier niveau (ordre de rendu)
  blocks  : tous les blocs, y compris les enfants imbriqués des Containers

Aucun pointeur parent : la parenté se lit dans `order` et dans les `children`
des Containers. Chaque opération renvoie un nouvel arbre et laisse l'arbre
reçu intact ; les blocs non touchés sont partagés entre les deux valeurs.
"""
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..blocks import BaseBlock, BlockUnion, ContainerBlock, new_block_id
from ..blocks.container import ContainerProperties
from ..errors import (
    BlockNotFoundError,
    CycleDetectedError,
    DuplicateIdError,
    NotAContainerError,
    StructuralError,
)


class LayoutTree(BaseModel):
    """Composition complète d'une page : ordre de premier niveau + arène de blocs."""
    model_config = ConfigDict(frozen=True)

    order:  Tuple[str, ...]       = ()
    blocks: Dict[str, BlockUnion] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> "LayoutTree":
        return cls()

    def __contains__(self, block_id: object) -> bool:
        return block_id in self.blocks

    @property
    def size(self) -> int:
        return len(self.blocks)

    def get(self, block_id: str) -> BaseBlock:
        block = self.blocks.get(block_id)
        if block is None:
            raise BlockNotFoundError(f"Bloc introuvable : {block_id!r}", block_id=block_id)
        return block

    def top_level(self) -> List[BaseBlock]:
        return [self.blocks[bid] for bid in self.order]


# ── Requêtes ────────────────────────────────────────────────────────────────

def _container(tree: LayoutTree, parent_id: str) -> ContainerBlock:
    parent = tree.get(parent_id)
    if not parent.is_container:
        raise NotAContainerError(
            f"Le bloc {parent_id!r} ({parent.type}) n'accepte pas d'enfants",
            block_id=parent_id,
        )
    return parent


def siblings_of(tree: LayoutTree, parent_id: Optional[str]) -> Tuple[str, ...]:
    """Liste d'ordre désignée : premier niveau si parent_id est None, sinon children du Container."""
    if parent_id is None:
        return tree.order
    return _container(tree, parent_id).child_ids


def parent_of(tree: LayoutTree, block_id: str) -> Optional[str]:
    """Id du Container parent, None pour un bloc de premier niveau."""
    tree.get(block_id)
    if block_id in tree.order:
        return None
    for block in tree.blocks.values():
        if block_id in block.child_ids:
            return block.id
    raise StructuralError(f"Bloc orphelin : {block_id!r}", block_id=block_id)


def descendants(tree: LayoutTree, block_id: str) -> List[str]:
    """Ids de tous les descendants (profondeur d'abord), sans le bloc lui-même."""
    out: List[str] = []
    stack = list(reversed(tree.get(block_id).child_ids))
    seen = {block_id}
    while stack:
        cid = stack.pop()
        if cid in seen:
            raise CycleDetectedError(f"Cycle détecté sous {block_id!r}", block_id=cid)
        seen.add(cid)
        out.append(cid)
        child = tree.blocks.get(cid)
        if child is not None:
            stack.extend(reversed(child.child_ids))
    return out


def walk(tree: LayoutTree) -> Iterator[Tuple[BaseBlock, int]]:
    """Parcours en ordre de rendu : (bloc, profondeur)."""
    def _visit(ids, depth):
        for bid in ids:
            block = tree.blocks[bid]
            yield block, depth
            yield from _visit(block.child_ids, depth + 1)
    yield from _visit(tree.order, 0)


# ── Intégrité ───────────────────────────────────────────────────────────────

def check_integrity(tree: LayoutTree) -> LayoutTree:
    """
    Vérifie les invariants de l'arbre et le renvoie tel quel.

    - clé de l'arène == id du bloc
    - aucun Container n'est son propre ancêtre (CycleDetected)
    - toute référence pointe vers un bloc existant (NotFound)
    - chaque bloc est référencé exactement une fois (DuplicateId / orphelin)
    """
    for key, block in tree.blocks.items():
        if key != block.id:
            raise StructuralError(f"Clé {key!r} ≠ id du bloc {block.id!r}", block_id=key)
        if block.id in block.child_ids:
            raise CycleDetectedError(f"Le bloc {block.id!r} se contient lui-même", block_id=block.id)

    referenced_by: Dict[str, Optional[str]] = {}
    lists = [(None, tree.order)] + [(b.id, b.child_ids) for b in tree.blocks.values() if b.child_ids]
    for parent_id, ids in lists:
        for cid in ids:
            if cid not in tree.blocks:
                raise BlockNotFoundError(f"Référence pendante : {cid!r}", block_id=cid, parent_id=parent_id)
            if cid in referenced_by:
                raise DuplicateIdError(f"Bloc {cid!r} référencé plusieurs fois", block_id=cid)
            referenced_by[cid] = parent_id

    for bid in tree.blocks:
        if bid in referenced_by:
            continue
        raise StructuralError(f"Bloc orphelin : {bid!r}", block_id=bid)

    # Tout bloc référencé une fois mais inaccessible depuis la racine appartient à un cycle
    reachable = {block.id for block, _ in _safe_walk(tree)}
    for bid in tree.blocks:
        if bid not in reachable:
            raise CycleDetectedError(f"Bloc {bid!r} pris dans un cycle", block_id=bid)
    return tree


def _safe_walk(tree: LayoutTree) -> Iterator[Tuple[BaseBlock, int]]:
    seen = set()
    stack = [(bid, 0) for bid in reversed(tree.order)]
    while stack:
        bid, depth = stack.pop()
        if bid in seen:
            continue
        seen.add(bid)
        block = tree.blocks[bid]
        yield block, depth
        stack.extend((cid, depth + 1) for cid in reversed(block.child_ids))


# ── Brouillon de mutation ───────────────────────────────────────────────────

class _Draft:
    """Copie de travail (order + arène) ; commit() produit le nouvel arbre vérifié."""

    def __init__(self, tree: LayoutTree):
        self.tree   = tree
        self.order  = list(tree.order)
        self.blocks = dict(tree.blocks)

    def ids(self, parent_id: Optional[str]) -> List[str]:
        if parent_id is None:
            return list(self.order)
        return list(self.blocks[parent_id].child_ids)

    def set_ids(self, parent_id: Optional[str], ids: List[str]) -> None:
        if parent_id is None:
            self.order = list(ids)
        else:
            self.blocks[parent_id] = self.blocks[parent_id].with_children(ids)

    def commit(self) -> LayoutTree:
        return check_integrity(LayoutTree(order=tuple(self.order), blocks=self.blocks))


def _clamp(index: Optional[int], upper: int) -> int:
    if index is None:
        return upper
    return max(0, min(index, upper))


def _ensure_new(tree: LayoutTree, block: BaseBlock) -> None:
    if block.id in tree.blocks:
        raise DuplicateIdError(f"Id déjà présent dans l'arbre : {block.id!r}", block_id=block.id)


# ── Opérations ──────────────────────────────────────────────────────────────

def insert(tree: LayoutTree, block: BaseBlock, position: Optional[int] = None) -> LayoutTree:
    """Insère un bloc de premier niveau à `position` (défaut : fin)."""
    _ensure_new(tree, block)
    draft = _Draft(tree)
    draft.blocks[block.id] = block
    ids = draft.ids(None)
    ids.insert(_clamp(position, len(ids)), block.id)
    draft.set_ids(None, ids)
    return draft.commit()


def insert_child(tree: LayoutTree, parent_id: str, block: BaseBlock,
                 position: Optional[int] = None) -> LayoutTree:
    """Insère un bloc dans les children d'un Container."""
    _container(tree, parent_id)
    _ensure_new(tree, block)
    draft = _Draft(tree)
    draft.blocks[block.id] = block
    ids = draft.ids(parent_id)
    ids.insert(_clamp(position, len(ids)), block.id)
    draft.set_ids(parent_id, ids)
    return draft.commit()


def remove(tree: LayoutTree, block_id: str) -> LayoutTree:
    """Supprime un bloc et, pour un Container, tous ses descendants."""
    parent_id = parent_of(tree, block_id)
    gone = {block_id, *descendants(tree, block_id)}
    draft = _Draft(tree)
    for bid in gone:
        del draft.blocks[bid]
    draft.set_ids(parent_id, [bid for bid in draft.ids(parent_id) if bid != block_id])
    return draft.commit()


def _fresh_id(taken) -> str:
    new_id = new_block_id()
    while new_id in taken:
        new_id = new_block_id()
    return new_id


def duplicate(tree: LayoutTree, block_id: str) -> Tuple[LayoutTree, str]:
    """
    Clone profond (Container compris) avec des ids neufs pour chaque nœud,
    inséré juste après l'original dans la même liste d'ordre.
    """
    parent_id = parent_of(tree, block_id)
    mapping: Dict[str, str] = {}
    taken = set(tree.blocks)
    for old in [block_id, *descendants(tree, block_id)]:
        mapping[old] = _fresh_id(taken)
        taken.add(mapping[old])

    draft = _Draft(tree)
    for old, new in mapping.items():
        source = tree.blocks[old]
        update = {"id": new}
        if source.is_container:
            update["properties"] = ContainerProperties(
                children=tuple(mapping[cid] for cid in source.child_ids)
            )
        draft.blocks[new] = source.model_copy(update=update)

    ids = draft.ids(parent_id)
    ids.insert(ids.index(block_id) + 1, mapping[block_id])
    draft.set_ids(parent_id, ids)
    return draft.commit(), mapping[block_id]


def reorder(tree: LayoutTree, parent_id: Optional[str], block_id: str, new_index: int) -> LayoutTree:
    """Déplace un bloc dans sa liste d'ordre courante ; index borné à la plage valide."""
    siblings = list(siblings_of(tree, parent_id))
    if block_id not in siblings:
        where = "premier niveau" if parent_id is None else f"children de {parent_id!r}"
        raise BlockNotFoundError(f"Bloc {block_id!r} absent de la liste ({where})",
                                 block_id=block_id, parent_id=parent_id)
    siblings.remove(block_id)
    siblings.insert(_clamp(new_index, len(siblings)), block_id)
    draft = _Draft(tree)
    draft.set_ids(parent_id, siblings)
    return draft.commit()


def move(tree: LayoutTree, block_id: str, new_parent_id: Optional[str],
         position: Optional[int] = None) -> LayoutTree:
    """Re-parente un bloc (glisser-déposer entre Containers). Refuse les cycles."""
    old_parent_id = parent_of(tree, block_id)
    if new_parent_id is not None:
        _container(tree, new_parent_id)
        if new_parent_id == block_id or new_parent_id in descendants(tree, block_id):
            raise CycleDetectedError(
                f"Impossible de placer {block_id!r} dans son propre descendant {new_parent_id!r}",
                block_id=block_id, parent_id=new_parent_id,
            )
    draft = _Draft(tree)
    draft.set_ids(old_parent_id, [bid for bid in draft.ids(old_parent_id) if bid != block_id])
    ids = draft.ids(new_parent_id)
    ids.insert(_clamp(position, len(ids)), block_id)
    draft.set_ids(new_parent_id, ids)
    return draft.commit()


def replace(tree: LayoutTree, block: BaseBlock) -> LayoutTree:
    """Remplace la valeur d'un bloc existant (même id, même type)."""
    current = tree.get(block.id)
    if current.type != block.type:
        raise StructuralError(
            f"Changement de type interdit pour {block.id!r} : {current.type} → {block.type}",
            block_id=block.id,
        )
    draft = _Draft(tree)
    draft.blocks[block.id] = block
    return draft.commit()
