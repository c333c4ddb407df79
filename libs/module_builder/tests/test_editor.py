"""Tests éditeur — dispatch, historique undo/redo, sélection, sauvegarde."""
import threading

import pytest

from module_builder import (
    AddBlock, BlockType, DuplicateBlock, EditProperty, EditStyle, Editor, EditorSession,
    EditorStatus, InMemoryLayoutGateway, MoveBlock, Outcome, Redo, RemoveBlock, RenameBlock,
    ReorderBlock, Select, Undo, dispatch, parse_action,
)
from module_builder.errors import ConflictError, LayoutNotFoundError, SaveInProgressError


def _run(session, *actions):
    for action in actions:
        session = dispatch(session, action).session
    return session


def _add(session, block_type, **kw):
    res = dispatch(session, AddBlock(block_type=block_type, **kw))
    assert res.outcome == Outcome.APPLIED
    return res.session, res.block_id


@pytest.fixture
def session():
    return EditorSession.new("restaurant")


# ── Dispatch ─────────────────────────────────────────────────────────────────

def test_add_block(session):
    s, hero_id = _add(session, BlockType.HERO)
    assert s.tree.order == (hero_id,)
    assert s.can_undo
    assert not s.can_redo
    assert session.tree.size == 0  # session d'origine intacte


def test_add_into_container(session):
    s, box = _add(session, BlockType.CONTAINER)
    s, txt = _add(s, BlockType.TEXT_BLOCK, parent_id=box)
    assert s.tree.blocks[box].child_ids == (txt,)


def test_add_into_non_container_rejected(session):
    s, hero = _add(session, BlockType.HERO)
    res = dispatch(s, AddBlock(block_type=BlockType.TEXT_BLOCK, parent_id=hero))
    assert res.outcome == Outcome.REJECTED
    assert res.error.code == "NotAContainer"
    assert res.session is s


def test_edit_grid_columns(session):
    s, grid = _add(session, BlockType.GRID)
    res = dispatch(s, EditProperty(block_id=grid, key="columns", value=4))
    assert res.ok
    assert res.tree.blocks[grid].properties.columns == 4


def test_edit_grid_columns_out_of_range_leaves_state(session):
    s, grid = _add(session, BlockType.GRID)
    res = dispatch(s, EditProperty(block_id=grid, key="columns", value=5))
    assert res.outcome == Outcome.REJECTED
    assert res.error.code == "InvalidEnumValue"
    assert res.session.tree == s.tree
    assert res.session.undo_stack == s.undo_stack
    assert res.session.redo_stack == s.redo_stack


def test_edit_unknown_property_rejected(session):
    s, hero = _add(session, BlockType.HERO)
    res = dispatch(s, EditProperty(block_id=hero, key="columns", value=2))
    assert res.error.code == "UnknownProperty"


def test_edit_missing_block_rejected(session):
    res = dispatch(session, EditProperty(block_id="ghost", key="title", value="x"))
    assert res.outcome == Outcome.REJECTED
    assert res.error.code == "NotFound"


def test_edit_style_and_rename(session):
    s, hero = _add(session, BlockType.HERO)
    s = _run(s, EditStyle(block_id=hero, key="border_radius", value="8px"),
             RenameBlock(block_id=hero, label="Accueil"))
    assert s.tree.blocks[hero].style.border_radius == "8px"
    assert s.tree.blocks[hero].label == "Accueil"


def test_duplicate_reorder_move(session):
    s, box = _add(session, BlockType.CONTAINER)
    s, hero = _add(s, BlockType.HERO)
    res = dispatch(s, DuplicateBlock(block_id=hero))
    copy = res.block_id
    s = res.session
    assert s.tree.order == (box, hero, copy)
    s = _run(s, ReorderBlock(block_id=copy, new_index=0))
    assert s.tree.order == (copy, box, hero)
    s = _run(s, MoveBlock(block_id=hero, new_parent_id=box))
    assert s.tree.blocks[box].child_ids == (hero,)


# ── Historique ───────────────────────────────────────────────────────────────

def test_add_then_undo_restores_previous_tree(session):
    s, _ = _add(session, BlockType.HERO)
    res = dispatch(s, Undo())
    assert res.outcome == Outcome.UNDONE
    assert res.tree == session.tree
    assert res.session.can_redo


def test_undo_redo_are_inverse(session):
    s, grid = _add(session, BlockType.GRID)
    s = _run(s, EditProperty(block_id=grid, key="columns", value=2))
    before = s.tree
    undone = dispatch(s, Undo()).session
    redone = dispatch(undone, Redo())
    assert redone.outcome == Outcome.REDONE
    assert redone.tree == before


@pytest.fixture
def populated(session):
    s, box = _add(session, BlockType.CONTAINER)
    s, hero = _add(s, BlockType.HERO)
    s, txt = _add(s, BlockType.TEXT_BLOCK, parent_id=box)
    return s, {"box": box, "hero": hero, "txt": txt}


@pytest.mark.parametrize("make_action", [
    lambda ids: AddBlock(block_type=BlockType.GRID, parent_id=ids["box"], position=0),
    lambda ids: RemoveBlock(block_id=ids["box"]),
    lambda ids: DuplicateBlock(block_id=ids["box"]),
    lambda ids: ReorderBlock(block_id=ids["hero"], new_index=0),
    lambda ids: MoveBlock(block_id=ids["hero"], new_parent_id=ids["box"], position=0),
    lambda ids: MoveBlock(block_id=ids["txt"]),
    lambda ids: EditProperty(block_id=ids["txt"], key="content", value="Fermé le lundi"),
    lambda ids: EditStyle(block_id=ids["txt"], key="padding", value="16px"),
    lambda ids: RenameBlock(block_id=ids["hero"], label="Bandeau"),
], ids=["add", "remove", "duplicate", "reorder", "move_into", "move_out",
        "edit_property", "edit_style", "rename"])
def test_undo_redo_inverse_for_every_mutation(populated, make_action):
    s, ids = populated
    applied = dispatch(s, make_action(ids))
    assert applied.outcome == Outcome.APPLIED
    assert applied.tree != s.tree

    undone = dispatch(applied.session, Undo())
    assert undone.outcome == Outcome.UNDONE
    assert undone.tree == s.tree

    redone = dispatch(undone.session, Redo())
    assert redone.outcome == Outcome.REDONE
    assert redone.tree == applied.tree


def test_undo_on_empty_history_is_benign(session):
    res = dispatch(session, Undo())
    assert res.outcome == Outcome.EMPTY_UNDO
    assert res.ok
    assert res.error is None
    assert res.session is session


def test_redo_on_empty_history_is_benign(session):
    res = dispatch(session, Redo())
    assert res.outcome == Outcome.EMPTY_REDO


def test_new_mutation_clears_redo(session):
    s, _ = _add(session, BlockType.HERO)
    s = dispatch(s, Undo()).session
    assert s.can_redo
    s, _ = _add(s, BlockType.IMAGE)
    assert not s.can_redo


def test_history_is_lifo(session):
    s, a = _add(session, BlockType.HERO)
    s, b = _add(s, BlockType.IMAGE)
    s, c = _add(s, BlockType.GRID)
    s = dispatch(s, Undo()).session
    assert s.tree.order == (a, b)
    s = dispatch(s, Undo()).session
    assert s.tree.order == (a,)
    s = dispatch(s, Redo()).session
    assert s.tree.order == (a, b)


def test_history_depth_bounded():
    s = EditorSession.new("spa", max_history=3)
    for _ in range(5):
        s, _ = _add(s, BlockType.TEXT_BLOCK)
    assert len(s.undo_stack) == 3
    for _ in range(3):
        s = dispatch(s, Undo()).session
    assert s.tree.size == 2
    assert dispatch(s, Undo()).outcome == Outcome.EMPTY_UNDO


def test_rejected_action_not_recorded(session):
    s, grid = _add(session, BlockType.GRID)
    s = _run(s, EditProperty(block_id=grid, key="columns", value="trois"))
    assert len(s.undo_stack) == 1


def test_history_depth_from_env(monkeypatch):
    monkeypatch.setenv("MODULE_BUILDER_HISTORY_DEPTH", "7")
    assert EditorSession.new("spa").max_history == 7


# ── Sélection ────────────────────────────────────────────────────────────────

def test_select_and_clear(session):
    s, hero = _add(session, BlockType.HERO)
    res = dispatch(s, Select(block_id=hero))
    assert res.outcome == Outcome.SELECTED
    assert res.session.selected_block.id == hero
    assert res.session.undo_stack == s.undo_stack  # la sélection n'entre pas dans l'historique
    assert dispatch(res.session, Select()).session.selected_block_id is None


def test_select_missing_block_rejected(session):
    res = dispatch(session, Select(block_id="ghost"))
    assert res.outcome == Outcome.REJECTED
    assert res.session.selected_block_id is None


def test_selection_cleared_when_block_removed(session):
    s, hero = _add(session, BlockType.HERO)
    s = _run(s, Select(block_id=hero), RemoveBlock(block_id=hero))
    assert s.selected_block_id is None


def test_selection_cleared_on_undo_of_add(session):
    s, hero = _add(session, BlockType.HERO)
    s = _run(s, Select(block_id=hero), Undo())
    assert s.selected_block_id is None


# ── parse_action ─────────────────────────────────────────────────────────────

def test_parse_action_from_json():
    a = parse_action({"kind": "edit_property", "block_id": "g", "key": "columns", "value": 2})
    assert isinstance(a, EditProperty)
    assert isinstance(parse_action({"kind": "add_block", "block_type": "grid"}), AddBlock)


def test_parse_action_rejects_unknown_kind():
    from pydantic import ValidationError
    with pytest.raises(ValidationError):
        parse_action({"kind": "explode"})
    with pytest.raises(ValidationError):
        parse_action({"kind": "add_block", "block_type": "carousel"})


# ── Editor (chargement / sauvegarde) ─────────────────────────────────────────

@pytest.fixture
def gateway():
    return InMemoryLayoutGateway(["restaurant", "spa"])


def test_editor_open_empty_layout(gateway):
    editor = Editor.open(gateway, "restaurant")
    assert editor.status == EditorStatus.LOADED
    assert editor.version == 0
    assert editor.session.tree.size == 0
    assert not editor.dirty


def test_editor_open_unknown_module(gateway):
    editor = Editor(gateway, "piscine")
    with pytest.raises(LayoutNotFoundError):
        editor.load()
    assert editor.status == EditorStatus.ERROR
    assert editor.last_error.code == "NotFound"


def test_editor_save_and_reload(gateway):
    editor = Editor.open(gateway, "restaurant")
    res = editor.dispatch(AddBlock(block_type=BlockType.HERO))
    editor.dispatch(EditProperty(block_id=res.block_id, key="title", value="La Table"))
    assert editor.dirty
    ack = editor.save()
    assert ack.version == 1
    assert editor.status == EditorStatus.IDLE
    assert not editor.dirty

    reloaded = Editor.open(gateway, "restaurant")
    assert reloaded.session.tree == editor.session.tree
    assert reloaded.version == 1


def test_editor_conflict_between_two_sessions(gateway):
    first = Editor.open(gateway, "spa")
    second = Editor.open(gateway, "spa")
    first.dispatch(AddBlock(block_type=BlockType.HERO))
    first.save()
    second.dispatch(AddBlock(block_type=BlockType.IMAGE))
    with pytest.raises(ConflictError):
        second.save()
    assert second.status == EditorStatus.ERROR
    assert second.dirty
    ack = second.save(force=True)
    assert ack.version == 2


def test_editor_refuses_mutations_while_saving(gateway):
    editor = Editor.open(gateway, "spa")
    hero = editor.dispatch(AddBlock(block_type=BlockType.HERO)).block_id
    editor.status = EditorStatus.SAVING
    res = editor.dispatch(RemoveBlock(block_id=hero))
    assert res.outcome == Outcome.REJECTED
    assert isinstance(res.error, SaveInProgressError)
    assert hero in editor.session.tree
    assert editor.dispatch(Select(block_id=hero)).outcome == Outcome.SELECTED


class _SlowGateway(InMemoryLayoutGateway):
    def __init__(self, *args):
        super().__init__(*args)
        self.entered = threading.Event()
        self.release = threading.Event()

    def save(self, module_id, tree, expected_version=None):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().save(module_id, tree, expected_version)


def test_second_save_refused_while_first_in_progress():
    gateway = _SlowGateway(["spa"])
    editor = Editor.open(gateway, "spa")
    editor.dispatch(AddBlock(block_type=BlockType.HERO))
    worker = threading.Thread(target=editor.save)
    worker.start()
    assert gateway.entered.wait(timeout=5)
    with pytest.raises(SaveInProgressError):
        editor.save()
    gateway.release.set()
    worker.join(timeout=5)
    assert editor.version == 1


def test_snapshot(gateway):
    editor = Editor.open(gateway, "restaurant")
    editor.dispatch(AddBlock(block_type=BlockType.MENU_LIST))
    snap = editor.snapshot()
    assert snap["status"] == "loaded"
    assert snap["dirty"] is True
    assert snap["can_undo"] is True
    assert snap["document"]["blocks"][0]["type"] == "menu_list"
    assert snap["error"] is None


def test_concurrent_dispatch_loses_no_action(gateway):
    editor = Editor.open(gateway, "restaurant", max_history=500)
    start = threading.Barrier(8)

    def worker():
        start.wait(timeout=5)
        for _ in range(25):
            assert editor.dispatch(AddBlock(block_type=BlockType.TEXT_BLOCK)).outcome == Outcome.APPLIED

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)
    assert editor.session.tree.size == 200
    assert len(editor.session.tree.order) == 200


class _BrokenGateway(InMemoryLayoutGateway):
    def save(self, module_id, tree, expected_version=None):
        raise RuntimeError("disque plein")


def test_unexpected_save_failure_leaves_editor_usable():
    editor = Editor.open(_BrokenGateway(["spa"]), "spa")
    hero = editor.dispatch(AddBlock(block_type=BlockType.HERO)).block_id
    with pytest.raises(RuntimeError):
        editor.save()
    assert editor.status == EditorStatus.ERROR
    assert editor.last_error.code == "Gateway"
    assert editor.snapshot()["error"]["code"] == "Gateway"
    assert editor.dispatch(RemoveBlock(block_id=hero)).outcome == Outcome.APPLIED
    # un second save n'est pas bloqué par le premier
    with pytest.raises(RuntimeError):
        editor.save()


def test_unexpected_load_failure_sets_error():
    class _Unreadable(InMemoryLayoutGateway):
        def load(self, module_id):
            raise ValueError("document illisible")

    editor = Editor(_Unreadable(["spa"]), "spa")
    with pytest.raises(ValueError):
        editor.load()
    assert editor.status == EditorStatus.ERROR
    assert editor.dispatch(AddBlock(block_type=BlockType.HERO)).outcome == Outcome.APPLIED


def test_style_injection_rejected_by_editor(gateway):
    editor = Editor.open(gateway, "spa")
    hero = editor.dispatch(AddBlock(block_type=BlockType.HERO)).block_id
    res = editor.dispatch(EditStyle(block_id=hero, key="background_color",
                                    value="red;position:fixed;inset:0;z-index:9999"))
    assert res.outcome == Outcome.REJECTED
    assert res.error.code == "InvalidEnumValue"
    assert editor.session.tree.blocks[hero].style.background_color is None


# ── Scénarios ────────────────────────────────────────────────────────────────

def test_scenario_hero_title_undo(session):
    s, hero = _add(session, BlockType.HERO)
    assert s.tree.top_level()[0].properties.title == ""
    s = _run(s, EditProperty(block_id=hero, key="title", value="Welcome"))
    assert s.tree.blocks[hero].properties.title == "Welcome"
    s = _run(s, Undo())
    assert s.tree.blocks[hero].properties.title == ""


def test_scenario_container_remove_cascades(session):
    s, box = _add(session, BlockType.CONTAINER)
    s, txt = _add(s, BlockType.TEXT_BLOCK, parent_id=box)
    assert s.tree.blocks[box].child_ids == (txt,)
    assert s.tree.blocks[txt].type == "text_block"
    s = _run(s, RemoveBlock(block_id=box))
    assert box not in s.tree.blocks
    assert txt not in s.tree.blocks


def test_scenario_reorder_to_front(session):
    s, a = _add(session, BlockType.HERO)
    s, b = _add(s, BlockType.TEXT_BLOCK)
    s, c = _add(s, BlockType.IMAGE)
    s = _run(s, ReorderBlock(block_id=c, new_index=0))
    assert s.tree.order == (c, a, b)
