"""Tests renderer HTML — ordre de rendu, blocs live, échappement, états vides."""
import pytest

from module_builder import (
    BlockType, LayoutTree, RenderContext, from_document,
    create_default, insert, insert_child, render_layout, render_page,
    validate_property, validate_style,
)
from module_builder.errors import DocumentError
from module_builder.renderer import HtmlRenderer, MenuItem, ModuleInfo, Renderer, SessionSlot


def _tree(*blocks):
    t = LayoutTree.empty()
    for b in blocks:
        t = insert(t, b)
    return t


# ── Layout ───────────────────────────────────────────────────────────────────

def test_empty_layout_placeholder():
    html = render_layout(LayoutTree.empty())
    assert "module-layout--empty" in html


def test_blocks_rendered_in_order():
    hero = validate_property(create_default(BlockType.HERO, "h"), "title", "Bienvenue")
    text = validate_property(create_default(BlockType.TEXT_BLOCK, "t"), "content", "Ouvert 7j/7")
    html = render_layout(_tree(text, hero))
    assert html.index('id="block-t"') < html.index('id="block-h"')
    assert "Bienvenue" in html
    assert "Ouvert 7j/7" in html


def test_container_renders_children():
    t = _tree(create_default(BlockType.CONTAINER, "box"))
    t = insert_child(t, "box", create_default(BlockType.IMAGE, "img"))
    html = render_layout(t)
    assert html.index('id="block-box"') < html.index('id="block-img"')
    assert "image--empty" in html


def test_text_is_escaped():
    text = validate_property(create_default(BlockType.TEXT_BLOCK, "t"), "content", "<script>x</script>")
    html = render_layout(_tree(text))
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_style_applied_inline():
    hero = validate_style(create_default(BlockType.HERO, "h"), "width", "50%")
    hero = validate_style(hero, "padding", "16px")
    html = render_layout(_tree(hero))
    assert "width:50%" in html
    assert "padding:16px" in html


def test_colors_and_background_image_rendered():
    hero = validate_style(create_default(BlockType.HERO, "h"), "background_color", "#1e293b")
    hero = validate_style(hero, "color", "white")
    hero = validate_property(hero, "background_image", "/static/img/terrasse.jpg")
    html = render_layout(_tree(hero))
    assert "background-color:#1e293b" in html
    assert "color:white" in html
    assert "background-image:url(&#x27;/static/img/terrasse.jpg&#x27;)" in html


def test_injected_style_never_reaches_markup():
    doc = {"blocks": [{"id": "h", "type": "hero",
                       "style": {"background_color": "red;position:fixed;inset:0;z-index:9999"}}]}
    with pytest.raises(DocumentError):
        from_document(doc)
    doc = {"blocks": [{"id": "h", "type": "hero",
                       "properties": {"background_image": "x');position:fixed;('"}}]}
    with pytest.raises(DocumentError):
        from_document(doc)


def test_grid_columns_and_menu_source():
    grid = validate_property(create_default(BlockType.GRID, "g"), "columns", 2)
    ctx = RenderContext(menu_items=[MenuItem(name="Risotto", price=18.5)])
    html = render_layout(_tree(grid), ctx)
    assert "repeat(2,1fr)" in html
    assert "Risotto" in html
    assert "18.50 €" in html


# ── Blocs live ───────────────────────────────────────────────────────────────

def test_menu_list_empty_state():
    html = render_layout(_tree(create_default(BlockType.MENU_LIST, "m")))
    assert "menu-list--empty" in html


def test_menu_list_grouped_by_category():
    ctx = RenderContext(menu_items=[
        MenuItem(name="Soupe", price=8, category="Entrées"),
        MenuItem(name="Tarte", price=7, category="Desserts"),
    ])
    html = render_layout(_tree(create_default(BlockType.MENU_LIST, "m")), ctx)
    assert html.index("Entrées") < html.index("Soupe") < html.index("Desserts")


def test_sessions_list():
    ctx = RenderContext(sessions=[SessionSlot(name="Yoga", start="09:00", end="10:00", capacity=12)])
    html = render_layout(_tree(create_default(BlockType.SESSIONS, "s")), ctx)
    assert "Yoga" in html
    assert "12 places" in html
    empty = render_layout(_tree(create_default(BlockType.SESSIONS, "s")))
    assert "session-list--empty" in empty


def test_calendar_form():
    ctx = RenderContext(module=ModuleInfo(id="spa"))
    html = render_layout(_tree(create_default(BlockType.CALENDAR, "c")), ctx)
    assert 'data-module="spa"' in html
    assert 'name="check_in"' in html


def test_hero_falls_back_to_module_name():
    ctx = RenderContext(module=ModuleInfo(name="Le Lagon"))
    html = render_layout(_tree(create_default(BlockType.HERO, "h")), ctx)
    assert "Le Lagon" in html


# ── Page ─────────────────────────────────────────────────────────────────────

def test_render_page_document():
    ctx = RenderContext(module=ModuleInfo(name="Spa & Bien-être", description="Massages"))
    html = render_page(_tree(create_default(BlockType.HERO, "h")), ctx)
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Spa &amp; Bien-être</title>" in html
    assert 'content="Massages"' in html


def test_html_renderer_protocol():
    assert isinstance(HtmlRenderer(), Renderer)
