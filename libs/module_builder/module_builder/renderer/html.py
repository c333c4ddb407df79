"""
Renderer HTML — génère le HTML d'un LayoutTree (page publique du module).
Dispatch par type de bloc ; MenuList / Sessions / Calendar lisent les données
live du RenderContext et affichent un état vide si la source est vide.
"""
from html import escape
from typing import Optional

from ..blocks import (
    BaseBlock,
    CalendarBlock,
    ContainerBlock,
    GridBlock,
    HeroBlock,
    ImageBlock,
    MenuListBlock,
    SessionsBlock,
    TextBlock,
)
from ..layout import LayoutTree
from .base import RenderContext

_FONT_SIZES = {"sm": "0.875rem", "base": "1rem", "lg": "1.125rem", "xl": "1.25rem", "2xl": "1.5rem"}


# ── Point d'entrée public ───────────────────────────────────────────────────

def render_layout(tree: LayoutTree, context: Optional[RenderContext] = None) -> str:
    """Fragment HTML : blocs de premier niveau dans l'ordre de rendu."""
    context = context or RenderContext()
    if not tree.order:
        return '<div class="module-layout module-layout--empty">Aucun layout défini pour ce module.</div>'
    inner = "\n".join(render_block(tree, block, context) for block in tree.top_level())
    return f'<div class="module-layout">\n{inner}\n</div>'


def render_page(tree: LayoutTree, context: Optional[RenderContext] = None,
                lang: str = "fr", extra_head: str = "") -> str:
    """Document HTML complet de la page publique."""
    context = context or RenderContext()
    title = escape(context.module.name or "Module")
    desc  = escape(context.module.description)
    return f"""<!DOCTYPE html>
<html lang="{escape(lang)}">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  {f'<meta name="description" content="{desc}">' if desc else ''}
  {extra_head}
</head>
<body>
{render_layout(tree, context)}
</body>
</html>"""


class HtmlRenderer:
    """Implémentation du Protocol Renderer."""

    def render_layout(self, tree: LayoutTree, context: RenderContext) -> str:
        return render_layout(tree, context)

    def render_block(self, tree: LayoutTree, block: BaseBlock, context: RenderContext) -> str:
        return render_block(tree, block, context)


# ── Dispatch ────────────────────────────────────────────────────────────────

def render_block(tree: LayoutTree, block: BaseBlock, context: RenderContext) -> str:
    if isinstance(block, HeroBlock):      return render_hero(block, context)
    if isinstance(block, TextBlock):      return render_text(block)
    if isinstance(block, ImageBlock):     return render_image(block)
    if isinstance(block, GridBlock):      return render_grid(block, context)
    if isinstance(block, MenuListBlock):  return render_menu_list(block, context)
    if isinstance(block, SessionsBlock):  return render_sessions(block, context)
    if isinstance(block, CalendarBlock):  return render_calendar(block, context)
    if isinstance(block, ContainerBlock): return render_container(tree, block, context)
    return f"<!-- Bloc non implémenté : {escape(block.type)} -->"


def _style_attr(block: BaseBlock, *extra: str) -> str:
    s = block.style
    rules = list(extra)
    if s.width != "auto":
        rules.append(f"width:{s.width}")
    if s.height != "auto":
        rules.append(f"min-height:{s.height}")
    if s.padding != "0":
        rules.append(f"padding:{s.padding}")
    if s.border_radius != "0":
        rules.append(f"border-radius:{s.border_radius}")
    if s.background_color:
        rules.append(f"background-color:{s.background_color}")
    if s.color:
        rules.append(f"color:{s.color}")
    return f' style="{escape(";".join(rules))}"' if rules else ""


def _open(block: BaseBlock, css_class: str, *extra_style: str) -> str:
    return f'<div id="block-{escape(block.id)}" class="{css_class}"{_style_attr(block, *extra_style)}>'


def _price(value: float, currency: str) -> str:
    return f"{value:.2f} {escape(currency)}"


# ── Renderers par bloc ──────────────────────────────────────────────────────

def render_hero(b: HeroBlock, ctx: RenderContext) -> str:
    p = b.properties
    extra = []
    if p.background_image:
        extra.append(f"background-image:url('{p.background_image}')")
    title    = escape(p.title or ctx.module.name)
    subtitle = escape(p.subtitle or ctx.module.description)
    overlay  = '\n  <div class="hero__overlay"></div>' if p.background_image else ""
    return (
        f'{_open(b, f"hero hero--text-{p.text_alignment}", *extra)}{overlay}\n'
        f'  <h1 class="hero__title">{title}</h1>\n'
        f'  <p class="hero__subtitle">{subtitle}</p>\n'
        f'</div>'
    )


def render_text(b: TextBlock) -> str:
    p = b.properties
    return (
        f'{_open(b, "text-block", f"font-size:{_FONT_SIZES[p.font_size]}")}\n'
        f'  {escape(p.content)}\n'
        f'</div>'
    )


def render_image(b: ImageBlock) -> str:
    p = b.properties
    if not p.src:
        return f'{_open(b, "image image--empty")}</div>'
    return (
        f'{_open(b, "image")}\n'
        f'  <img src="{escape(p.src)}" alt="{escape(p.alt)}" style="object-fit:{p.object_fit}">\n'
        f'</div>'
    )


def render_grid(b: GridBlock, ctx: RenderContext) -> str:
    p = b.properties
    if p.data_source == "menu":
        cells = [_menu_item(item, ctx) for item in ctx.menu_items]
    elif p.data_source == "sessions":
        cells = [_session_slot(slot, ctx) for slot in ctx.sessions]
    else:
        cells = []
    inner = "\n".join(cells) or '  <div class="grid__empty">Aucun élément à afficher</div>'
    return (
        f'{_open(b, f"grid grid--{p.data_source}", f"display:grid;grid-template-columns:repeat({p.columns},1fr);gap:{p.gap}")}\n'
        f'{inner}\n'
        f'</div>'
    )


def _menu_item(item, ctx: RenderContext) -> str:
    desc = f'<p class="menu-item__desc">{escape(item.description)}</p>' if item.description else ""
    return (
        f'  <div class="menu-item"><span class="menu-item__name">{escape(item.name)}</span>'
        f'<span class="menu-item__price">{_price(item.price, ctx.currency)}</span>{desc}</div>'
    )


def _session_slot(slot, ctx: RenderContext) -> str:
    hours = f'{escape(slot.start)} – {escape(slot.end)}' if slot.start else ""
    cap = f'<span class="session__capacity">{slot.capacity} places</span>' if slot.capacity is not None else ""
    return (
        f'  <div class="session"><span class="session__name">{escape(slot.name)}</span>'
        f'<span class="session__hours">{hours}</span>'
        f'<span class="session__price">{_price(slot.price, ctx.currency)}</span>{cap}</div>'
    )


def render_menu_list(b: MenuListBlock, ctx: RenderContext) -> str:
    if not ctx.menu_items:
        return f'{_open(b, "menu-list menu-list--empty")}Aucun article disponible pour le moment.</div>'
    categories: dict = {}
    for item in ctx.menu_items:
        categories.setdefault(item.category or "", []).append(item)
    parts = []
    for category, items in categories.items():
        heading = f'  <h3 class="menu-list__category">{escape(category)}</h3>\n' if category else ""
        parts.append(heading + "\n".join(_menu_item(i, ctx) for i in items))
    return f'{_open(b, "menu-list")}\n' + "\n".join(parts) + "\n</div>"


def render_sessions(b: SessionsBlock, ctx: RenderContext) -> str:
    if not ctx.sessions:
        return f'{_open(b, "session-list session-list--empty")}Aucune session réservable.</div>'
    inner = "\n".join(_session_slot(s, ctx) for s in ctx.sessions)
    return f'{_open(b, "session-list")}\n{inner}\n</div>'


def render_calendar(b: CalendarBlock, ctx: RenderContext) -> str:
    cal = ctx.calendar
    unavailable = escape(",".join(cal.unavailable))
    return (
        f'{_open(b, "booking-calendar")}\n'
        f'  <form class="booking-calendar__form" data-module="{escape(ctx.module.id)}" '
        f'data-unavailable="{unavailable}" data-min-nights="{cal.min_nights}">\n'
        f'    <label>Arrivée <input type="date" name="check_in"></label>\n'
        f'    <label>Départ <input type="date" name="check_out"></label>\n'
        f'  </form>\n'
        f'</div>'
    )


def render_container(tree: LayoutTree, b: ContainerBlock, ctx: RenderContext) -> str:
    inner = "\n".join(render_block(tree, tree.blocks[cid], ctx) for cid in b.child_ids)
    return f'{_open(b, "container")}\n{inner}\n</div>'
