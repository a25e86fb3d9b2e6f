"""
Keywords panel view.

`build_view` turns session state into a `KeywordsView` and nothing else;
`render_html` is the host adapter that turns a view into one self-contained
HTML page whose controls call back through `Beat.call(method, ...args)`.
"""
from __future__ import annotations

import html
import json
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from beatkit.tags.colors import darken_hex, readable_text_color
from beatkit.tags.models import TagIndex
from beatkit.tags.navigator import OccurrenceCursor


class TagPill(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    total: int
    document: int
    notepad: int
    color: str
    border_color: str
    text_color: str
    special: bool = False
    active: bool = False
    tooltip: str


class EntryRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: str
    content: str
    position: int
    key: str
    dismissed: bool = False


class ColorPicker(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    x: int = 0
    y: int = 0
    color: str


class KeywordsView(BaseModel):
    model_config = ConfigDict(frozen=True)

    theme: str = "dark"
    favorites: list[TagPill] = []
    others: list[TagPill] = []
    picker: Optional[ColorPicker] = None
    notes: list[EntryRow] = []
    hide_dismissed: bool = False

    @property
    def empty(self) -> bool:
        return not self.favorites and not self.others


def make_pill(
    index: TagIndex,
    cursor: OccurrenceCursor,
    tag: str,
    color: str,
    active: bool,
) -> TagPill:
    in_document = len(index.document(tag))
    in_notepad = len(index.notepad(tag))
    if in_document:
        tooltip = f"{cursor.ordinal(tag, in_document)}/{in_document}"
    else:
        tooltip = f"notepad only ({in_notepad})"
    return TagPill(
        name=tag,
        total=in_document + in_notepad,
        document=in_document,
        notepad=in_notepad,
        color=color,
        border_color=darken_hex(color, 0.2),
        text_color=readable_text_color(color),
        special=index.is_special(tag),
        active=active,
        tooltip=tooltip,
    )


def build_view(
    *,
    index: TagIndex,
    cursor: OccurrenceCursor,
    favorites: Iterable[str],
    color_for: Callable[[str], str],
    theme: str,
    active_tag: Optional[str] = None,
    picker: Optional[ColorPicker] = None,
    entries: Iterable = (),
    dismissed: Callable[[str], bool] = lambda key: False,
    hide_dismissed: bool = False,
) -> KeywordsView:
    pinned = [t for t in favorites if t in index]
    rest = [t for t in index.names() if t not in pinned]

    rows = []
    for entry in entries:
        is_dismissed = dismissed(entry.key)
        if hide_dismissed and is_dismissed:
            continue
        rows.append(EntryRow(
            kind=entry.kind, content=entry.content, position=entry.position,
            key=entry.key, dismissed=is_dismissed,
        ))

    return KeywordsView(
        theme=theme,
        favorites=[make_pill(index, cursor, t, color_for(t), t == active_tag) for t in pinned],
        others=[make_pill(index, cursor, t, color_for(t), t == active_tag) for t in rest],
        picker=picker,
        notes=rows,
        hide_dismissed=hide_dismissed,
    )


# ----- HTML adapter -----------------------------------------------------------

_THEMES = {
    "dark": {"bg": "#333", "fg": "#fff", "header": "#ccc"},
    "light": {"bg": "#eee", "fg": "#000", "header": "#666"},
}

_BRIDGE = """
<script>
window.Beat = window.Beat || {
  call: function (method) {
    var args = Array.prototype.slice.call(arguments, 1);
    fetch("/keywords/call", {
      method: "POST",
      headers: {"Content-Type": "application/json"},
      body: JSON.stringify({method: method, args: args})
    }).then(function () { location.reload(); });
  }
};
</script>
"""


def _esc(value: object) -> str:
    return html.escape(str(value), quote=True)


def _call(method: str, *args: object) -> str:
    """An attribute-safe `Beat.call(...)` expression."""
    encoded = ", ".join([json.dumps(method)] + [json.dumps(a) for a in args])
    return _esc(f"Beat.call({encoded})")


def _pill_html(pill: TagPill, favorite: bool) -> str:
    if pill.special:
        style = f"background-color:transparent; border:2px solid {pill.color}; color:{pill.color};"
    else:
        style = f"background-color:{pill.color}; border:1px solid {pill.border_color}; color:{pill.text_color};"
    classes = "tag-pill active" if pill.active else "tag-pill"
    move = _call("remove_favorite", pill.name) if favorite else _call("add_favorite", pill.name)
    return (
        f'<div class="{classes}" style="{_esc(style)}" '
        f'onclick="{_call("pill_click", pill.name)}" '
        f'onmouseleave="{_call("pill_mouse_leave", pill.name)}">'
        f"{_esc(pill.name)}"
        f'<span class="tooltip">{_esc(pill.tooltip)}</span>'
        f'<button class="pin" onclick="event.stopPropagation(); {move}">{"&#9733;" if favorite else "&#9734;"}</button>'
        f'<button class="paint" onclick="event.stopPropagation(); {_call("open_color_picker", pill.name, 0, 0)}">&#9673;</button>'
        "</div>"
    )


def _note_html(row: EntryRow) -> str:
    # Entry content arrives escaped already.
    style = "text-decoration:line-through; opacity:0.6;" if row.dismissed else ""
    checked = " checked" if row.dismissed else ""
    return (
        f'<li class="entry entry-{_esc(row.kind)}" style="{style}" '
        f'onclick="{_call("goto_entry", row.key)}">'
        f'<input type="checkbox"{checked} onclick="event.stopPropagation(); {_call("toggle_dismissed", row.key)}">'
        f"<pre>{row.content}</pre></li>"
    )


def render_html(view: KeywordsView) -> str:
    theme = _THEMES.get(view.theme, _THEMES["dark"])
    parts = [
        "<!DOCTYPE html><html><head><meta charset=\"UTF-8\"><title>Keywords</title>",
        "<style>",
        f"body{{margin:0;padding:10px;background:{theme['bg']};color:{theme['fg']};font-family:sans-serif;}}",
        f"h2{{margin:0.5em 0 0.25em 0;font-size:1em;font-weight:normal;color:{theme['header']};}}",
        ".container{margin-bottom:1em;min-height:50px;border:2px dashed #555;padding:8px;border-radius:6px;}",
        ".tag-pill{display:inline-block;margin:4px 6px 4px 0;cursor:pointer;padding:3px 8px;border-radius:20px;font-size:0.9em;position:relative;}",
        ".tooltip{display:none;margin-left:6px;font-size:0.8em;}",
        ".tag-pill:hover .tooltip,.tag-pill.active .tooltip{display:inline;}",
        ".tag-pill button{background:none;border:none;color:inherit;cursor:pointer;padding:0 2px;}",
        "ul.notes{list-style:none;padding:0;} ul.notes pre{display:inline;white-space:pre-wrap;font-family:inherit;}",
        "</style>",
        _BRIDGE,
        "</head><body>",
        "<h2>Favorites</h2><div id=\"favoritesContainer\" class=\"container\">",
    ]
    parts.extend(_pill_html(p, favorite=True) for p in view.favorites)
    parts.append("</div><h2>Tags</h2><div id=\"othersContainer\" class=\"container\">")
    if view.others:
        parts.extend(_pill_html(p, favorite=False) for p in view.others)
    else:
        parts.append('<p style="color:#999;">No other tags found.</p>')
    parts.append("</div>")

    if view.picker is not None:
        parts.append(
            f'<div id="colorPopup" style="position:absolute;top:{int(view.picker.y)}px;left:{int(view.picker.x)}px;">'
            f'<input type="color" value="{_esc(view.picker.color)}" '
            f'oninput="Beat.call(&quot;preview_tag_color&quot;, this.value)" '
            f'onchange="Beat.call(&quot;finalize_tag_color&quot;, this.value)">'
            "</div>"
        )

    hide_label = "Show checked" if view.hide_dismissed else "Hide checked"
    parts.append(
        f'<h2>Notes</h2><button onclick="{_call("set_hide_dismissed", not view.hide_dismissed)}">{hide_label}</button>'
        '<ul class="notes">'
    )
    parts.extend(_note_html(row) for row in view.notes)
    parts.append("</ul>")
    parts.append(f'<div id="themeIcon" onclick="{_call("toggle_theme")}">&#9680;</div>')
    parts.append("</body></html>")
    return "".join(parts)
