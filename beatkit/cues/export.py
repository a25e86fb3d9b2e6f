"""
One-way cue list exports: CSV, a standalone HTML table and a QLab
AppleScript.  `export_cues` is the host-facing entry point; it writes
through the host and reports success or failure with an alert.
"""
from __future__ import annotations

import csv
import html
import io
import re
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence

import structlog

from beatkit.cues.detect import ALL, Cue, filter_cues
from beatkit.host.base import Host
from beatkit.host.store import atomic_write_text

log = structlog.get_logger(__name__)

_FADE_RE = re.compile(r"\b(?:stop|fade(?:-?in|-?out)?|fadein|fadeout|fade\s+in|fade\s+out|crossfade)\b")

QLAB_TYPES = {
    "SOUND": "Audio",
    "MUSIC": "Audio",
    "VIDEO": "Video",
    "PROJECTION": "Video",
    "LIGHT": "Light",
}


def export_csv(cues: Sequence[Cue]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(["Number", "Type", "Note"])
    for cue in cues:
        writer.writerow([cue.number, cue.type, cue.name])
    return buf.getvalue()


_HTML_HEAD = (
    '<!DOCTYPE html><html><head><meta charset="UTF-8"><title>QMan Cue List</title>'
    "<style>body{font-family:Arial,sans-serif;margin:20px;background:#f5f5f5;}"
    "h1{color:#333;}table{width:100%;border-collapse:collapse;background:white;}"
    "th,td{padding:12px;text-align:left;border-bottom:1px solid #ddd;}"
    "th{background:#007acc;color:white;font-weight:600;}"
    ".cue-type{display:inline-block;padding:4px 8px;border-radius:4px;font-size:11px;font-weight:600;}"
    "</style></head><body><h1>QMan Cue List</h1>"
    "<table><thead><tr><th>Number</th><th>Type</th><th>Note</th></tr></thead><tbody>"
)


def export_html(cues: Sequence[Cue]) -> str:
    rows = "".join(
        f"<tr><td>{html.escape(c.number)}</td>"
        f'<td><span class="cue-type">{html.escape(c.type)}</span></td>'
        f"<td>{html.escape(c.name)}</td></tr>"
        for c in cues
    )
    return _HTML_HEAD + rows + "</tbody></table></body></html>"


def qlab_cue_type(cue: Cue) -> str:
    if _FADE_RE.search(cue.name.lower()):
        return "Fade"
    return QLAB_TYPES.get(cue.type, "Memo")


def _applescript_str(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def export_qlab_script(
    cues: Sequence[Cue], filter_type: str = ALL, generated_at: Optional[datetime] = None
) -> str:
    generated_at = generated_at or datetime.now()
    out = [
        "-- QMan to QLab Import Script",
        f"-- Generated: {generated_at.isoformat(sep=' ', timespec='seconds')}",
        f"-- Cue Type Filter: {filter_type}",
        "",
        'tell application "QLab"',
        "\tactivate",
        "\ttell front workspace",
        "\t\t-- Create cues",
    ]
    for cue in cues:
        notes = f"Type: {cue.type}"
        if cue.scene:
            notes += f" | Scene: {_applescript_str(cue.scene)}"
        out += [
            f'\t\tmake type "{qlab_cue_type(cue)}"',
            f'\t\tset q number of last item of (selected as list) to "{_applescript_str(cue.number)}"',
            f'\t\tset q name of last item of (selected as list) to "{_applescript_str(cue.name)}"',
            f'\t\tset notes of last item of (selected as list) to "{notes}"',
        ]
    out += [
        "\tend tell",
        "end tell",
        "",
        f"-- Import complete: {len(cues)} cues created",
        f'display notification "{len(cues)} cues imported to QLab" with title "QMan Export"',
    ]
    return "\n".join(out)


EXPORTERS: dict[str, Callable[[Sequence[Cue]], str]] = {
    "csv": export_csv,
    "html": export_html,
    "qlab": export_qlab_script,
}


def render_export(cues: Sequence[Cue], fmt: str, filter_type: str = ALL) -> str:
    if fmt not in EXPORTERS:
        raise KeyError(f"Unknown export format {fmt!r}. Available: {sorted(EXPORTERS)}")
    selected = filter_cues(cues, filter_type)
    if fmt == "qlab":
        return export_qlab_script(selected, filter_type)
    return EXPORTERS[fmt](selected)


def write_export(path: str | Path, content: str) -> Path:
    target = atomic_write_text(path, content)
    log.info("cues.export_written", path=str(target), chars=len(content))
    return target


def export_cues(host: Host, cues: Sequence[Cue], fmt: str, path: str, filter_type: str = ALL) -> bool:
    """Render and write an export through *host*.  Outcome is reported via alert."""
    if not cues:
        host.alert("No Cues", "No cues found to export.")
        return False
    selected = filter_cues(cues, filter_type)
    if not selected:
        host.alert("No Cues", "No cues found in the selected filter.")
        return False
    try:
        content = render_export(selected, fmt, filter_type)
        host.write_file(path, content)
    except (OSError, KeyError, ValueError) as exc:
        log.error("cues.export_failed", fmt=fmt, path=path, error=str(exc))
        host.alert("Error", f"Failed to write {fmt.upper()} file: {exc}")
        return False

    label = "All cues" if filter_type == ALL else f"{filter_type} cues"
    host.alert("Export Complete", f"{label} ({len(selected)}) exported to {path}")
    log.info("cues.exported", fmt=fmt, cues=len(selected), path=path)
    return True
