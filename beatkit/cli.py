"""CLI for beatkit.

Runs the plugin pipelines over a `.fountain` file through the in-memory host.

Usage:
    beatkit tags  <file> [--notepad F]                      [--json]
    beatkit notes <file> [--notepad F]                      [--json]
    beatkit contd <file> [--mode add|strict|lenient] [-o OUT]
    beatkit cues  <file> [--type T] [--renumber] [--export csv|html|qlab -o OUT] [--json]
    beatkit words <file>                                    [--json]
    beatkit lint  <file> [--category C ...]                 [--json]
    beatkit markdown <file.md> [-o OUT]
    beatkit connections <file>                              [--json]
    beatkit serve [--host H] [--port P]
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import structlog

from beatkit.cues.detect import ALL, detect_cues, filter_cues, renumber_edits
from beatkit.cues.export import EXPORTERS, render_export, write_export
from beatkit.host.memory import InMemoryHost
from beatkit.host.store import atomic_write_text
from beatkit.metrics.wordcount import count_words, screenplay_text
from beatkit.notes.entries import EntryList
from beatkit.notes.grouping import collect_entries
from beatkit.screenplay.connections import connections
from beatkit.screenplay.contd import add_contds, apply_edits, clean_contds
from beatkit.screenplay.markdown import import_markdown
from beatkit.style.lint import Category, lint
from beatkit.tags.scanner import scan

CONTD_MODES = ("add", "strict", "lenient")


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _print_err(msg: str) -> None:
    print(msg, file=sys.stderr)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _configure_logging(verbose: bool) -> None:
    from beatkit.config import config
    level = logging.DEBUG if verbose else getattr(logging, config.LOG_LEVEL.upper(), logging.WARNING)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def _open(args: argparse.Namespace) -> InMemoryHost:
    return InMemoryHost.from_files(args.file, notepad=getattr(args, "notepad", None))


def _write_or_print(text: str, output: str | None) -> None:
    if output:
        atomic_write_text(output, text)
        print(f"Written: {output}")
    else:
        sys.stdout.write(text)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_tags(args: argparse.Namespace) -> int:
    host = _open(args)
    result = scan(host.lines(), host.notepad_text())
    index = result.index
    if args.json:
        _print_json(index.to_dict())
        return 0
    if not len(index):
        print("No tags found.")
        return 0
    print(f"{'TAG':<30} {'DOC':>5} {'NOTEPAD':>8}  SPECIAL")
    print("-" * 55)
    for tag in index:
        special = "yes" if index.is_special(tag) else ""
        print(f"{tag:<30} {len(index.document(tag)):>5} {len(index.notepad(tag)):>8}  {special}")
    return 0


def cmd_notes(args: argparse.Namespace) -> int:
    host = _open(args)
    entries = collect_entries(host.lines(), host.notepad_text())
    if args.json:
        _print_json(EntryList.dump_python(entries, mode="json"))
        return 0
    if not entries:
        print("No notes found.")
        return 0
    for entry in entries:
        where = "notepad" if entry.position < 0 else f"@{entry.position}"
        print(f"[{entry.kind}] {where}")
        print(f"  {entry.content}")
    return 0


def cmd_contd(args: argparse.Namespace) -> int:
    from beatkit.config import config
    host = _open(args)
    if args.mode == "add":
        edits = add_contds(host.lines(), label=config.CONTD_LABEL)
    else:
        edits = clean_contds(host.lines(), strict=args.mode == "strict", label=config.CONTD_LABEL)
    applied = apply_edits(host, edits)
    _write_or_print(host.text(), args.output)
    _print_err(f"{applied} cue(s) changed.")
    return 0


def cmd_cues(args: argparse.Namespace) -> int:
    if args.renumber and args.export:
        _print_err("Error: --renumber and --export both write output; run them separately.")
        return 1

    host = _open(args)
    detection = detect_cues(host.lines())

    if args.renumber:
        applied = apply_edits(host, renumber_edits(host.lines(), detection.cues, args.type))
        _print_err(f"{applied} cue(s) renumbered.")
        _write_or_print(host.text(), args.output)
        return 0

    selected = filter_cues(detection.cues, args.type)
    if args.export:
        if not selected:
            _print_err("Error: No cues found to export.")
            return 1
        content = render_export(detection.cues, args.export, args.type)
        if args.output:
            write_export(args.output, content)
            print(f"Exported {len(selected)} cue(s) to {args.output}")
        else:
            sys.stdout.write(content)
        return 0

    if args.json:
        _print_json({
            "types": detection.types,
            "cues": [c.model_dump(mode="json") for c in selected],
        })
        return 0
    if not selected:
        print("No cues found.")
        return 0
    print(f"{'NUMBER':<8} {'TYPE':<12} {'SCENE':<30} NOTE")
    print("-" * 80)
    for cue in selected:
        print(f"{cue.number:<8} {cue.type:<12} {cue.scene[:30]:<30} {cue.name}")
    return 0


def cmd_words(args: argparse.Namespace) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    data = {"words": count_words(text), "screenplay_words": count_words(screenplay_text(text))}
    if args.json:
        _print_json(data)
    else:
        print(f"Words:            {data['words']}")
        print(f"Screenplay words: {data['screenplay_words']}")
    return 0


def cmd_lint(args: argparse.Namespace) -> int:
    host = _open(args)
    categories = [Category(c) for c in args.category] if args.category else None
    tokens = lint(host.lines(), categories)
    if args.json:
        _print_json([t.model_dump(mode="json") for t in tokens])
        return 0
    if not tokens:
        print("Nothing to flag.")
        return 0
    for token in tokens:
        print(f"line {token.line_index + 1:>5}  {token.category.value:<14} {token.word}")
    return 0


def cmd_markdown(args: argparse.Namespace) -> int:
    text = Path(args.file).read_text(encoding="utf-8")
    _write_or_print(import_markdown(text), args.output)
    return 0


def cmd_connections(args: argparse.Namespace) -> int:
    host = _open(args)
    graph = connections(host.lines())
    if args.json:
        _print_json(graph)
        return 0
    if not graph:
        print("No characters found.")
        return 0
    for character, others in graph.items():
        print(f"{character}: {', '.join(others) if others else '-'}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    try:
        import uvicorn
    except ImportError:
        _print_err("Error: 'serve' needs uvicorn. Install with: pip install 'beatkit[server]'")
        return 1
    uvicorn.run("beatkit.api.app:app", host=args.host, port=args.port)
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beatkit",
        description="Screenplay tools for Fountain documents",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", default=False,
        help="Log debug output to stderr",
    )

    sub = parser.add_subparsers(dest="command")

    def with_json(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("--json", action="store_true", default=False, help="Output raw JSON")
        return p

    # tags
    p_tags = with_json(sub.add_parser("tags", help="List #tags and @tags"))
    p_tags.add_argument("file", help="Fountain document")
    p_tags.add_argument("--notepad", default=None, help="Notepad text file")

    # notes
    p_notes = with_json(sub.add_parser("notes", help="List notes, synopses, omits and BONEYARD entries"))
    p_notes.add_argument("file", help="Fountain document")
    p_notes.add_argument("--notepad", default=None, help="Notepad text file")

    # contd
    p_contd = sub.add_parser("contd", help="Add or clean (CONT'D) extensions")
    p_contd.add_argument("file", help="Fountain document")
    p_contd.add_argument("--mode", choices=CONTD_MODES, default="add",
                         help="add, strict clean, or lenient clean (default: add)")
    p_contd.add_argument("-o", "--output", default=None, help="Write result here (default: stdout)")

    # cues
    p_cues = with_json(sub.add_parser("cues", help="List, renumber or export technical cues"))
    p_cues.add_argument("file", help="Fountain document")
    p_cues.add_argument("--type", default=ALL, help=f"Cue type filter (default: {ALL})")
    p_cues.add_argument("--renumber", action="store_true", default=False,
                        help="Renumber the filtered cues 1..N")
    p_cues.add_argument("--export", choices=sorted(EXPORTERS), default=None, help="Export format")
    p_cues.add_argument("-o", "--output", default=None, help="Output file (default: stdout)")

    # words
    p_words = with_json(sub.add_parser("words", help="Word counts"))
    p_words.add_argument("file", help="Fountain document")

    # lint
    p_lint = with_json(sub.add_parser("lint", help="Elements of Style lint"))
    p_lint.add_argument("file", help="Fountain document")
    p_lint.add_argument("--category", action="append", choices=[c.value for c in Category],
                        help="Only these categories (repeatable)")

    # markdown
    p_md = sub.add_parser("markdown", help="Convert a Markdown file to Fountain")
    p_md.add_argument("file", help="Markdown file")
    p_md.add_argument("-o", "--output", default=None, help="Write result here (default: stdout)")

    # connections
    p_conn = with_json(sub.add_parser("connections", help="Characters who share scenes"))
    p_conn.add_argument("file", help="Fountain document")

    # serve
    p_serve = sub.add_parser("serve", help="Run the preview server")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8080)

    return parser


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

COMMANDS = {
    "tags": cmd_tags,
    "notes": cmd_notes,
    "contd": cmd_contd,
    "cues": cmd_cues,
    "words": cmd_words,
    "lint": cmd_lint,
    "markdown": cmd_markdown,
    "connections": cmd_connections,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)
    handler = COMMANDS[args.command]
    try:
        return handler(args)
    except FileNotFoundError as exc:
        _print_err(f"Error: File not found: {exc.filename}")
        return 1
    except OSError as exc:
        _print_err(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
