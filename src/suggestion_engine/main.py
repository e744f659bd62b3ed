"""Entrypoint: generate suggestions for a note from the command line."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from suggestion_engine.config.settings import Settings
from suggestion_engine.exceptions import SuggestionEngineError
from suggestion_engine.observability.logger import configure_logging
from suggestion_engine.pipeline.suggestion_pipeline import generate_suggestions


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="suggestion-engine",
        description="Turn a meeting note into grounded plan suggestions.",
    )
    parser.add_argument("note", nargs="?", help="Path to the note file (reads stdin when omitted)")
    parser.add_argument("--note-id", default=None, help="Note id (defaults to the file stem)")
    parser.add_argument("--plan-items", type=Path, default=None, help="JSON file with existing plan items")
    parser.add_argument("--debug", choices=["OFF", "REDACTED", "FULL_TEXT"], default=None)
    parser.add_argument("--max-suggestions", type=int, default=None)
    parser.add_argument("--indent", type=int, default=2)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    configure_logging(settings.log_level, settings.log_json)

    if args.note:
        path = Path(args.note)
        raw_text = path.read_text(encoding="utf-8")
        note_id = args.note_id or path.stem
    else:
        raw_text = sys.stdin.read()
        note_id = args.note_id or "stdin"

    plan_items = []
    if args.plan_items is not None:
        with open(args.plan_items) as f:
            plan_items = json.load(f)

    updates: dict = {}
    if args.debug is not None:
        updates["debug_verbosity"] = args.debug
        updates["enable_debug"] = args.debug != "OFF"
    if args.max_suggestions is not None:
        updates["max_suggestions"] = args.max_suggestions
    config = {**settings.generator_config().model_dump(), **updates}

    try:
        result = generate_suggestions(
            {"note_id": note_id, "raw_text": raw_text},
            plan_items=plan_items,
            config=config,
        )
    except SuggestionEngineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    json.dump(result.to_dict(), sys.stdout, indent=args.indent, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
