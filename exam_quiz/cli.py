from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from exam_quiz.core.normalizer import normalize_questions
from exam_quiz.services.question_loader import load_raw_questions
from exam_quiz.utils.errors import QuestionFileError
from exam_quiz.utils.logging_setup import setup_console_logging
from exam_quiz.utils.settings import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Normalize a raw exam question JSON file."
    )
    parser.add_argument("input", type=Path, help="Raw question JSON file.")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Where to write normalized JSON (default: stdout).",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Thread pool size (default: NORMALIZE_MAX_WORKERS).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL).",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level_name = str(args.log_level or get_settings().log_level).upper()
    setup_console_logging(level=getattr(logging, level_name, logging.INFO))

    try:
        raw = load_raw_questions(args.input)
    except QuestionFileError as e:
        print(f"[FAIL] {e}", file=sys.stderr)
        return 2

    questions = normalize_questions(raw, max_workers=args.workers)
    text = json.dumps(
        [q.model_dump(mode="json") for q in questions], ensure_ascii=False, indent=2
    )
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text + "\n", encoding="utf-8")
        warned = sum(1 for q in questions if q.warnings)
        print(f"[OK] {len(questions)} questions -> {args.output} ({warned} with warnings)")
    else:
        sys.stdout.write(text + "\n")
    return 0
