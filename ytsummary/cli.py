#!/usr/bin/env python3
"""
Run one generation through the model cascade from the command line.

Usage:
  ytsummary-generate "Summarize this transcript: ..." --shape summary
  ytsummary-generate --prompt-file prompt.txt --model gemini-2.5-pro --timeout-ms 60000
  python -m ytsummary.cli --prompt-file prompt.txt --schema-file shape.json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from ytsummary.common import setup_logging
from ytsummary.llm.errors import ExhaustedCascadeError, GenerationError
from ytsummary.llm.types import AttemptRecord
from ytsummary.llm_client import MODEL_CASCADE, GenerationClient
from ytsummary.models import SHAPES

logger = setup_logging(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate text with the Gemini model cascade"
    )
    parser.add_argument(
        "prompt",
        nargs="?",
        help="Prompt text (use --prompt-file for long prompts)"
    )
    parser.add_argument(
        "--prompt-file",
        type=Path,
        help="Read the prompt from this file"
    )
    parser.add_argument(
        "--model",
        dest="preferred_model",
        help=f"Model to try first (one of: {', '.join(MODEL_CASCADE)})"
    )
    parser.add_argument(
        "--timeout-ms",
        type=float,
        default=None,
        help="Per-attempt timeout in milliseconds (default: no race)"
    )
    shape = parser.add_mutually_exclusive_group()
    shape.add_argument(
        "--shape",
        choices=sorted(SHAPES),
        help="Built-in output shape to enforce"
    )
    shape.add_argument(
        "--schema-file",
        type=Path,
        help="JSON-schema file describing the output shape"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log every attempt record"
    )
    return parser


def _log_attempt(record: AttemptRecord) -> None:
    logger.info(
        f"attempt model={record.model} outcome={record.outcome.value} "
        f"kind={record.error_kind.value if record.error_kind else '-'} latency={record.latency_ms}ms"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.prompt_file:
        if not args.prompt_file.exists():
            parser.error(f"Prompt file not found: {args.prompt_file}")
        prompt = args.prompt_file.read_text(encoding="utf-8")
    elif args.prompt:
        prompt = args.prompt
    else:
        parser.error("a prompt or --prompt-file is required")

    response_model = None
    if args.shape:
        response_model = SHAPES[args.shape]
    elif args.schema_file:
        try:
            response_model = json.loads(args.schema_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            parser.error(f"Could not read schema file {args.schema_file}: {e}")

    client = GenerationClient(on_attempt=_log_attempt if args.verbose else None)
    try:
        result = client.generate_detailed(
            prompt,
            response_model=response_model,
            preferred_model=args.preferred_model,
            timeout_ms=args.timeout_ms,
        )
    except ExhaustedCascadeError as e:
        print(f"error: {e.kind}: tried {', '.join(e.attempted_models)} (last: {e.last_kind})", file=sys.stderr)
        return 1
    except GenerationError as e:
        print(f"error: {e.kind}: {e}", file=sys.stderr)
        return 1

    print(result.text)
    print(f"model: {result.model_used}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
