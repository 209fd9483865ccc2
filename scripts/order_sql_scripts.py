from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TextIO

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH.exists():
    src_str = str(SRC_PATH)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from pydantic import ValidationError  # noqa: E402

from dbsync.logging import configure_logging  # noqa: E402
from dbsync.settings import get_settings  # noqa: E402
from sqlorder.composer import order_script_paths  # noqa: E402
from sqlorder.errors import CyclicDependencyError  # noqa: E402
from sqlorder.loader import read_script_paths  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlorder",
        description=(
            "Read SQL script paths from stdin (one per line) and print them in a safe "
            "execution order: objects, then numbered migrations, then functions and procedures."
        ),
    )
    parser.add_argument(
        "--concat",
        action="store_true",
        help="Print the contents of each script instead of its name.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level for stderr diagnostics (default: LOG_LEVEL setting).",
    )
    return parser


def main(argv: list[str] | None = None, stdin: TextIO | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(exc, file=sys.stderr)
        return 1
    configure_logging(args.log_level or settings.log_level, app_name=settings.app_name)

    try:
        ordered = order_script_paths(read_script_paths(stdin or sys.stdin))
    except (CyclicDependencyError, OSError, UnicodeDecodeError) as exc:
        print(exc, file=sys.stderr)
        return 1

    for script in ordered:
        print(script.contents if args.concat else script.name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
