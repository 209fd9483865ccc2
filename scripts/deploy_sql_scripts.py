from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if SRC_PATH.exists():
    src_str = str(SRC_PATH)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from pydantic import ValidationError  # noqa: E402
from sqlalchemy.exc import SQLAlchemyError  # noqa: E402

from dbsync.deploy import (  # noqa: E402
    DeployError,
    build_deploy_script,
    build_script_list,
    deploy_directory,
    plan_directory,
)
from dbsync.logging import configure_logging  # noqa: E402
from dbsync.manifest import write_plan_manifest  # noqa: E402
from dbsync.settings import Settings, get_settings  # noqa: E402
from sqlorder.errors import CyclicDependencyError  # noqa: E402

ROLLBACK_MESSAGE = "Deploy requires manual intervention. Transaction rolled back."


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--connection",
        "-c",
        default=None,
        help=(
            "Database URL (postgresql+psycopg://...). "
            "If none is specified, diffs will include all scripts."
        ),
    )
    parser.add_argument(
        "--prefix",
        "-p",
        type=Path,
        default=None,
        help="Directory to look for scripts in (default: SCRIPTS_DIR setting or current directory).",
    )
    parser.add_argument(
        "--untracked",
        action="store_true",
        help="Disable the migrations table. All scripts run without being tracked.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level for stderr diagnostics (default: LOG_LEVEL setting).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dbsync",
        description="Order a directory of SQL scripts and deploy them to a database.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    diff_parser = subparsers.add_parser("diff", help="Print the SQL scripts to be run in order.")
    diff_parser.add_argument(
        "filename",
        nargs="?",
        type=Path,
        default=None,
        help=(
            "File to write the deploy script to. "
            "If none is specified, the scripts to run are printed to the console."
        ),
    )
    diff_parser.add_argument(
        "--manifest",
        type=Path,
        default=None,
        help="Also write a YAML manifest of the planned scripts to this path.",
    )
    _add_common_options(diff_parser)

    push_parser = subparsers.add_parser(
        "push",
        help="Push changes to the database. A connection must be provided.",
    )
    _add_common_options(push_parser)
    return parser


def _resolve_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.connection:
        overrides["database_url"] = args.connection
    if args.prefix is not None:
        overrides["scripts_dir"] = args.prefix
    if args.untracked:
        overrides["tracked"] = False
    if args.log_level:
        overrides["log_level"] = args.log_level
    return get_settings().model_copy(update=overrides)


def _diff(args: argparse.Namespace, settings: Settings) -> int:
    scripts = plan_directory(settings)
    if args.manifest is not None:
        write_plan_manifest(scripts, args.manifest, settings=settings)

    if args.filename is not None:
        deploy_script = build_deploy_script(
            scripts,
            tracked=settings.tracked,
            table=settings.migrations_table,
        )
        args.filename.write_text(deploy_script, encoding="utf-8")
        print(f"Deploy script created: {args.filename.resolve()}")
    else:
        print("Scripts to run:")
        print(build_script_list(scripts))
    return 0


def _push(settings: Settings) -> int:
    try:
        scripts = deploy_directory(settings)
    except DeployError as exc:
        print(ROLLBACK_MESSAGE)
        print(exc)
        return 1
    print(f"Deployed {len(scripts)} scripts.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = _resolve_settings(args)
    except ValidationError as exc:
        print(exc, file=sys.stderr)
        return 1
    configure_logging(settings.log_level, app_name=settings.app_name)

    try:
        if args.command == "diff":
            return _diff(args, settings)
        return _push(settings)
    except (CyclicDependencyError, OSError, UnicodeDecodeError, RuntimeError, SQLAlchemyError) as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
