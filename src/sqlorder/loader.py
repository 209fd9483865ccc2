from __future__ import annotations

from hashlib import sha256
from pathlib import Path
from typing import Iterable, TextIO

from dbsync.logging import get_logger
from sqlorder.models import Script


def content_hash(contents: str) -> str:
    return sha256(contents.encode("utf-8")).hexdigest()


def script_from_path(path: str | Path) -> Script:
    script_path = Path(path)
    contents = script_path.read_text(encoding="utf-8")
    return Script(name=script_path.name, contents=contents, hash=content_hash(contents))


def load_scripts(paths: Iterable[str | Path]) -> list[Script]:
    return [script_from_path(path) for path in paths]


def scripts_in_directory(prefix: str | Path, pattern: str = "*.sql") -> list[Script]:
    directory = Path(prefix)
    paths = sorted(
        (path for path in directory.glob(pattern) if path.is_file()),
        key=lambda path: path.name,
    )
    scripts = load_scripts(paths)
    get_logger(__name__).info(
        "Scripts loaded from directory.",
        prefix=directory.as_posix(),
        pattern=pattern,
        scripts=len(scripts),
    )
    return scripts


def read_script_paths(stream: TextIO) -> list[str]:
    return [line.strip() for line in stream if line.strip()]
