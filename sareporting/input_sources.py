from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

from .console import RichLogger
from .scanner import SourceFile

DEFAULT_GLOB = "*.sol"
DEFAULT_EXCLUDES = ("node_modules",)
DEFAULT_MAX_FILES = 200


def detect_text_encoding(sample: bytes) -> str:
    if sample.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"
    if sample.startswith(b"\xff\xfe") or sample.startswith(b"\xfe\xff"):
        return "utf-16"
    return "utf-8"


def _is_excluded(path: Path, root: Path, excludes: Sequence[str]) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part in excludes for part in parts[:-1])


def iter_directory_files(root: Path, pattern: str, excludes: Sequence[str]) -> Iterator[Path]:
    for p in sorted(root.rglob(pattern)):
        if not p.is_file():
            continue
        if _is_excluded(p, root, excludes):
            continue
        yield p


def collect_source_paths(
    inputs: Iterable[Path],
    logger: RichLogger,
    pattern: str = DEFAULT_GLOB,
    excludes: Sequence[str] = DEFAULT_EXCLUDES,
    max_files: int = DEFAULT_MAX_FILES,
) -> List[Path]:
    """Expand files and directories into an ordered, de-duplicated path list.

    Explicit files keep their command-line order; directories contribute
    their matching files in sorted order.
    """
    paths: List[Path] = []
    seen: set[Path] = set()
    for raw in inputs:
        path = raw.expanduser()
        if not path.exists():
            logger.error(f"Input path not found: {path}")
            continue
        candidates = [path] if path.is_file() else list(iter_directory_files(path, pattern, excludes))
        for candidate in candidates:
            key = candidate.resolve()
            if key in seen:
                continue
            seen.add(key)
            paths.append(candidate)
    if max_files > 0 and len(paths) > max_files:
        logger.warn(f"Found {len(paths)} source files, keeping the first {max_files}.")
        paths = paths[:max_files]
    return paths


def read_source_file(path: Path) -> SourceFile:
    data = path.read_bytes()
    enc = detect_text_encoding(data[:4])
    text = data.decode(enc, errors="replace")
    # Line numbers count "\n" only.
    return SourceFile(path=str(path), lines=text.split("\n"))
