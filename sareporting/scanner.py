from __future__ import annotations

from dataclasses import dataclass
from pathlib import PureWindowsPath
from typing import Iterable, Iterator, Sequence

from .extractors import parse_annotation, strip_trailing_comment
from .models import RawOccurrence


@dataclass(frozen=True)
class SourceFile:
    path: str
    lines: Sequence[str]


def file_identity(path: str) -> str:
    # PureWindowsPath splits on both "/" and "\".
    return PureWindowsPath(path).name or path


def scan_lines(path: str, lines: Iterable[str]) -> Iterator[RawOccurrence]:
    name = file_identity(path)
    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\n\r")
        parsed = parse_annotation(line)
        if parsed is None:
            continue
        yield RawOccurrence(
            severity_code=parsed.severity_code,
            label=parsed.label,
            file=name,
            line_number=line_no,
            content=strip_trailing_comment(line),
        )


class AnnotationScanner:
    """Lazy view of every annotation in an ordered set of sources.

    Iterating again rescans from the start, provided ``sources`` itself can
    be iterated more than once.
    """

    def __init__(self, sources: Iterable[SourceFile]):
        self.sources = sources

    def __iter__(self) -> Iterator[RawOccurrence]:
        for source in self.sources:
            yield from scan_lines(source.path, source.lines)
