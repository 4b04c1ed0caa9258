from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class SeverityClass(str, Enum):
    GAS = "GAS"
    NON_CRITICAL = "NON_CRITICAL"
    LOW = "LOW"
    UNRESOLVED = "UNRESOLVED"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def abbreviation(self) -> str:
        return _ABBREVIATIONS[self]

    @property
    def stem(self) -> str:
        return _STEMS[self]

    @classmethod
    def from_code(cls, code: str) -> Optional["SeverityClass"]:
        return _CODES.get(code.upper())


_DISPLAY_NAMES = {
    SeverityClass.GAS: "Gas",
    SeverityClass.NON_CRITICAL: "Non-Critical",
    SeverityClass.LOW: "Low",
    SeverityClass.UNRESOLVED: "Unresolved",
}

_ABBREVIATIONS = {
    SeverityClass.GAS: "G",
    SeverityClass.NON_CRITICAL: "N",
    SeverityClass.LOW: "L",
    SeverityClass.UNRESOLVED: "U",
}

_STEMS = {
    SeverityClass.GAS: "Gas",
    SeverityClass.NON_CRITICAL: "NonCritical",
    SeverityClass.LOW: "Low",
    SeverityClass.UNRESOLVED: "Unresolved",
}

_CODES = {
    "G": SeverityClass.GAS,
    "N": SeverityClass.NON_CRITICAL,
    "L": SeverityClass.LOW,
}

# Rendering and summary order.
SEVERITY_ORDER = [
    SeverityClass.GAS,
    SeverityClass.NON_CRITICAL,
    SeverityClass.LOW,
    SeverityClass.UNRESOLVED,
]


@dataclass(frozen=True)
class DatabaseEntry:
    severity: str
    label: str
    title: str
    prompt: str
    path: str = ""

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": self.severity,
            "label": self.label,
            "title": self.title,
            "prompt": self.prompt,
            "path": self.path,
        }


@dataclass(frozen=True)
class RawOccurrence:
    severity_code: str
    label: str
    file: str
    line_number: int
    content: str


@dataclass(frozen=True)
class Appearance:
    contract_file: str
    line_number: int
    content: str

    @classmethod
    def from_occurrence(cls, occurrence: RawOccurrence) -> "Appearance":
        return cls(
            contract_file=occurrence.file,
            line_number=occurrence.line_number,
            content=occurrence.content,
        )


@dataclass(frozen=True)
class Resolution:
    severity_class: SeverityClass
    title: str
    prompt: str


@dataclass
class ResolvedFinding:
    severity_class: SeverityClass
    label: str
    title: str
    prompt: str
    appearances: List[Appearance] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.appearances)


FindingMapping = Dict[str, ResolvedFinding]
