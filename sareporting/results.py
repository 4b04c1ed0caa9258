from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List

from .console import RichLogger
from .database import FindingDatabase
from .models import SEVERITY_ORDER, Appearance, FindingMapping, RawOccurrence, Resolution, ResolvedFinding, SeverityClass
from .report import REPORT_SUFFIX, RenderedDocument
from .resolver import resolve

SUMMARY_NAME = "summary.json"


class FindingAggregator:
    """Owns the four per-severity mappings of one run.

    A label's first occurrence in a class fixes its title and prompt; later
    occurrences only extend its appearances, in the order they are added.
    """

    def __init__(self):
        self.mappings: Dict[SeverityClass, FindingMapping] = {severity: {} for severity in SEVERITY_ORDER}

    def add(self, resolution: Resolution, occurrence: RawOccurrence) -> ResolvedFinding:
        mapping = self.mappings[resolution.severity_class]
        appearance = Appearance.from_occurrence(occurrence)
        finding = mapping.get(occurrence.label)
        if finding is None:
            finding = ResolvedFinding(
                severity_class=resolution.severity_class,
                label=occurrence.label,
                title=resolution.title,
                prompt=resolution.prompt,
                appearances=[appearance],
            )
            mapping[occurrence.label] = finding
            return finding
        finding.appearances.append(appearance)
        return finding

    def mapping(self, severity: SeverityClass) -> FindingMapping:
        return self.mappings[severity]

    @property
    def is_empty(self) -> bool:
        return all(not mapping for mapping in self.mappings.values())

    def summary(self) -> Dict[str, object]:
        return {
            "severities": {
                severity.stem: {
                    "findings": len(mapping),
                    "appearances": sum(f.count for f in mapping.values()),
                }
                for severity, mapping in self.mappings.items()
            },
        }


def aggregate(occurrences: Iterable[RawOccurrence], database: FindingDatabase) -> FindingAggregator:
    aggregator = FindingAggregator()
    for occurrence in occurrences:
        aggregator.add(resolve(occurrence, database), occurrence)
    return aggregator


class ResultWriter:
    def __init__(self, out_dir: Path, logger: RichLogger):
        self.out_dir = out_dir
        self.logger = logger
        self.out_dir.mkdir(parents=True, exist_ok=True)

    def write_document(self, document: RenderedDocument) -> Path:
        path = self.out_dir / document.filename
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(document.text)
        self.logger.debug(f"Wrote {path}")
        return path

    def remove_stale_reports(self, keep: Iterable[Path] = ()) -> List[Path]:
        keep_names = {path.name for path in keep}
        removed: List[Path] = []
        for severity in SEVERITY_ORDER:
            path = self.out_dir / f"{severity.stem}{REPORT_SUFFIX}"
            if path.name in keep_names or not path.exists():
                continue
            path.unlink()
            self.logger.debug(f"Removed stale report {path}")
            removed.append(path)
        return removed

    def clear(self) -> None:
        self.remove_stale_reports()
        summary_path = self.out_dir / SUMMARY_NAME
        if summary_path.exists():
            summary_path.unlink()

    def write_all(self, documents: Iterable[RenderedDocument], aggregator: FindingAggregator) -> List[Path]:
        written = [self.write_document(document) for document in documents]
        self.remove_stale_reports(keep=written)

        with open(self.out_dir / SUMMARY_NAME, "w", encoding="utf-8", newline="\n") as f:
            json.dump(aggregator.summary(), f, indent=2)
            f.write("\n")

        self.logger.done(f"Reports written to: {self.out_dir}")
        return written
