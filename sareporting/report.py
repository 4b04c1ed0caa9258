from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional

from .models import SEVERITY_ORDER, Appearance, DatabaseEntry, FindingMapping, ResolvedFinding, SeverityClass

DEFAULT_CODE_LANGUAGE = "solidity"
INDEX_STEM = "FindingsIndex"
REPORT_SUFFIX = ".md"


@dataclass(frozen=True)
class RenderedDocument:
    stem: str
    text: str

    @property
    def filename(self) -> str:
        return f"{self.stem}{REPORT_SUFFIX}"


def _table_cell(value: str) -> str:
    return " ".join(value.split()).replace("|", "\\|")


def finding_tag(severity: SeverityClass, finding_id: int) -> str:
    return f"[{severity.abbreviation}-{finding_id:02d}]"


def occurrence_line(count: int) -> str:
    unit = "time" if count == 1 else "times"
    return f"*Found {count} {unit}*"


def group_by_file(appearances: Iterable[Appearance]) -> Dict[str, List[Appearance]]:
    groups: Dict[str, List[Appearance]] = {}
    for appearance in appearances:
        groups.setdefault(appearance.contract_file, []).append(appearance)
    return groups


def render_finding(
    severity: SeverityClass,
    finding_id: int,
    finding: ResolvedFinding,
    code_language: str = DEFAULT_CODE_LANGUAGE,
) -> List[str]:
    lines = [
        f"## {finding_tag(severity, finding_id)} {finding.title}",
        "",
        finding.prompt,
        "",
        occurrence_line(finding.count),
        "",
    ]
    for contract_file, appearances in group_by_file(finding.appearances).items():
        lines.append(f"```{code_language}")
        for appearance in appearances:
            lines.append(f"{contract_file} L{appearance.line_number}: {appearance.content}")
        lines.append("```")
        lines.append("")
    return lines


def render_severity_report(
    mapping: FindingMapping,
    severity: SeverityClass,
    code_language: str = DEFAULT_CODE_LANGUAGE,
) -> Optional[RenderedDocument]:
    """Render one severity class as a markdown document.

    Findings keep the mapping's insertion order and are numbered from 1. An
    empty mapping renders nothing.
    """
    if not mapping:
        return None

    rows: List[str] = []
    details: List[str] = []
    total_appearances = 0
    finding_id = 1
    for finding in mapping.values():
        tag = finding_tag(severity, finding_id)
        details.extend(render_finding(severity, finding_id, finding, code_language=code_language))
        rows.append(f"| {tag} | {_table_cell(finding.title)} | {finding.count} |")
        total_appearances += finding.count
        finding_id += 1

    banner = [
        f"# {severity.display_name} Findings",
        "",
        f"Total: **{total_appearances} instances** over **{finding_id - 1} issues**",
        "",
    ]
    table = ["| ID | Issue | Instances |", "|:--:|:------|:---------:|"] + rows + [""]
    text = "\n".join(banner + table + details).rstrip("\n") + "\n"
    return RenderedDocument(stem=severity.stem, text=text)


def render_reports(
    mappings: Mapping[SeverityClass, FindingMapping],
    code_language: str = DEFAULT_CODE_LANGUAGE,
) -> List[RenderedDocument]:
    documents = []
    for severity in SEVERITY_ORDER:
        document = render_severity_report(mappings.get(severity, {}), severity, code_language=code_language)
        if document is not None:
            documents.append(document)
    return documents


def entry_severity_class(entry: DatabaseEntry) -> SeverityClass:
    return SeverityClass.from_code(entry.severity.strip()[:1]) or SeverityClass.UNRESOLVED


def render_index(entries: Iterable[DatabaseEntry]) -> RenderedDocument:
    """Tabulate catalogued findings per severity class, sorted by label.

    ``entries`` should exclude the catch-all record.
    """
    grouped: Dict[SeverityClass, List[DatabaseEntry]] = {severity: [] for severity in SEVERITY_ORDER}
    for entry in entries:
        grouped[entry_severity_class(entry)].append(entry)

    lines = ["# Findings Index", ""]
    for severity in SEVERITY_ORDER:
        section = sorted(grouped[severity], key=lambda e: e.label.casefold())
        if not section:
            continue
        lines.append(f"## {severity.display_name}")
        lines.append("")
        lines.append("| Label | Title |")
        lines.append("|:------|:------|")
        for entry in section:
            lines.append(f"| {_table_cell(entry.label)} | {_table_cell(entry.title)} |")
        lines.append("")
    return RenderedDocument(stem=INDEX_STEM, text="\n".join(lines).rstrip("\n") + "\n")
