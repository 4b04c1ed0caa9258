from __future__ import annotations

from .database import FindingDatabase
from .models import RawOccurrence, Resolution, SeverityClass


def resolve(occurrence: RawOccurrence, database: FindingDatabase) -> Resolution:
    """Classify one annotation against the findings database.

    The annotation's severity code must equal the first character of the
    catalogued severity (case-insensitive), so any severity sharing that
    first letter matches.
    """
    code = occurrence.severity_code.upper()
    entry = database.lookup(occurrence.label)
    if entry is None or not code or entry.severity.strip().upper()[:1] != code:
        return Resolution(
            severity_class=SeverityClass.UNRESOLVED,
            title=occurrence.label,
            prompt=database.catch_all_prompt,
        )

    severity_class = SeverityClass.from_code(code)
    if severity_class is None:
        return Resolution(severity_class=SeverityClass.UNRESOLVED, title=entry.title, prompt=entry.prompt)
    return Resolution(severity_class=severity_class, title=entry.title, prompt=entry.prompt)
