from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import requests

from .models import DatabaseEntry

CATCH_ALL_SEVERITY = "NAN"
DEFAULT_DB_NAME = "SAR.json"
DEFAULT_USER_AGENT = "sareporting/1.0"
DEFAULT_TIMEOUT_SECONDS = 30

SAMPLE_ENTRIES = [
    DatabaseEntry(
        severity="NAN",
        label="NOT-FOUND",
        title="Finding not recognized",
        prompt=(
            "This annotation did not match any entry of the findings database, "
            "or its severity code disagrees with the catalogued one. "
            "Check the label spelling and the severity code."
        ),
    ),
    DatabaseEntry(
        severity="GAS",
        label="Cheap-Increment",
        title="Use pre-increment instead of post-increment",
        prompt="`++i` costs less gas than `i++`, especially inside loops.",
    ),
    DatabaseEntry(
        severity="GAS",
        label="Unused-Var",
        title="Unused variable",
        prompt="Remove dead code.",
    ),
    DatabaseEntry(
        severity="GAS",
        label="Cache-Length",
        title="Cache array length outside of loops",
        prompt="Reading `.length` on every iteration costs an extra SLOAD for storage arrays.",
    ),
    DatabaseEntry(
        severity="NC",
        label="Missing-NatSpec",
        title="Missing NatSpec documentation",
        prompt="Public and external functions should document their parameters and return values.",
    ),
    DatabaseEntry(
        severity="NC",
        label="Magic-Number",
        title="Use named constants instead of magic numbers",
        prompt="Literal values obscure intent; declare them as `constant` with a descriptive name.",
    ),
    DatabaseEntry(
        severity="LOW",
        label="Zero-Address",
        title="Missing zero-address validation",
        prompt="Setting an address parameter to `address(0)` by mistake may brick the contract.",
    ),
    DatabaseEntry(
        severity="LOW",
        label="Unsafe-ERC20",
        title="Unchecked ERC20 transfer return value",
        prompt="Use `SafeERC20.safeTransfer` so that tokens returning `false` revert.",
    ),
]


class DatabaseError(RuntimeError):
    pass


class CatchAllError(DatabaseError):
    pass


def is_catch_all(entry: DatabaseEntry) -> bool:
    return entry.severity.strip().upper() == CATCH_ALL_SEVERITY


class FindingDatabase:
    """Read-only finding catalogue for one run.

    Labels are matched case-insensitively; the first entry carrying a label
    wins when the store repeats it. The catch-all entry is required and is
    never returned by ``lookup``.
    """

    def __init__(self, entries: Sequence[DatabaseEntry]):
        self.entries: tuple[DatabaseEntry, ...] = tuple(entries)
        catch_all = [entry for entry in self.entries if is_catch_all(entry)]
        if not catch_all:
            raise CatchAllError(
                f"Findings database has no catch-all entry (severity '{CATCH_ALL_SEVERITY}')."
            )
        if len(catch_all) > 1:
            raise CatchAllError(
                f"Findings database has {len(catch_all)} catch-all entries, expected exactly one."
            )
        self.catch_all = catch_all[0]
        self._by_label: Dict[str, DatabaseEntry] = {}
        for entry in self.entries:
            if entry is self.catch_all:
                continue
            self._by_label.setdefault(entry.label.upper(), entry)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def catch_all_prompt(self) -> str:
        return self.catch_all.prompt

    def lookup(self, label: str) -> Optional[DatabaseEntry]:
        return self._by_label.get(label.upper())

    def catalogued_entries(self) -> List[DatabaseEntry]:
        return [entry for entry in self.entries if entry is not self.catch_all]


def parse_records(data: object) -> List[DatabaseEntry]:
    if not isinstance(data, list):
        raise DatabaseError("Findings database must be a JSON array of records.")
    entries: List[DatabaseEntry] = []
    for idx, record in enumerate(data):
        if not isinstance(record, dict):
            raise DatabaseError(f"Database record #{idx} is not an object.")
        severity = record.get("type", record.get("severity"))
        label = record.get("label")
        if severity is None or label is None:
            raise DatabaseError(f"Database record #{idx} is missing 'type' or 'label'.")
        entries.append(
            DatabaseEntry(
                severity=str(severity),
                label=str(label),
                title=str(record.get("title") or ""),
                prompt=str(record.get("prompt") or ""),
                path=str(record.get("path") or ""),
            )
        )
    return entries


def read_database_records(path: Path) -> List[DatabaseEntry]:
    if not path.exists():
        raise DatabaseError(f"Findings database not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DatabaseError(f"Findings database is not valid JSON ({path}): {exc}") from exc
    return parse_records(data)


def fetch_database_records(
    url: str,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
    session: Optional[requests.Session] = None,
) -> List[DatabaseEntry]:
    headers = {"User-Agent": user_agent.strip() or DEFAULT_USER_AGENT, "Accept": "application/json"}
    try:
        if session is None:
            with requests.Session() as owned:
                resp = owned.get(url, headers=headers, timeout=timeout)
        else:
            resp = session.get(url, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise DatabaseError(f"Network error fetching findings database: {exc}") from exc
    if resp.status_code >= 400:
        raise DatabaseError(f"Findings database request failed {resp.status_code}: {resp.text[:200]}")
    try:
        data = resp.json()
    except ValueError as exc:
        raise DatabaseError(f"Findings database at {url} is not valid JSON: {exc}") from exc
    return parse_records(data)


def is_remote_source(source: str) -> bool:
    lowered = source.strip().lower()
    return lowered.startswith("http://") or lowered.startswith("https://")


def load_database_records(
    source: str,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: int = DEFAULT_TIMEOUT_SECONDS,
) -> List[DatabaseEntry]:
    if is_remote_source(source):
        return fetch_database_records(source.strip(), user_agent=user_agent, timeout=timeout)
    return read_database_records(Path(source).expanduser())


def write_sample_database(path: Path, force: bool = False, entries: Iterable[DatabaseEntry] = SAMPLE_ENTRIES) -> Path:
    if path.exists() and not force:
        raise FileExistsError(str(path))
    _atomic_json_write(path, [entry.to_dict() for entry in entries])
    return path


def _atomic_json_write(path: Path, payload: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as handle:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
    tmp_path.replace(path)
