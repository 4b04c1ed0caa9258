from __future__ import annotations

import argparse
import itertools
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from .console import RichLogger
from .database import (
    DEFAULT_DB_NAME,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    DatabaseError,
    FindingDatabase,
    load_database_records,
    write_sample_database,
)
from .input_sources import DEFAULT_EXCLUDES, DEFAULT_GLOB, DEFAULT_MAX_FILES, collect_source_paths, read_source_file
from .models import SEVERITY_ORDER, RawOccurrence, SeverityClass
from .report import DEFAULT_CODE_LANGUAGE, render_index, render_reports
from .results import FindingAggregator, ResultWriter, aggregate
from .scanner import scan_lines

DATABASE_ENV_VARS = ("SAR_DATABASE", "SAREPORTING_DB")
DEFAULT_OUT_DIR = "reports"


def default_thread_count() -> int:
    return min(32, (os.cpu_count() or 4) + 4)


def _add_database_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--db",
        help=f"Findings database JSON file or http(s) URL. Defaults to $SAR_DATABASE, then ./{DEFAULT_DB_NAME}.",
    )
    parser.add_argument(
        "--user-agent",
        default=DEFAULT_USER_AGENT,
        help="User-Agent header used when the database is a URL.",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=DEFAULT_TIMEOUT_SECONDS,
        help="Timeout in seconds when fetching a remote database (default: 30).",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="sareporting",
        description="Collect @SAR finding annotations from source files and render markdown reports.",
    )
    sub = ap.add_subparsers(dest="command", required=True)

    rep = sub.add_parser("report", help="Scan sources and write one report per severity class.")
    rep.add_argument("inputs", nargs="+", type=Path, help="Source files or directories to scan.")
    _add_database_args(rep)
    rep.add_argument("--out", default=DEFAULT_OUT_DIR, help="Reports folder (default: ./reports).")
    rep.add_argument(
        "--glob",
        default=DEFAULT_GLOB,
        help=f"File pattern used when walking directories (default: {DEFAULT_GLOB}).",
    )
    rep.add_argument(
        "--exclude",
        action="append",
        help="Directory name to skip while walking (repeatable, default: node_modules).",
    )
    rep.add_argument(
        "--max-files",
        type=int,
        default=DEFAULT_MAX_FILES,
        help=f"Max source files to scan (0 = unlimited, default: {DEFAULT_MAX_FILES}).",
    )
    rep.add_argument(
        "--threads",
        type=int,
        default=default_thread_count(),
        help="Worker threads for reading files (default: auto).",
    )
    rep.add_argument(
        "--code-language",
        default=DEFAULT_CODE_LANGUAGE,
        help=f"Language tag of the code blocks in reports (default: {DEFAULT_CODE_LANGUAGE}).",
    )
    rep.add_argument("-v", "--verbose", action="store_true", help="Verbose debug logs")

    idx = sub.add_parser("index", help="Write the per-severity index of the findings database.")
    _add_database_args(idx)
    idx.add_argument("--out", default=DEFAULT_OUT_DIR, help="Reports folder (default: ./reports).")
    idx.add_argument("-v", "--verbose", action="store_true", help="Verbose debug logs")

    init = sub.add_parser("init-db", help="Write a sample findings database.")
    init.add_argument("path", nargs="?", default=DEFAULT_DB_NAME, help=f"Target file (default: ./{DEFAULT_DB_NAME}).")
    init.add_argument("--force", action="store_true", help="Overwrite an existing file.")
    init.add_argument("-v", "--verbose", action="store_true", help="Verbose debug logs")

    return ap


def _resolve_database_source(explicit: str | None) -> str:
    if explicit and explicit.strip():
        return explicit.strip()
    for key in DATABASE_ENV_VARS:
        value = os.environ.get(key, "")
        if value.strip():
            return value.strip()
    return DEFAULT_DB_NAME


def _load_database(args, logger: RichLogger) -> Tuple[Optional[FindingDatabase], int]:
    source = _resolve_database_source(args.db)
    logger.debug(f"Loading findings database from {source}")
    try:
        records = load_database_records(source, user_agent=args.user_agent, timeout=args.timeout)
    except DatabaseError as exc:
        logger.error(str(exc))
        return None, 2
    if not records:
        logger.warn(f"Findings database is empty: {source}")
        return None, 0
    try:
        database = FindingDatabase(records)
    except DatabaseError as exc:
        logger.error(str(exc))
        return None, 2
    logger.info(f"Loaded {len(database)} database entries from {source}")
    return database, 0


def _scan_path(path: Path) -> List[RawOccurrence]:
    source = read_source_file(path)
    return list(scan_lines(source.path, source.lines))


def _scan_files(
    paths: Sequence[Path],
    threads: int,
    console: Console,
    logger: RichLogger,
) -> List[List[RawOccurrence]]:
    results: Dict[int, List[RawOccurrence]] = {}
    if not paths:
        return []

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]Scanning files"),
        BarColumn(bar_width=None),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
    )

    with progress:
        task_id = progress.add_task("scan", total=len(paths))
        with ThreadPoolExecutor(max_workers=max(1, threads)) as executor:
            future_map = {executor.submit(_scan_path, path): idx for idx, path in enumerate(paths)}
            for future in as_completed(future_map):
                idx = future_map[future]
                try:
                    results[idx] = future.result()
                except OSError as exc:
                    logger.error(f"Failed to read {paths[idx]}: {exc}")
                    progress.advance(task_id)
                    continue
                if results[idx]:
                    logger.debug(f"Hit {paths[idx]}: annotations={len(results[idx])}")
                progress.advance(task_id)

    # Aggregation relies on the input file order, not completion order.
    return [results[idx] for idx in sorted(results)]


def _print_summary(console: Console, aggregator: FindingAggregator) -> None:
    table = Table(title="Findings Summary", header_style="bold")
    table.add_column("Severity", style="cyan")
    table.add_column("Findings", justify="right")
    table.add_column("Instances", justify="right")
    for severity in SEVERITY_ORDER:
        mapping = aggregator.mapping(severity)
        table.add_row(
            severity.display_name,
            str(len(mapping)),
            str(sum(finding.count for finding in mapping.values())),
        )
    console.print(table)


def run_report(args) -> int:
    console = Console()
    logger = RichLogger(console=console, verbose=args.verbose)

    database, code = _load_database(args, logger)
    if database is None:
        return code

    excludes = tuple(args.exclude) if args.exclude else DEFAULT_EXCLUDES
    paths = collect_source_paths(
        args.inputs,
        logger,
        pattern=args.glob,
        excludes=excludes,
        max_files=args.max_files,
    )
    if not paths:
        logger.warn("No source files to scan.")
    else:
        logger.info(f"Scanning {len(paths)} source files")

    per_file = _scan_files(paths, args.threads, console, logger)
    aggregator = aggregate(itertools.chain.from_iterable(per_file), database)

    if aggregator.is_empty:
        logger.warn("No findings recognized in the scanned files.")
        out_dir = Path(args.out)
        if out_dir.is_dir():
            ResultWriter(out_dir, logger).clear()
        return 1 if logger.error_count else 0

    _print_summary(console, aggregator)
    unresolved = aggregator.mapping(SeverityClass.UNRESOLVED)
    if unresolved:
        logger.warn(f"{len(unresolved)} annotation label(s) could not be resolved: {', '.join(unresolved)}")

    documents = render_reports(aggregator.mappings, code_language=args.code_language)
    writer = ResultWriter(Path(args.out), logger)
    writer.write_all(documents, aggregator)

    return 1 if logger.error_count else 0


def run_index(args) -> int:
    console = Console()
    logger = RichLogger(console=console, verbose=args.verbose)

    database, code = _load_database(args, logger)
    if database is None:
        return code

    document = render_index(database.catalogued_entries())
    writer = ResultWriter(Path(args.out), logger)
    path = writer.write_document(document)
    logger.done(f"Index written to: {path}")
    return 0


def run_init_db(args) -> int:
    console = Console()
    logger = RichLogger(console=console, verbose=args.verbose)

    target = Path(args.path).expanduser()
    try:
        write_sample_database(target, force=args.force)
    except FileExistsError:
        logger.error(f"Refusing to overwrite existing file: {target} (use --force)")
        return 2
    logger.done(f"Sample findings database written to: {target}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if args.command == "report":
        return run_report(args)
    if args.command == "index":
        return run_index(args)
    if args.command == "init-db":
        return run_init_db(args)
    return 2
