from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from location_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from location_import.db.memory_store import InMemoryLocationStore
from location_import.db.store import LocationStore, PostgresLocationStore
from location_import.files.decoder import DecodeError, decode, extension_of
from location_import.files.template import TEMPLATE_FORMATS, render_template, template_filename
from location_import.logging.error_log import ErrorLogBuffer
from location_import.logging.init import log_summary, setup_logging
from location_import.models.location import BulkInsertOptions, LocationStatus
from location_import.services.batch_loader import BatchMetrics
from location_import.services.orchestrator import ImportOutcome, ImportStage, run_import, validate_file
from location_import.services.report import (
    FAILED_ROWS_REPORT_FILENAME,
    VALIDATION_REPORT_FILENAME,
    write_failed_rows_report,
    write_validation_report,
)
from location_import.services.summary import render_summary_line

"""CLI entrypoint.

Commands:
- import FILE   decode, validate and load a CSV / Excel file of locations
- template      write the starter template (CSV or XLSX)
- inspect FILE  print normalized headers and the first rows, then exit

Exit codes: 0 = every row imported, 2 = some rows rejected or failed,
1 = fatal (config, unreadable file, database unavailable).
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Build the connection string.

    Priority:
        1. DATABASE_URL / PGDSN (after .env is loaded with override)
        2. individual PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. the database section of the YAML config
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = False  # バッチ単位で COMMIT / ROLLBACK (store 側)
    try:
        yield conn
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env; its values override existing environment variables."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="location-import", description="Bulk import of locations from CSV / XLSX files"
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="Path to import.yml")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Validate and import a CSV / XLSX file")
    imp.add_argument("file", type=Path)
    imp.add_argument("--user-id", required=True, help="Acting user id stored as owner")
    imp.add_argument(
        "--status",
        choices=[s.value for s in LocationStatus],
        default=None,
        help="Status for imported locations (default from config: Active)",
    )
    imp.add_argument(
        "--skip-duplicates",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Skip rows whose address + suburb already exist (default from config: on)",
    )
    imp.add_argument("--validate-only", action="store_true", help="Validate without loading")
    imp.add_argument("--dry-run", action="store_true", help="Load into memory instead of the database")
    imp.add_argument("--report-dir", type=Path, default=None, help="Where error reports are written")

    tpl = sub.add_parser("template", help="Write the starter template")
    tpl.add_argument("--format", choices=TEMPLATE_FORMATS, default="xlsx")
    tpl.add_argument("-o", "--output", type=Path, default=None)

    insp = sub.add_parser("inspect", help="Print headers and first rows of a file")
    insp.add_argument("file", type=Path)
    insp.add_argument("--rows", type=int, default=3)
    return p.parse_args(argv)


def _load_cfg(args: argparse.Namespace) -> ImportConfig:
    if args.config is not None:
        return load_config(args.config)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ImportConfig()


def _read_upload(path: Path, cfg: ImportConfig, logger: Any) -> bytes | None:
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return None
    size = path.stat().st_size
    if size > cfg.max_file_bytes:
        logger.error(f"file too large: {path.name} ({size} bytes > {cfg.max_file_bytes})")
        return None
    return path.read_bytes()


def _write_reports(outcome: ImportOutcome, report_dir: Path, logger: Any) -> None:
    if not outcome.validation.rejected and not outcome.result.failed_rows:
        return
    report_dir.mkdir(parents=True, exist_ok=True)
    if outcome.validation.rejected:
        path = report_dir / VALIDATION_REPORT_FILENAME
        path.write_bytes(write_validation_report(outcome.validation.rejected))
        logger.warning(f"{len(outcome.validation.rejected)} rows rejected, report: {path}")
    if outcome.result.failed_rows:
        path = report_dir / FAILED_ROWS_REPORT_FILENAME
        path.write_bytes(write_failed_rows_report(outcome.result.failed_rows))
        logger.warning(f"{len(outcome.result.failed_rows)} rows failed to insert, report: {path}")


def _cmd_template(args: argparse.Namespace, logger: Any) -> int:
    output = args.output or Path(template_filename(args.format))
    output.write_bytes(render_template(args.format))
    logger.info(f"template written: {output}")
    return EXIT_SUCCESS_ALL


def _cmd_inspect(args: argparse.Namespace, cfg: ImportConfig, logger: Any) -> int:
    data = _read_upload(args.file, cfg, logger)
    if data is None:
        return EXIT_FATAL
    try:
        rows = decode(data, extension_of(args.file.name))
    except DecodeError as e:
        logger.error(f"decode: {e}")
        return EXIT_FATAL
    headers = list(rows[0].values.keys()) if rows else []
    print(f"FILE: {args.file.name} rows={len(rows)} cols={headers}")
    for row in rows[: args.rows]:
        # datetime 等は isoformat に寄せる
        safe = {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in row.values.items()}
        print(f"  row={row.row_number} {safe}")
    return EXIT_SUCCESS_ALL


def _cmd_import(args: argparse.Namespace, cfg: ImportConfig, logger: Any) -> int:
    data = _read_upload(args.file, cfg, logger)
    if data is None:
        return EXIT_FATAL

    options = BulkInsertOptions(
        target_status=LocationStatus(args.status) if args.status else cfg.default_status,
        skip_duplicates=(
            cfg.default_skip_duplicates if args.skip_duplicates is None else args.skip_duplicates
        ),
        acting_user_id=args.user_id,
    )
    report_dir = args.report_dir or Path(cfg.report_directory)
    error_log = ErrorLogBuffer()

    def _log_stage(stage: ImportStage) -> None:
        logger.debug(f"stage={stage.value}")

    def _log_batch(metrics: BatchMetrics) -> None:
        logger.debug(
            f"batch={metrics.batch_number} size={metrics.batch_size} "
            f"elapsed={metrics.elapsed_seconds:.3f}s ok={metrics.succeeded}"
        )

    def _load(store: LocationStore) -> ImportOutcome:
        return run_import(
            data,
            args.file.name,
            options,
            store,
            batch_size=cfg.batch_size,
            error_log=error_log,
            metrics_callback=_log_batch,
            on_stage=_log_stage,
        )

    logger.info(
        f"importing {args.file.name} status={options.target_status.value} "
        f"skip_duplicates={options.skip_duplicates}"
    )
    try:
        if args.validate_only:
            decoded, validation = validate_file(
                data, args.file.name, error_log=error_log, on_stage=_log_stage
            )
            outcome = ImportOutcome(
                file_name=args.file.name,
                stage=ImportStage.VALIDATED,
                decoded_rows=decoded,
                validation=validation,
            )
            mode = "validate-only"
        else:
            disable_db = args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1"
            if disable_db:
                mode = "mock"
                outcome = _load(InMemoryLocationStore())
            else:
                mode = "live"
                try:
                    with _db_connection(cfg) as conn:
                        store = PostgresLocationStore(conn, table=cfg.table)
                        outcome = _load(store)
                except psycopg2.Error as e:
                    logger.error(f"database unavailable: {e}".strip())
                    return EXIT_FATAL
    except DecodeError as e:
        logger.error(f"decode: {e}")
        return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log: {log_path}")

    _write_reports(outcome, report_dir, logger)
    logger.info(f"mode={mode} inserted={outcome.result.success_count}")
    log_summary(render_summary_line(outcome)[len("SUMMARY "):])

    if outcome.fully_successful:
        return EXIT_SUCCESS_ALL
    return EXIT_PARTIAL_FAILURE


def main(argv: list[str] | None = None) -> int:
    # None のときのみシステム引数を読む ([] は pytest 等から明示的に渡される)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    if args.debug:
        logger.debug("debug mode enabled")

    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)

    if args.command == "template":
        return _cmd_template(args, logger)

    try:
        cfg = _load_cfg(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "inspect":
        return _cmd_inspect(args, cfg, logger)
    return _cmd_import(args, cfg, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
