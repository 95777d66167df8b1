from __future__ import annotations

import argparse
import os
import sys
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, IngestConfig, load_config
from ..errors import AdapterError
from ..logging.init import enable_debug, log_summary, setup_logging
from ..services.orchestrator import ProcessingError, build_adapter, process_all, scan_bill_files
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (overrides existing environment) and config/ingest.yml
- Scan the source directory for bill exports
- Run every file through the USPS EasyPost adapter and load the staging plan
  (mock mode without a database: DISABLE_DB_CONNECT=1 or connection failure)
- Print the SUMMARY line and exit with the run's exit code
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _resolve_dsn(cfg: IngestConfig) -> str:
    """接続情報の解決優先順位:
        1. DATABASE_URL / PGDSN (DSN 全体)
        2. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. config/ingest.yml の database セクション (不足分のフォールバック)
    """
    db_cfg = cfg.database
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
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
def _db_connection(cfg: IngestConfig):  # pragma: no cover (thin wrapper; tested via integration)
    """Provide a psycopg2 cursor; transaction boundaries are issued by the orchestrator."""
    conn = psycopg2.connect(_resolve_dsn(cfg))
    conn.autocommit = True  # BEGIN/COMMIT/ROLLBACK は orchestrator が明示実行
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; override=True gives .env values precedence."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="USPS EasyPost bill export -> staging loader")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to ingest config YAML")
    p.add_argument("--account", default=None, help="Expected carrier account number (overrides config)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(cfg: IngestConfig) -> int:
    try:
        files = scan_bill_files(Path(cfg.source_directory), cfg.reader.format)
    except ProcessingError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    if not files:
        print("inspect: no bill files")
        return EXIT_SUCCESS_ALL
    adapter = build_adapter(cfg)
    for f in files:
        print(f"FILE: {f.name}")
        try:
            with f.open("rb") as stream:
                headers, rows = adapter.get_records(stream)
        except (AdapterError, OSError) as e:
            print(f"  read_error: {e}")
            continue
        print(f"  cols={headers} rows={len(rows)}")
        for row in rows[:3]:
            print(f"    {dict(zip(headers, row))}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # 空リスト [] (テストからの呼び出し) と None を区別する
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    if args.account is not None:
        cfg = cfg.with_account(args.account)

    directory = Path(cfg.source_directory)
    if not directory.exists():
        logger.error(f"directory not found: {directory}")
        return EXIT_FATAL

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    if args.inspect_data:
        return _inspect_data(cfg)

    logger.info(f"Processing bills from: {directory} account={cfg.account_number}")

    disable_db = os.getenv("DISABLE_DB_CONNECT") == "1"
    db_mode = "mock"
    try:
        if disable_db:
            logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
            result = process_all(cfg, cursor=None)
        else:
            try:
                with _db_connection(cfg) as cur:
                    db_mode = "live"
                    result = process_all(cfg, cursor=cur)
            except psycopg2.Error as db_e:
                if db_mode == "live":
                    logger.error(f"database: {db_e}")
                    return EXIT_FATAL
                logger.info(f"DB connection failed -> fallback to mock mode: {db_e}")
                result = process_all(cfg, cursor=None)
    except ProcessingError as e:
        logger.error(f"processing({db_mode}): {e}")
        return EXIT_FATAL

    logger.info(f"mode={db_mode} total_rows={result.total_staged_rows}")

    summary_line = render_summary_line(result.files_found, result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.has_failures:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
