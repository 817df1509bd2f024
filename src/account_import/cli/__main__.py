from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from account_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from account_import.db.connection import open_store
from account_import.db.store import ListFilter, StoreError
from account_import.excel.reader import SpreadsheetError
from account_import.logging.error_log import ErrorLogBuffer
from account_import.logging.init import enable_debug, log_summary, setup_logging
from account_import.models.import_result import CommitPolicy
from account_import.models.records import ENTITIES, get_entity
from account_import.security.passwords import make_password_hasher
from account_import.services.export import export_records
from account_import.services.importer import SheetImporter
from account_import.services.summary import render_export_summary_line, render_summary_line

"""CLI entrypoint.

    account-import [--config PATH] [--debug] import {users,customers} FILE ...
    account-import [--config PATH] [--debug] export {users,customers} ...

Exit codes: 0 success, 2 import rejected by validation, 1 fatal.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_REJECTED = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True により .env の値で既存環境変数を上書きし、PostgreSQL 接続情報を最優先化。
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="account-import", description="Spreadsheet <-> PostgreSQL account import/export"
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a spreadsheet")
    imp.add_argument("entity", choices=sorted(ENTITIES))
    imp.add_argument("file", type=Path)
    imp.add_argument(
        "--policy",
        choices=[c.value for c in CommitPolicy],
        default=None,
        help="Commit policy (default: config import.commit_policy)",
    )
    imp.add_argument("--workers", type=int, default=None, help="Thread cap (default: one per row)")
    imp.add_argument("--dry-run", action="store_true", help="Validate only, no database access")

    exp = sub.add_parser("export", help="Export stored records to .xlsx")
    exp.add_argument("entity", choices=sorted(ENTITIES))
    exp.add_argument("--username")
    exp.add_argument("--email")
    exp.add_argument("--start-date")
    exp.add_argument("--end-date")
    exp.add_argument("--sort", help="col:dir[,col:dir...]")
    exp.add_argument("--limit", type=int, default=None)
    exp.add_argument("--page", type=int, default=1)
    exp.add_argument("--out", type=Path, default=Path("."))
    return p.parse_args(argv)


def _run_import(cfg, args: argparse.Namespace, logger) -> int:
    if not args.file.exists():
        logger.error(f"file not found: {args.file}")
        return EXIT_FATAL
    if args.workers is not None and args.workers < 1:
        logger.error("--workers must be >= 1")
        return EXIT_FATAL

    entity = get_entity(args.entity, cfg.entities.get(args.entity))
    policy = CommitPolicy(args.policy or cfg.settings.commit_policy)
    workers = args.workers or cfg.settings.max_workers
    hasher = make_password_hasher(cfg.settings.bcrypt_rounds)
    error_log = ErrorLogBuffer()

    logger.info(f"Importing {entity.name} from: {args.file}")
    try:
        try:
            if args.dry_run:
                importer = SheetImporter(
                    entity, None, policy=policy, max_workers=workers,
                    password_hasher=hasher, error_log=error_log,
                )
                result = importer.run(args.file)
            else:
                with open_store(cfg) as store:
                    importer = SheetImporter(
                        entity, store, policy=policy, max_workers=workers,
                        password_hasher=hasher, error_log=error_log,
                    )
                    result = importer.run(args.file)
        except SpreadsheetError as e:
            logger.error(f"spreadsheet: {e}")
            return EXIT_FATAL
        except StoreError as e:
            logger.error(f"store: {e}")
            return EXIT_FATAL
    finally:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log written: {log_path}")

    for err in result.report:
        logger.warning(f"{err.field}: {err.message}")
    log_summary(render_summary_line(result))
    return EXIT_SUCCESS if result.ok else EXIT_REJECTED


def _run_export(cfg, args: argparse.Namespace, logger) -> int:
    entity = get_entity(args.entity, cfg.entities.get(args.entity))
    list_filter = ListFilter(
        username=args.username,
        email=args.email,
        start_date=args.start_date,
        end_date=args.end_date,
        sort=args.sort,
        limit=args.limit,
        page=args.page,
    )
    try:
        with open_store(cfg) as store:
            result = export_records(store, entity, args.out, list_filter)
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL
    log_summary(render_export_summary_line(result.entity, result.rows, str(result.path)))
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # NOTE: 空リスト [] を渡された場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    # .env を最優先で読み込む (DB 接続パラメータ優先順位保証)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        enable_debug()

    if args.command == "import":
        return _run_import(cfg, args, logger)
    return _run_export(cfg, args, logger)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
