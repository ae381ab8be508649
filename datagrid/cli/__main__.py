from __future__ import annotations

import argparse
import asyncio
import os
import sys
from datetime import UTC, datetime
from pathlib import Path

from dotenv import load_dotenv

from datagrid.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from datagrid.io.tabular import TabularFormatError, read_table_file
from datagrid.logging.error_log import ErrorLogBuffer
from datagrid.logging.init import get_logger, log_summary, setup_logging
from datagrid.models.validation_summary import BatchStatsAccumulator, ValidationSummary
from datagrid.services.grid import DataGrid
from datagrid.services.progress import ProgressTracker
from datagrid.services.sorting import SortDirection
from datagrid.services.summary import render_summary_line

"""CLI entrypoint: validate a CSV/XLSX file against a grid definition.

Flow:
- Load .env (overriding) and resolve the config path
- Load the grid config and the input table
- Validate every row in batches (progress bar on a TTY)
- Log one WARN line per invalid row, optionally sort and export
- Print the SUMMARY line; exit code reflects the outcome
"""

__all__ = [
    "main",
    "EXIT_SUCCESS_ALL",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_FATAL",
]

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

CONFIG_ENV_VAR = "DATAGRID_CONFIG"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values override the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="datagrid", description="Validate tabular data against a grid definition")
    p.add_argument("input", help="CSV or XLSX file to validate")
    p.add_argument("--config", help=f"Grid config YAML (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})")
    p.add_argument("--sheet", help="Sheet name for XLSX input (default: first sheet)")
    p.add_argument("--sort", metavar="COLUMN", help="Sort rows by this column before export")
    p.add_argument("--descending", action="store_true", help="Sort descending")
    p.add_argument("--export", metavar="OUT_CSV", help="Write the validated data as CSV")
    p.add_argument("--include-alerts", action="store_true", help="Add the ValidAlerts column to the export")
    p.add_argument("--error-log", action="store_true", help="Write component errors to logs/errors-*.log")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _resolve_config_path(cli_value: str | None) -> Path:
    if cli_value:
        return Path(cli_value)
    env_value = os.getenv(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_CONFIG_PATH


def main(argv: list[str] | None = None) -> int:
    # None only: an explicit [] must not pick up the test runner's argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    _load_env_file(Path(".env"), override=True)

    config_path = _resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if cfg.settings.debug and not args.debug:
        setup_logging(debug=True)
    logger.debug(f"config loaded: {config_path}")

    input_path = Path(args.input)
    try:
        df = read_table_file(input_path, sheet=args.sheet)
    except (TabularFormatError, FileNotFoundError) as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL
    except (OSError, ValueError) as e:
        logger.error(f"input: failed to read {input_path}: {e}")
        return EXIT_FATAL

    error_log = ErrorLogBuffer() if args.error_log else None
    grid = DataGrid.from_config(cfg, logger=get_logger("grid"), error_log=error_log)

    missing = [c.name for c in grid.editable_columns if c.name not in df.columns]
    if missing:
        logger.warning(f"input lacks columns: {', '.join(missing)}")

    loaded = grid.load_dataframe(df, validate=False)
    logger.info(f"Validating {loaded} rows from: {input_path}")

    stats = BatchStatsAccumulator()
    start_time = datetime.now(UTC)
    with ProgressTracker(grid.data_row_count) as progress:
        asyncio.run(grid.validate_all_rows(progress=progress, metrics_callback=stats))
    end_time = datetime.now(UTC)

    for number, row in enumerate(grid.rows, start=1):
        if not row.is_empty and row.has_validation_errors:
            logger.warning(f"row={number} {row.validation_errors_text}")

    if args.sort:
        direction = SortDirection.DESCENDING if args.descending else SortDirection.ASCENDING
        if grid.sort(args.sort, direction):
            logger.info(f"sorted by {args.sort} ({direction.value})")

    if args.export:
        export_path = Path(args.export)
        grid.export_csv(include_valid_alerts=args.include_alerts, path=export_path)
        logger.info(f"exported: {export_path}")

    if error_log is not None:
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log: {log_path}")

    summary = ValidationSummary.from_rows(grid.rows, start_time, end_time, stats)
    summary_line = render_summary_line(summary)
    # log_summary adds the "SUMMARY " label itself
    log_summary(summary_line[len("SUMMARY "):])

    if summary.invalid_rows > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
