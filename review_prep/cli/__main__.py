from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path

from review_prep.config.loader import DEFAULT_CONFIG_PATH, ConfigError, PrepConfig, load_config
from review_prep.logging.error_log import ErrorLogBuffer
from review_prep.logging.init import log_summary, setup_logging
from review_prep.models.processing_result import BatchSummary
from review_prep.models.source_file import FileSource
from review_prep.services.progress import ProgressTracker
from review_prep.services.risk_report import count_bands
from review_prep.services.session import PrepSession
from review_prep.services.summary import render_summary_line
from review_prep.table.reader import TableError

"""CLI entrypoint.

Stands in for the upload screens: collects .csv/.txt paths, runs one batch
through PrepSession and writes the downloadable artifacts to disk.

    review-prep process a.csv b.txt --zip --out dist/
    review-prep risk scored_*.csv --threshold 0.001 --mapping nid.csv --report

Exit codes:
- 0: every file processed
- 2: some file failed, a mapping could not be joined, or no valid rows
- 1: fatal (config error, no usable input files)
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

ACCEPTED_SUFFIXES = (".csv", ".txt")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="review-prep", description="Review export preparation")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH})")
    sub = p.add_subparsers(dest="command", required=True)

    proc = sub.add_parser("process", help="Format content columns into strategy-tagged TXT")
    proc.add_argument("files", nargs="+", help="Input .csv/.txt files")
    proc.add_argument("--zip", action="store_true", help="Bundle outputs into one ZIP")
    proc.add_argument("--out", default=None, help="Output directory")

    risk = sub.add_parser("risk", help="Merge scored exports, filter and export CSV")
    risk.add_argument("files", nargs="+", help="Input .csv/.txt files")
    risk.add_argument("--threshold", type=float, default=None, help="Minimum risk score")
    risk.add_argument("--mapping", default=None, help="NID source mapping file")
    risk.add_argument("--out", default=None, help="Output directory")
    risk.add_argument("--report", action="store_true", help="Print the violation report")
    return p.parse_args(argv)


def _collect_sources(paths: list[str], logger) -> list[FileSource]:
    sources: list[FileSource] = []
    for raw in paths:
        path = Path(raw)
        if path.suffix.lower() not in ACCEPTED_SUFFIXES:
            logger.warning(f"skip unsupported file (only .csv/.txt): {path}")
            continue
        if not path.is_file():
            logger.error(f"file not found: {path}")
            continue
        sources.append(FileSource.from_path(path))
    return sources


def _output_dir(args: argparse.Namespace, cfg: PrepConfig) -> Path:
    out = Path(args.out if args.out else cfg.output_directory)
    out.mkdir(parents=True, exist_ok=True)
    return out


def _run_process(args, cfg: PrepConfig, sources: list[FileSource], logger) -> tuple[int, BatchSummary]:
    start = time.perf_counter()
    session = PrepSession(strategy=cfg.strategy, error_log=ErrorLogBuffer(Path(cfg.error_log_directory)))
    with ProgressTracker(len(sources), description="Processing files") as progress:
        results = asyncio.run(session.add_files(sources, progress=progress))

    out_dir = _output_dir(args, cfg)
    if args.zip:
        if session.successful_files():
            name, data = session.export_zip()
            (out_dir / name).write_bytes(data)
            logger.info(f"wrote {out_dir / name}")
        else:
            logger.warning("no processed rows to bundle; ZIP not written")
    else:
        for result in results:
            if not result.ok:
                continue
            name, data = session.export_processed(result.id)
            (out_dir / name).write_bytes(data)
            logger.info(f"wrote {out_dir / name}")

    session.error_log.flush()
    failed = [r for r in results if not r.ok]
    summary = BatchSummary(
        success_files=len(results) - len(failed),
        failed_files=len(failed),
        total_rows=sum(r.stats.valid_rows for r in results if r.stats),
        skipped_rows=sum(r.stats.skipped_rows for r in results if r.stats),
        elapsed_seconds=round(time.perf_counter() - start, 3),
    )
    return (EXIT_PARTIAL_FAILURE if failed else EXIT_SUCCESS_ALL), summary


def _run_risk(args, cfg: PrepConfig, sources: list[FileSource], logger) -> tuple[int, BatchSummary]:
    start = time.perf_counter()
    threshold = args.threshold if args.threshold is not None else cfg.threshold
    session = PrepSession(
        strategy=cfg.strategy,
        threshold=threshold,
        error_log=ErrorLogBuffer(Path(cfg.error_log_directory)),
    )
    with ProgressTracker(len(sources), description="Analyzing files") as progress:
        batch = asyncio.run(session.load_risk_files(sources, progress=progress))

    exit_code = EXIT_PARTIAL_FAILURE if batch.failed_files else EXIT_SUCCESS_ALL
    if batch.message is None:
        if args.mapping:
            try:
                joined = asyncio.run(session.attach_mapping(FileSource.from_path(Path(args.mapping))))
                if not joined.linked:
                    logger.warning("NID mapping matched no rows")
            except TableError as e:
                logger.error(f"mapping: {e}")
                exit_code = EXIT_PARTIAL_FAILURE

        filtered = session.filtered()
        logger.info(f"threshold={session.threshold} matches={len(filtered)} total={len(session.risk_rows)}")
        bands = count_bands(filtered)
        logger.info(f"score bands high={bands['high']} medium={bands['medium']} low={bands['low']}")
        out_dir = _output_dir(args, cfg)
        name, data = session.export_risk_csv()
        (out_dir / name).write_bytes(data)
        logger.info(f"wrote {out_dir / name}")
        if args.report:
            report = session.report(cfg.report_example_limit)
            print(report if report else "(no rows at or above threshold)")
    else:
        exit_code = EXIT_PARTIAL_FAILURE

    session.error_log.flush()
    failed = batch.failed_files
    summary = BatchSummary(
        success_files=len(batch.files) - len(failed),
        failed_files=len(failed),
        total_rows=len(batch.rows),
        skipped_rows=0,
        elapsed_seconds=round(time.perf_counter() - start, 3),
    )
    return exit_code, summary


def main(argv: list[str] | None = None) -> int:
    # NOTE: [] が渡された場合に sys.argv[1:] が混入しないよう None のときのみ読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    try:
        cfg = load_config(config_path, required=args.config is not None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    sources = _collect_sources(args.files, logger)
    if not sources:
        logger.error("no input files (.csv/.txt) to process")
        return EXIT_FATAL

    if args.command == "process":
        exit_code, summary = _run_process(args, cfg, sources, logger)
    else:
        exit_code, summary = _run_risk(args, cfg, sources, logger)

    # render_summary_line は "SUMMARY " 付きなので log_summary 用に除去
    log_summary(render_summary_line(summary)[len("SUMMARY "):])
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
