from __future__ import annotations

import argparse
import signal
import subprocess
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from dotenv import load_dotenv

from gemini_lens.config.loader import ConfigError, LensConfig, load_config, resolve_api_key
from gemini_lens.logging.error_log import ErrorLogBuffer
from gemini_lens.logging.init import log_summary, set_debug, setup_logging
from gemini_lens.models.job_config import GenerationJobConfig
from gemini_lens.remote.client import GenerationError, ImageGenerationClient, guess_mime_type
from gemini_lens.services.archive import ExportError, write_archive
from gemini_lens.services.pipeline import BulkGenerationPipeline
from gemini_lens.services.summary import render_summary_line
from gemini_lens.sheets.reader import IngestionError, default_columns, read_sheet_file

"""Command-line entry point.

Subcommands:
- bulk: generate one image per sheet row and write the ZIP archive
- edit: apply a prompt to a single image
- inspect: show the columns, default selections and first rows of a sheet
- ui: start the Streamlit app

Exit codes: 0 all attempted rows succeeded, 2 some rows failed or the run was
stopped, 1 fatal (configuration, ingestion, credentials, export).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

UI_SCRIPT = Path(__file__).resolve().parent.parent / "ui" / "app.py"


def _load_env_file(path: Path, override: bool = False) -> None:
    """Load .env using python-dotenv; a broken file only produces a warning."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except (OSError, UnicodeDecodeError) as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="gemini-lens", description="Gemini image editing and bulk catalog generation")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=None, help="YAML config file (default: config/lens.yml if present)")
    sub = p.add_subparsers(dest="command", required=True)

    bulk = sub.add_parser("bulk", help="Generate one image per spreadsheet row")
    bulk.add_argument("sheet", type=Path, help=".xlsx / .xlsm / .csv product list")
    bulk.add_argument("--prompt-column", help="Column holding the per-row prompt (default: first column)")
    bulk.add_argument("--filename-column", help="Column used for output file names (default: first name/sku/id column)")
    bulk.add_argument("--baseline", default=None, help="Style prefix added before every prompt ('' to disable)")
    bulk.add_argument("--output", type=Path, default=None, help="Archive path (default: archive name from config)")

    edit = sub.add_parser("edit", help="Edit a single image with a text instruction")
    edit.add_argument("image", type=Path)
    edit.add_argument("--prompt", required=True)
    edit.add_argument("--output", type=Path, default=None)

    inspect = sub.add_parser("inspect", help="Print sheet columns and the first rows, then exit")
    inspect.add_argument("sheet", type=Path)
    inspect.add_argument("--rows", type=int, default=3)

    sub.add_parser("ui", help="Start the browser UI (Streamlit)")
    return p.parse_args(argv)


def _make_client(cfg: LensConfig) -> ImageGenerationClient:
    """Build the Gemini client; raises ConfigError without credentials."""
    api_key = resolve_api_key()
    if api_key is None:
        raise ConfigError("no API key: set GOOGLE_API_KEY (or GEMINI_API_KEY / API_KEY)")
    return ImageGenerationClient(api_key, model=cfg.model)


@contextmanager
def _stop_on_interrupt(pipeline: BulkGenerationPipeline) -> Iterator[None]:
    """First Ctrl-C asks the pipeline to stop after the current row.

    A second Ctrl-C raises KeyboardInterrupt, which also ends a request that
    is hanging.
    """
    interrupted = False

    def _handler(signum, frame):
        nonlocal interrupted
        if interrupted:
            raise KeyboardInterrupt
        interrupted = True
        pipeline.request_stop()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _inspect(sheet_path: Path, limit: int) -> int:
    try:
        sheet = read_sheet_file(sheet_path)
    except IngestionError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    prompt_column, filename_column = default_columns(sheet.columns)
    print(f"FILE: {sheet.source_name} rows={len(sheet.rows)}")
    print(f"  columns={sheet.columns}")
    print(f"  default prompt_column={prompt_column!r} filename_column={filename_column!r}")
    for row in sheet.rows[:limit]:
        # Timestamps and similar cells are shown via isoformat when available
        safe = {k: (v.isoformat() if hasattr(v, "isoformat") else v) for k, v in row.values.items()}
        print(f"    row {row.row_number}: {safe}")
    return EXIT_SUCCESS_ALL


def _bulk(args: argparse.Namespace, cfg: LensConfig) -> int:
    logger = setup_logging()
    try:
        sheet = read_sheet_file(args.sheet)
    except IngestionError as e:
        logger.error(f"ingestion: {e}")
        return EXIT_FATAL
    if not sheet.rows:
        logger.error(f"ingestion: no data rows in {args.sheet}")
        return EXIT_FATAL
    logger.info(f"Loaded {len(sheet.rows)} rows from {sheet.source_name}")

    default_prompt, default_filename = default_columns(sheet.columns)
    job = GenerationJobConfig(
        prompt_column=args.prompt_column or default_prompt,
        filename_column=args.filename_column or default_filename,
        baseline_prompt=cfg.baseline_prompt if args.baseline is None else args.baseline,
    )
    for column in (job.prompt_column, job.filename_column):
        if column not in sheet.columns:
            logger.warning(f"column '{column}' not in first row {sheet.columns}; missing cells read as empty")

    try:
        client = _make_client(cfg)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    pipeline = BulkGenerationPipeline(client, log_capacity=cfg.log_capacity, show_progress=None)
    logger.info(
        f"model={cfg.model} prompt_column={job.prompt_column} filename_column={job.filename_column}"
    )
    try:
        with _stop_on_interrupt(pipeline):
            result = pipeline.run(sheet.rows, job, source_name=sheet.source_name)
    except KeyboardInterrupt:
        logger.error("bulk: interrupted; no archive written")
        return EXIT_FATAL
    if result is None:
        logger.error("bulk run refused: no rows or columns selected")
        return EXIT_FATAL

    if result.failures:
        error_log = ErrorLogBuffer()
        error_log.extend(result.failures)
        try:
            path = error_log.flush()
            logger.info(f"error log written: {path}")
        except OSError as e:
            logger.warning(f"failed to write error log: {e}")

    code = EXIT_SUCCESS_ALL
    if result.results:
        output = args.output or Path(cfg.archive_name)
        try:
            write_archive(result.results, output, folder=cfg.archive_folder)
            logger.info(f"archive written: {output} ({result.generated} images)")
        except ExportError as e:
            logger.error(f"export: {e}")
            code = EXIT_FATAL
    else:
        logger.warning("no images generated; archive not written")

    log_summary(render_summary_line(result)[len("SUMMARY "):])

    if code == EXIT_FATAL:
        return code
    if result.failures or result.stopped:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _edit(args: argparse.Namespace, cfg: LensConfig) -> int:
    logger = setup_logging()
    try:
        image_data = args.image.read_bytes()
    except OSError as e:
        logger.error(f"edit: cannot read {args.image}: {e}")
        return EXIT_FATAL
    if not args.prompt.strip():
        logger.error("edit: prompt is empty")
        return EXIT_FATAL

    try:
        client = _make_client(cfg)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        payload = client.edit_image(image_data, guess_mime_type(args.image.name), args.prompt)
    except GenerationError as e:
        logger.error(f"edit: {e}")
        return EXIT_FATAL

    output = args.output or Path(cfg.edited_file_name)
    try:
        output.write_bytes(payload.data)
    except OSError as e:
        logger.error(f"edit: cannot write {output}: {e}")
        return EXIT_FATAL
    logger.info(f"edited image written: {output} ({payload.mime_type})")
    return EXIT_SUCCESS_ALL


def _ui() -> int:
    return subprocess.call([sys.executable, "-m", "streamlit", "run", str(UI_SCRIPT)])


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None -> read the process arguments; an explicit [] stays empty
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"))

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.command == "inspect":
        return _inspect(args.sheet, args.rows)
    if args.command == "ui":
        return _ui()

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "bulk":
        return _bulk(args, cfg)
    return _edit(args, cfg)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
