"""Command-line interface for batch ID extraction and CSV export.

Provides subcommands for processing folders of label scans, a single
image, or a text file of lines that were already OCR'd elsewhere.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from ngid.batch.session import BatchResult, BatchSession, Scope
from ngid.extraction.consensus import extract_ids
from ngid.ocr.image_processor import ImageProcessor, ImageResult
from ngid.utils.config import AppConfig, Engine, load_config
from ngid.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.bmp", "*.gif", "*.tiff", "*.tif")
_CSV_COLUMNS = [
    "filename",
    "status",
    "ids",
    "line_count",
    "variant_count",
    "api_status",
    "error",
]


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan for images.

    Returns:
        Sorted list of image file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Fold command-line flags into the loaded configuration."""
    if getattr(args, "api_key", None):
        config.ocr_space.api_key = args.api_key
    if getattr(args, "strip_height", None):
        config.preprocessing.strip_height_cm = args.strip_height
    if getattr(args, "no_strips", False):
        config.preprocessing.strips_enabled = False
    return config


def _result_row(result: ImageResult) -> dict[str, object]:
    return {
        "filename": result.filename,
        "status": "success" if result.ok else "failed",
        "ids": " ".join(result.ids),
        "line_count": len(result.lines),
        "variant_count": result.variant_count,
        "api_status": result.api_status,
        "error": result.error,
    }


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig | None = None,
    strict: bool = False,
    scope: Scope = Scope.IMAGE,
    engine: Engine | None = None,
    verbose: bool = False,
) -> BatchResult | None:
    """Process all images in a folder and export results to CSV.

    Args:
        input_dir: Directory containing label images.
        output_csv: Path for the output CSV file.
        config: Application configuration; loaded from disk when omitted.
        strict: Whether the stricter consensus tier applies.
        scope: Aggregation scope for the final identifier list.
        engine: Override for the configured OCR engine selection.
        verbose: Whether to print per-file progress.

    Returns:
        The batch result, or ``None`` when the folder holds no images.
    """
    config = config or load_config()
    session = BatchSession(ImageProcessor(config, engine))

    files = _find_images(input_dir)
    if not files:
        logger.warning("No images found in %s", input_dir)
        return None

    session.add_files(files)
    logger.info("Found %d images to process", len(session.files))
    if verbose:
        for i, path in enumerate(session.files, 1):
            print(f"Queued [{i}/{len(session.files)}]: {path.name}")

    start_time = time.time()
    try:
        batch = session.run(strict=strict, scope=scope)
    finally:
        session.processor.close()
    elapsed = round(time.time() - start_time, 2)

    _write_csv([_result_row(r) for r in batch.results], output_csv)
    logger.info("Results written to %s in %.2fs", output_csv, elapsed)

    _print_summary(batch, output_csv)
    return batch


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write per-image results to a CSV file.

    Args:
        rows: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=_CSV_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(batch: BatchResult, output_csv: Path) -> None:
    """Print batch processing summary and the unique IDs to stdout.

    Args:
        batch: Result of the batch run.
        output_csv: Path to the output CSV.
    """
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Images:     {len(batch.results)}")
    print(f"Successful: {batch.successful}")
    print(f"Failed:     {batch.failed}")
    print(f"Unique IDs: {len(batch.unique_ids)}")
    print(f"Output:     {output_csv}")
    if batch.unique_ids:
        print()
        print("\n".join(batch.unique_ids))
    else:
        print("\nNo IDs extracted")


def extract_single(
    file_path: Path,
    config: AppConfig | None = None,
    strict: bool = False,
    engine: Engine | None = None,
) -> dict[str, object]:
    """Process a single image and return structured results.

    Returns:
        Dictionary with filename, ids, api status and raw lines.
    """
    config = config or load_config()
    processor = ImageProcessor(config, engine)
    try:
        result = processor.process(file_path, file_path.name, strict=strict)
    finally:
        processor.close()
    return {
        "filename": result.filename,
        "ids": result.ids,
        "api_status": result.api_status,
        "dominant_prefix": result.consensus.dominant_prefix if result.consensus else None,
        "lines": result.lines,
    }


def extract_from_lines(
    text_file: Path,
    config: AppConfig | None = None,
    strict: bool = False,
    per_image: bool = True,
) -> list[str]:
    """Run consensus over a text file holding one raw OCR line per row."""
    config = config or load_config()
    lines = text_file.read_text(encoding="utf-8").splitlines()
    consensus = extract_ids(lines, per_image, strict, config.consensus)
    return consensus.sorted_ids()


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--strict", action="store_true", help="Require more agreeing OCR reads"
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")


def _add_ocr_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-e",
        "--engine",
        choices=[e.value for e in Engine],
        help="OCR backends to use (default: from config)",
    )
    parser.add_argument("--api-key", help="OCR.Space API key")
    parser.add_argument(
        "--no-strips", action="store_true", help="OCR the whole image at once"
    )
    parser.add_argument(
        "--strip-height",
        type=float,
        help="Strip height in centimeters (default: from config)",
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="NG label ID extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of images")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with images")
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "--scope",
        choices=[s.value for s in Scope],
        default=Scope.IMAGE.value,
        help="Pool lines per image or across the whole batch (default: image)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )
    _add_common_args(batch_parser)
    _add_ocr_args(batch_parser)

    single_parser = subparsers.add_parser("extract", help="Process a single image")
    single_parser.add_argument("file", type=Path, help="Image file to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    _add_common_args(single_parser)
    _add_ocr_args(single_parser)

    lines_parser = subparsers.add_parser(
        "lines", help="Run consensus over a text file of OCR lines"
    )
    lines_parser.add_argument("file", type=Path, help="Text file, one line per row")
    lines_parser.add_argument(
        "--global",
        action="store_true",
        dest="global_scope",
        help="Treat the lines as coming from many images",
    )
    _add_common_args(lines_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = load_config(args.config)
    setup_logging(config.log_level)
    config = _apply_overrides(config, args)
    strict = args.strict or config.consensus.strict

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir,
            args.output,
            config,
            strict,
            Scope(args.scope),
            Engine(args.engine) if args.engine else None,
            args.verbose,
        )
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(
            args.file, config, strict, Engine(args.engine) if args.engine else None
        )
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    elif args.command == "lines":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        ids = extract_from_lines(args.file, config, strict, not args.global_scope)
        print("\n".join(ids) if ids else "No IDs extracted")


if __name__ == "__main__":
    main()
