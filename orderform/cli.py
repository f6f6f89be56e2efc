"""Command-line interface for reading order form photos.

Provides subcommands to print the labeled OCR text of a form, extract one
form to JSON, re-parse a saved labeled text file, and process a folder of
forms into CSV.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from orderform.extraction.field_extractor import FieldExtractor
from orderform.pipeline import FormExtraction, FormPipeline
from orderform.preprocessing.loader import SUPPORTED_EXTENSIONS, SourceNotFoundError
from orderform.schemas import LineItem, OrderRecord
from orderform.utils.config import AppConfig, load_config
from orderform.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "average_confidence",
    "needs_review",
    "error",
]
_HEADER_COLUMNS = [name for name in OrderRecord.model_fields if name != "items"]
_ITEM_COLUMNS = [f"item_{name}" for name in LineItem.model_fields]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported form images in a directory.

    Args:
        input_dir: Directory to scan.

    Returns:
        Sorted list of image paths.
    """
    return sorted(
        path
        for path in input_dir.iterdir()
        if path.is_file() and path.suffix.lower() in SUPPORTED_EXTENSIONS
    )


def _extraction_to_dict(extraction: FormExtraction) -> dict[str, object]:
    """Serialize a form extraction for JSON output."""
    return {
        "filename": extraction.source_path.name,
        "record": extraction.record.model_dump(),
        "average_confidence": round(extraction.average_confidence, 1),
        "skew_angle": extraction.skew_angle,
        "regions": {
            name: {"text": result.text, "confidence": round(result.confidence, 1)}
            for name, result in extraction.regions.items()
        },
        "warnings": extraction.warnings,
        "labeled_text": extraction.labeled_text,
    }


def _extraction_to_row(extraction: FormExtraction) -> dict[str, object]:
    """Flatten a form extraction into one CSV row."""
    data = extraction.record.model_dump()
    items = data.pop("items")
    row: dict[str, object] = {
        "filename": extraction.source_path.name,
        "status": "success",
        "average_confidence": round(extraction.average_confidence, 1),
        "needs_review": bool(extraction.warnings),
        "error": None,
    }
    row.update(data)
    if items:
        row.update({f"item_{key}": value for key, value in items[0].items()})
    return row


def process_folder(
    input_dir: Path,
    output_csv: Path,
    config: AppConfig | None = None,
    verbose: bool = False,
    pipeline: FormPipeline | None = None,
) -> dict[str, int]:
    """Process all form images in a folder and export results to CSV.

    A file that cannot be read is recorded as a failed row; the batch
    carries on with the next file.

    Args:
        input_dir: Directory containing form images.
        output_csv: Path for the output CSV file.
        config: Application configuration; loaded from disk when omitted.
        verbose: Whether to print per-file progress.
        pipeline: Pipeline to use; built from ``config`` when omitted.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    pipeline = pipeline or FormPipeline(config or load_config())

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No form images found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d form images to process", len(files))

    rows: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            row = _extraction_to_row(pipeline.process(file_path))
            row["processing_time_s"] = round(time.time() - start_time, 2)
            rows.append(row)
            successful += 1
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            rows.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "error": str(exc),
                }
            )
            failed += 1

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write batch rows to a CSV file with a fixed column order.

    Args:
        rows: One dictionary per processed file.
        output_path: Path for the output CSV file.
    """
    if not rows:
        return

    columns = _META_COLUMNS + _HEADER_COLUMNS + _ITEM_COLUMNS

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    """Print batch processing summary to stdout."""
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def _emit(output: str, destination: Path | None) -> None:
    """Print ``output`` or write it to ``destination``."""
    if destination:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(output)
        print(f"Output written to {destination}")
    else:
        print(output)


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Carpet/rug order form OCR",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Configuration file (default: configs/config.yaml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    ocr_parser = subparsers.add_parser("ocr", help="Print the labeled OCR text")
    ocr_parser.add_argument("file", type=Path, help="Form image to read")
    ocr_parser.add_argument("-o", "--output", type=Path, help="Output text file")

    single_parser = subparsers.add_parser("extract", help="Extract a single form")
    single_parser.add_argument("file", type=Path, help="Form image to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    parse_parser = subparsers.add_parser(
        "parse", help="Extract fields from a saved labeled text file"
    )
    parse_parser.add_argument("file", type=Path, help="Labeled text file")
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of forms")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with form images"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        config = load_config(args.config)
    except ValueError as exc:
        _fail(f"Invalid configuration: {exc}")
    setup_logging(config.log_level)

    if args.command == "parse":
        if not args.file.is_file():
            _fail(f"{args.file} does not exist")
        record = FieldExtractor(config.extraction).extract(args.file.read_text())
        _emit(json.dumps(record.model_dump(), indent=2), args.output)
        return

    if args.command == "batch":
        if not args.input_dir.is_dir():
            _fail(f"{args.input_dir} is not a directory")
        process_folder(args.input_dir, args.output, config, args.verbose)
        return

    pipeline = FormPipeline(config)
    try:
        if args.command == "ocr":
            _emit(pipeline.recognize_regions(args.file).labeled_text, args.output)
        else:
            extraction = pipeline.process(args.file)
            _emit(
                json.dumps(_extraction_to_dict(extraction), indent=2), args.output
            )
    except SourceNotFoundError as exc:
        _fail(str(exc))


if __name__ == "__main__":
    main()
