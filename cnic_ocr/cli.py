"""Command-line interface for CNIC extraction and CSV export.

Provides subcommands for extracting a single card photo to JSON and for
processing a folder of photos into a CSV file.
"""

import argparse
import asyncio
import csv
import json
import sys
import time
from pathlib import Path

from cnic_ocr.extraction.normalizers import build_upload_payload
from cnic_ocr.ocr.document_processor import DocumentProcessor, ExtractionResult
from cnic_ocr.utils.config import load_config
from cnic_ocr.utils.exceptions import PayloadError
from cnic_ocr.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.webp")
_META_COLUMNS = [
    "filename",
    "status",
    "processing_time_s",
    "failure_kind",
    "reason",
]
_RECORD_COLUMNS = [
    "identity_number",
    "name",
    "father_name",
    "date_of_birth",
    "date_of_expiry",
    "gender",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported photo files in a directory.

    Args:
        input_dir: Directory to scan for photos.

    Returns:
        Sorted list of photo file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _result_row(file_path: Path, result: ExtractionResult) -> dict[str, object]:
    """Flatten an extraction result into a CSV row."""
    row: dict[str, object] = {"filename": file_path.name}
    if result.success:
        row["status"] = "success"
        row.update(result.details.to_dict())
    else:
        row["status"] = "failed"
        row["failure_kind"] = result.kind.value
        row["reason"] = result.reason
        if result.partial_details is not None:
            row.update(result.partial_details.to_dict())
    return row


async def _process_files(
    files: list[Path], processor: DocumentProcessor, verbose: bool
) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = await processor.extract_document_details(
                file_path, file_path.name
            )
            row = _result_row(file_path, result)
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            row = {"filename": file_path.name, "status": "error", "reason": str(exc)}
        row["processing_time_s"] = round(time.time() - start_time, 2)
        rows.append(row)
    return rows


def process_folder(
    input_dir: Path,
    output_csv: Path,
    verbose: bool = False,
    processor: DocumentProcessor | None = None,
) -> dict[str, int]:
    """Extract every card photo in a folder and export the results to CSV.

    Args:
        input_dir: Directory containing photos.
        output_csv: Path for the output CSV file.
        verbose: Whether to print per-file progress.
        processor: Pipeline to use; built from the default config if omitted.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    files = _find_documents(input_dir)
    if not files:
        logger.warning("No photos found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d photos to process", len(files))
    processor = processor or DocumentProcessor(load_config())
    rows = asyncio.run(_process_files(files, processor, verbose))

    _write_csv(rows, output_csv)
    logger.info("Results written to %s", output_csv)

    successful = sum(1 for r in rows if r["status"] == "success")
    summary = {
        "total": len(files),
        "successful": successful,
        "failed": len(files) - successful,
    }
    _print_summary(summary, output_csv)
    return summary


def _write_csv(rows: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction rows to a CSV file with a fixed column order."""
    if not rows:
        return

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(
            f, fieldnames=_META_COLUMNS + _RECORD_COLUMNS, extrasaction="ignore"
        )
        writer.writeheader()
        writer.writerows(rows)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path, processor: DocumentProcessor | None = None
) -> dict[str, object]:
    """Extract one card photo and return a JSON-ready result.

    Args:
        file_path: Path to the photo.
        processor: Pipeline to use; built from the default config if omitted.

    Returns:
        Dictionary with filename, success flag, details, and either the
        upload payload or the failure reason and guidance.
    """
    processor = processor or DocumentProcessor(load_config())
    result = asyncio.run(
        processor.extract_document_details(file_path, file_path.name)
    )

    output: dict[str, object] = {"filename": file_path.name, "success": result.success}
    if result.success:
        output["details"] = result.details.to_dict()
        try:
            output["payload"] = build_upload_payload(result.details)
        except PayloadError as exc:
            output["payload_error"] = str(exc)
    else:
        output["failure_kind"] = result.kind.value
        output["reason"] = result.reason
        output["guidance"] = result.guidance
        if result.partial_details is not None:
            output["details"] = result.partial_details.to_dict()
    output["raw_text"] = result.raw_text
    return output


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="CNIC OCR extractor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of photos")
    batch_parser.add_argument("input_dir", type=Path, help="Input directory with photos")
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

    single_parser = subparsers.add_parser("extract", help="Process a single photo")
    single_parser.add_argument("file", type=Path, help="Card photo to process")
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(
            args.input_dir, args.output, args.verbose, DocumentProcessor(config)
        )
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(args.file, DocumentProcessor(config))
        output_str = json.dumps(result, indent=2)
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_text(output_str)
            print(f"Output written to {args.output}")
        else:
            print(output_str)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
