"""Bulk incident import from the command line.

Commands:
    validate   Validate a spreadsheet and report invalid rows
    run        Validate a spreadsheet and commit its valid rows
    template   Write an example import file
"""

import argparse
import asyncio
import sys
from pathlib import Path

from opsboard.config import settings
from opsboard.database import close_db, init_db
from opsboard.services.import_service import (
    BeanieIncidentStore,
    FormatError,
    ImportOutcome,
    ImportPipeline,
    ReferenceDataError,
    TemplateFormat,
    build_template,
    record_import_audit,
)


def print_report(outcome: ImportOutcome) -> None:
    """Print the pre-commit summary and every invalid row."""
    summary = outcome.summary
    print(f"Rows processed: {summary.total_processed}")
    print(f"  Valid:   {summary.valid}")
    print(f"  Invalid: {summary.invalid}")

    for candidate in outcome.invalid:
        print(f"  Row {candidate.source_row_index}: {'; '.join(candidate.errors)}")
        for warning in candidate.warnings:
            print(f"    warning: {warning}")


def _new_pipeline(batch_size: int | None = None) -> ImportPipeline:
    return ImportPipeline(
        BeanieIncidentStore(),
        batch_size=batch_size or settings.import_batch_size,
        duplicate_check_concurrency=settings.duplicate_check_concurrency,
        max_rows=settings.import_max_rows,
    )


async def validate_file(path: Path) -> int:
    """Validate a file without writing anything."""
    await init_db()
    try:
        pipeline = _new_pipeline()
        pipeline.select_file(path.name, path.read_bytes())
        try:
            outcome = await pipeline.process()
        except (FormatError, ReferenceDataError) as e:
            print(f"Error: {e}")
            return 1
        print_report(outcome)
        return 0
    finally:
        await close_db()


async def run_import(path: Path, created_by: str | None, batch_size: int | None) -> int:
    """Validate a file and commit its valid rows."""
    await init_db()
    try:
        pipeline = _new_pipeline(batch_size)
        pipeline.select_file(path.name, path.read_bytes())
        try:
            outcome = await pipeline.process()
        except (FormatError, ReferenceDataError) as e:
            print(f"Error: {e}")
            return 1
        print_report(outcome)

        if outcome.valid_count == 0:
            print("Nothing to import.")
            return 1

        author = created_by or settings.default_created_by
        result = await pipeline.commit(
            author,
            on_progress=lambda progress: print(f"  {progress:5.1f}%"),
        )
        await record_import_audit(result, author)

        print(f"Duplicates skipped: {pipeline.duplicate_count}")
        print(f"Imported: {result.success_count}")
        print(f"Failed:   {result.error_count}")
        for detail in result.error_details:
            print(f"  {detail}")
        return 0 if result.error_count == 0 else 1
    finally:
        await close_db()


def write_template(path: Path, fmt: TemplateFormat) -> int:
    """Write the example import file."""
    content, _, _ = build_template(fmt)
    path.write_bytes(content)
    print(f"Template written to {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Opsboard bulk incident import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s validate incidents.xlsx
  %(prog)s run incidents.csv --created-by "Ana Souza"
  %(prog)s template example.xlsx --format xlsx
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    validate_parser = subparsers.add_parser("validate", help="Validate a file")
    validate_parser.add_argument("file", type=Path, help="CSV, XLSX or XLS file")

    run_parser = subparsers.add_parser("run", help="Validate and import a file")
    run_parser.add_argument("file", type=Path, help="CSV, XLSX or XLS file")
    run_parser.add_argument("--created-by", "-u", help="Operator name stamped on incidents")
    run_parser.add_argument("--batch-size", "-b", type=int, help="Records per batch")

    template_parser = subparsers.add_parser("template", help="Write an example file")
    template_parser.add_argument("output", type=Path, help="Output path")
    template_parser.add_argument(
        "--format", "-f",
        choices=[f.value for f in TemplateFormat],
        default=TemplateFormat.CSV.value,
        help="File format (default: csv)",
    )

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "template":
            return write_template(args.output, TemplateFormat(args.format))

        if not args.file.is_file():
            print(f"Error: File '{args.file}' not found.")
            return 1

        if args.command == "validate":
            return asyncio.run(validate_file(args.file))

        if args.command == "run":
            if args.batch_size is not None and args.batch_size < 1:
                print("Error: --batch-size must be at least 1.")
                return 1
            return asyncio.run(run_import(args.file, args.created_by, args.batch_size))

    except KeyboardInterrupt:
        print("\nInterrupted")
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
