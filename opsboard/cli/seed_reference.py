"""Seed incident reference data from a YAML file into the database.

This populates the collections the import resolver reads:
- incident_types
- criticalities
- environments
- segments (nested under their environment in the YAML)

Records are upserted by ``ref_id``, so running it again updates names
and attributes in place.

Usage:
    opsboard-seed
    opsboard-seed --file path/to/reference-data.yaml
    opsboard-seed --dry-run
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

import yaml
from beanie import Document

from opsboard.database import close_db, init_db
from opsboard.models import Criticality, Environment, IncidentType, Segment

DEFAULT_DATA_PATH = Path(__file__).parent.parent / "data" / "reference-data.yaml"


def load_reference_file(path: Path) -> dict:
    """Load the reference-data YAML file."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


async def _upsert(model: type[Document], fields: dict[str, Any], dry_run: bool) -> None:
    if dry_run:
        print(f"  [DRY RUN] Would upsert {model.__name__}: {fields['ref_id']} - {fields['name']}")
        return

    existing = await model.find_one(model.ref_id == fields["ref_id"])
    if existing:
        for key, value in fields.items():
            setattr(existing, key, value)
        await existing.save()
    else:
        await model(**fields).insert()


async def seed_reference_data(data: dict, dry_run: bool = False) -> dict[str, int]:
    """Upsert every reference record in ``data``.

    Returns:
        Count of records processed per collection.
    """
    counts = {"incident_types": 0, "criticalities": 0, "environments": 0, "segments": 0}

    for item in data.get("incident_types", []):
        await _upsert(IncidentType, dict(item), dry_run)
        counts["incident_types"] += 1

    for item in data.get("criticalities", []):
        await _upsert(Criticality, dict(item), dry_run)
        counts["criticalities"] += 1

    for item in data.get("environments", []):
        env = dict(item)
        segments = env.pop("segments", None) or []
        await _upsert(Environment, env, dry_run)
        counts["environments"] += 1

        for segment in segments:
            await _upsert(Segment, {**segment, "environment_id": env["ref_id"]}, dry_run)
            counts["segments"] += 1

    return counts


async def _run(path: Path, dry_run: bool) -> dict[str, int]:
    data = load_reference_file(path)
    if dry_run:
        return await seed_reference_data(data, dry_run=True)

    await init_db()
    try:
        return await seed_reference_data(data)
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed incident reference data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=DEFAULT_DATA_PATH,
        help=f"Reference data YAML (default: {DEFAULT_DATA_PATH})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be seeded without changing the database",
    )
    args = parser.parse_args(argv)

    if not args.file.exists():
        print(f"Reference data file not found at: {args.file}")
        return 1

    print(f"Loading reference data from: {args.file}")
    try:
        counts = asyncio.run(_run(args.file, args.dry_run))
    except yaml.YAMLError as e:
        print(f"Error: invalid reference data file: {e}")
        return 1

    print()
    for collection, count in counts.items():
        print(f"  Processed {count} {collection.replace('_', ' ')}")

    print()
    if args.dry_run:
        print("[DRY RUN] No changes were made to the database.")
    else:
        print("All reference data seeded successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
