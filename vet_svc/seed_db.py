#!/usr/bin/env python3
"""
Seed the configured store with the clinic's demo patients.

Patients are written with upsert, so running the script twice leaves the
same two records (their createdAt is kept).

Usage:
    python seed_db.py [--backend relational|document] [--db-path PATH]
                      [--mongo-uri URI] [--mongo-db NAME] [--dry-run]
"""
import sys
from datetime import date
from pathlib import Path
from typing import List

from core.config import BACKEND_DOCUMENT, BACKEND_RELATIONAL, settings
from core.exceptions import VetServiceError
from models import Patient
from repositories import RecordRepository, build_record_store

DEMO_PATIENTS: List[Patient] = [
    Patient(
        id="PET001",
        name="Luke",
        species="Gato",
        breed="De colores",
        birth_date=date(2024, 10, 24),
        owner_name="Alex",
    ),
    Patient(
        id="PET002",
        name="Güero",
        species="Gato",
        breed="Naranja",
        birth_date=date(2024, 5, 23),
        owner_name="Fresy",
    ),
]


def seed(repository: RecordRepository, dry_run: bool = False) -> int:
    """
    Upsert the demo patients.

    Returns:
        Number of patients written (0 in dry-run mode).
    """
    if dry_run:
        for patient in DEMO_PATIENTS:
            print(f"Would upsert {patient.id} ({patient.name})")
        return 0

    for patient in DEMO_PATIENTS:
        repository.upsert_patient(patient)
        print(f"✅ {patient.id} ({patient.name})")
    return len(DEMO_PATIENTS)


def main():
    """Main entry point for the seed script."""
    import argparse

    parser = argparse.ArgumentParser(description="Insert the demo patients into the record store")
    parser.add_argument(
        "--backend",
        choices=[BACKEND_RELATIONAL, BACKEND_DOCUMENT],
        default=settings.backend,
        help=f"Storage backend (default: {settings.backend})"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help=f"SQLite database file (default: {settings.database_path})"
    )
    parser.add_argument(
        "--mongo-uri",
        type=str,
        default=settings.vet_svc_mongo_uri,
        help="MongoDB connection URI"
    )
    parser.add_argument(
        "--mongo-db",
        type=str,
        default=settings.vet_svc_mongo_db,
        help=f"MongoDB database name (default: {settings.vet_svc_mongo_db})"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be written without touching the store"
    )

    args = parser.parse_args()

    overrides = {
        "vet_svc_backend": args.backend,
        "vet_svc_mongo_uri": args.mongo_uri,
        "vet_svc_mongo_db": args.mongo_db,
    }
    if args.db_path:
        overrides["vet_svc_db_dir"] = str(Path(args.db_path).parent)
        overrides["vet_svc_db_file"] = Path(args.db_path).name
    seed_settings = settings.model_copy(update=overrides)

    print(f"Backend: {seed_settings.backend}")
    repository = RecordRepository(store=build_record_store(seed_settings))
    if args.dry_run:
        seed(repository, dry_run=True)
        sys.exit(0)

    try:
        written = seed(repository)
        total = repository.count_patients()
    except VetServiceError as e:
        print(f"\n❌ Seeding failed: {e.detail}")
        sys.exit(1)
    finally:
        repository.close()

    print(f"\n✅ Seed completed: {written} written, {total} patients in store")


if __name__ == "__main__":
    main()
