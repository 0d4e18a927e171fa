from __future__ import annotations

import argparse
import logging

from roleready.core.config import settings
from roleready.db.connection import close_connection, init_db
from roleready.services.catalog_service import seed_catalog


def main() -> None:
    parser = argparse.ArgumentParser(description="Load skills and role benchmarks from a YAML seed file.")
    parser.add_argument("--path", default=settings.seed_catalog_path, help="Seed catalog YAML path")
    args = parser.parse_args()

    logging.basicConfig(level=settings.log_level, format="%(message)s")
    init_db()
    try:
        report = seed_catalog(args.path)
    finally:
        close_connection()

    print(
        f"Seeded {report.skills_created} skills, {report.roles_created} roles, "
        f"{report.benchmarks_upserted} benchmarks into {settings.database_path}"
    )
    for warning in report.warnings:
        print(f"warning: {warning}")


if __name__ == "__main__":
    main()
