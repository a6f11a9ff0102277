"""Seed script for development data.

Run with:  python -m orgchart.seed
Targets the service at ``API_URL`` (default ``http://localhost:8000/api``).
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

from orgchart.directory.client import DirectoryClient
from orgchart.directory.store import DirectoryStore
from orgchart.exceptions import AppError
from orgchart.models.enums import JobRole

logger = logging.getLogger(__name__)

# (key, manager key, fields). Managers are listed before their reports.
ORGANISATION: list[tuple[str, str | None, dict[str, Any]]] = [
    ("ceo", None, {"name": "Thandi", "surname": "Mokoena", "email": "thandi.mokoena@example.com", "role": JobRole.CEO}),
    ("cto", "ceo", {"name": "Pieter", "surname": "van Wyk", "email": "pieter.vanwyk@example.com", "role": JobRole.CTO}),
    ("cfo", "ceo", {"name": "Aisha", "surname": "Patel", "email": "aisha.patel@example.com", "role": JobRole.CFO}),
    (
        "eng",
        "cto",
        {
            "name": "Lerato",
            "surname": "Dlamini",
            "email": "lerato.dlamini@example.com",
            "role": JobRole.ENGINEERING_MANAGER,
        },
    ),
    ("dev1", "eng", {"name": "Sipho", "surname": "Nkosi", "email": "sipho.nkosi@example.com", "role": JobRole.DEVELOPER}),
    ("dev2", "eng", {"name": "Emma", "surname": "Botha", "email": "emma.botha@example.com", "role": JobRole.DEVELOPER}),
    (
        "acc",
        "cfo",
        {"name": "Johan", "surname": "Pretorius", "email": "johan.pretorius@example.com", "role": JobRole.ACCOUNTANT},
    ),
]


async def seed(store: DirectoryStore) -> int:
    """Create every missing employee of the sample organisation. Returns the number created."""
    await store.load()
    by_email = {e.email: e for e in store.list_employees()}
    ids: dict[str, Any] = {}
    created = 0

    for key, manager_key, fields in ORGANISATION:
        existing = by_email.get(fields["email"])
        if existing is not None:
            logger.info("Skipping %s %s, already present as %s", fields["name"], fields["surname"], existing.id)
            ids[key] = existing.id
            continue
        draft = dict(fields)
        if manager_key is not None:
            draft["reporting_manager_id"] = ids[manager_key]
        record = await store.create(draft)
        ids[key] = record.id
        created += 1
        logger.info("Created %s %s (%s) as %s", record.name, record.surname, record.role, record.employee_number)

    return created


async def _main() -> int:
    async with DirectoryClient() as client:
        store = DirectoryStore(client)
        try:
            created = await seed(store)
        except AppError as exc:
            logger.error("Seeding failed: %s (%s)", exc.message, exc.code)
            return 1
    logger.info("Seeding complete: %d employee(s) created", created)
    return 0


def main() -> None:
    """Entry point for the seed script."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    sys.exit(asyncio.run(_main()))


if __name__ == "__main__":
    main()
