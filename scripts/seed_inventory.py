#!/usr/bin/env python
"""Seed a local database with size bands and barcode labels.

This script:
1. Creates missing tables and indexes
2. Inserts the default size bands (or skips those that exist)
3. Provisions labels for every band and position

Usage:
    # Seed defaults with 20 labels per series
    DB_URL=sqlite+aiosqlite:///./shelfmark.db python scripts/seed_inventory.py --count 20

    # Only provision one series
    python scripts/seed_inventory.py --series dgk --count 50

    # Show inventory counters
    python scripts/seed_inventory.py --summary
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from shelfmark.core.codes import POSITION_DOWN, POSITION_LEVEL, POSITION_OTHER, parse_code
from shelfmark.infra.database import close_db_engine, create_schema, get_db_session
from shelfmark.infra.logging import get_logger, setup_logging
from shelfmark.models import Barcode, SizeBand
from shelfmark.services.inventory_admin import InventoryAdminService

setup_logging()
logger = get_logger(__name__)


# name, min_width, max_width, height_threshold (all mm)
DEFAULT_BANDS = [
    ("gk", 0, 129, 190),
    ("i", 130, 149, 200),
    ("ik", 150, 169, 200),
    ("rk", 170, None, 230),
]

POSITIONS = (POSITION_DOWN, POSITION_LEVEL, POSITION_OTHER)


async def seed_bands() -> dict[str, int]:
    """Insert default bands that do not exist yet.

    Returns:
        Mapping of band name to id
    """
    async with get_db_session() as session:
        existing = {band.name: band for band in (await session.execute(select(SizeBand))).scalars()}

        for name, min_width, max_width, threshold in DEFAULT_BANDS:
            if name in existing:
                continue
            band = SizeBand(
                name=name,
                min_width=min_width,
                max_width=max_width,
                height_threshold=threshold,
                equal_heights=[],
            )
            session.add(band)
            existing[name] = band
            logger.info("Size band created", name=name, min_width=min_width, max_width=max_width)

        await session.flush()
        return {name: band.id for name, band in existing.items()}


async def seed_series(series: str, count: int, band_id: int | None) -> int:
    """Provision `count` labels for one series, skipping existing codes.

    Returns:
        Number of labels created
    """
    async with get_db_session() as session:
        stmt = select(Barcode.code).where(Barcode.series == series)
        existing = set((await session.execute(stmt)).scalars())

        created = 0
        for rank in range(1, count + 1):
            code = parse_code(f"{series}{rank:03d}").code
            if code in existing:
                continue
            session.add(Barcode(code=code, size_band_id=band_id, rank_in_series=rank))
            created += 1

        logger.info("Series provisioned", series=series, created=created)
        return created


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Seed size bands and barcode labels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--count",
        type=int,
        default=20,
        help="Labels per series (default: 20)",
    )
    parser.add_argument(
        "--series",
        type=str,
        help="Comma-separated series to provision instead of all defaults",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print inventory counters and exit",
    )

    return parser.parse_args()


async def main() -> int:
    """Main entry point."""
    args = parse_args()

    try:
        await create_schema()

        if args.summary:
            async with get_db_session() as session:
                summary = await InventoryAdminService(session).summary()
            print("\nInventory summary:")
            print("-" * 40)
            for key, value in summary.model_dump().items():
                print(f"  {key}: {value}")
            return 0

        band_ids = await seed_bands()

        if args.series:
            targets = [s.strip().lower() for s in args.series.split(",") if s.strip()]
        else:
            targets = [f"{pos}{name}" for name, *_ in DEFAULT_BANDS for pos in POSITIONS]

        total = 0
        for series in targets:
            total += await seed_series(series, args.count, band_ids.get(series[1:]))

        print(f"\nCreated {total} labels across {len(targets)} series")
        return 0

    finally:
        await close_db_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
