"""
Job to seed claim codes.

Creates tables if needed, then creates each code unless it already exists.
Safe to run on every deploy: existing codes keep their expiry and claims.
"""

import argparse
import asyncio
import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from monstervault.db.database import async_session_factory, init_db
from monstervault.models.failure import KnownError
from monstervault.services.claim_codes import ClaimCodeRegistry
from monstervault.services.monster_catalog import MonsterCatalog, get_default_catalog

logger = logging.getLogger(__name__)

# (code, template_id, expires_at)
DEFAULT_CODES: list[tuple[str, str, datetime]] = [
    ("HELLOWORLD", "ice-rare", datetime(2025, 11, 5, tzinfo=UTC)),
]


def parse_expiry(value: str) -> datetime:
    """Parse YYYY-MM-DD or an ISO timestamp; naive values are UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


async def bootstrap_codes(
    codes: list[tuple[str, str, datetime]],
    session_factory: async_sessionmaker[AsyncSession] = async_session_factory,
    catalog: MonsterCatalog | None = None,
) -> dict[str, bool]:
    """
    Create claim codes idempotently.

    Returns:
        Dict mapping normalized code to True if it was created by this run
    """
    catalog = catalog or get_default_catalog()
    registry = ClaimCodeRegistry(session_factory)
    results: dict[str, bool] = {}

    for code, template_id, expires_at in codes:
        try:
            catalog.resolve(template_id)
            claim_code, created = await registry.create(code, template_id, expires_at)
        except KnownError as e:
            logger.warning("Skipping code %s: %s", code, e.message)
            continue

        results[claim_code.code] = created
        if created:
            logger.info("Created code %s -> %s", claim_code.code, template_id)
        else:
            logger.info("Code %s already exists, left unchanged", claim_code.code)

    return results


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for seeding claim codes."""
    parser = argparse.ArgumentParser(description="Seed claim codes")
    parser.add_argument("--code", help="Code to create (defaults to the built-in list)")
    parser.add_argument("--template", help="Monster template id, e.g. ice-rare")
    parser.add_argument("--expires", help="Expiry as YYYY-MM-DD or ISO timestamp")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.code:
        if not args.template or not args.expires:
            parser.error("--code requires --template and --expires")
        codes = [(args.code, args.template, parse_expiry(args.expires))]
    else:
        codes = DEFAULT_CODES

    async def _run() -> None:
        await init_db()
        await bootstrap_codes(codes)

    asyncio.run(_run())


if __name__ == "__main__":
    main()
