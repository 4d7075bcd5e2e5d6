# This project was developed with assistance from AI tools.
"""CLI entrypoint for reference data seeding.

Usage:
    python -m fbo_api.seed              # Seed provinces and districts
    python -m fbo_api.seed --retry-dispatches  # Also replay the dispatch outbox
"""

import argparse
import asyncio
import json
import logging

from db.database import SessionLocal

from .services.dispatch import retry_pending_dispatches
from .services.reference import seed_reference_data


async def main(retry_dispatches: bool = False) -> None:
    """Seed reference data and optionally drain pending dispatches."""
    async with SessionLocal() as session:
        result = await seed_reference_data(session)
        if retry_dispatches:
            result["dispatches"] = await retry_pending_dispatches(session)
    print(json.dumps(result, indent=2, default=str))


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    parser = argparse.ArgumentParser(description="Seed FBO portal reference data")
    parser.add_argument(
        "--retry-dispatches",
        action="store_true",
        help="Replay pending notification and certificate dispatches",
    )
    args = parser.parse_args()
    asyncio.run(main(retry_dispatches=args.retry_dispatches))
