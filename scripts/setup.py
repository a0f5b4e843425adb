#!/usr/bin/env python3
"""Setup script for the venue booking API."""

import asyncio
import logging
import sys
from datetime import time
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command
from alembic.config import Config
from sqlalchemy import func, select

from venue_booking.core.database import async_session_factory, close_db
from venue_booking.models import Team, Venue

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


SAMPLE_VENUES = [
    {"name": "Main Hall", "location": "North Campus", "capacity": 120},
    {"name": "Training Pitch", "location": "Sports Ground", "capacity": 40},
    {
        "name": "Studio B",
        "location": "Arts Centre",
        "capacity": 25,
        "working_start_time": time(8, 0),
        "working_end_time": time(20, 0),
    },
]

SAMPLE_TEAMS = ["Under 12s", "Under 16s", "Seniors", "Veterans"]


def setup_database():
    """Bring the schema up to date with Alembic."""
    logger.info("Setting up database...")

    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data():
    """Create sample venues and teams."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing_venues = await db.scalar(select(func.count()).select_from(Venue))
            if existing_venues:
                logger.info("Sample data already exists, skipping...")
                return

            for venue_data in SAMPLE_VENUES:
                db.add(Venue(**venue_data))

            for team_name in SAMPLE_TEAMS:
                db.add(Team(name=team_name))

            await db.commit()
            logger.info(
                f"Sample data created: {len(SAMPLE_VENUES)} venues, {len(SAMPLE_TEAMS)} teams"
            )

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise

    await close_db()


def main():
    """Main setup function."""
    logger.info("Starting venue booking API setup...")

    # Alembic's env.py drives its own event loop
    setup_database()

    asyncio.run(create_sample_data())

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn venue_booking.main:app --reload")


if __name__ == "__main__":
    main()
