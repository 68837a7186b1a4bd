"""Script to create all tables directly, for local development without Alembic."""

import asyncio

from ezhealth.config import settings
from ezhealth.database import create_engine_from_settings
from ezhealth.models import combined_metadata


async def init_db() -> None:
    """Create all tables."""
    engine = create_engine_from_settings(settings)
    async with engine.begin() as conn:
        await conn.run_sync(combined_metadata().create_all)
    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
