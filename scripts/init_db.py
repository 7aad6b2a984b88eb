"""Script to initialize the database."""

import asyncio

from sqlalchemy import MetaData, text

from app.database import engine
from app.models import collections


def build_metadata() -> MetaData:
    """Collect every record store table into one metadata object."""
    metadata = MetaData()
    for table in collections.values():
        table.to_metadata(metadata)
    return metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        # gen_random_uuid()
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(build_metadata().create_all)

    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
