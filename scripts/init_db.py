#!/usr/bin/env python3
"""
Initialize database with all tables
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import init_models
from app.models.base import Base
from app.utils.logging import get_logger, setup_logging

logger = get_logger("init_db")


async def init_database():
    """Create all tables"""
    await init_models()
    logger.info("Created tables: %s", ", ".join(t.name for t in Base.metadata.sorted_tables))


if __name__ == "__main__":
    setup_logging()
    asyncio.run(init_database())
