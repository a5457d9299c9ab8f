"""
Initialize database tables for the sql storage backend.

Usage:
    python -m scripts.init_db
"""
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hcp.config import settings
from hcp.database import build_engine, init_db


async def init():
    """Create all tables."""
    settings.validate_startup()
    engine = build_engine(settings)
    print("Creating database tables...")
    try:
        await init_db(engine)
    finally:
        await engine.dispose()
    print("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init())
