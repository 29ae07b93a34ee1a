"""One-off helper to create the chat tables in the Supabase Postgres database.

Usage (locally, with POSTGRES_* set in the environment or .env):

    python scripts/create_tables.py            # create missing tables
    python scripts/create_tables.py --drop     # drop and recreate

Notes:
- Runs against the same asyncpg URL the service uses, so the Supabase pooler
  settings (no prepared statements) apply here too.
- Automatic table creation is not done at service startup.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.core.config import settings  # noqa: E402
from app.core.logger import get_logger  # noqa: E402
from pkg.db_util.postgres_conn import PostgresConnection  # noqa: E402
from pkg.db_util.sql_alchemy.declarative_base import Base  # noqa: E402
from pkg.db_util.types import PostgresConfig  # noqa: E402

# Register models on Base.metadata
from app.chat.repository.sql_schema import chat as _chat  # noqa: E402,F401
from app.user.repository.sql_schema import user as _user  # noqa: E402,F401

logger = get_logger("create_tables")


async def main(drop: bool) -> None:
    if not settings.POSTGRES_HOST:
        print("❌ ERROR: POSTGRES_HOST is not set.")
        sys.exit(2)

    conn = PostgresConnection(
        PostgresConfig(
            host=settings.POSTGRES_HOST,
            port=settings.POSTGRES_PORT,
            username=settings.POSTGRES_USER or "",
            password=settings.POSTGRES_PASSWORD or "",
            database=settings.POSTGRES_DB,
        ),
        logger,
    )
    try:
        engine = await conn.get_engine()
        async with engine.begin() as db:
            if drop:
                print("\n🗑️  Dropping old tables (if any)...")
                await db.run_sync(Base.metadata.drop_all)

            print("\n🔨 Creating tables from SQLAlchemy metadata...")
            await db.run_sync(Base.metadata.create_all)

            result = await db.execute(text(
                "SELECT table_name FROM information_schema.tables "
                "WHERE table_schema = 'public' ORDER BY table_name"
            ))
            tables = [row[0] for row in result]
            print(f"✅ Tables in database: {', '.join(tables)}")
    except SQLAlchemyError as e:
        print(f"\n❌ SQLAlchemy error: {e}")
        raise
    finally:
        await conn.close_engine()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--drop", action="store_true", help="drop existing tables first")
    args = parser.parse_args()
    asyncio.run(main(args.drop))
