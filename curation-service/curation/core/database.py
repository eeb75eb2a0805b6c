"""
PostgreSQL database manager with connection pooling.

Provides an async interface to PostgreSQL used by the database storage
backend for Place documents.
"""
import asyncpg
from typing import Optional, List, Dict, Any
from loguru import logger
from contextlib import asynccontextmanager

from curation.config import settings


PLACES_TABLE_DDL = """
    CREATE TABLE IF NOT EXISTS places (
        place_id VARCHAR PRIMARY KEY,
        creator_id VARCHAR,
        document JSONB NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
"""


class DatabaseManager:
    """
    Manages PostgreSQL connections and operations.

    Features:
    - Connection pooling
    - Schema bootstrap for the places table
    """

    def __init__(self):
        self.pool: Optional[asyncpg.Pool] = None
        self._connected = False

    async def connect(self) -> None:
        """
        Establish connection pool to PostgreSQL and make sure the places
        table exists.
        """
        try:
            logger.info(f"Connecting to PostgreSQL: {settings.postgres_host}:{settings.postgres_port}")
            logger.debug(f"Database: {settings.postgres_db}")

            self.pool = await asyncpg.create_pool(
                host=settings.postgres_host,
                port=settings.postgres_port,
                database=settings.postgres_db,
                user=settings.postgres_user,
                password=settings.postgres_password,
                min_size=settings.postgres_min_connections,
                max_size=settings.postgres_max_connections,
                command_timeout=settings.postgres_command_timeout,
                timeout=10
            )

            async with self.pool.acquire() as conn:
                await conn.execute(PLACES_TABLE_DDL)

            self._connected = True
            logger.info("PostgreSQL connection pool established")

        except asyncpg.exceptions.InvalidPasswordError as e:
            logger.error(f"PostgreSQL authentication failed: {e}")
            self._connected = False
            raise
        except Exception as e:
            logger.error(f"PostgreSQL connection failed: {e}")
            self._connected = False
            raise

    async def disconnect(self) -> None:
        """Close connection pool gracefully."""
        if self.pool:
            await self.pool.close()
            self._connected = False
            logger.info("PostgreSQL connection pool closed")

    @asynccontextmanager
    async def acquire(self):
        """
        Acquire a connection from the pool.

        Usage:
            async with db.acquire() as conn:
                result = await conn.fetch("SELECT * FROM places")
        """
        if not self._connected or not self.pool:
            raise RuntimeError("Database not connected")

        async with self.pool.acquire() as connection:
            yield connection

    async def execute(self, query: str, *args) -> str:
        """Execute a query without returning results."""
        async with self.acquire() as conn:
            result = await conn.execute(query, *args)
            logger.debug(f"Executed: {query.strip()[:80]} | Result: {result}")
            return result

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """Fetch a single row as a dictionary (None if no row)."""
        async with self.acquire() as conn:
            row = await conn.fetchrow(query, *args)
            return dict(row) if row else None

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        """Fetch all rows as dictionaries."""
        async with self.acquire() as conn:
            rows = await conn.fetch(query, *args)
            return [dict(row) for row in rows]

    @property
    def is_connected(self) -> bool:
        """Check if connected to database."""
        return self._connected


# Global database manager instance
db_manager = DatabaseManager()
