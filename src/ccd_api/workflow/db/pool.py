"""
Domain Database Connection Pool

Manages the asyncpg connection pool for the ccdigital database.
Creates the schema from schema.sql on first start.

Schema Evolution:
-----------------
When adding/removing/renaming tables in schema.sql:
1. Update the schema.sql file with new DDL
2. Update DomainDBPool.EXPECTED_TABLES with the new table names
3. For existing deployments, migrate manually; the pool refuses to start
   against a schema whose table set differs from EXPECTED_TABLES
"""

import asyncio
from pathlib import Path
from typing import Optional

import asyncpg
from loguru import logger

SCHEMA_NAME = "ccdigital"


class DomainDBPool:
    """Domain database connection pool manager."""

    EXPECTED_TABLES = {
        "persons",
        "entities",
        "documents",
        "person_documents",
        "files",
        "access_requests",
        "access_request_items",
    }

    def __init__(self, connection_string: str):
        """
        Initialize domain DB pool.

        Args:
            connection_string: PostgreSQL connection string
        """
        self.connection_string = connection_string
        self.pool: Optional[asyncpg.Pool] = None
        self._pool_initialized = False

    async def initialize(self) -> None:
        """Create the pool, validate it and make sure the schema exists."""
        if self._pool_initialized and self.pool is not None:
            logger.debug("Domain DB pool already initialized")
            return

        try:
            logger.info("Initializing domain database pool")

            self.pool = await asyncpg.create_pool(
                self.connection_string,
                min_size=2,
                max_size=10,
                command_timeout=60,  # Query timeout (60 seconds)
                timeout=15,  # Connection timeout (15 seconds)
            )

            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                if result != 1:
                    raise RuntimeError("Pool validation query failed")

            logger.info("Domain DB pool validated")

            await self._ensure_schema()

            self._pool_initialized = True
            logger.success("Domain database initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize domain DB pool: {e}", exc_info=True)
            if self.pool:
                await self.pool.close()
                self.pool = None
            raise

    async def _existing_tables(self, conn) -> set:
        rows = await conn.fetch(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = $1
            ORDER BY table_name
            """,
            SCHEMA_NAME,
        )
        return {row["table_name"] for row in rows}

    async def _ensure_schema(self) -> None:
        """
        Execute schema.sql when the ccdigital schema is missing or empty.

        Raises:
            RuntimeError: If the existing table set does not match EXPECTED_TABLES
        """
        async with self.pool.acquire() as conn:
            schema_exists = await conn.fetchval(
                "SELECT EXISTS (SELECT 1 FROM information_schema.schemata WHERE schema_name = $1)",
                SCHEMA_NAME,
            )

            existing_tables = await self._existing_tables(conn) if schema_exists else set()

            if existing_tables == self.EXPECTED_TABLES:
                logger.info(f"Schema {SCHEMA_NAME} and all {len(existing_tables)} expected tables exist")
                return

            if existing_tables:
                missing_tables = self.EXPECTED_TABLES - existing_tables
                extra_tables = existing_tables - self.EXPECTED_TABLES
                logger.error(
                    "Schema mismatch detected",
                    missing_tables=sorted(missing_tables),
                    extra_tables=sorted(extra_tables),
                )
                raise RuntimeError(
                    f"Schema mismatch in {SCHEMA_NAME}: missing {missing_tables}, extra {extra_tables}. "
                    f"Manual migration required."
                )

            logger.info(f"Schema {SCHEMA_NAME} not found - creating it from schema.sql")

            schema_path = Path(__file__).parent / "schema.sql"
            if not schema_path.exists():
                raise FileNotFoundError(f"schema.sql not found at {schema_path}")

            await conn.execute(schema_path.read_text(encoding="utf-8"))

            created_tables = await self._existing_tables(conn)
            if created_tables != self.EXPECTED_TABLES:
                raise RuntimeError(
                    f"Schema creation incomplete: missing {self.EXPECTED_TABLES - created_tables}, "
                    f"extra {created_tables - self.EXPECTED_TABLES}"
                )

            logger.success(f"All {len(created_tables)} tables created in schema {SCHEMA_NAME}")

    async def close(self) -> None:
        """Close the connection pool gracefully."""
        if self.pool:
            logger.info("Closing domain database pool")
            await self.pool.close()
            self.pool = None
            self._pool_initialized = False
            logger.info("Domain DB pool closed")

    def acquire(self):
        """
        Acquire a database connection from the pool.

        Usage:
            async with pool.acquire() as conn:
                result = await conn.fetchrow("SELECT * FROM ...")
        """
        if not self.pool:
            raise RuntimeError("Domain DB pool not initialized - call initialize() first")
        return self.pool.acquire()

    async def health_check(self) -> bool:
        """
        Check if database connection is healthy.

        Returns:
            True if connection is healthy, False otherwise
        """
        try:
            if not self.pool:
                return False

            async with self.pool.acquire() as conn:
                result = await conn.fetchval("SELECT 1")
                return result == 1
        except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Domain DB health check failed: {e}")
            return False
