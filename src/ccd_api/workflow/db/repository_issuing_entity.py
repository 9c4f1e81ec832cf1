"""Issuing entity repository (read only)."""

from typing import Optional

import asyncpg

from ccd_api.workflow.models.person import IssuingEntity


class IssuingEntityRepository:
    """Requesting organization lookups."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_by_id(self, entity_id: int) -> Optional[IssuingEntity]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT id, name, status FROM ccdigital.entities WHERE id = $1",
                entity_id,
            )
            return IssuingEntity.model_validate(dict(row)) if row else None
