"""Person repository (read only)."""

from typing import Optional

import asyncpg

from ccd_api.workflow.models.person import Person


class PersonRepository:
    """Person lookups."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def find_by_id(self, person_id: int) -> Optional[Person]:
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT id, id_type, id_number, first_name, last_name, email
                FROM ccdigital.persons
                WHERE id = $1
                """,
                person_id,
            )
            return Person.model_validate(dict(row)) if row else None
