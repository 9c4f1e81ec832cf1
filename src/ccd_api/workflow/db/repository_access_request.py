"""
Access Request Repository

Persistence of access requests and their items. Status changes are
compare-and-swap updates so two concurrent decisions cannot both win.
"""

from datetime import datetime
from typing import Dict
from typing import List
from typing import Optional

import asyncpg
from loguru import logger

from ccd_api.workflow.enums import AccessRequestStatus
from ccd_api.workflow.models.access_request import AccessRequest
from ccd_api.workflow.models.access_request import AccessRequestItem

_SELECT_REQUESTS = """
    SELECT
        ar.*,
        e.name AS entity_name,
        TRIM(p.first_name || ' ' || p.last_name) AS person_display_name
    FROM ccdigital.access_requests ar
    JOIN ccdigital.entities e ON e.id = ar.entity_id
    JOIN ccdigital.persons p ON p.id = ar.person_id
"""

_SELECT_ITEMS = """
    SELECT i.id, i.access_request_id, i.person_document_id, d.title AS document_title
    FROM ccdigital.access_request_items i
    JOIN ccdigital.person_documents pd ON pd.id = i.person_document_id
    LEFT JOIN ccdigital.documents d ON d.id = pd.document_id
    WHERE i.access_request_id = ANY($1::bigint[])
    ORDER BY i.id
"""


class AccessRequestRepository:
    """Access request repository with domain-specific queries."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create_with_items(self, request: AccessRequest) -> AccessRequest:
        """
        Insert a request and its items in one transaction.

        Args:
            request: Pending request built by the workflow (id not set)

        Returns:
            The stored request with ids and display joins
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                request_id = await conn.fetchval(
                    """
                    INSERT INTO ccdigital.access_requests (
                        entity_id, person_id, purpose, status, requested_at, expires_at
                    )
                    VALUES ($1, $2, $3, $4, $5, $6)
                    RETURNING id
                    """,
                    request.entity_id,
                    request.person_id,
                    request.purpose,
                    request.status.value,
                    request.requested_at,
                    request.expires_at,
                )
                await conn.executemany(
                    """
                    INSERT INTO ccdigital.access_request_items (access_request_id, person_document_id)
                    VALUES ($1, $2)
                    """,
                    [(request_id, item.person_document_id) for item in request.items],
                )
                created = await self._fetch_one(conn, request_id)

        logger.debug("Access request stored", request_id=request_id, item_count=len(request.items))
        return created

    async def get_with_details(self, request_id: int) -> Optional[AccessRequest]:
        """Get a request with items and display joins, or None."""
        async with self.pool.acquire() as conn:
            return await self._fetch_one(conn, request_id)

    async def list_for_person(self, person_id: int) -> List[AccessRequest]:
        """Requests addressed to a person, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                _SELECT_REQUESTS + " WHERE ar.person_id = $1 ORDER BY ar.requested_at DESC, ar.id DESC",
                person_id,
            )
            return await self._with_items(conn, rows)

    async def list_for_entity(self, entity_id: int) -> List[AccessRequest]:
        """Requests made by an organization, newest first."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                _SELECT_REQUESTS + " WHERE ar.entity_id = $1 ORDER BY ar.requested_at DESC, ar.id DESC",
                entity_id,
            )
            return await self._with_items(conn, rows)

    async def transition_status(
        self,
        request_id: int,
        new_status: AccessRequestStatus,
        decided_at: datetime,
        decision_note: Optional[str] = None,
    ) -> Optional[AccessRequest]:
        """
        Move a PENDIENTE request to a terminal status.

        Args:
            request_id: Access request
            new_status: APROBADA, RECHAZADA or EXPIRADA
            decided_at: Decision time
            decision_note: Optional note

        Returns:
            Updated request, or None if it was no longer pending
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                updated_id = await conn.fetchval(
                    """
                    UPDATE ccdigital.access_requests
                    SET status = $2, decided_at = $3, decision_note = $4
                    WHERE id = $1 AND status = 'PENDIENTE'
                    RETURNING id
                    """,
                    request_id,
                    new_status.value,
                    decided_at,
                    decision_note,
                )
                if updated_id is None:
                    logger.warning(
                        "Access request status transition lost (no longer pending)",
                        request_id=request_id,
                        new_status=new_status.value,
                    )
                    return None
                return await self._fetch_one(conn, request_id)

    async def _fetch_one(self, conn, request_id: int) -> Optional[AccessRequest]:
        row = await conn.fetchrow(_SELECT_REQUESTS + " WHERE ar.id = $1", request_id)
        if row is None:
            return None
        requests = await self._with_items(conn, [row])
        return requests[0]

    async def _with_items(self, conn, rows) -> List[AccessRequest]:
        if not rows:
            return []
        item_rows = await conn.fetch(_SELECT_ITEMS, [row["id"] for row in rows])
        items_by_request: Dict[int, List[AccessRequestItem]] = {}
        for item_row in item_rows:
            items_by_request.setdefault(item_row["access_request_id"], []).append(
                AccessRequestItem.model_validate(dict(item_row))
            )
        return [
            AccessRequest.model_validate({**dict(row), "items": items_by_request.get(row["id"], [])}) for row in rows
        ]
