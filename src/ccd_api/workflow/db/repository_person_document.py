"""
Person Document Repository

Read access to person documents with their catalog title and stored files.
"""

from typing import Optional

import asyncpg

from ccd_api.workflow.models.document import FileRecord
from ccd_api.workflow.models.document import PersonDocument


class PersonDocumentRepository:
    """Person document lookups."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def get_with_files(self, person_document_id: int) -> Optional[PersonDocument]:
        """
        Get a person document with its files ordered by id.

        Args:
            person_document_id: Person document id

        Returns:
            PersonDocument or None if not found
        """
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT
                    pd.id,
                    pd.person_id,
                    pd.document_id AS document_definition_id,
                    d.title,
                    pd.review_status,
                    pd.status
                FROM ccdigital.person_documents pd
                LEFT JOIN ccdigital.documents d ON d.id = pd.document_id
                WHERE pd.id = $1
                """,
                person_document_id,
            )
            if row is None:
                return None

            file_rows = await conn.fetch(
                """
                SELECT
                    id, person_document_id, original_name, mime_type, byte_size,
                    sha256_hex, stored_as, file_path AS storage_path, version
                FROM ccdigital.files
                WHERE person_document_id = $1
                ORDER BY id
                """,
                person_document_id,
            )

        files = [FileRecord.model_validate(dict(file_row)) for file_row in file_rows]
        return PersonDocument.model_validate({**dict(row), "files": files})
