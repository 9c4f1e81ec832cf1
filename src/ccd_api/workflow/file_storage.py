"""File storage collaborator: resolves stored document files for download."""

import mimetypes
import os
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from ccd_api.workflow.enums import FileStoredAs
from ccd_api.workflow.exceptions import NotFoundError
from ccd_api.workflow.models.document import FileRecord

DEFAULT_MEDIA_TYPE = "application/octet-stream"


class FileHandle(BaseModel):
    """Readable file ready to be streamed by the HTTP layer."""

    path: str
    file_name: str
    media_type: str = DEFAULT_MEDIA_TYPE
    byte_size: Optional[int] = None


class FileStorage:
    """
    Local filesystem storage. Relative storage paths resolve against base_path.

    Args:
        base_path: Root directory of stored document files
    """

    def __init__(self, base_path: str):
        self.base_path = Path(base_path).expanduser().resolve()

    def resolve(self, storage_path: str) -> Path:
        """
        Resolve a stored path (relative or absolute) to a file under base_path.

        Raises:
            NotFoundError: If the resolved path falls outside base_path
        """
        path = Path(storage_path.replace("\\", "/"))
        if not path.is_absolute():
            path = self.base_path / path
        path = path.resolve()
        if not path.is_relative_to(self.base_path):
            logger.warning(
                "Stored file path outside storage root", storage_path=storage_path, base_path=str(self.base_path)
            )
            raise NotFoundError("El archivo del documento no se encuentra disponible")
        return path

    def load_as_handle(self, file: FileRecord) -> FileHandle:
        """
        Resolve a stored file.

        Raises:
            NotFoundError: If the file is not stored on disk or does not exist
        """
        if file.stored_as != FileStoredAs.PATH or not file.storage_path or not file.storage_path.strip():
            raise NotFoundError("El documento no tiene archivo asociado")

        path = self.resolve(file.storage_path)
        if not path.is_file():
            logger.error("Stored file missing on disk", file_id=file.id, path=str(path))
            raise NotFoundError("El archivo del documento no se encuentra disponible")

        file_name = file.original_name or path.name
        media_type = file.mime_type or mimetypes.guess_type(file_name)[0] or DEFAULT_MEDIA_TYPE
        return FileHandle(
            path=str(path),
            file_name=os.path.basename(file_name),
            media_type=media_type,
            byte_size=file.byte_size,
        )
