"""Tests for the local file storage collaborator."""

import pytest

from ccd_api.workflow.enums import FileStoredAs
from ccd_api.workflow.exceptions import NotFoundError
from ccd_api.workflow.file_storage import DEFAULT_MEDIA_TYPE
from ccd_api.workflow.file_storage import FileStorage
from ccd_api.workflow.models import FileRecord


@pytest.fixture
def storage(tmp_path):
    (tmp_path / "juan").mkdir()
    (tmp_path / "juan" / "doc.pdf").write_bytes(b"%PDF-1.4")
    (tmp_path / "juan" / "sin_extension").write_bytes(b"data")
    return FileStorage(str(tmp_path))


class TestLoadAsHandle:
    def test_relative_path_resolves_against_base(self, storage, tmp_path):
        file = FileRecord(id=1, person_document_id=55, storage_path="juan/doc.pdf", mime_type="application/pdf")

        handle = storage.load_as_handle(file)

        assert handle.path == str((tmp_path / "juan" / "doc.pdf").resolve())
        assert handle.file_name == "doc.pdf"
        assert handle.media_type == "application/pdf"

    def test_absolute_path_and_original_name(self, storage, tmp_path):
        absolute = str(tmp_path / "juan" / "doc.pdf")
        file = FileRecord(id=1, person_document_id=55, storage_path=absolute, original_name="cedula_juan.pdf")

        handle = storage.load_as_handle(file)

        assert handle.file_name == "cedula_juan.pdf"
        assert handle.media_type == "application/pdf"

    def test_backslash_paths(self, storage):
        file = FileRecord(id=1, person_document_id=55, storage_path="juan\\doc.pdf")

        assert storage.load_as_handle(file).file_name == "doc.pdf"

    def test_unknown_media_type(self, storage):
        file = FileRecord(id=1, person_document_id=55, storage_path="juan/sin_extension")

        assert storage.load_as_handle(file).media_type == DEFAULT_MEDIA_TYPE

    @pytest.mark.parametrize(
        "stored_as,storage_path",
        [(FileStoredAs.BLOB, "juan/doc.pdf"), (FileStoredAs.PATH, None), (FileStoredAs.PATH, "  ")],
    )
    def test_file_not_stored_on_disk(self, storage, stored_as, storage_path):
        file = FileRecord(id=1, person_document_id=55, stored_as=stored_as, storage_path=storage_path)

        with pytest.raises(NotFoundError, match="El documento no tiene archivo asociado"):
            storage.load_as_handle(file)

    def test_missing_file(self, storage):
        file = FileRecord(id=1, person_document_id=55, storage_path="juan/borrado.pdf")

        with pytest.raises(NotFoundError, match="no se encuentra disponible"):
            storage.load_as_handle(file)

    def test_directory_is_not_a_file(self, storage):
        file = FileRecord(id=1, person_document_id=55, storage_path="juan")

        with pytest.raises(NotFoundError):
            storage.load_as_handle(file)

    @pytest.mark.parametrize("storage_path", ["../fuera.pdf", "juan/../../fuera.pdf", "/etc/passwd"])
    def test_paths_outside_base_are_refused(self, storage, tmp_path, storage_path):
        (tmp_path.parent / "fuera.pdf").write_bytes(b"%PDF-1.4")
        file = FileRecord(id=1, person_document_id=55, storage_path=storage_path)

        with pytest.raises(NotFoundError, match="no se encuentra disponible"):
            storage.load_as_handle(file)

    def test_dot_segments_inside_base_are_allowed(self, storage):
        file = FileRecord(id=1, person_document_id=55, storage_path="juan/../juan/doc.pdf")

        assert storage.load_as_handle(file).file_name == "doc.pdf"
