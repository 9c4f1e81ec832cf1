"""Fixtures for access request workflow testing (in-memory repositories and ledger fakes)."""

from typing import Dict
from typing import List
from typing import Optional
from unittest.mock import AsyncMock
from unittest.mock import MagicMock
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from tests.consts import NOW
from tests.consts import OTHER_ENTITY_ID
from tests.consts import OTHER_PERSON_ID
from tests.consts import OTHER_PERSON_ID_NUMBER
from tests.consts import OWNER_ID_NUMBER
from tests.consts import OWNER_PERSON_ID
from tests.consts import REQUESTER_ENTITY_ID

from ccd_api.ledger.identity_locks import IdentityLockRegistry
from ccd_api.ledger.process_runner import ExecResult
from ccd_api.ledger.sync_adapter import SyncOutcome
from ccd_api.workflow.access_request_service import AccessRequestService
from ccd_api.workflow.clock import FixedClock
from ccd_api.workflow.enums import AccessRequestStatus
from ccd_api.workflow.enums import IdType
from ccd_api.workflow.enums import ReviewStatus
from ccd_api.workflow.exceptions import ExternalToolError
from ccd_api.workflow.file_storage import FileStorage
from ccd_api.workflow.models import AccessRequest
from ccd_api.workflow.models import FileRecord
from ccd_api.workflow.models import IssuingEntity
from ccd_api.workflow.models import LedgerDocumentView
from ccd_api.workflow.models import Person
from ccd_api.workflow.models import PersonDocument

# Person documents of the scenario
ID_CEDULA = 55  # owner, approved, one file at juan/doc.pdf
ID_DIPLOMA = 56  # owner, approved, two file versions
ID_LABORAL = 57  # owner, review still pending
ID_PASAPORTE = 58  # other person, approved
ID_RUT = 59  # owner, approved, no file
ID_EPS = 60  # owner, not seeded; tests add it when a third document is needed


# ════════════════════════════════════════════════════════════════════════════
# In-memory repositories
# ════════════════════════════════════════════════════════════════════════════


class FakeAccessRequestRepository:
    """Access request store with the same compare-and-set contract as the database."""

    def __init__(self):
        self.rows: Dict[int, AccessRequest] = {}
        self.transitions: List[tuple] = []
        self._next_id = 1

    async def create_with_items(self, request: AccessRequest) -> AccessRequest:
        stored = request.model_copy(deep=True)
        stored.id = self._next_id
        self._next_id += 1
        for position, item in enumerate(stored.items, start=1):
            item.id = stored.id * 100 + position
            item.access_request_id = stored.id
        self.rows[stored.id] = stored
        return stored.model_copy(deep=True)

    async def get_with_details(self, request_id: int) -> Optional[AccessRequest]:
        row = self.rows.get(request_id)
        return row.model_copy(deep=True) if row is not None else None

    async def list_for_person(self, person_id: int) -> List[AccessRequest]:
        return self._newest_first([r for r in self.rows.values() if r.person_id == person_id])

    async def list_for_entity(self, entity_id: int) -> List[AccessRequest]:
        return self._newest_first([r for r in self.rows.values() if r.entity_id == entity_id])

    async def transition_status(self, request_id, new_status, decided_at, decision_note=None):
        row = self.rows.get(request_id)
        if row is None or row.status != AccessRequestStatus.PENDIENTE:
            return None
        row.status = new_status
        row.decided_at = decided_at
        row.decision_note = decision_note
        self.transitions.append((request_id, new_status))
        return row.model_copy(deep=True)

    @staticmethod
    def _newest_first(rows: List[AccessRequest]) -> List[AccessRequest]:
        ordered = sorted(rows, key=lambda r: (r.requested_at, r.id), reverse=True)
        return [r.model_copy(deep=True) for r in ordered]


class FakePersonRepository:
    def __init__(self, persons: List[Person]):
        self.persons = {p.id: p for p in persons}

    async def find_by_id(self, person_id: int) -> Optional[Person]:
        return self.persons.get(person_id)


class FakeEntityRepository:
    def __init__(self, entities: List[IssuingEntity]):
        self.entities = {e.id: e for e in entities}

    async def find_by_id(self, entity_id: int) -> Optional[IssuingEntity]:
        return self.entities.get(entity_id)


class FakePersonDocumentRepository:
    def __init__(self, documents: List[PersonDocument]):
        self.documents = {d.id: d for d in documents}

    async def get_with_files(self, person_document_id: int) -> Optional[PersonDocument]:
        document = self.documents.get(person_document_id)
        return document.model_copy(deep=True) if document is not None else None


# ════════════════════════════════════════════════════════════════════════════
# Scripted ledger adapters
# ════════════════════════════════════════════════════════════════════════════


class ScriptedSyncAdapter:
    """Sync adapter that succeeds unless fail_reason is set."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.fail_reason: Optional[str] = None

    async def sync_identity(self, id_type: str, id_number: str) -> SyncOutcome:
        self.calls.append((id_type, id_number))
        argv = ["node", "sync-db-to-ledger.js", "--person", id_type, id_number]
        if self.fail_reason is not None:
            result = ExecResult(argv=argv, exit_code=1, stderr=self.fail_reason)
            return SyncOutcome(ok=False, reason=self.fail_reason, result=result)
        return SyncOutcome(ok=True, result=ExecResult(argv=argv, exit_code=0))


class ScriptedQueryAdapter:
    """Query adapter returning a fixed listing, or raising error when set."""

    def __init__(self, docs: List[LedgerDocumentView]):
        self.docs = docs
        self.calls: List[tuple] = []
        self.error: Optional[ExternalToolError] = None

    async def list_documents(self, id_type: str, id_number: str) -> List[LedgerDocumentView]:
        self.calls.append((id_type, id_number))
        if self.error is not None:
            raise self.error
        return list(self.docs)


class FakeAuditAdapter:
    """Audit adapter collecting recorded commands."""

    def __init__(self):
        self.commands = []
        self.error: Optional[ExternalToolError] = None

    async def record_event(self, command):
        if self.error is not None:
            raise self.error
        self.commands.append(command)


def ledger_doc(**overrides) -> LedgerDocumentView:
    """On-chain record of the owner's cedula, with overrides."""
    fields = {
        "doc_id": "DOC-55-7f3a",
        "title": "Cédula de ciudadanía",
        "issuing_entity": "Registraduría Nacional",
        "status": "VIGENTE",
        "created_at": "2026-02-20T10:00:00Z",
        "size_bytes": 2048,
        "file_path": "/srv/ccdigital/storage/juan/doc.pdf",
    }
    fields.update(overrides)
    return LedgerDocumentView(**fields)


# ════════════════════════════════════════════════════════════════════════════
# Scenario world
# ════════════════════════════════════════════════════════════════════════════


class WorkflowWorld:
    """Service wired to in-memory collaborators plus handles to each of them."""

    def __init__(self, storage_dir):
        self.storage_dir = storage_dir
        self.clock = FixedClock(NOW)
        self.access_requests = FakeAccessRequestRepository()
        self.persons = FakePersonRepository(
            [
                Person(
                    id=OWNER_PERSON_ID,
                    id_type=IdType.CC,
                    id_number=OWNER_ID_NUMBER,
                    first_name="Juan",
                    last_name="Pérez",
                    email="juan.perez@example.com",
                ),
                Person(
                    id=OTHER_PERSON_ID,
                    id_type=IdType.CC,
                    id_number=OTHER_PERSON_ID_NUMBER,
                    first_name="Ana",
                    last_name="Gómez",
                ),
            ]
        )
        self.entities = FakeEntityRepository(
            [
                IssuingEntity(id=REQUESTER_ENTITY_ID, name="Banco de Bogotá", status="APROBADA"),
                IssuingEntity(id=OTHER_ENTITY_ID, name="Aseguradora Andina", status="APROBADA"),
            ]
        )
        self.person_documents = FakePersonDocumentRepository(
            [
                PersonDocument(
                    id=ID_CEDULA,
                    person_id=OWNER_PERSON_ID,
                    title="Cédula de ciudadanía",
                    review_status=ReviewStatus.APPROVED,
                    files=[
                        FileRecord(
                            id=501,
                            person_document_id=ID_CEDULA,
                            original_name="doc.pdf",
                            mime_type="application/pdf",
                            byte_size=2048,
                            storage_path="juan/doc.pdf",
                            version=1,
                        )
                    ],
                ),
                PersonDocument(
                    id=ID_DIPLOMA,
                    person_id=OWNER_PERSON_ID,
                    title="Diploma de bachiller",
                    review_status=ReviewStatus.APPROVED,
                    files=[
                        FileRecord(id=601, person_document_id=ID_DIPLOMA, storage_path="juan/diploma_v1.pdf", version=1),
                        FileRecord(id=602, person_document_id=ID_DIPLOMA, storage_path="juan/diploma_v2.pdf", version=2),
                    ],
                ),
                PersonDocument(
                    id=ID_LABORAL,
                    person_id=OWNER_PERSON_ID,
                    title="Certificado laboral",
                    review_status=ReviewStatus.PENDING,
                ),
                PersonDocument(
                    id=ID_PASAPORTE,
                    person_id=OTHER_PERSON_ID,
                    title="Pasaporte",
                    review_status=ReviewStatus.APPROVED,
                    files=[FileRecord(id=801, person_document_id=ID_PASAPORTE, storage_path="ana/pasaporte.pdf")],
                ),
                PersonDocument(
                    id=ID_RUT,
                    person_id=OWNER_PERSON_ID,
                    title="RUT",
                    review_status=ReviewStatus.APPROVED,
                ),
            ]
        )
        self.ledger_sync = ScriptedSyncAdapter()
        self.ledger_query = ScriptedQueryAdapter(
            [
                ledger_doc(),
                ledger_doc(
                    doc_id="DOC-56-91bc",
                    title="Diploma de bachiller",
                    issuing_entity="Colegio San Bartolomé",
                    file_path="/srv/ccdigital/storage/juan/diploma_v2.pdf",
                ),
            ]
        )
        self.ledger_audit = FakeAuditAdapter()
        self.identity_locks = IdentityLockRegistry()
        self.file_storage = FileStorage(str(storage_dir))

        cedula = storage_dir / "juan" / "doc.pdf"
        cedula.parent.mkdir(parents=True, exist_ok=True)
        cedula.write_bytes(b"%PDF-1.4 cedula")
        (storage_dir / "juan" / "diploma_v2.pdf").write_bytes(b"%PDF-1.4 diploma")

        self.service = AccessRequestService(
            access_requests=self.access_requests,
            persons=self.persons,
            entities=self.entities,
            person_documents=self.person_documents,
            ledger_sync=self.ledger_sync,
            ledger_query=self.ledger_query,
            file_storage=self.file_storage,
            clock=self.clock,
            identity_locks=self.identity_locks,
            ledger_audit=self.ledger_audit,
        )

    async def create_pending(self, document_ids=(ID_CEDULA,), entity_id=REQUESTER_ENTITY_ID) -> AccessRequest:
        return await self.service.create_request(
            entity_id, OWNER_PERSON_ID, "Estudio de crédito hipotecario", list(document_ids)
        )

    async def create_approved(self, document_ids=(ID_CEDULA,), entity_id=REQUESTER_ENTITY_ID) -> AccessRequest:
        created = await self.create_pending(document_ids, entity_id)
        return await self.service.decide(created.id, OWNER_PERSON_ID, approve=True)


@pytest.fixture
def workflow_world(tmp_path):
    """Scenario: person 7 (CC 1019983896), organization 3, document 55 stored at juan/doc.pdf."""
    return WorkflowWorld(tmp_path)


# ════════════════════════════════════════════════════════════════════════════
# Application with access requests enabled
# ════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def access_request_settings(tmp_path):
    """Settings with access requests enabled for testing the access request routes."""
    with patch.dict(
        "os.environ",
        {
            "ENABLE_ACCESS_REQUESTS": "true",
            "DOMAIN_DB_CONNECTION_STRING": "postgresql://localhost/ccdigital_test",
            "FILE_STORAGE_BASE_PATH": str(tmp_path),
            "FABRIC_WORKDIR": str(tmp_path),
        },
    ):
        from ccd_api.settings import Settings

        yield Settings(_env_file=None)


@pytest.fixture
def mock_domain_db_pool():
    """Mock DomainDBPool for access request route tests."""
    pool = MagicMock()
    pool.initialize = AsyncMock(return_value=None)
    pool.close = AsyncMock(return_value=None)
    pool.health_check = AsyncMock(return_value=True)
    return pool


@pytest.fixture
def app_with_access_requests(access_request_settings, mock_domain_db_pool, workflow_world):
    """FastAPI app with the access request router enabled and the service wired to the scenario world."""
    from ccd_api.dependencies import get_access_request_service

    with patch("ccd_api.workflow.db.pool.DomainDBPool", MagicMock(return_value=mock_domain_db_pool)):
        from ccd_api.main import create_app

        app = create_app(settings=access_request_settings)
        app.dependency_overrides[get_access_request_service] = lambda: workflow_world.service
        yield app
        app.dependency_overrides.clear()


@pytest.fixture
def client_with_access_requests(app_with_access_requests):
    """Test client using app with access requests enabled (identity headers passed per call)."""
    with TestClient(app_with_access_requests) as c:
        yield c
