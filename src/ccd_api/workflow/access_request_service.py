"""
Access Request Service

Business logic of consent-based document disclosure:
- Organizations request access to a person's approved documents
- The owner approves or rejects; approval only commits after the documents
  are synced to Fabric and every requested document is found on-chain
- Approved documents are released to the organization only after a fresh
  on-chain check
"""

from datetime import timedelta
from typing import List
from typing import Optional

from loguru import logger

from ccd_api.workflow.enums import AccessRequestStatus
from ccd_api.workflow.enums import AuditActorType
from ccd_api.workflow.enums import AuditEventType
from ccd_api.workflow.enums import ReviewStatus
from ccd_api.workflow.exceptions import ExpiredError
from ccd_api.workflow.exceptions import ExternalToolError
from ccd_api.workflow.exceptions import IntegrityError
from ccd_api.workflow.exceptions import InvalidStateError
from ccd_api.workflow.exceptions import LedgerUnavailableError
from ccd_api.workflow.exceptions import NotFoundError
from ccd_api.workflow.exceptions import OutOfScopeError
from ccd_api.workflow.exceptions import UnauthorizedError
from ccd_api.workflow.exceptions import UnmatchedDocumentError
from ccd_api.workflow.exceptions import ValidationError
from ccd_api.workflow.file_storage import FileHandle
from ccd_api.workflow.matcher import find_matching_ledger_document
from ccd_api.workflow.models.access_request import AccessRequest
from ccd_api.workflow.models.access_request import AccessRequestItem
from ccd_api.workflow.models.document import FileRecord
from ccd_api.workflow.models.document import PersonDocument
from ccd_api.workflow.models.ledger import AuditCommand
from ccd_api.workflow.models.ledger import DocumentBlockchainTrace
from ccd_api.workflow.models.ledger import LedgerDocumentView
from ccd_api.workflow.models.person import Person

ACCESS_REQUEST_TTL = timedelta(days=15)
MAX_TEXT_LENGTH = 300
AUDIT_SOURCE = "ccd-access-api"


class AccessRequestService:
    """
    Access request workflow.

    All collaborators are injected so that tests can replace the database and
    the ledger tools with in-memory fakes.

    Args:
        access_requests: Access request repository
        persons: Person repository (find_by_id)
        entities: Issuing entity repository (find_by_id)
        person_documents: Person document repository (get_with_files)
        ledger_sync: Fabric sync adapter (sync_identity)
        ledger_query: Fabric query adapter (list_documents)
        file_storage: File storage (load_as_handle)
        clock: Time source (now)
        identity_locks: Per-identity lock registry
        ledger_audit: Optional Fabric audit adapter for document view events
    """

    def __init__(
        self,
        access_requests,
        persons,
        entities,
        person_documents,
        ledger_sync,
        ledger_query,
        file_storage,
        clock,
        identity_locks,
        ledger_audit=None,
    ):
        self.access_requests = access_requests
        self.persons = persons
        self.entities = entities
        self.person_documents = person_documents
        self.ledger_sync = ledger_sync
        self.ledger_query = ledger_query
        self.file_storage = file_storage
        self.clock = clock
        self.identity_locks = identity_locks
        self.ledger_audit = ledger_audit

    # ════════════════════════════════════════════════════════════════════════
    # Creation and listing
    # ════════════════════════════════════════════════════════════════════════

    async def create_request(
        self,
        entity_id: Optional[int],
        person_id: Optional[int],
        purpose: Optional[str],
        person_document_ids: Optional[List[int]],
    ) -> AccessRequest:
        """
        Create a pending access request.

        Args:
            entity_id: Requesting organization
            person_id: Document owner
            purpose: Reason for the request (max 300 characters)
            person_document_ids: Requested documents (duplicates are collapsed)

        Returns:
            Persisted AccessRequest with its items

        Raises:
            ValidationError: Missing arguments, foreign or unapproved documents
            NotFoundError: Entity, person or document does not exist
        """
        if entity_id is None:
            raise ValidationError("entityId es requerido")
        if person_id is None:
            raise ValidationError("personId es requerido")
        if purpose is None or not purpose.strip():
            raise ValidationError("purpose es requerido")
        if not person_document_ids:
            raise ValidationError("Debe seleccionar al menos un documento")

        purpose = purpose.strip()
        if len(purpose) > MAX_TEXT_LENGTH:
            raise ValidationError(f"purpose no puede superar {MAX_TEXT_LENGTH} caracteres")

        entity = await self.entities.find_by_id(entity_id)
        if entity is None:
            raise NotFoundError("Entidad no encontrada")

        person = await self.persons.find_by_id(person_id)
        if person is None:
            raise NotFoundError("Persona no encontrada")

        items: List[AccessRequestItem] = []
        for document_id in dict.fromkeys(person_document_ids):
            document = await self.person_documents.get_with_files(document_id)
            if document is None:
                raise NotFoundError(f"Documento no encontrado: {document_id}")
            if document.person_id != person_id:
                raise ValidationError("El documento no pertenece a la persona")
            if document.review_status != ReviewStatus.APPROVED:
                raise ValidationError("El documento aún no está aprobado para consulta")
            items.append(AccessRequestItem(person_document_id=document.id, document_title=document.title))

        requested_at = self.clock.now()
        request = AccessRequest(
            entity_id=entity_id,
            person_id=person_id,
            purpose=purpose,
            status=AccessRequestStatus.PENDIENTE,
            requested_at=requested_at,
            expires_at=requested_at + ACCESS_REQUEST_TTL,
            items=items,
            entity_name=entity.name,
            person_display_name=person.display_name,
        )

        created = await self.access_requests.create_with_items(request)
        logger.info(
            "Access request created",
            request_id=created.id,
            entity_id=entity_id,
            person_id=person_id,
            item_count=len(items),
        )
        return created

    async def list_for_person(self, person_id: int) -> List[AccessRequest]:
        """Requests addressed to a person, newest first."""
        return await self.access_requests.list_for_person(person_id)

    async def list_for_entity(self, entity_id: int) -> List[AccessRequest]:
        """Requests made by an organization, newest first."""
        return await self.access_requests.list_for_entity(entity_id)

    async def get_by_id(self, request_id: int) -> AccessRequest:
        """
        Load a request with its items.

        Raises:
            NotFoundError: If the request does not exist
        """
        request = await self.access_requests.get_with_details(request_id)
        if request is None:
            raise NotFoundError("Solicitud no encontrada")
        return request

    # ════════════════════════════════════════════════════════════════════════
    # Owner decision
    # ════════════════════════════════════════════════════════════════════════

    async def decide(
        self,
        request_id: int,
        person_id: int,
        approve: bool,
        decision_note: Optional[str] = None,
    ) -> AccessRequest:
        """
        Approve or reject a pending request on behalf of its owner.

        Approval syncs the owner's documents to Fabric, then checks that every
        requested document is on-chain, and only then commits. Any failure
        leaves the request pending.

        Args:
            request_id: Access request
            person_id: Acting person (must own the request)
            approve: True to approve, False to reject
            decision_note: Optional note (max 300 characters)

        Returns:
            The decided AccessRequest

        Raises:
            NotFoundError: Unknown request, person or document
            UnauthorizedError: Acting person is not the owner
            InvalidStateError: Request already decided
            ExpiredError: Request expired (it is marked EXPIRADA)
            LedgerUnavailableError: Fabric sync or query failed
            UnmatchedDocumentError: A requested document is not on-chain
        """
        note = decision_note.strip() if decision_note else None
        if not note:
            note = None
        elif len(note) > MAX_TEXT_LENGTH:
            raise ValidationError(f"La nota no puede superar {MAX_TEXT_LENGTH} caracteres")

        request = await self.get_by_id(request_id)

        if request.person_id != person_id:
            logger.warning(
                "Unauthorized access request decision attempt",
                request_id=request_id,
                owner_person_id=request.person_id,
                session_person_id=person_id,
            )
            raise UnauthorizedError("No autorizado para decidir esta solicitud")

        if request.status != AccessRequestStatus.PENDIENTE:
            raise InvalidStateError("La solicitud ya fue decidida")

        now = self.clock.now()
        if request.is_expired(now):
            expired = await self.access_requests.transition_status(request_id, AccessRequestStatus.EXPIRADA, now)
            if expired is None:
                raise InvalidStateError("La solicitud ya fue decidida")
            logger.info("Access request expired on decision attempt", request_id=request_id)
            raise ExpiredError("La solicitud se encuentra expirada")

        if approve:
            person = await self._load_person(request.person_id)
            async with self.identity_locks.lock(person.id_type.value, person.id_number):
                await self._sync_person_documents(person)
                await self._validate_items_on_ledger(request, person)

        new_status = AccessRequestStatus.APROBADA if approve else AccessRequestStatus.RECHAZADA
        decided = await self.access_requests.transition_status(request_id, new_status, self.clock.now(), note)
        if decided is None:
            raise InvalidStateError("La solicitud ya fue decidida")

        logger.success(
            "Access request decided",
            request_id=request_id,
            person_id=person_id,
            status=new_status.value,
        )
        return decided

    async def _sync_person_documents(self, person: Person):
        outcome = await self.ledger_sync.sync_identity(person.id_type.value, person.id_number)
        if not outcome.ok:
            logger.error(
                "Fabric sync failed, approval aborted",
                person_id=person.id,
                exit_code=outcome.result.exit_code,
                reason=outcome.reason,
            )
            raise LedgerUnavailableError(
                f"No se pudo registrar la aprobación en Fabric. Intente nuevamente. Detalle: {outcome.reason}"
            )

    async def _validate_items_on_ledger(self, request: AccessRequest, person: Person):
        ledger_docs = await self._query_ledger(person)

        for item in request.items:
            if item.person_document_id is None:
                raise IntegrityError("La solicitud contiene un documento inválido")

            document = await self.person_documents.get_with_files(item.person_document_id)
            if document is None:
                raise NotFoundError(f"Documento no encontrado: {item.person_document_id}")

            latest = _latest_file(document)
            if find_matching_ledger_document(ledger_docs, document, latest) is None:
                title = document.title or "Documento"
                logger.warning(
                    "Requested document not found on Fabric",
                    request_id=request.id,
                    person_document_id=document.id,
                    title=title,
                )
                raise UnmatchedDocumentError(
                    f"No se pudo validar en Fabric el documento '{title}' (id {document.id}). Intente nuevamente."
                )

    # ════════════════════════════════════════════════════════════════════════
    # Approved document retrieval
    # ════════════════════════════════════════════════════════════════════════

    async def load_approved_resource(self, entity_id: int, request_id: int, person_document_id: int) -> FileHandle:
        """
        Release an approved document file to the requesting organization.

        The document must still be present on Fabric; the file is never
        returned without a fresh on-chain match.

        Returns:
            FileHandle of the latest file version

        Raises:
            NotFoundError, UnauthorizedError, InvalidStateError, ExpiredError,
            OutOfScopeError, LedgerUnavailableError, UnmatchedDocumentError
        """
        request, document, latest, person, ledger_doc = await self._load_approved_document(
            entity_id, request_id, person_document_id
        )
        if ledger_doc is None:
            raise UnmatchedDocumentError(
                "El documento no está disponible en Fabric para esta persona. Solicite una nueva aprobación."
            )

        handle = self.file_storage.load_as_handle(latest)
        logger.info(
            "Approved document released",
            request_id=request_id,
            entity_id=entity_id,
            person_id=request.person_id,
            person_document_id=person_document_id,
            file_id=latest.id,
        )
        await self._record_document_view(request, document, person, ledger_doc)
        return handle

    async def load_approved_trace(
        self, entity_id: int, request_id: int, person_document_id: int
    ) -> DocumentBlockchainTrace:
        """Same checks as load_approved_resource, returning the on-chain reference instead of the file."""
        _, _, _, _, ledger_doc = await self._load_approved_document(entity_id, request_id, person_document_id)
        if ledger_doc is None:
            raise UnmatchedDocumentError("No se encontró la referencia del documento en Fabric para esta solicitud.")
        return DocumentBlockchainTrace.from_ledger_document(ledger_doc)

    async def _load_approved_document(self, entity_id: int, request_id: int, person_document_id: int):
        request = await self.get_by_id(request_id)

        if request.entity_id != entity_id:
            logger.warning(
                "Unauthorized approved document access attempt",
                request_id=request_id,
                request_entity_id=request.entity_id,
                session_entity_id=entity_id,
                person_document_id=person_document_id,
            )
            raise UnauthorizedError("No autorizado para consultar esta solicitud")

        if request.status != AccessRequestStatus.APROBADA:
            raise InvalidStateError("La solicitud no está aprobada")

        if request.is_expired(self.clock.now()):
            raise ExpiredError("La solicitud se encuentra expirada")

        if not request.includes_document(person_document_id):
            raise OutOfScopeError("El documento no pertenece a la solicitud")

        document = await self.person_documents.get_with_files(person_document_id)
        if document is None:
            raise NotFoundError("Documento no encontrado")

        latest = _latest_file(document)
        person = await self._load_person(request.person_id)
        async with self.identity_locks.lock(person.id_type.value, person.id_number):
            ledger_docs = await self._query_ledger(person)
        ledger_doc = find_matching_ledger_document(ledger_docs, document, latest)
        return request, document, latest, person, ledger_doc

    async def _record_document_view(
        self,
        request: AccessRequest,
        document: PersonDocument,
        person: Person,
        ledger_doc: LedgerDocumentView,
    ):
        if self.ledger_audit is None:
            return
        command = AuditCommand(
            id_type=person.id_type.value,
            id_number=person.id_number,
            event_type=AuditEventType.DOCUMENT_VIEW.value,
            request_id=request.id,
            person_document_id=document.id,
            doc_id=ledger_doc.doc_id,
            document_title=document.title,
            issuer_entity_id=request.entity_id,
            issuer_name=request.entity_name,
            action="VIEW_DOCUMENT",
            result="OK",
            actor_type=AuditActorType.ENTITY.value,
            actor_id=str(request.entity_id),
            source=AUDIT_SOURCE,
        )
        try:
            await self.ledger_audit.record_event(command)
        except ExternalToolError as e:
            logger.warning(
                "Could not record document view on Fabric",
                request_id=request.id,
                person_document_id=document.id,
                error=e.message,
            )

    # ════════════════════════════════════════════════════════════════════════
    # Helpers
    # ════════════════════════════════════════════════════════════════════════

    async def _load_person(self, person_id: int) -> Person:
        person = await self.persons.find_by_id(person_id)
        if person is None:
            raise NotFoundError("Persona no encontrada")
        return person

    async def _query_ledger(self, person: Person) -> List[LedgerDocumentView]:
        """Query Fabric once. Callers hold the identity lock."""
        try:
            return await self.ledger_query.list_documents(person.id_type.value, person.id_number)
        except ExternalToolError as e:
            logger.error(
                "Fabric document query failed",
                person_id=person.id,
                exit_code=e.exit_code,
                error=e.message,
            )
            raise LedgerUnavailableError(
                f"No fue posible consultar la trazabilidad en Fabric. Intente nuevamente. Detalle: {e.message}"
            ) from e


def _latest_file(document: PersonDocument) -> FileRecord:
    latest = document.latest_file()
    if latest is None:
        raise ValidationError("El documento no tiene archivo asociado")
    return latest
