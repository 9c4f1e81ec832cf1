from textwrap import dedent

import pydantic
from fastapi import FastAPI
from fastapi.routing import APIRoute
from loguru import logger

from ccd_api.errors import handle_broad_exceptions
from ccd_api.errors import handle_external_tool_errors
from ccd_api.errors import handle_pydantic_validation_errors
from ccd_api.errors import handle_workflow_errors
from ccd_api.ledger.audit_adapter import FabricAuditAdapter
from ccd_api.ledger.credential_adapter import IndyCredentialAdapter
from ccd_api.ledger.identity_locks import IdentityLockRegistry
from ccd_api.ledger.process_runner import ProcessRunner
from ccd_api.ledger.query_adapter import FabricQueryAdapter
from ccd_api.ledger.sync_adapter import FabricSyncAdapter
from ccd_api.monitoring.logger import configure_logger
from ccd_api.monitoring.request_context import RequestContextMiddleware
from ccd_api.routes.routes_health import ROUTER_HEALTH
from ccd_api.routes.routes_ledger import ROUTER_LEDGER
from ccd_api.settings import Settings
from ccd_api.workflow.clock import Clock
from ccd_api.workflow.exceptions import ExternalToolError
from ccd_api.workflow.exceptions import ValidationError
from ccd_api.workflow.file_storage import FileStorage


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded directly from environment variables via pydantic-settings.
    For local development use a .env file in the working directory.
    """
    settings = settings or Settings()

    configure_logger(level=settings.log_level)

    logger.info(
        "Configuration loaded successfully",
        access_requests_enabled=settings.enable_access_requests,
        domain_db_configured=bool(settings.domain_db_connection_string),
        fabric_workdir_set=bool(settings.fabric_workdir),
        indy_workdir_set=bool(settings.indy_workdir),
        external_tool_timeout_seconds=settings.external_tool_timeout_seconds,
    )

    app = FastAPI(
        title="CCDigital Access Request API",
        version="v1",
        description=dedent(
            """
        Consent-based disclosure of citizen documents to requesting organizations.

        Approvals are committed only after the owner's documents are synced to
        Hyperledger Fabric and every requested document is found on-chain.
        """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings

    # Shared ledger collaborators (one process runner bounds all tool invocations)
    runner = ProcessRunner(
        timeout_seconds=settings.external_tool_timeout_seconds,
        max_concurrency=settings.external_tool_max_concurrency,
    )
    fabric_workdir = settings.fabric_workdir or None
    app.state.process_runner = runner
    app.state.identity_locks = IdentityLockRegistry()
    app.state.clock = Clock()
    app.state.file_storage = FileStorage(settings.file_storage_base_path)
    app.state.ledger_sync = FabricSyncAdapter(
        runner, settings.fabric_node_bin, settings.fabric_sync_script, fabric_workdir
    )
    app.state.ledger_query = FabricQueryAdapter(
        runner, settings.fabric_node_bin, settings.fabric_list_docs_script, fabric_workdir
    )
    app.state.ledger_audit = FabricAuditAdapter(
        runner,
        settings.fabric_node_bin,
        settings.fabric_record_access_script,
        settings.fabric_list_access_script,
        fabric_workdir,
    )
    app.state.indy_credentials = IndyCredentialAdapter(
        runner, settings.indy_workdir or None, settings.indy_venv_path, settings.indy_script
    )
    logger.info("Ledger adapters initialized", max_concurrency=settings.external_tool_max_concurrency)

    # Add request context middleware for tracking who/where requests come from
    app.add_middleware(RequestContextMiddleware)
    app.include_router(ROUTER_HEALTH, prefix="/api")
    app.include_router(ROUTER_LEDGER, prefix="/api")

    # Access request workflow (feature-flagged, needs the domain database)
    if settings.enable_access_requests and settings.domain_db_connection_string:
        logger.info("Initializing access request workflow")

        from ccd_api.routes.routes_access_requests import ROUTER_ACCESS_REQUESTS
        from ccd_api.workflow.db.pool import DomainDBPool

        app.state.domain_db_pool = DomainDBPool(settings.domain_db_connection_string)
        app.include_router(ROUTER_ACCESS_REQUESTS, prefix="/api")

        logger.success("Access request workflow enabled")

        @app.on_event("startup")
        async def startup_access_requests():
            """Initialize the domain database."""
            await app.state.domain_db_pool.initialize()
            logger.success("Domain database initialized")

        @app.on_event("shutdown")
        async def shutdown_access_requests():
            """Close domain database connections."""
            await app.state.domain_db_pool.close()
            logger.info("Domain database closed")

    else:
        logger.info(
            "Access request workflow disabled (enable_access_requests=false or domain_db_connection_string not set)"
        )

    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=ValidationError,
        handler=handle_workflow_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=ExternalToolError,
        handler=handle_external_tool_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name
