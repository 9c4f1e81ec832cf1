"""Settings for the access request API."""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings for the access request API.

    [pydantic.BaseSettings](https://docs.pydantic.dev/latest/concepts/pydantic_settings/) reads
    configuration values from environment variables and, for local development, a .env file.

    Environment variable names are treated case-insensitively, but the canonical
    names used in this project are lowercase (domain_db_connection_string, fabric_workdir, ...).
    """

    # Domain database
    domain_db_connection_string: Optional[str] = None
    """PostgreSQL connection string for persons, documents and access requests."""

    enable_access_requests: bool = True
    """Mount the access request routes (requires domain_db_connection_string)."""

    # File storage
    file_storage_base_path: str = "./storage"
    """Base directory where person document files are stored (relative paths resolve against it)."""

    # Hyperledger Fabric client scripts
    fabric_workdir: str = ""
    """Working directory of the Fabric Node.js client scripts."""

    fabric_node_bin: str = "node"
    """Node.js binary used to run the Fabric scripts (name on PATH or absolute path)."""

    fabric_sync_script: str = "sync-db-to-ledger.js"
    """Script that pushes one person's (or every person's) documents onto the ledger."""

    fabric_list_docs_script: str = "list-docs.js"
    """Script that lists the documents visible on-chain for one identity."""

    fabric_record_access_script: str = "record-access-event.js"
    """Script that records an access audit event on-chain."""

    fabric_list_access_script: str = "list-access-events.js"
    """Script that lists access audit events on-chain."""

    # Hyperledger Indy credential issuer
    indy_workdir: str = ""
    """Working directory of the Indy credential issuer."""

    indy_venv_path: str = "venv"
    """Virtual environment of the Indy issuer (relative paths resolve against indy_workdir)."""

    indy_script: str = "issue_credentials_from_db.py"
    """Issuer script executed with the virtual environment's interpreter."""

    # External process limits
    external_tool_timeout_seconds: float = 120.0
    """Maximum wall-clock time for a single external tool invocation."""

    external_tool_max_concurrency: int = 4
    """Maximum number of external tool processes running at the same time."""

    # Logging
    log_level: str = "INFO"
    """Minimum level for the stdout log sink."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",  # Load from .env file if it exists (local development)
        env_file_encoding="utf-8",
        extra="ignore",
        validate_default=True,
    )
