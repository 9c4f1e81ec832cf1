"""
Ledger Module

Adapters for the external ledger tools:
- Process execution bridge (argv only, timeout, bounded concurrency)
- Hyperledger Fabric sync, document listing and access audit scripts
- Hyperledger Indy credential issuer
"""

from ccd_api.ledger.audit_adapter import FabricAuditAdapter
from ccd_api.ledger.credential_adapter import IndyCredentialAdapter
from ccd_api.ledger.identity_locks import IdentityLockRegistry
from ccd_api.ledger.process_runner import ExecResult, ProcessRunner
from ccd_api.ledger.query_adapter import FabricQueryAdapter
from ccd_api.ledger.sync_adapter import FabricSyncAdapter, SyncOutcome

__all__ = [
    "ExecResult",
    "ProcessRunner",
    "FabricSyncAdapter",
    "SyncOutcome",
    "FabricQueryAdapter",
    "FabricAuditAdapter",
    "IndyCredentialAdapter",
    "IdentityLockRegistry",
]
