"""
Ledger Sync Adapter

Pushes a person's off-chain documents onto the Fabric ledger by running the
Node.js sync script.
"""

from typing import Optional

from loguru import logger
from pydantic import BaseModel

from ccd_api.ledger.output_parsing import first_non_blank_line
from ccd_api.ledger.process_runner import ExecResult
from ccd_api.ledger.process_runner import ProcessRunner

SYNC_FAILED_REASON = "Error de sincronización con Fabric"


class SyncOutcome(BaseModel):
    """Result of a sync run. reason is set only on failure."""

    ok: bool
    reason: Optional[str] = None
    result: ExecResult


class FabricSyncAdapter:
    """
    Runs `<node> <script> --person <ID_TYPE> <ID_NUMBER>` in the Fabric client directory.

    No retries are attempted; the caller decides what to do with a failure.
    """

    def __init__(self, runner: ProcessRunner, node_bin: str, script: str, workdir: Optional[str]):
        self.runner = runner
        self.node_bin = node_bin
        self.script = script
        self.workdir = workdir

    async def sync_identity(self, id_type: str, id_number: str) -> SyncOutcome:
        """
        Sync one person's documents.

        Args:
            id_type: Identification type (CC, CE, ...)
            id_number: Identification number

        Returns:
            SyncOutcome, ok only if the script exited with 0
        """
        argv = [self.node_bin, self.script, "--person", str(id_type), str(id_number)]
        logger.info("Syncing person documents to Fabric", id_type=id_type, id_number=id_number)
        return self._outcome(await self.runner.execute(argv, workdir=self.workdir))

    async def sync_all(self) -> SyncOutcome:
        """Sync every person's documents (administrative full resync)."""
        logger.info("Syncing all person documents to Fabric")
        return self._outcome(await self.runner.execute([self.node_bin, self.script, "--all"], workdir=self.workdir))

    @staticmethod
    def _outcome(result: ExecResult) -> SyncOutcome:
        if result.ok:
            return SyncOutcome(ok=True, result=result)

        reason = first_non_blank_line(result.stderr, SYNC_FAILED_REASON)
        logger.warning(
            "Fabric sync failed",
            exit_code=result.exit_code,
            timed_out=result.timed_out,
            reason=reason,
        )
        return SyncOutcome(ok=False, reason=reason, result=result)
