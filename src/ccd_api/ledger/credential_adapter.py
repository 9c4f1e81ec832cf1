"""
Credential Issuance Adapter

Runs the Hyperledger Indy issuer script inside its virtual environment. The
environment is activated by exporting VIRTUAL_ENV and PATH for the child
process; no shell is involved.
"""

import os
from typing import Optional

from loguru import logger

from ccd_api.ledger.process_runner import ExecResult
from ccd_api.ledger.process_runner import ProcessRunner
from ccd_api.workflow.exceptions import ExternalToolError


class IndyCredentialAdapter:
    """
    Issues verifiable credentials from the database records.

    Args:
        runner: Process runner
        workdir: Issuer working directory
        venv_path: Virtual environment directory (relative paths resolve against workdir)
        script: Issuer script, relative to workdir
    """

    def __init__(self, runner: ProcessRunner, workdir: Optional[str], venv_path: str, script: str):
        self.runner = runner
        self.workdir = workdir
        self.venv_path = venv_path
        self.script = script

    def resolve_venv(self) -> str:
        if os.path.isabs(self.venv_path):
            return self.venv_path
        return os.path.join(self.workdir or "", self.venv_path)

    def build_env(self) -> dict:
        venv = self.resolve_venv()
        bin_dir = os.path.join(venv, "bin")
        path = os.environ.get("PATH", "")
        return {
            "VIRTUAL_ENV": venv,
            "PATH": f"{bin_dir}{os.pathsep}{path}" if path else bin_dir,
        }

    async def issue_from_db(self) -> ExecResult:
        """
        Run the issuer once.

        Returns:
            ExecResult of the issuer run (callers inspect ok / stderr)

        Raises:
            ExternalToolError: If the issuer working directory is not configured
        """
        if not self.workdir or not self.workdir.strip():
            raise ExternalToolError("Falta configurar indy_workdir")

        python_bin = os.path.join(self.resolve_venv(), "bin", "python3")
        result = await self.runner.execute([python_bin, self.script], workdir=self.workdir, env=self.build_env())

        if result.ok:
            logger.success("Indy credentials issued from database")
        else:
            logger.warning("Indy credential issuance failed", exit_code=result.exit_code, timed_out=result.timed_out)
        return result
