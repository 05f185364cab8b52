"""External command execution."""

import asyncio
import logging
import os

from servermanager.core.models import ProcessResult

logger = logging.getLogger(__name__)

COMMAND_NOT_FOUND = 127
PERMISSION_DENIED = 126
KILLED = -9


class SubprocessRunner:
    """
    Runs commands with asyncio subprocesses.

    Every invocation is bounded by a timeout; on expiry the process is
    killed and the result is reported with ``timed_out`` set.
    """

    def __init__(self, timeout: float = 30.0):
        self.timeout = timeout

    async def run(
        self,
        command: str,
        *args: str,
        timeout: float | None = None,
    ) -> ProcessResult:
        cmd = [command, *args]
        limit = timeout or self.timeout
        logger.debug(f"Running: {' '.join(cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error(f"Command not found: {command}")
            return ProcessResult(
                command=cmd,
                returncode=COMMAND_NOT_FOUND,
                stderr=f"{command}: command not found",
            )
        except PermissionError:
            logger.error(f"Permission denied: {command}")
            return ProcessResult(
                command=cmd,
                returncode=PERMISSION_DENIED,
                stderr=f"{command}: permission denied",
            )

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=limit)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            logger.error(f"Command timed out after {limit}s: {' '.join(cmd)}")
            return ProcessResult(
                command=cmd,
                returncode=KILLED,
                stderr=f"Timed out after {limit}s",
                timed_out=True,
            )

        return ProcessResult(
            command=cmd,
            returncode=proc.returncode or 0,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )


class DryRunProcessRunner:
    """
    Logs commands instead of executing them.

    ``systemctl`` is simulated with a per-service state table so that a
    start followed by ``is-active`` reports ``active``. Every other
    command succeeds with empty output.
    """

    def __init__(self, initial_state: str = "inactive"):
        self.initial_state = initial_state
        self.states: dict[str, str] = {}
        self.history: list[list[str]] = []

    async def run(
        self,
        command: str,
        *args: str,
        timeout: float | None = None,
    ) -> ProcessResult:
        cmd = [command, *args]
        self.history.append(cmd)
        logger.info(f"[DRY RUN] Would run: {' '.join(cmd)}")

        parts = cmd[1:] if command == "sudo" else cmd
        if parts and os.path.basename(parts[0]) == "systemctl" and len(parts) >= 3:
            return self._systemctl(cmd, parts[1], parts[2])
        return ProcessResult(command=cmd, returncode=0)

    def _systemctl(self, cmd: list[str], action: str, service: str) -> ProcessResult:
        state = self.states.get(service, self.initial_state)

        if action == "is-active":
            return ProcessResult(
                command=cmd,
                returncode=0 if state == "active" else 3,
                stdout=f"{state}\n",
            )
        if action == "reload" and state != "active":
            return ProcessResult(
                command=cmd,
                returncode=1,
                stderr=f"{service}.service is not active, cannot reload.\n",
            )
        if action in ("start", "restart", "reload"):
            self.states[service] = "active"
        elif action == "stop":
            self.states[service] = "inactive"
        return ProcessResult(command=cmd, returncode=0)
