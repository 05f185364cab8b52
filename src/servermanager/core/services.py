"""systemd service control for the managed daemons."""

import asyncio
import logging

from servermanager.core.base import ProcessRunner
from servermanager.core.errors import InvalidConfigurationError, ServiceError
from servermanager.core.models import (
    ApplyStage,
    FieldError,
    ProcessResult,
    ServiceControlResult,
    ServiceId,
    ServiceState,
    ServiceStatus,
)

logger = logging.getLogger(__name__)

_IS_ACTIVE_STATES = {
    "active": ServiceState.RUNNING,
    "inactive": ServiceState.STOPPED,
    "failed": ServiceState.FAILED,
}

_EXPECTED_STATE = {
    "start": ServiceState.RUNNING,
    "restart": ServiceState.RUNNING,
    "reload": ServiceState.RUNNING,
    "stop": ServiceState.STOPPED,
}


def parse_service_id(service: str | ServiceId) -> ServiceId:
    """Resolve a service name, rejecting anything outside the managed set."""
    if isinstance(service, ServiceId):
        return service
    try:
        return ServiceId(service)
    except ValueError:
        allowed = ", ".join(s.value for s in ServiceId)
        raise InvalidConfigurationError(
            [FieldError(path="service", message=f"Must be one of: {allowed}")],
            message=f"Unknown service: {service}",
        ) from None


class ServiceManager:
    """
    Starts, stops and reloads services through systemctl.

    After every state-changing command the live status is polled up to
    ``status_attempts`` times, sleeping ``settle_delay`` seconds before each
    poll, since systemd may still report a transitional state.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        settle_delay: float = 1.0,
        status_attempts: int = 2,
        use_sudo: bool = False,
        timeout: float | None = None,
    ):
        self.runner = runner
        self.settle_delay = settle_delay
        self.status_attempts = status_attempts
        self.use_sudo = use_sudo
        self.timeout = timeout

    async def _systemctl(self, action: str, service: ServiceId) -> ProcessResult:
        cmd = ["systemctl", action, service.value]
        if self.use_sudo:
            cmd.insert(0, "sudo")
        return await self.runner.run(*cmd, timeout=self.timeout)

    # ========================================================================
    # Status
    # ========================================================================

    async def get_status(self, service: str | ServiceId) -> ServiceStatus:
        """Query ``systemctl is-active`` and map its answer to a ServiceState."""
        service_id = parse_service_id(service)
        result = await self._systemctl("is-active", service_id)

        raw = result.stdout.strip().splitlines()[0] if result.stdout.strip() else None
        if result.timed_out or raw is None:
            state = ServiceState.UNKNOWN
        else:
            state = _IS_ACTIVE_STATES.get(raw, ServiceState.UNKNOWN)

        return ServiceStatus(service=service_id, state=state, raw_state=raw)

    async def get_all_statuses(self) -> list[ServiceStatus]:
        """Status of every managed service."""
        return [await self.get_status(service) for service in ServiceId]

    async def _wait_for(self, service: ServiceId, expected: ServiceState) -> ServiceStatus:
        status = ServiceStatus(service=service, state=ServiceState.UNKNOWN)
        for _ in range(self.status_attempts):
            await asyncio.sleep(self.settle_delay)
            status = await self.get_status(service)
            if status.state == expected:
                break
        return status

    # ========================================================================
    # Control
    # ========================================================================

    async def _control(self, service: str | ServiceId, action: str) -> ServiceControlResult:
        service_id = parse_service_id(service)
        previous = await self.get_status(service_id)
        expected = _EXPECTED_STATE[action]

        result = await self._systemctl(action, service_id)
        if not result.ok:
            detail = result.stderr.strip() or result.stdout.strip() or f"exit code {result.returncode}"
            logger.error(f"Failed to {action} {service_id.value}: {detail}")
            return ServiceControlResult(
                service=service_id,
                action=action,
                success=False,
                message=f"Failed to {action} {service_id.value}: {detail}",
                previous_state=previous.state,
                current_state=previous.state,
            )

        current = await self._wait_for(service_id, expected)
        if current.state != expected:
            logger.error(
                f"{service_id.value} is {current.state.value} after {action}, "
                f"expected {expected.value}"
            )
            return ServiceControlResult(
                service=service_id,
                action=action,
                success=False,
                message=(
                    f"{service_id.value} did not reach {expected.value} state "
                    f"after {action} (now {current.state.value})"
                ),
                previous_state=previous.state,
                current_state=current.state,
            )

        logger.info(f"{service_id.value} {action} succeeded")
        return ServiceControlResult(
            service=service_id,
            action=action,
            success=True,
            message=f"{service_id.value} {action} succeeded",
            previous_state=previous.state,
            current_state=current.state,
        )

    async def start(self, service: str | ServiceId) -> ServiceControlResult:
        return await self._control(service, "start")

    async def stop(self, service: str | ServiceId) -> ServiceControlResult:
        return await self._control(service, "stop")

    async def restart(self, service: str | ServiceId) -> ServiceControlResult:
        return await self._control(service, "restart")

    async def reload(self, service: str | ServiceId) -> ServiceControlResult:
        """Reload configuration without restart."""
        return await self._control(service, "reload")

    async def control(self, service: str | ServiceId, action: str) -> ServiceControlResult:
        """Dispatch one of start, stop, restart or reload by name."""
        if action not in _EXPECTED_STATE:
            raise InvalidConfigurationError(
                [FieldError(path="action", message="Must be one of: start, stop, restart, reload")],
                message=f"Unknown action: {action}",
            )
        return await self._control(service, action)

    # ========================================================================
    # Reconciliation
    # ========================================================================

    async def reconcile(self, service: str | ServiceId, desired_enabled: bool) -> ServiceControlResult:
        """
        Bring a service in line with freshly applied configuration.

        A disabled service is left alone. An enabled one is reloaded when
        it is already running and started otherwise. Raises ServiceError
        when the chosen action fails.
        """
        service_id = parse_service_id(service)

        if not desired_enabled:
            logger.info(f"{service_id.value} is disabled; no reload issued")
            return ServiceControlResult(
                service=service_id,
                action="none",
                success=True,
                message=f"{service_id.value} is disabled; configuration saved without reload",
                previous_state=ServiceState.UNKNOWN,
                current_state=ServiceState.UNKNOWN,
            )

        status = await self.get_status(service_id)
        action = "reload" if status.state == ServiceState.RUNNING else "start"
        result = await self._control(service_id, action)

        if not result.success:
            raise ServiceError(
                result.message,
                service=service_id,
                action=action,
                stage=ApplyStage.RECONCILE,
            )
        return result
