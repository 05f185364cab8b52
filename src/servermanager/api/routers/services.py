"""Service control API endpoints."""

from fastapi import APIRouter, Depends

from servermanager.core.errors import ServiceError
from servermanager.core.manager import ServerManager
from servermanager.core.models import ServiceControlResult, ServiceStatus


async def get_manager() -> ServerManager:
    from servermanager.api.main import get_server_manager
    return get_server_manager()


router = APIRouter()


async def _control(manager: ServerManager, service: str, action: str) -> ServiceControlResult:
    result = await manager.services.control(service, action)
    if not result.success:
        raise ServiceError(result.message, service=result.service, action=action)
    return result


@router.get("", response_model=list[ServiceStatus])
async def list_services(manager: ServerManager = Depends(get_manager)):
    """Status of every managed service."""
    return await manager.services.get_all_statuses()


@router.get("/{service}/status", response_model=ServiceStatus)
async def get_status(service: str, manager: ServerManager = Depends(get_manager)):
    """Get current service status."""
    return await manager.services.get_status(service)


@router.post("/{service}/start", response_model=ServiceControlResult)
async def start_service(service: str, manager: ServerManager = Depends(get_manager)):
    """Start a service."""
    return await _control(manager, service, "start")


@router.post("/{service}/stop", response_model=ServiceControlResult)
async def stop_service(service: str, manager: ServerManager = Depends(get_manager)):
    """Stop a service."""
    return await _control(manager, service, "stop")


@router.post("/{service}/restart", response_model=ServiceControlResult)
async def restart_service(service: str, manager: ServerManager = Depends(get_manager)):
    """Restart a service."""
    return await _control(manager, service, "restart")


@router.post("/{service}/reload", response_model=ServiceControlResult)
async def reload_service(service: str, manager: ServerManager = Depends(get_manager)):
    """Reload configuration without restart."""
    return await _control(manager, service, "reload")
