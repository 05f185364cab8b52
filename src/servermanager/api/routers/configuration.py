"""Router factory shared by the DNS, DHCP and HTTP configuration endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends

from servermanager.core.manager import ServerManager


async def get_manager() -> ServerManager:
    from servermanager.api.main import get_server_manager
    return get_server_manager()


def build_router(domain: str) -> APIRouter:
    """GET current, PUT apply and POST render for one configuration domain."""
    router = APIRouter()

    @router.get("")
    async def get_configuration(manager: ServerManager = Depends(get_manager)):
        """Current configuration, or the default when none has been written."""
        data = await manager.applier(domain).current_configuration()
        return {"message": "Default configuration", "data": data}

    @router.put("")
    async def apply_configuration(
        body: Any = Body(...),
        manager: ServerManager = Depends(get_manager),
    ):
        """Validate, render, write, check and reconcile."""
        result = await manager.applier(domain).apply(body)
        return result.to_response()

    @router.post("/render")
    async def render_configuration(
        body: Any = Body(...),
        manager: ServerManager = Depends(get_manager),
    ):
        """Validate and render without writing anything."""
        artifacts = manager.applier(domain).preview(body)
        return {
            "message": f"Rendered {len(artifacts)} file(s)",
            "artifacts": [a.model_dump() for a in artifacts],
        }

    return router
