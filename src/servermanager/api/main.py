"""FastAPI application for the server configuration console."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from servermanager import __version__
from servermanager.api.routers import dhcp, dns, health, http, services
from servermanager.core.errors import ServerManagerError
from servermanager.core.manager import ServerManager
from servermanager.logging_config import setup_logging
from servermanager.settings import ConsoleSettings

logger = logging.getLogger(__name__)


# Shared state
class AppState:
    manager: ServerManager | None = None


state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    if state.manager is None:
        settings = ConsoleSettings.from_env()
        state.manager = ServerManager.from_settings(settings)
        logger.info(f"Server manager started in {settings.environment.value} mode")

    yield

    # Shutdown
    state.manager = None


# Create FastAPI app
app = FastAPI(
    title="Server Manager API",
    description="Configuration and service control for BIND, ISC DHCP and Apache httpd",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServerManagerError)
async def server_manager_error_handler(request: Request, exc: ServerManagerError) -> JSONResponse:
    """Map classified pipeline errors to their HTTP status."""
    if exc.status_code >= 500 and exc.status_code != 501:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


# Include routers
app.include_router(dns.router, prefix="/api/v1/dns", tags=["DNS"])
app.include_router(dhcp.router, prefix="/api/v1/dhcp", tags=["DHCP"])
app.include_router(http.router, prefix="/api/v1/http", tags=["HTTP"])
app.include_router(services.router, prefix="/api/v1/services", tags=["Services"])
app.include_router(health.router, prefix="/api/v1/health", tags=["Health"])


@app.get("/")
async def root():
    """API root endpoint."""
    return {
        "name": "Server Manager API",
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/api/v1")
async def api_info():
    """API version info."""
    return {
        "version": "v1",
        "endpoints": [
            "/api/v1/dns",
            "/api/v1/dhcp",
            "/api/v1/http",
            "/api/v1/services",
            "/api/v1/health",
        ],
    }


def get_server_manager() -> ServerManager:
    """Dependency to get the server manager."""
    if not state.manager:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return state.manager


def run():
    """Run the API server."""
    setup_logging()
    uvicorn.run(
        "servermanager.api.main:app",
        host="0.0.0.0",
        port=8080,
    )


if __name__ == "__main__":
    run()
