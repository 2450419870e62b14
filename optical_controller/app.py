"""
Main FastAPI application for the Optical Provisioning Controller
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from optical_controller.api.dependencies import ControllerServices
from optical_controller.api.routers import router as api_router
from optical_controller.config.settings import settings
from optical_controller.core.connection_cache import DeviceConnectionCache
from optical_controller.core.interfaces import (
    CircuitService, DeviceInventory, PowerControl, SessionProvider
)
from optical_controller.core.link_store import RedisLinkAdjacency
from optical_controller.core.path_plan_client import PathPlanClient
from optical_controller.core.power_config import ComponentNameLookup, OpenConfigPowerConfig
from optical_controller.core.xc_manager import CrossConnectManager
from optical_controller.core.xc_reconciler import CrossConnectReconciler
from optical_controller.utils.logger import setup_logging


logger = logging.getLogger(__name__)


def build_services(sessions: SessionProvider, inventory: DeviceInventory,
                   circuits: CircuitService,
                   component_names: Optional[ComponentNameLookup] = None,
                   power: Optional[PowerControl] = None,
                   link_db: Optional[RedisLinkAdjacency] = None) -> ControllerServices:
    """
    Wire controller components around the host platform's collaborators.

    Args:
        sessions: Device session provider
        inventory: Device type lookup
        circuits: Circuit establishment service
        component_names: Port to OpenConfig component name lookup; enables
            OpenConfig power configuration
        power: Device power configuration; OpenConfig power configuration
            is used when omitted
        link_db: Link adjacency; connected from settings when omitted
    """
    power_config = None
    if component_names is not None:
        power_config = OpenConfigPowerConfig(sessions, component_names)
    if power is None:
        power = power_config
    if power is None:
        raise ValueError("Either a power control or a component name lookup is required")

    if link_db is None:
        link_db = RedisLinkAdjacency()

    reconciler = CrossConnectReconciler(sessions, inventory, DeviceConnectionCache())
    return ControllerServices(
        reconciler=reconciler,
        xc_manager=CrossConnectManager(reconciler),
        path_plan=PathPlanClient(link_db, power, circuits),
        power_config=power_config,
        link_db=link_db
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    services: ControllerServices = app.state.services

    # Startup
    logger.info(f"Starting {settings.API_TITLE} {settings.CONTROLLER_ID}")
    logger.info(f"API: http://{settings.API_HOST}:{settings.API_PORT}")
    if settings.PCE_HOST and not services.path_plan.is_connected():
        services.path_plan.connect(settings.PCE_PROTOCOL, settings.PCE_HOST, settings.PCE_PORT,
                                   settings.PCE_USERNAME, settings.PCE_PASSWORD)
    logger.info("Controller ready to accept requests")

    try:
        yield
    finally:
        # Shutdown
        logger.info("Shutting down controller...")
        services.path_plan.disconnect()
        if services.link_db is not None:
            services.link_db.close()
        logger.info("Controller shutdown complete")


def create_app(services: ControllerServices) -> FastAPI:
    """Create and configure FastAPI application."""
    setup_logging()

    app = FastAPI(
        title=settings.API_TITLE,
        version=settings.API_VERSION,
        description="Optical provisioning: ROADM cross-connects and GNPy-planned circuits",
        lifespan=lifespan,
    )
    app.state.services = services

    # CORS (restrict in production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": settings.API_TITLE,
            "version": settings.API_VERSION,
            "controller_id": settings.CONTROLLER_ID,
            "docs": f"http://{settings.API_HOST}:{settings.API_PORT}/docs",
            "health": f"http://{settings.API_HOST}:{settings.API_PORT}/api/v1/health",
        }

    return app


def run(services: ControllerServices) -> None:
    """Serve the controller API until interrupted."""
    uvicorn.run(
        create_app(services),
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level="info",
        access_log=True,
    )
