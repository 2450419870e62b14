"""
FastAPI dependencies for the Optical Provisioning Controller
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from optical_controller.core.link_store import RedisLinkAdjacency
from optical_controller.core.path_plan_client import PathPlanClient
from optical_controller.core.power_config import OpenConfigPowerConfig
from optical_controller.core.xc_manager import CrossConnectManager
from optical_controller.core.xc_reconciler import CrossConnectReconciler


logger = logging.getLogger(__name__)


@dataclass
class ControllerServices:
    """Controller components shared by all requests."""
    reconciler: CrossConnectReconciler
    xc_manager: CrossConnectManager
    path_plan: PathPlanClient
    power_config: Optional[OpenConfigPowerConfig] = None
    link_db: Optional[RedisLinkAdjacency] = None


# Dependency: Controller components
def get_services(request: Request) -> ControllerServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Controller components are not initialized"
        )
    return services


# Dependency: Cross-Connect Reconciler
def get_reconciler(services: ControllerServices = Depends(get_services)) -> CrossConnectReconciler:
    return services.reconciler


# Dependency: Cross-Connect Manager
def get_xc_manager(services: ControllerServices = Depends(get_services)) -> CrossConnectManager:
    return services.xc_manager


# Dependency: Path Plan Client
def get_path_plan(services: ControllerServices = Depends(get_services)) -> PathPlanClient:
    return services.path_plan


# Dependency: Path computation engine must be connected
def require_pce(path_plan: PathPlanClient = Depends(get_path_plan)) -> PathPlanClient:
    if not path_plan.is_connected():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Path computation engine is not connected"
        )
    return path_plan


# Dependency: OpenConfig power configuration
def get_power_config(services: ControllerServices = Depends(get_services)) -> OpenConfigPowerConfig:
    if services.power_config is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="OpenConfig power configuration is not enabled"
        )
    return services.power_config
