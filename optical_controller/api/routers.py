"""
REST API routers for the Optical Provisioning Controller
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from optical_controller.api.dependencies import (
    ControllerServices, get_path_plan, get_power_config, get_reconciler, get_services,
    get_xc_manager, require_pce
)
from optical_controller.config.settings import settings
from optical_controller.core.frequency_grid import dwdm_lambdas
from optical_controller.core.path_plan_client import PathPlanClient
from optical_controller.core.power_config import OpenConfigPowerConfig
from optical_controller.core.xc_manager import CrossConnectManager
from optical_controller.core.xc_reconciler import CrossConnectReconciler
from optical_controller.models.schemas import (
    ConnectPoint, ConnectivityRequest, ConnectivityResponse, CrossConnectEntry,
    CrossConnectRequest, CrossConnectRule, HealthCheckResponse, PceConnectRequest,
    PortPowerResponse, WavelengthSlot
)


logger = logging.getLogger(__name__)

router = APIRouter()


# ============ Health & Status Endpoints ============
@router.get("/health", response_model=HealthCheckResponse)
async def health_check(services: ControllerServices = Depends(get_services)) -> HealthCheckResponse:
    """
    Health check endpoint.
    Reports engine and Link Database connectivity.
    """
    pce_connected = services.path_plan.is_connected()
    linkdb_connected = services.link_db.health_check() if services.link_db else False
    return HealthCheckResponse(
        status="healthy" if pce_connected else "degraded",
        controller_id=settings.CONTROLLER_ID,
        pce_connected=pce_connected,
        linkdb_connected=linkdb_connected,
        version=settings.API_VERSION
    )


# ============ Cross-Connect Endpoints ============
@router.post("/xc", response_model=CrossConnectRule, status_code=status.HTTP_201_CREATED)
def add_cross_connect(
    request: CrossConnectRequest,
    xc_manager: CrossConnectManager = Depends(get_xc_manager)
) -> CrossConnectRule:
    """Create a single cross-connect on a ROADM."""
    rule = xc_manager.add_cross_connect(
        request.device_id, request.src_port, request.dst_port,
        request.frequency_mhz, request.slot_width_ghz
    )
    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Device {request.device_id} did not accept the cross-connect"
        )
    return rule


@router.post("/xc/drop", response_model=CrossConnectRule)
def drop_cross_connect(
    request: CrossConnectRequest,
    xc_manager: CrossConnectManager = Depends(get_xc_manager)
) -> CrossConnectRule:
    """Drop the live cross-connect matching ports, frequency and width."""
    rule = xc_manager.drop_cross_connect(
        request.device_id, request.src_port, request.dst_port,
        request.frequency_mhz, request.slot_width_ghz
    )
    if rule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No matching cross-connect on {request.device_id}"
        )
    return rule


@router.get("/devices/{device_id}/xc", response_model=List[CrossConnectEntry])
def list_cross_connects(
    device_id: str,
    reconciler: CrossConnectReconciler = Depends(get_reconciler)
) -> List[CrossConnectEntry]:
    """Live cross-connects of a device."""
    entries = reconciler.query(device_id)
    if entries is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Cannot read cross-connects from {device_id}"
        )
    return entries


@router.delete("/devices/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_device(
    device_id: str,
    reconciler: CrossConnectReconciler = Depends(get_reconciler)
) -> None:
    """Forget cached state of a device that left the network."""
    reconciler.device_removed(device_id)


# ============ Terminal Device Endpoints ============
@router.get("/devices/{device_id}/lambdas", response_model=List[WavelengthSlot])
def list_lambdas(device_id: str) -> List[WavelengthSlot]:
    """Channels a coherent terminal device can be tuned to."""
    return dwdm_lambdas()


@router.get("/devices/{device_id}/ports/{port}/power", response_model=PortPowerResponse)
def get_port_power(
    device_id: str,
    port: int,
    power_config: OpenConfigPowerConfig = Depends(get_power_config)
) -> PortPowerResponse:
    """
    Optical power readings of a line port.
    Ports without an optical-channel component are not found.
    """
    target_range = power_config.target_power_range(device_id, port)
    if target_range is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Port {device_id}/{port} has no optical-channel component"
        )

    return PortPowerResponse(
        device_id=device_id,
        port=port,
        target_power=power_config.get_target_power(device_id, port),
        output_power=power_config.current_output_power(device_id, port),
        input_power=power_config.current_input_power(device_id, port),
        target_power_range=target_range,
        input_power_range=power_config.input_power_range(device_id, port)
    )


# ============ Provisioning Endpoints ============
@router.post("/connectivity", response_model=ConnectivityResponse, status_code=status.HTTP_201_CREATED)
def obtain_connectivity(
    request: ConnectivityRequest,
    path_plan: PathPlanClient = Depends(require_pce)
) -> ConnectivityResponse:
    """
    Provision an end-to-end optical circuit.
    Route, wavelength and powers come from the path computation engine.
    """
    result = path_plan.obtain_connectivity(
        ConnectPoint.parse(request.ingress),
        ConnectPoint.parse(request.egress),
        request.bidirectional
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Provisioning {request.ingress} -> {request.egress} failed"
        )

    circuit_id, osnr = result
    return ConnectivityResponse(circuit_id=circuit_id, osnr=osnr)


@router.post("/pce/connect")
def connect_pce(
    request: PceConnectRequest,
    path_plan: PathPlanClient = Depends(get_path_plan)
):
    path_plan.connect(request.protocol, request.host, request.port,
                      request.username, request.password)
    return {"connected": path_plan.is_connected()}


@router.post("/pce/disconnect")
def disconnect_pce(path_plan: PathPlanClient = Depends(get_path_plan)):
    path_plan.disconnect()
    return {"connected": path_plan.is_connected()}
