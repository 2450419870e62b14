"""
Path Plan Client for end-to-end optical provisioning
Delegates route and power computation to GNPy, then programs the result
"""

import json
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from optical_controller.config.settings import settings
from optical_controller.core.exceptions import PathComputationError
from optical_controller.core.frequency_grid import multiplier_from_frequency
from optical_controller.core.gnpy_client import PathComputationClient
from optical_controller.core.interfaces import CircuitService, LinkAdjacency, PowerControl
from optical_controller.models.schemas import (
    UNKNOWN_OSNR, UNKNOWN_POWER, ChannelSpacing, ConnectPoint, Direction, GridType,
    PathConstraints, PathPlanResult, PathRequest, PathRequestItem, SuggestedPath,
    TeBandwidth, WavelengthSlot
)


logger = logging.getLogger(__name__)

# Label hops count 0.05 GHz steps from the 193.1 THz anchor
LABEL_ANCHOR_GHZ = Decimal(193100)
LABEL_STEP_GHZ = Decimal("0.05")
PATH_SLOT_GRANULARITY = 4

METRIC_REFERENCE_POWER = "reference_power"
METRIC_OSNR = "OSNR-0.1nm"
NODE_TYPE_TRANSCEIVER = "transceiver"

PowerMap = Dict[str, float]


class PathPlanClient:
    """
    Single request/response provisioning cycle against the path computation
    engine. The engine computes the route and power plan; this client only
    decodes it, writes the power targets and requests the circuit.
    """

    def __init__(self, adjacency: LinkAdjacency, power: PowerControl, circuits: CircuitService,
                 engine: Optional[PathComputationClient] = None,
                 device_scheme: Optional[str] = None,
                 trx_type: Optional[str] = None):
        self.adjacency = adjacency
        self.power = power
        self.circuits = circuits
        self.engine = engine
        self.device_scheme = device_scheme or settings.DEVICE_SCHEME
        self.trx_type = trx_type or settings.PCE_TRX_TYPE

    # -------------------------
    # Engine connection
    # -------------------------
    def connect(self, protocol: str, ip: str, port: int,
                username: Optional[str] = None, password: Optional[str] = None) -> bool:
        self.disconnect()
        self.engine = PathComputationClient(protocol, ip, port)
        self.engine.connect(username, password)
        return True

    def disconnect(self) -> bool:
        if self.engine is not None:
            self.engine.disconnect()
            self.engine = None
        return True

    def is_connected(self) -> bool:
        return self.engine is not None and self.engine.is_connected()

    # -------------------------
    # Provisioning
    # -------------------------
    def obtain_connectivity(self, ingress: ConnectPoint, egress: ConnectPoint,
                            bidirectional: bool) -> Optional[Tuple[str, float]]:
        """
        Provision an optical circuit between two connect points.

        Args:
            ingress: Ingress connect point
            egress: Egress connect point
            bidirectional: Whether the reverse direction is planned as well

        Returns:
            Tuple of (circuit_id, estimated OSNR), or None on failure
        """
        if not self.is_connected():
            logger.error("Path computation engine is not connected")
            return None

        request = self.create_request(ingress, egress, bidirectional)
        try:
            response = self.engine.post(request.to_wire())
        except PathComputationError as e:
            logger.error(f"Path computation failed for {ingress} -> {egress}: {e}")
            return None

        try:
            reply = json.loads(response)
        except ValueError as e:
            logger.error(f"Exception while reading response {response!r}: {e}")
            return None
        if not reply:
            logger.error(f"Empty reply for response {response!r}")
            return None

        plan = self.decode_plan(reply, bidirectional)
        if plan is None:
            return None

        self.apply_power_plan(plan, ingress, egress)

        try:
            circuit_id = self.circuits.submit(ingress, egress, plan.slot, plan.path, bidirectional)
        except Exception as e:
            logger.error(f"Failed to establish circuit {ingress} -> {egress}: {e}")
            return None

        logger.info(f"Circuit {circuit_id} submitted over {len(plan.path.links)} links "
                    f"on {plan.slot}, estimated OSNR {plan.osnr} dB")
        return circuit_id, plan.osnr

    def create_request(self, ingress: ConnectPoint, egress: ConnectPoint,
                       bidirectional: bool) -> PathRequest:
        """Build the engine request; unconstrained fields stay null."""
        return PathRequest(path_request=[
            PathRequestItem(
                request_id="test",
                source=ingress.device_id,
                destination=egress.device_id,
                src_tp_id=ingress.device_id,
                dst_tp_id=egress.device_id,
                bidirectional=bidirectional,
                path_constraints=PathConstraints(
                    te_bandwidth=TeBandwidth(trx_type=self.trx_type)
                )
            )
        ])

    def decode_plan(self, reply: Dict[str, Any], bidirectional: bool = True) -> Optional[PathPlanResult]:
        """
        Decode route, wavelength, power plan and metrics from an engine reply.

        Returns:
            PathPlanResult, or None when the reply is malformed
        """
        if not self._has_response(reply):
            logger.warning(f"Can't retrieve devices {reply}")
            return None

        try:
            slot = self.create_slot(reply)
            route, forward_power, backward_power = self.extract_route(reply, bidirectional)
            launch_power = self.get_launch_power(reply)
            osnr = self.get_osnr(reply)
        except (AttributeError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error(f"Malformed path computation response: {e}")
            return None

        return PathPlanResult(
            route=route,
            forward_power=forward_power,
            backward_power=backward_power,
            launch_power=launch_power,
            osnr=osnr,
            slot=slot,
            path=self.create_suggested_path(route)
        )

    def apply_power_plan(self, plan: PathPlanResult, ingress: ConnectPoint,
                         egress: ConnectPoint) -> int:
        """
        Write per-hop target powers and the launch power.

        Hops with unknown power and devices without power configuration are
        skipped.

        Returns:
            Number of power writes issued
        """
        writes = 0
        for link in plan.path.links:
            for point, powers in ((link.src, plan.forward_power), (link.dst, plan.backward_power)):
                if not self.power.supports_power_config(point.device_id):
                    continue
                value = powers.get(point.device_id, UNKNOWN_POWER)
                if value == UNKNOWN_POWER:
                    logger.warning(f"Can't determine power for {point.device_id}")
                    continue
                logger.info(f"Configuring power {value} for {point}")
                self.power.set_target_power(point.device_id, point.port, plan.slot, value)
                writes += 1

        if plan.launch_power != UNKNOWN_POWER:
            for endpoint in (ingress, egress):
                if self.power.supports_power_config(endpoint.device_id):
                    logger.info(f"Configuring launch power {plan.launch_power} for {endpoint}")
                    self.power.set_target_power(endpoint.device_id, endpoint.port,
                                                Direction.ALL, plan.launch_power)
                    writes += 1

        return writes

    # -------------------------
    # Response decoding
    # -------------------------
    @staticmethod
    def _has_response(reply: Dict[str, Any]) -> bool:
        return isinstance(reply, dict) and "response" in (reply.get("result") or {})

    @staticmethod
    def _path_properties(reply: Dict[str, Any]) -> Dict[str, Any]:
        # a-b path of the first response
        return reply["result"]["response"][0]["path-properties"]

    def extract_route(self, reply: Dict[str, Any],
                      bidirectional: bool = True) -> Tuple[List[str], PowerMap, PowerMap]:
        """
        Collect managed devices along the forward path and their powers.

        Returns:
            Tuple of (device route, forward power map, backward power map)
        """
        properties = self._path_properties(reply)
        forward = properties["path-route-objects"]
        reverse = (properties.get("reversed-path-route-objects") or []) if bidirectional else []

        route: List[str] = []
        forward_power: PowerMap = {}
        backward_power: PowerMap = {}

        for index in range(len(forward) - 1):
            hop = forward[index]["path-route-object"].get("num-unnum-hop")
            if hop is None:
                continue
            element_id = hop["node-id"]
            if not element_id.startswith(self.device_scheme):
                continue

            transceiver = hop.get("gnpy-node-type") == NODE_TYPE_TRANSCEIVER
            forward_power[element_id] = (
                UNKNOWN_POWER if transceiver else self._power_after(forward, index)
            )

            for reverse_index in range(len(reverse) - 1):
                reverse_hop = reverse[reverse_index]["path-route-object"].get("num-unnum-hop")
                if reverse_hop is not None and reverse_hop["node-id"] == element_id:
                    backward_power[element_id] = (
                        UNKNOWN_POWER if transceiver else self._power_after(reverse, reverse_index)
                    )

            route.append(element_id)

        logger.debug(f"Route {route}, forward power {forward_power}, backward power {backward_power}")
        return route, forward_power, backward_power

    def _power_after(self, route_objects: List[Dict[str, Any]], index: int) -> float:
        # the target power of a hop sits two objects after it
        if index + 2 >= len(route_objects):
            return UNKNOWN_POWER
        return self.get_per_hop_power(route_objects[index + 2])

    @staticmethod
    def get_per_hop_power(route_object: Dict[str, Any]) -> float:
        target = route_object["path-route-object"].get("target-channel-power")
        if target is None:
            return UNKNOWN_POWER
        return float(target["value"])

    def create_suggested_path(self, route: List[str]) -> SuggestedPath:
        """
        Resolve consecutive route devices to links.

        Takes the first adjacency link reaching the next device.
        """
        links = []
        for current, following in zip(route, route[1:]):
            link = next(
                (candidate for candidate in self.adjacency.device_links(current)
                 if candidate.dst.device_id == following),
                None
            )
            if link is None:
                logger.warning(f"No link from {current} to {following}")
                continue
            links.append(link)
        return SuggestedPath(links=links)

    def create_slot(self, reply: Dict[str, Any]) -> Optional[WavelengthSlot]:
        """Wavelength of the first label hop on the forward path."""
        if not self._has_response(reply):
            return None

        n = 0
        for route_object in self._path_properties(reply)["path-route-objects"]:
            label = route_object["path-route-object"].get("label-hop")
            if label is not None:
                n = int(label["N"])
                logger.debug(f"Label hop N={n} M={label.get('M')}")
                break

        central_ghz = LABEL_ANCHOR_GHZ + n * LABEL_STEP_GHZ
        multiplier = multiplier_from_frequency(central_ghz, GridType.DWDM, ChannelSpacing.CHL_50GHZ)
        return WavelengthSlot(
            grid_type=GridType.DWDM,
            channel_spacing=ChannelSpacing.CHL_50GHZ,
            spacing_multiplier=multiplier,
            slot_granularity=PATH_SLOT_GRANULARITY
        )

    def get_launch_power(self, reply: Dict[str, Any]) -> float:
        return self._metric(reply, METRIC_REFERENCE_POWER, UNKNOWN_POWER)

    def get_osnr(self, reply: Dict[str, Any]) -> float:
        return self._metric(reply, METRIC_OSNR, UNKNOWN_OSNR)

    def _metric(self, reply: Dict[str, Any], metric_type: str, default: float) -> float:
        if not self._has_response(reply):
            return default
        for metric in self._path_properties(reply).get("path-metric", []):
            if metric.get("metric-type") == metric_type:
                return float(metric["accumulative-value"])
        return default
