"""
Unit tests for the path plan client against a canned engine response.
"""

import json

import pytest

from conftest import (
    RDM1, RDM2, TX1, TX2, FakeAdjacency, FakeCircuitService, FakeEngine,
    RecordingPowerControl
)
from optical_controller.core.path_plan_client import PathPlanClient
from optical_controller.models.schemas import (
    UNKNOWN_POWER, ChannelSpacing, ConnectPoint, Direction, GridType, Link
)


INGRESS = ConnectPoint(device_id=TX1, port=1)
EGRESS = ConnectPoint(device_id=TX2, port=1)


@pytest.fixture
def power() -> RecordingPowerControl:
    return RecordingPowerControl()


@pytest.fixture
def circuits() -> FakeCircuitService:
    return FakeCircuitService()


@pytest.fixture
def engine(gnpy_response_text: str) -> FakeEngine:
    return FakeEngine(gnpy_response_text)


@pytest.fixture
def client(path_links, power, circuits, engine) -> PathPlanClient:
    return PathPlanClient(FakeAdjacency(path_links), power, circuits, engine=engine,
                          device_scheme="netconf:", trx_type="Cassini")


# ============ Request ============
def test_create_request(client: PathPlanClient) -> None:
    """Test that the request carries endpoints and leaves the spectrum unconstrained."""
    wire = client.create_request(INGRESS, EGRESS, True).to_wire()

    item = wire["path-request"][0]
    assert item["request-id"] == "test"
    assert item["source"] == TX1
    assert item["destination"] == TX2
    assert item["src-tp-id"] == TX1
    assert item["dst-tp-id"] == TX2
    assert item["bidirectional"] is True

    bandwidth = item["path-constraints"]["te-bandwidth"]
    assert bandwidth["technology"] == "flexi-grid"
    assert bandwidth["trx_type"] == "Cassini"
    assert bandwidth["trx_mode"] is None
    assert bandwidth["effective-freq-slot"] == [{"N": "null", "M": "null"}]
    assert bandwidth["spacing"] == 5.0e10
    assert bandwidth["max-nb-of-channel"] is None
    assert bandwidth["output-power"] is None
    assert bandwidth["path_bandwidth"] == 1.0e11


# ============ Response decoding ============
def test_extract_route(client: PathPlanClient, gnpy_response: dict) -> None:
    """Test that only managed devices make the route, with powers two objects ahead."""
    route, forward, backward = client.extract_route(gnpy_response)

    assert route == [TX1, RDM1, RDM2, TX2]
    assert forward == {TX1: UNKNOWN_POWER, RDM1: -1.0, RDM2: -12.0, TX2: UNKNOWN_POWER}
    assert backward == {TX1: UNKNOWN_POWER, RDM1: -12.0, RDM2: 1.0, TX2: UNKNOWN_POWER}


def test_extract_route_unidirectional(client: PathPlanClient, gnpy_response: dict) -> None:
    _, forward, backward = client.extract_route(gnpy_response, bidirectional=False)

    assert forward[RDM1] == -1.0
    assert backward == {}


def test_create_slot_from_label_hop(client: PathPlanClient, gnpy_response: dict) -> None:
    """Test that label N=-284 decodes to multiplier 284 on the 50 GHz DWDM grid."""
    slot = client.create_slot(gnpy_response)

    assert slot.grid_type == GridType.DWDM
    assert slot.channel_spacing == ChannelSpacing.CHL_50GHZ
    assert slot.spacing_multiplier == 284
    assert slot.slot_granularity == 4
    assert slot.slot_width_hz == 50_000_000_000


def test_metrics(client: PathPlanClient, gnpy_response: dict) -> None:
    assert client.get_osnr(gnpy_response) == 21.0
    assert client.get_launch_power(gnpy_response) == 0.001


def test_missing_metrics_use_sentinels(client: PathPlanClient, gnpy_response: dict) -> None:
    gnpy_response["result"]["response"][0]["path-properties"]["path-metric"] = []

    assert client.get_osnr(gnpy_response) == -1.0
    assert client.get_launch_power(gnpy_response) == -99.0


def test_get_per_hop_power() -> None:
    assert PathPlanClient.get_per_hop_power(
        {"path-route-object": {"target-channel-power": {"value": -3.5}}}) == -3.5
    assert PathPlanClient.get_per_hop_power(
        {"path-route-object": {"label-hop": {"N": 0, "M": 4}}}) == UNKNOWN_POWER


def test_create_suggested_path(client: PathPlanClient, path_links) -> None:
    path = client.create_suggested_path([TX1, RDM1, RDM2, TX2])

    assert path.links == path_links
    assert path.src == INGRESS
    assert path.dst == EGRESS


def test_suggested_path_takes_first_link(power, circuits) -> None:
    """Test that parallel links resolve to the first one the store returns."""
    first = Link(src=ConnectPoint(device_id=RDM1, port=2), dst=ConnectPoint(device_id=RDM2, port=2))
    second = Link(src=ConnectPoint(device_id=RDM1, port=3), dst=ConnectPoint(device_id=RDM2, port=3))
    client = PathPlanClient(FakeAdjacency([first, second]), power, circuits)

    assert client.create_suggested_path([RDM1, RDM2]).links == [first]


# ============ End to end ============
def test_obtain_connectivity(client: PathPlanClient, power: RecordingPowerControl,
                             circuits: FakeCircuitService, engine: FakeEngine, path_links) -> None:
    """Test the full provisioning cycle against the canned three-link route."""
    result = client.obtain_connectivity(INGRESS, EGRESS, True)

    assert result == ("circuit-1", 21.0)
    assert len(engine.payloads) == 1

    slot = client.create_slot(json.loads(engine.response))
    assert power.writes == [
        (RDM1, 1, slot, -12.0),
        (RDM1, 2, slot, -1.0),
        (RDM2, 2, slot, 1.0),
        (RDM2, 1, slot, -12.0),
        (TX1, 1, Direction.ALL, 0.001),
        (TX2, 1, Direction.ALL, 0.001),
    ]

    ingress, egress, submitted_slot, path, bidirectional = circuits.submitted[0]
    assert (ingress, egress, bidirectional) == (INGRESS, EGRESS, True)
    assert submitted_slot.spacing_multiplier == 284
    assert path.links == path_links


def test_power_skipped_for_unsupported_devices(path_links, circuits, engine) -> None:
    power = RecordingPowerControl(capable=[RDM2])
    client = PathPlanClient(FakeAdjacency(path_links), power, circuits, engine=engine)

    client.obtain_connectivity(INGRESS, EGRESS, True)

    assert [(device, port) for device, port, _, _ in power.writes] == [(RDM2, 2), (RDM2, 1)]


def test_disconnected_returns_none(path_links, power, circuits) -> None:
    client = PathPlanClient(FakeAdjacency(path_links), power, circuits)

    assert not client.is_connected()
    assert client.obtain_connectivity(INGRESS, EGRESS, True) is None
    assert power.writes == []


@pytest.mark.parametrize("body", ["not json", "{}", '{"result": {}}', '{"result": {"response": []}}'])
def test_malformed_response_returns_none(path_links, power, circuits, body) -> None:
    """Test that replies without a usable response abort before any device write."""
    client = PathPlanClient(FakeAdjacency(path_links), power, circuits, engine=FakeEngine(body))

    assert client.obtain_connectivity(INGRESS, EGRESS, True) is None
    assert power.writes == []
    assert circuits.submitted == []


def _null_route_object(reply: dict) -> None:
    reply["result"]["response"][0]["path-properties"]["path-route-objects"][0]["path-route-object"] = None


def _numeric_node_id(reply: dict) -> None:
    objects = reply["result"]["response"][0]["path-properties"]["path-route-objects"]
    objects[3]["path-route-object"]["num-unnum-hop"]["node-id"] = 7


def _bare_metric(reply: dict) -> None:
    reply["result"]["response"][0]["path-properties"]["path-metric"] = ["OSNR-0.1nm"]


@pytest.mark.parametrize("corrupt", [_null_route_object, _numeric_node_id, _bare_metric])
def test_wrongly_typed_response_returns_none(path_links, power, circuits, gnpy_response, corrupt) -> None:
    """Test that wrongly typed route objects and metrics abort the cycle."""
    corrupt(gnpy_response)
    engine = FakeEngine(json.dumps(gnpy_response))
    client = PathPlanClient(FakeAdjacency(path_links), power, circuits, engine=engine)

    assert client.obtain_connectivity(INGRESS, EGRESS, True) is None
    assert power.writes == []
    assert circuits.submitted == []


def test_circuit_failure_returns_none(path_links, power, engine) -> None:
    client = PathPlanClient(FakeAdjacency(path_links), power, FakeCircuitService(fail=True), engine=engine)

    assert client.obtain_connectivity(INGRESS, EGRESS, False) is None


def test_disconnect_drops_engine(client: PathPlanClient, engine: FakeEngine) -> None:
    client.disconnect()

    assert not client.is_connected()
    assert client.engine is None
    assert not engine.connected
