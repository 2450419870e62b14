"""
Shared fixtures: in-memory collaborators and canned device/engine replies.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pytest

from optical_controller.core.exceptions import DeviceSessionError
from optical_controller.core.interfaces import (
    CircuitService, DeviceInventory, DeviceSession, LinkAdjacency, PowerControl,
    SessionProvider
)
from optical_controller.models.schemas import (
    ConnectPoint, DeviceType, Direction, Link, SuggestedPath, WavelengthSlot
)


# Terminal device line port 1 with target, live powers and input range
COMPONENT_REPLY = """
<data xmlns="urn:ietf:params:xml:ns:netconf:base:1.0">
  <components xmlns="http://openconfig.net/yang/platform">
    <component>
      <name>channel-1</name>
      <optical-channel xmlns="http://openconfig.net/yang/terminal-device">
        <config>
          <target-output-power>-2.5</target-output-power>
        </config>
        <state>
          <output-power><instant>-2.61</instant></output-power>
          <input-power><instant>-14.02</instant></input-power>
          <input-power-range><min>-25.0</min><max>0.0</max></input-power-range>
        </state>
      </optical-channel>
    </component>
  </components>
</data>
"""


def component_name(device_id: str, port: int):
    return f"channel-{port}" if port == 1 else None


FIXTURES = Path(__file__).parent / "fixtures"

ROADM_NS = "http://czechlight.cesnet.cz/yang/czechlight-roadm-device"

# Two 50 GHz channels; ch-193150 has a live add on E3 and drop on E4
ROADM_REPLY = f"""
<data xmlns="urn:ietf:params:xml:ns:netconf:base:1.0">
  <channel-plan xmlns="{ROADM_NS}">
    <channel>
      <name>ch-193100</name>
      <lower-frequency>193075000</lower-frequency>
      <upper-frequency>193125000</upper-frequency>
    </channel>
    <channel>
      <name>ch-193150</name>
      <lower-frequency>193125000</lower-frequency>
      <upper-frequency>193175000</upper-frequency>
    </channel>
  </channel-plan>
  <media-channels xmlns="{ROADM_NS}">
    <channel>ch-193150</channel>
    <add>
      <port>E3</port>
      <power>-5.0</power>
    </add>
    <drop>
      <port>E4</port>
      <power>-12.0</power>
    </drop>
  </media-channels>
</data>
"""


class FakeSession(DeviceSession):
    """Device session answering every get with a fixed reply."""

    def __init__(self, reply: str = ROADM_REPLY, edit_result: bool = True,
                 fail_edit: bool = False):
        self.reply = reply
        self.edit_result = edit_result
        self.fail_edit = fail_edit
        self.gets: List[str] = []
        self.edits: List[Tuple[str, str]] = []

    def get(self, filter_xml: str) -> str:
        self.gets.append(filter_xml)
        return self.reply

    def edit_config(self, default_operation: str, config_xml: str) -> bool:
        if self.fail_edit:
            raise DeviceSessionError("connection reset")
        self.edits.append((default_operation, config_xml))
        return self.edit_result


class FakeSessionProvider(SessionProvider):

    def __init__(self, sessions: Optional[Dict[str, DeviceSession]] = None):
        self.sessions = sessions or {}

    def session(self, device_id: str) -> Optional[DeviceSession]:
        return self.sessions.get(device_id)


class FakeInventory(DeviceInventory):

    def __init__(self, types: Optional[Dict[str, DeviceType]] = None,
                 default: DeviceType = DeviceType.ADD_DROP_FLEX):
        self.types = types or {}
        self.default = default

    def device_type(self, device_id: str) -> DeviceType:
        return self.types.get(device_id, self.default)


class FakeAdjacency(LinkAdjacency):

    def __init__(self, links: List[Link]):
        self.links = links

    def device_links(self, device_id: str) -> List[Link]:
        return [link for link in self.links
                if device_id in (link.src.device_id, link.dst.device_id)]


class RecordingPowerControl(PowerControl):
    """Records target power writes instead of touching devices."""

    def __init__(self, capable: Optional[List[str]] = None):
        self.capable = capable
        self.writes: List[Tuple[str, int, Union[Direction, WavelengthSlot], float]] = []

    def supports_power_config(self, device_id: str) -> bool:
        return self.capable is None or device_id in self.capable

    def set_target_power(self, device_id: str, port: int,
                         component: Union[Direction, WavelengthSlot], power: float) -> bool:
        self.writes.append((device_id, port, component, power))
        return True


class FakeCircuitService(CircuitService):

    def __init__(self, circuit_id: str = "circuit-1", fail: bool = False):
        self.circuit_id = circuit_id
        self.fail = fail
        self.submitted: List[Tuple[ConnectPoint, ConnectPoint, WavelengthSlot, SuggestedPath, bool]] = []

    def submit(self, ingress: ConnectPoint, egress: ConnectPoint, slot: WavelengthSlot,
               path: SuggestedPath, bidirectional: bool) -> str:
        if self.fail:
            raise RuntimeError("intent rejected")
        self.submitted.append((ingress, egress, slot, path, bidirectional))
        return self.circuit_id


class FakeEngine:
    """Stands in for PathComputationClient with a canned response body."""

    def __init__(self, response: str):
        self.response = response
        self.payloads: List[dict] = []
        self.connected = True

    def is_connected(self) -> bool:
        return self.connected

    def post(self, payload: dict) -> str:
        self.payloads.append(payload)
        return self.response

    def disconnect(self) -> None:
        self.connected = False


# Devices of the canned engine response
TX1 = "netconf:1.2.3.4:830"
RDM1 = "netconf:1.2.3.5:830"
RDM2 = "netconf:1.2.3.6:830"
TX2 = "netconf:1.2.3.7:830"


@pytest.fixture
def gnpy_response_text() -> str:
    return (FIXTURES / "gnpy_response.json").read_text()


@pytest.fixture
def gnpy_response(gnpy_response_text: str) -> dict:
    return json.loads(gnpy_response_text)


@pytest.fixture
def path_links() -> List[Link]:
    """Adjacency of the canned route: tx1 -> rdm1 -> rdm2 -> tx2."""
    return [
        Link(src=ConnectPoint(device_id=TX1, port=1), dst=ConnectPoint(device_id=RDM1, port=1)),
        Link(src=ConnectPoint(device_id=RDM1, port=2), dst=ConnectPoint(device_id=RDM2, port=2)),
        Link(src=ConnectPoint(device_id=RDM2, port=1), dst=ConnectPoint(device_id=TX2, port=1)),
    ]


@pytest.fixture
def roadm_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sessions(roadm_session: FakeSession) -> FakeSessionProvider:
    return FakeSessionProvider({"roadm-1": roadm_session})
