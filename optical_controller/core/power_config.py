"""
Power configuration for OpenConfig terminal devices.

Target output power lives under
components/component[name]/optical-channel/config/target-output-power,
where the component name is the port's ``oc-name`` annotation.
"""

import logging
import xml.etree.ElementTree as ET
from typing import Callable, Iterable, List, Optional, Set, Tuple, Union
from xml.sax.saxutils import escape

from optical_controller.core.exceptions import DeviceSessionError
from optical_controller.core.interfaces import PowerControl, SessionProvider
from optical_controller.models.schemas import Direction, WavelengthSlot


logger = logging.getLogger(__name__)

OC_PLATFORM_NS = "http://openconfig.net/yang/platform"
OC_TERMINAL_DEVICE_NS = "http://openconfig.net/yang/terminal-device"

# Only line ports (optical channels) carry power
TARGET_POWER_RANGE = (-20.0, 6.0)

ComponentNameLookup = Callable[[str, int], Optional[str]]


def _find_text(root: ET.Element, path: List[str]) -> Optional[str]:
    """Text of the first element reached by following local names from root."""
    candidates = [root]
    for name in path:
        candidates = [child for element in candidates for child in element
                      if child.tag.rsplit("}", 1)[-1] == name]
        if not candidates:
            return None
    text = candidates[0].text
    return text.strip() if text is not None else None


class OpenConfigPowerConfig(PowerControl):
    """
    PowerControl over OpenConfig terminal devices.

    The power component (a Direction or a WavelengthSlot) is passed on each
    call; both address the same optical-channel of the port.
    """

    def __init__(self, sessions: SessionProvider, component_names: ComponentNameLookup,
                 capable_devices: Optional[Iterable[str]] = None):
        self.sessions = sessions
        self.component_names = component_names
        self.capable_devices: Optional[Set[str]] = (
            set(capable_devices) if capable_devices is not None else None
        )

    def supports_power_config(self, device_id: str) -> bool:
        if self.capable_devices is None:
            return True
        return device_id in self.capable_devices

    def set_target_power(self, device_id: str, port: int,
                         component: Union[Direction, WavelengthSlot], power: float) -> bool:
        """
        Write target-output-power for a port.

        Returns:
            True when the device acknowledged the edit
        """
        name = self.component_names(device_id, port)
        if name is None:
            logger.error(f"Port {device_id}/{port} has no optical-channel component")
            return False

        session = self.sessions.session(device_id)
        if session is None:
            logger.error(f"Cannot request NETCONF session for {device_id}")
            return False

        config = (f'<components xmlns="{OC_PLATFORM_NS}"><component><name>{escape(name)}</name>'
                  f'<optical-channel xmlns="{OC_TERMINAL_DEVICE_NS}"><config>'
                  f'<target-output-power>{power}</target-output-power>'
                  f'</config></optical-channel></component></components>')
        try:
            ok = session.edit_config("merge", config)
        except DeviceSessionError as e:
            logger.error(f"Failed to set target-output-power of {device_id}/{port}: {e}")
            return False

        if not ok:
            logger.error(f"The <edit-config> operation to set target-output-power of "
                         f"Port({device_id}/{port}:{component}) is failed.")
        return ok

    def get_target_power(self, device_id: str, port: int) -> Optional[float]:
        return self._read_power(device_id, port, "", ["optical-channel", "config", "target-output-power"])

    def current_output_power(self, device_id: str, port: int) -> Optional[float]:
        return self._read_power(
            device_id, port,
            "<state><output-power><instant/></output-power></state>",
            ["optical-channel", "state", "output-power", "instant"]
        )

    def current_input_power(self, device_id: str, port: int) -> Optional[float]:
        return self._read_power(
            device_id, port,
            "<state><input-power><instant/></input-power></state>",
            ["optical-channel", "state", "input-power", "instant"]
        )

    def target_power_range(self, device_id: str, port: int) -> Optional[Tuple[float, float]]:
        if self.component_names(device_id, port) is None:
            return None
        return TARGET_POWER_RANGE

    def input_power_range(self, device_id: str, port: int) -> Optional[Tuple[float, float]]:
        root = self._get_component(device_id, port, "<state><input-power-range/></state>")
        if root is None:
            return None
        base = ["optical-channel", "state", "input-power-range"]
        low = self._component_text(root, base + ["min"])
        high = self._component_text(root, base + ["max"])
        if low is None or high is None:
            return None
        return float(low), float(high)

    # -------------------------
    # Helpers
    # -------------------------
    def _read_power(self, device_id: str, port: int, under_channel: str,
                    path: List[str]) -> Optional[float]:
        root = self._get_component(device_id, port, under_channel)
        if root is None:
            return None
        value = self._component_text(root, path)
        try:
            return float(value) if value is not None else None
        except ValueError:
            logger.warning(f"Unparsable power value {value!r} from {device_id}/{port}")
            return None

    @staticmethod
    def _component_text(root: ET.Element, path: List[str]) -> Optional[str]:
        for components in root.iter():
            if components.tag.rsplit("}", 1)[-1] == "components":
                return _find_text(components, ["component"] + path)
        return None

    def _get_component(self, device_id: str, port: int, under_channel: str) -> Optional[ET.Element]:
        name = self.component_names(device_id, port)
        if name is None:
            return None

        session = self.sessions.session(device_id)
        if session is None:
            logger.error(f"Cannot request NETCONF session for {device_id}")
            return None

        channel = ""
        if under_channel:
            channel = f'<optical-channel xmlns="{OC_TERMINAL_DEVICE_NS}">{under_channel}</optical-channel>'
        subtree = (f'<components xmlns="{OC_PLATFORM_NS}"><component>'
                   f'<name>{escape(name)}</name>{channel}</component></components>')
        try:
            return ET.fromstring(session.get(subtree))
        except DeviceSessionError as e:
            logger.error(f"Exception on Netconf protocol for {device_id}: {e}")
        except ET.ParseError as e:
            logger.error(f"Unparsable reply from {device_id}: {e}")
        return None
