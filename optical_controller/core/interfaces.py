"""
Collaborator interfaces consumed by the provisioning core.

Each collaborator is injected through a constructor; the core never looks
services up at runtime.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Union

from optical_controller.models.schemas import (
    ConnectPoint, DeviceType, Direction, Link, SuggestedPath, WavelengthSlot
)


class DeviceSession(ABC):
    """NETCONF-style session with a single device."""

    @abstractmethod
    def get(self, filter_xml: str) -> str:
        """
        Run a subtree-filtered <get>.

        Returns:
            The reply's data as an XML document string

        Raises:
            DeviceSessionError: if the request fails
        """
        raise NotImplementedError

    @abstractmethod
    def edit_config(self, default_operation: str, config_xml: str) -> bool:
        """
        Edit the running datastore.

        Raises:
            DeviceSessionError: if the request fails
        """
        raise NotImplementedError


class SessionProvider(ABC):

    @abstractmethod
    def session(self, device_id: str) -> Optional[DeviceSession]:
        """Return the open session for a device, or None."""
        raise NotImplementedError


class DeviceInventory(ABC):

    @abstractmethod
    def device_type(self, device_id: str) -> DeviceType:
        raise NotImplementedError


class LinkAdjacency(ABC):

    @abstractmethod
    def device_links(self, device_id: str) -> List[Link]:
        """Links touching a device, in store order."""
        raise NotImplementedError


class PowerControl(ABC):
    """Device power configuration capability."""

    @abstractmethod
    def supports_power_config(self, device_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def set_target_power(self, device_id: str, port: int,
                         component: Union[Direction, WavelengthSlot], power: float) -> bool:
        raise NotImplementedError


class CircuitService(ABC):

    @abstractmethod
    def submit(self, ingress: ConnectPoint, egress: ConnectPoint, slot: WavelengthSlot,
               path: SuggestedPath, bidirectional: bool) -> str:
        """Request circuit establishment and return its identifier."""
        raise NotImplementedError
