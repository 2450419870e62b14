"""
Media channel catalog of a ROADM.

Parses the channel plan and live media-channel routing out of a device
reply, and finds the declared channel that owns a wavelength slot.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterable, List, Optional

from optical_controller.core.frequency_grid import to_central_and_width
from optical_controller.models.schemas import MediaChannelDefinition, WavelengthSlot


logger = logging.getLogger(__name__)

ROUTING_ELEMENTS = ("add", "drop")


@dataclass
class MediaChannelRouting:
    """One live add or drop branch of a media channel."""
    channel_key: str
    element: str
    leaf_port: int
    power: Optional[float] = None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    found = _children(element, name)
    if not found or found[0].text is None:
        return None
    return found[0].text.strip()


def _optional_float(value: Optional[str]) -> Optional[float]:
    return float(value) if value is not None else None


def _iter_named(root: ET.Element, name: str) -> Iterable[ET.Element]:
    return (element for element in root.iter() if _local_name(element.tag) == name)


def parse_leaf_port(value: str, prefix: str = "E") -> int:
    """Leaf ports are either a bare number or a number prefixed by ``prefix``."""
    if prefix and value.startswith(prefix):
        value = value[len(prefix):]
    return int(value)


def parse_channel_plan(xml_text: str) -> List[MediaChannelDefinition]:
    """
    Read the declared media channels from a device reply.

    Args:
        xml_text: Reply data containing a <channel-plan> subtree

    Returns:
        Channel definitions in document order
    """
    root = ET.fromstring(xml_text)
    catalog = []

    for plan in _iter_named(root, "channel-plan"):
        for channel in _children(plan, "channel"):
            name = _child_text(channel, "name")
            low = _child_text(channel, "lower-frequency")
            high = _child_text(channel, "upper-frequency")
            if name is None or low is None or high is None:
                logger.warning(f"Skipping incomplete channel definition {name}")
                continue
            catalog.append(MediaChannelDefinition(key=name, low_mhz=int(low), high_mhz=int(high)))

    logger.debug(f"Parsed {len(catalog)} channel definitions")
    return catalog


def parse_media_channels(xml_text: str, port_prefix: str = "E") -> List[MediaChannelRouting]:
    """
    Read the live add/drop routing table from a device reply.

    Returns:
        All add branches followed by all drop branches
    """
    root = ET.fromstring(xml_text)
    media_channels = list(_iter_named(root, "media-channels"))
    routings = []

    for element in ROUTING_ELEMENTS:
        for item in media_channels:
            key = _child_text(item, "channel")
            branches = _children(item, element)
            if key is None or not branches:
                continue
            port = _child_text(branches[0], "port")
            if port is None:
                continue
            routings.append(MediaChannelRouting(
                channel_key=key,
                element=element,
                leaf_port=parse_leaf_port(port, port_prefix),
                power=_optional_float(_child_text(branches[0], "power"))
            ))

    return routings


def channel_matches(channel: MediaChannelDefinition, slot: WavelengthSlot) -> bool:
    """The slot's passband lies within the channel's [low, high] range."""
    central_hz, width_hz = to_central_and_width(slot)
    half_width = width_hz // 2
    low_hz = channel.low_mhz * 1_000_000
    high_hz = channel.high_mhz * 1_000_000
    return low_hz <= central_hz - half_width and central_hz + half_width <= high_hz


def find_channel(catalog: Iterable[MediaChannelDefinition], slot: WavelengthSlot) -> Optional[str]:
    """
    Find the declared channel owning a slot.

    Catalog order is kept as supplied; the first match wins.

    Returns:
        Channel key, or None when the slot is not programmable on the device
    """
    for channel in catalog:
        if channel_matches(channel, slot):
            return channel.key
    return None
