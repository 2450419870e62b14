"""
Cross-Connect Reconciler for ROADMs
Translates abstract switching rules into batched media-channel edits and back
"""

import logging
import threading
import xml.etree.ElementTree as ET
from typing import Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

from optical_controller.config.settings import settings
from optical_controller.core.channel_catalog import (
    find_channel, parse_channel_plan, parse_media_channels
)
from optical_controller.core.connection_cache import DeviceConnectionCache
from optical_controller.core.exceptions import DeviceSessionError
from optical_controller.core.frequency_grid import from_bounds
from optical_controller.core.interfaces import DeviceInventory, SessionProvider
from optical_controller.models.schemas import (
    ChannelSpacing, CrossConnectEntry, CrossConnectRule, DeviceType, GridType,
    MediaChannelDefinition, RuleState
)


logger = logging.getLogger(__name__)

NETCONF_BASE_NS = "urn:ietf:params:xml:ns:netconf:base:1.0"
NETCONF_OP_MERGE = "merge"
NETCONF_OP_NONE = "none"

# Target power (dBm) per device type: (towards common port, towards leaf port)
LINE_DEGREE_POWER = (-5.0, -12.0)
DEFAULT_POWER = (-12.0, -5.0)


class CrossConnectReconciler:
    """
    Stateful per-device translator between switching rules and ROADM
    add/drop media-channel configuration.

    Full-band devices (inline amplifiers, coherent add/drop) forward the whole
    spectrum, so their rules are only remembered in the connection cache.
    Every other device is reconciled against its live channel plan.
    """

    def __init__(self, sessions: SessionProvider,
                 inventory: Optional[DeviceInventory] = None,
                 cache: Optional[DeviceConnectionCache] = None,
                 common_port: Optional[int] = None,
                 port_prefix: Optional[str] = None,
                 namespace: Optional[str] = None):
        self.sessions = sessions
        self.inventory = inventory
        self.cache = cache if cache is not None else DeviceConnectionCache()
        self.common_port = common_port if common_port is not None else settings.ROADM_COMMON_PORT
        self.port_prefix = port_prefix if port_prefix is not None else settings.LINE_DEGREE_PORT_PREFIX
        self.namespace = namespace or settings.ROADM_YANG_NAMESPACE
        self._device_locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # -------------------------
    # Public operations
    # -------------------------
    def apply(self, device_id: str, rules: Iterable[CrossConnectRule],
              device_type: Optional[DeviceType] = None) -> Optional[List[CrossConnectRule]]:
        """
        Program switching rules on a device.

        Args:
            device_id: Target device
            rules: Rules to apply
            device_type: Device flavour; looked up in the inventory when omitted

        Returns:
            Rules that were mapped onto the device, or None if the device
            could not be read or written
        """
        rules = list(rules)
        device_type = self._resolve_type(device_id, device_type)

        with self._device_lock(device_id):
            if device_type.is_full_band:
                for rule in rules:
                    logger.debug(f"{device_id}: asked for {rule.cache_key()} "
                                 f"(whole C-band is always forwarded by the HW)")
                    self.cache.add(device_id, rule.cache_key(), rule)
                return rules

            catalog = self._read_catalog(device_id)
            if catalog is None:
                return None

            changes: Dict[str, str] = {}
            applied = []
            for rule in rules:
                element = "drop" if rule.is_drop(self.common_port) else "add"
                leaf_port = rule.leaf_port(self.common_port)

                channel_key = find_channel(catalog, rule.slot)
                if channel_key is None:
                    logger.error(f"No matching channel definition available at {device_id} "
                                 f"for rule {rule.cache_key()}")
                    continue

                logger.info(f"{device_id}: Creating \"{element}\" MC {channel_key}: leaf {leaf_port}")
                power = self._target_power(device_type, rule.output_port == self.common_port)
                fragment = (f"<{element}><port>{self._format_port(device_type, leaf_port)}</port>"
                            f"<power>{power}</power></{element}>")
                changes[channel_key] = changes.get(channel_key, "") + fragment
                applied.append(rule)

            if applied and not self._edit_config(device_id, NETCONF_OP_MERGE, self._media_channels(changes)):
                return None
            return applied

    def remove(self, device_id: str, rules: Iterable[CrossConnectRule],
               device_type: Optional[DeviceType] = None) -> Optional[List[CrossConnectRule]]:
        """Withdraw switching rules; mirror image of apply()."""
        rules = list(rules)
        device_type = self._resolve_type(device_id, device_type)

        with self._device_lock(device_id):
            if device_type.is_full_band:
                for rule in rules:
                    logger.debug(f"{device_id}: asked to remove {rule.cache_key()} "
                                 f"(whole C-band is always forwarded by the HW)")
                    self.cache.remove(device_id, rule.cache_key())
                return rules

            catalog = self._read_catalog(device_id)
            if catalog is None:
                return None

            changes: Dict[str, str] = {}
            removed = []
            for rule in rules:
                element = "drop" if rule.is_drop(self.common_port) else "add"
                channel_key = find_channel(catalog, rule.slot)
                if channel_key is None:
                    logger.error(f"Cannot find what channel to remove at {device_id} "
                                 f"for rule {rule.cache_key()}")
                    continue

                logger.info(f"{device_id}: Removing {element} MC {channel_key}")
                fragment = f'<{element} xmlns:nc="{NETCONF_BASE_NS}" nc:operation="remove"/>'
                changes[channel_key] = changes.get(channel_key, "") + fragment
                removed.append(rule)

            if removed and not self._edit_config(device_id, NETCONF_OP_NONE, self._media_channels(changes)):
                return None
            return removed

    def query(self, device_id: str,
              device_type: Optional[DeviceType] = None) -> Optional[List[CrossConnectEntry]]:
        """
        List the cross-connects currently active on a device.

        Returns:
            One entry per live add and per live drop branch, or None if the
            device could not be read
        """
        device_type = self._resolve_type(device_id, device_type)

        if device_type.is_full_band:
            return [CrossConnectEntry(rule=rule, state=RuleState.ADDED)
                    for rule in self.cache.get(device_id)]

        reply = self._read_device(device_id)
        if reply is None:
            return None
        try:
            channels = {channel.key: channel for channel in parse_channel_plan(reply)}
            routings = parse_media_channels(reply, self.port_prefix)
        except (ET.ParseError, ValueError) as e:
            logger.error(f"Unparsable media channel data from {device_id}: {e}")
            return None

        entries = []
        for routing in routings:
            channel = channels.get(routing.channel_key)
            if channel is None:
                logger.warning(f"{device_id}: {routing.element} MC {routing.channel_key} "
                               f"is not in the channel plan")
                continue

            slot = from_bounds(channel.low_mhz * 1_000_000, channel.high_mhz * 1_000_000,
                               GridType.FLEX, ChannelSpacing.CHL_6P25GHZ)
            if routing.element == "drop":
                input_port, output_port = self.common_port, routing.leaf_port
            else:
                input_port, output_port = routing.leaf_port, self.common_port

            logger.debug(f"{device_id}: found {routing.element.upper()}: "
                         f"{routing.channel_key} -> {routing.leaf_port}")
            entries.append(CrossConnectEntry(
                rule=CrossConnectRule(
                    device_id=device_id,
                    input_port=input_port,
                    output_port=output_port,
                    slot=slot,
                    target_power=routing.power
                ),
                state=RuleState.ADDED
            ))

        return entries

    def device_removed(self, device_id: str) -> None:
        """Forget everything cached for a device leaving the inventory."""
        with self._device_lock(device_id):
            self.cache.clear_device(device_id)

    # -------------------------
    # Helpers
    # -------------------------
    def _resolve_type(self, device_id: str, device_type: Optional[DeviceType]) -> DeviceType:
        if device_type is not None:
            return device_type
        if self.inventory is None:
            raise ValueError(f"Device type of {device_id} unknown and no inventory configured")
        return self.inventory.device_type(device_id)

    def _device_lock(self, device_id: str) -> threading.RLock:
        with self._locks_guard:
            return self._device_locks.setdefault(device_id, threading.RLock())

    @staticmethod
    def _target_power(device_type: DeviceType, towards_common: bool) -> float:
        common, leaf = LINE_DEGREE_POWER if device_type == DeviceType.LINE_DEGREE else DEFAULT_POWER
        return common if towards_common else leaf

    def _format_port(self, device_type: DeviceType, port: int) -> str:
        if device_type == DeviceType.LINE_DEGREE:
            return f"{self.port_prefix}{port}"
        return str(port)

    def _media_channels(self, changes: Dict[str, str]) -> str:
        # add and drop of one channel share a single list item
        return "".join(
            f'<media-channels xmlns="{self.namespace}"><channel>{escape(key)}</channel>'
            f'{changes[key]}</media-channels>'
            for key in sorted(changes)
        )

    def _read_device(self, device_id: str) -> Optional[str]:
        session = self.sessions.session(device_id)
        if session is None:
            logger.error(f"Cannot request NETCONF session for {device_id}")
            return None

        subtree = (f'<channel-plan xmlns="{self.namespace}"/>'
                   f'<media-channels xmlns="{self.namespace}"/>')
        try:
            return session.get(subtree)
        except DeviceSessionError as e:
            logger.error(f"Cannot read data from NETCONF for {device_id}: {e}")
            return None

    def _read_catalog(self, device_id: str) -> Optional[List[MediaChannelDefinition]]:
        reply = self._read_device(device_id)
        if reply is None:
            return None
        try:
            return parse_channel_plan(reply)
        except (ET.ParseError, ValueError) as e:
            logger.error(f"Unparsable channel plan from {device_id}: {e}")
            return None

    def _edit_config(self, device_id: str, default_operation: str, config: str) -> bool:
        session = self.sessions.session(device_id)
        if session is None:
            logger.error(f"Cannot request NETCONF session for {device_id}")
            return False

        try:
            ok = session.edit_config(default_operation, config)
        except DeviceSessionError as e:
            logger.error(f"Failed to edit configuration of {device_id}: {e}")
            return False

        if not ok:
            logger.error(f"Device {device_id} rejected {default_operation} edit-config")
        return ok
