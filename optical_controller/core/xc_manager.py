"""
Cross-Connect Manager
Adds and drops single cross-connects on a ROADM from operator parameters
"""

import logging
from typing import Optional

from optical_controller.core.frequency_grid import from_central_and_width, to_central_and_width
from optical_controller.core.xc_reconciler import CrossConnectReconciler
from optical_controller.models.schemas import (
    ChannelSpacing, CrossConnectRule, GridType, WavelengthSlot
)


logger = logging.getLogger(__name__)


class CrossConnectManager:
    """Operator-facing add/drop of cross-connects."""

    def __init__(self, reconciler: CrossConnectReconciler):
        self.reconciler = reconciler

    @staticmethod
    def create_slot(frequency_mhz: int, slot_width_ghz: float) -> WavelengthSlot:
        """
        Compose a slot from a central frequency and a slot width.

        The finest channel spacing is used so that any flex-grid channel
        can be expressed.

        Args:
            frequency_mhz: Central frequency in MHz
            slot_width_ghz: Slot width in GHz, like 50 or 62.5

        Returns:
            FLEX grid slot on the 6.25 GHz spacing
        """
        return from_central_and_width(
            int(frequency_mhz) * 1_000_000,
            int(slot_width_ghz * 1_000_000_000),
            GridType.FLEX,
            ChannelSpacing.CHL_6P25GHZ
        )

    def add_cross_connect(self, device_id: str, src_port: int, dst_port: int,
                          frequency_mhz: int, slot_width_ghz: float) -> Optional[CrossConnectRule]:
        """
        Create a cross-connect on a device.

        Returns:
            The applied rule, or None if the device did not take it
        """
        rule = CrossConnectRule(
            device_id=device_id,
            input_port=src_port,
            output_port=dst_port,
            slot=self.create_slot(frequency_mhz, slot_width_ghz)
        )

        applied = self.reconciler.apply(device_id, [rule])
        if not applied:
            logger.info("Your rule wasn't added. Something went wrong during the process "
                        "(issue on the driver side).")
            return None

        logger.info(f"Adding XC for the device {device_id} between port {src_port} and port {dst_port} "
                    f"on frequency {frequency_mhz} with bandwidth {slot_width_ghz}")
        return applied[0]

    def drop_cross_connect(self, device_id: str, src_port: int, dst_port: int,
                           frequency_mhz: int, slot_width_ghz: float) -> Optional[CrossConnectRule]:
        """
        Drop the live cross-connect matching ports, central frequency and width.

        Returns:
            The removed rule, or None when nothing matched
        """
        reference = to_central_and_width(self.create_slot(frequency_mhz, slot_width_ghz))

        entries = self.reconciler.query(device_id)
        if entries is None:
            return None

        for entry in entries:
            rule = entry.rule
            if (to_central_and_width(rule.slot) == reference
                    and rule.input_port == src_port
                    and rule.output_port == dst_port):
                removed = self.reconciler.remove(device_id, [rule])
                if not removed:
                    return None
                logger.info(f"Dropping existing XC from the device {device_id}")
                return rule

        logger.info("Your rule wasn't dropped. No match found.")
        return None
