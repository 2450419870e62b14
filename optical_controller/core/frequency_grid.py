"""
Frequency grid arithmetic.

Maps between physical (central frequency, slot width) pairs and the integer
WavelengthSlot form. Encoding truncates toward zero and works on integer
MHz: the Hz value loses its last six digits before dividing, which is how
slots already programmed on devices were computed. Decoding is exact.
"""

from decimal import Decimal
from typing import List, Optional, Tuple, Union

from optical_controller.models.schemas import (
    ANCHOR_FREQUENCY_HZ, SLOT_WIDTH_UNIT_HZ, ChannelSpacing, GridType, WavelengthSlot
)


ANCHOR_FREQUENCY_MHZ = ANCHOR_FREQUENCY_HZ // 1_000_000
ANCHOR_FREQUENCY_GHZ = Decimal(ANCHOR_FREQUENCY_HZ // 1_000_000_000)
SLOT_WIDTH_UNIT_MHZ = SLOT_WIDTH_UNIT_HZ // 1_000_000

# Fixed channel set of coherent terminal devices
DWDM_LAMBDA_COUNT = 96
DWDM_START_FREQUENCY_GHZ = 191_350


def _trunc_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


def _hz_to_mhz(frequency_hz: int) -> int:
    return _trunc_div(int(frequency_hz), 1_000_000)


def from_central_and_width(central_hz: int, slot_width_hz: int,
                           grid_type: GridType, spacing: ChannelSpacing) -> WavelengthSlot:
    """
    Build a slot from its central frequency and width.

    Args:
        central_hz: Central frequency in Hz
        slot_width_hz: Slot width in Hz
        grid_type: Grid the slot belongs to
        spacing: Channel spacing used as the multiplier unit

    Returns:
        WavelengthSlot with truncated multiplier and granularity
    """
    central_mhz = _hz_to_mhz(central_hz)
    width_mhz = _hz_to_mhz(slot_width_hz)

    spacing_multiplier = _trunc_div(central_mhz - ANCHOR_FREQUENCY_MHZ, spacing.mhz)
    slot_granularity = _trunc_div(width_mhz, SLOT_WIDTH_UNIT_MHZ)

    return WavelengthSlot(
        grid_type=grid_type,
        channel_spacing=spacing,
        spacing_multiplier=spacing_multiplier,
        slot_granularity=slot_granularity
    )


def from_bounds(lower_hz: int, upper_hz: int,
                grid_type: GridType, spacing: ChannelSpacing) -> WavelengthSlot:
    """Build a slot from the lower and upper edges of its passband."""
    slot_width = upper_hz - lower_hz
    central = lower_hz + slot_width // 2
    return from_central_and_width(central, slot_width, grid_type, spacing)


def to_central_and_width(slot: WavelengthSlot,
                         spacing: Optional[ChannelSpacing] = None) -> Tuple[int, int]:
    """Return (central frequency, slot width) in Hz."""
    if spacing is None:
        spacing = slot.channel_spacing
    central = ANCHOR_FREQUENCY_HZ + slot.spacing_multiplier * spacing.hz
    width = slot.slot_granularity * SLOT_WIDTH_UNIT_HZ
    return central, width


def to_bounds(slot: WavelengthSlot, spacing: Optional[ChannelSpacing] = None) -> Tuple[int, int]:
    """Return (min frequency, max frequency) of the slot passband in Hz."""
    central, width = to_central_and_width(slot, spacing)
    half_width = width // 2
    return central - half_width, central + half_width


def multiplier_from_frequency(frequency_ghz: Union[Decimal, int, str],
                              grid_type: GridType, spacing: ChannelSpacing) -> int:
    """
    Spacing multiplier for a bare frequency given in GHz.

    The distance to the grid anchor is taken as an absolute value and the
    step is the spacing expressed in THz, so the result is never negative.
    A GHz input over a 50 GHz spacing therefore counts 0.05 GHz steps:
    193150 GHz gives 1000, 193100.05 GHz gives 1.
    Multipliers produced for engine label hops depend on this.
    """
    if grid_type == GridType.DWDM:
        anchor = ANCHOR_FREQUENCY_GHZ
    else:
        anchor = Decimal(0)

    frequency = Decimal(str(frequency_ghz))
    return int(abs(frequency - anchor) / spacing.thz)


def dwdm_lambdas(count: int = DWDM_LAMBDA_COUNT,
                 start_ghz: int = DWDM_START_FREQUENCY_GHZ) -> List[WavelengthSlot]:
    """
    Channels supported by a coherent terminal device.

    Args:
        count: Number of channels
        start_ghz: Central frequency of the first channel in GHz

    Returns:
        DWDM slots on the 50 GHz grid, 50 GHz wide, lowest frequency first
    """
    spacing = ChannelSpacing.CHL_50GHZ
    start_multiplier = _trunc_div(start_ghz * 1_000_000_000 - ANCHOR_FREQUENCY_HZ, spacing.hz)

    return [
        WavelengthSlot(
            grid_type=GridType.DWDM,
            channel_spacing=spacing,
            spacing_multiplier=start_multiplier + index,
            slot_granularity=4
        )
        for index in range(count)
    ]
