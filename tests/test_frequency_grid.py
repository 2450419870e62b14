"""
Unit tests for frequency grid arithmetic.
"""

from decimal import Decimal

import pytest

from optical_controller.core.frequency_grid import (
    dwdm_lambdas, from_bounds, from_central_and_width, multiplier_from_frequency,
    to_bounds, to_central_and_width
)
from optical_controller.models.schemas import ChannelSpacing, GridType, WavelengthSlot


ANCHOR_HZ = 193_100_000_000_000


def test_anchor_frequency_has_zero_multiplier() -> None:
    """Test that 193.1 THz on the 50 GHz grid encodes to multiplier 0."""
    slot = from_central_and_width(ANCHOR_HZ, 50_000_000_000, GridType.DWDM, ChannelSpacing.CHL_50GHZ)

    assert slot.spacing_multiplier == 0
    assert slot.slot_granularity == 4


@pytest.mark.parametrize("central_hz, width_hz, spacing, multiplier, granularity", [
    (193_150_000_000_000, 50_000_000_000, ChannelSpacing.CHL_50GHZ, 1, 4),
    (192_000_000_000_000, 100_000_000_000, ChannelSpacing.CHL_100GHZ, -11, 8),
    (193_106_250_000_000, 37_500_000_000, ChannelSpacing.CHL_6P25GHZ, 1, 3),
])
def test_exact_grid_points_decode_back(central_hz, width_hz, spacing, multiplier, granularity) -> None:
    """Test that exact grid points survive encode and decode without error."""
    slot = from_central_and_width(central_hz, width_hz, GridType.FLEX, spacing)

    assert slot.spacing_multiplier == multiplier
    assert slot.slot_granularity == granularity
    assert to_central_and_width(slot) == (central_hz, width_hz)
    assert slot.central_frequency_hz == central_hz
    assert slot.slot_width_hz == width_hz


def test_encoding_truncates_toward_zero() -> None:
    """Test that off-grid frequencies truncate toward the anchor."""
    spacing = ChannelSpacing.CHL_50GHZ

    below = from_central_and_width(ANCHOR_HZ - 30_000_000_000, 50_000_000_000, GridType.DWDM, spacing)
    further_below = from_central_and_width(ANCHOR_HZ - 80_000_000_000, 50_000_000_000, GridType.DWDM, spacing)
    above = from_central_and_width(ANCHOR_HZ + 75_000_000_000, 62_500_000_000, GridType.DWDM, spacing)

    assert below.spacing_multiplier == 0
    assert further_below.spacing_multiplier == -1
    assert above.spacing_multiplier == 1
    assert above.slot_granularity == 5


def test_sub_mhz_digits_are_dropped() -> None:
    """Test that Hz below one MHz never carry into the multiplier."""
    slot = from_central_and_width(ANCHOR_HZ + 50_000_999_999, 50_000_000_000,
                                  GridType.DWDM, ChannelSpacing.CHL_50GHZ)
    assert slot.spacing_multiplier == 1


def test_from_bounds_uses_passband_center() -> None:
    """Test that a channel's edges map to its central slot."""
    slot = from_bounds(193_125_000_000_000, 193_175_000_000_000, GridType.FLEX, ChannelSpacing.CHL_6P25GHZ)

    assert slot.spacing_multiplier == 8
    assert slot.slot_granularity == 4
    assert to_bounds(slot) == (193_125_000_000_000, 193_175_000_000_000)


def test_decode_with_explicit_spacing() -> None:
    """Test that an explicit spacing overrides the slot's own spacing."""
    slot = WavelengthSlot(grid_type=GridType.DWDM, channel_spacing=ChannelSpacing.CHL_50GHZ,
                          spacing_multiplier=1, slot_granularity=4)

    central, width = to_central_and_width(slot, ChannelSpacing.CHL_6P25GHZ)

    assert central == ANCHOR_HZ + 6_250_000_000
    assert width == 50_000_000_000


def test_label_hop_frequency_multiplier() -> None:
    """Test that N=-284 in 0.05 GHz steps resolves to multiplier 284."""
    frequency = Decimal(193100) + (-284) * Decimal("0.05")

    assert multiplier_from_frequency(frequency, GridType.DWDM, ChannelSpacing.CHL_50GHZ) == 284


def test_multiplier_from_frequency_is_never_negative() -> None:
    """Test that frequencies on either side of the anchor give the same magnitude."""
    above = multiplier_from_frequency("193100.05", GridType.DWDM, ChannelSpacing.CHL_50GHZ)
    below = multiplier_from_frequency("193099.95", GridType.DWDM, ChannelSpacing.CHL_50GHZ)

    assert above == 1
    assert below == 1
    assert multiplier_from_frequency(193150, GridType.DWDM, ChannelSpacing.CHL_50GHZ) == 1000


def test_dwdm_lambdas() -> None:
    """Test the fixed 96-channel catalogue of coherent terminal devices."""
    lambdas = dwdm_lambdas()

    assert len(lambdas) == 96
    assert lambdas[0].spacing_multiplier == -35
    assert lambdas[-1].spacing_multiplier == 60
    assert lambdas[0].central_frequency_hz == 191_350_000_000_000
    assert all(slot.slot_granularity == 4 for slot in lambdas)
    assert all(slot.grid_type == GridType.DWDM for slot in lambdas)
