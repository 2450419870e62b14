"""
Data Models for the Optical Provisioning Controller - Pydantic V2 compatible
"""

from decimal import Decimal
from typing import Dict, List, Optional, Any, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


# Anchor of the ITU-T G.694.1 frequency grid
ANCHOR_FREQUENCY_HZ = 193_100_000_000_000
# Slot width unit of the flexible grid
SLOT_WIDTH_UNIT_HZ = 12_500_000_000

# "Value unknown" markers carried in path plans; never written to a device
UNKNOWN_POWER = -99.0
UNKNOWN_OSNR = -1.0


# ============ Enumerations ============
class GridType(str, Enum):
    DWDM = "DWDM"
    CWDM = "CWDM"
    FLEX = "FLEX"
    UNKNOWN = "UNKNOWN"


class ChannelSpacing(int, Enum):
    """Channel spacing of a frequency grid, valued in Hz."""
    CHL_100GHZ = 100_000_000_000
    CHL_50GHZ = 50_000_000_000
    CHL_25GHZ = 25_000_000_000
    CHL_12P5GHZ = 12_500_000_000
    CHL_6P25GHZ = 6_250_000_000

    @property
    def hz(self) -> int:
        return int(self.value)

    @property
    def mhz(self) -> int:
        return self.value // 1_000_000

    @property
    def ghz(self) -> Decimal:
        return Decimal(self.value) / Decimal(10 ** 9)

    @property
    def thz(self) -> Decimal:
        return Decimal(self.value) / Decimal(10 ** 12)


class DeviceType(str, Enum):
    """ROADM device flavours, as annotated at discovery time."""
    LINE_DEGREE = "LINE_DEGREE"
    ADD_DROP_FLEX = "ADD_DROP_FLEX"
    INLINE_AMP = "INLINE_AMP"
    COHERENT_ADD_DROP = "COHERENT_ADD_DROP"

    @property
    def is_full_band(self) -> bool:
        """Hardware that always forwards the whole C-band."""
        return self in (DeviceType.INLINE_AMP, DeviceType.COHERENT_ADD_DROP)


class RuleState(str, Enum):
    PENDING_ADD = "PENDING_ADD"
    ADDED = "ADDED"
    PENDING_REMOVE = "PENDING_REMOVE"


class Direction(str, Enum):
    ALL = "ALL"
    INGRESS = "INGRESS"
    EGRESS = "EGRESS"


# ============ Spectrum Models ============
class WavelengthSlot(BaseModel):
    """
    Integer-quantized optical channel on a frequency grid.

    central frequency = 193.1 THz + spacing_multiplier * channel_spacing
    slot width        = slot_granularity * 12.5 GHz
    """
    model_config = ConfigDict(frozen=True)

    grid_type: GridType
    channel_spacing: ChannelSpacing
    spacing_multiplier: int
    slot_granularity: int = Field(..., ge=0)

    @property
    def central_frequency_hz(self) -> int:
        return ANCHOR_FREQUENCY_HZ + self.spacing_multiplier * self.channel_spacing.hz

    @property
    def slot_width_hz(self) -> int:
        return self.slot_granularity * SLOT_WIDTH_UNIT_HZ

    def __str__(self) -> str:
        return (f"{self.grid_type.value}/{self.channel_spacing.name}/"
                f"{self.spacing_multiplier}/{self.slot_granularity}")


class MediaChannelDefinition(BaseModel):
    """Named frequency range a ROADM declares in its channel plan."""
    model_config = ConfigDict(frozen=True)

    key: str
    low_mhz: int
    high_mhz: int

    @property
    def width_mhz(self) -> int:
        return self.high_mhz - self.low_mhz

    @property
    def central_mhz(self) -> int:
        return self.low_mhz + self.width_mhz // 2


# ============ Topology Models ============
class ConnectPoint(BaseModel):
    """Device port, written as ``scheme:host:port/N``."""
    model_config = ConfigDict(frozen=True)

    device_id: str
    port: int

    @classmethod
    def parse(cls, value: str) -> "ConnectPoint":
        device_id, sep, port = value.rpartition("/")
        if not sep or not device_id:
            raise ValueError(f"Connect point must be in format 'device/port': {value}")
        return cls(device_id=device_id, port=int(port))

    def __str__(self) -> str:
        return f"{self.device_id}/{self.port}"


class Link(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: ConnectPoint
    dst: ConnectPoint


class SuggestedPath(BaseModel):
    """Link-level path resolved from a device route."""
    links: List[Link] = Field(default_factory=list)

    @property
    def src(self) -> Optional[ConnectPoint]:
        return self.links[0].src if self.links else None

    @property
    def dst(self) -> Optional[ConnectPoint]:
        return self.links[-1].dst if self.links else None


# ============ Cross-Connect Models ============
class CrossConnectRule(BaseModel):
    """Abstract switching rule: forward ``slot`` from input to output port."""
    model_config = ConfigDict(frozen=True)

    device_id: str
    input_port: int
    output_port: int
    slot: WavelengthSlot
    target_power: Optional[float] = None

    def is_drop(self, common_port: int) -> bool:
        """A rule whose input is the common (line) port drops a channel."""
        return self.input_port == common_port

    def leaf_port(self, common_port: int) -> int:
        return self.output_port if self.is_drop(common_port) else self.input_port

    def cache_key(self) -> str:
        return f"{self.device_id}:{self.input_port}->{self.output_port}@{self.slot}"


class CrossConnectEntry(BaseModel):
    """A cross-connect as seen on the device."""
    rule: CrossConnectRule
    state: RuleState = RuleState.ADDED


# ============ Path Computation Models ============
class FrequencySlotConstraint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    n: Union[int, str, None] = Field(default="null", alias="N")
    m: Union[int, str, None] = Field(default="null", alias="M")


class TeBandwidth(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    technology: str = "flexi-grid"
    trx_type: str
    trx_mode: Optional[str] = None
    effective_freq_slot: List[FrequencySlotConstraint] = Field(
        default_factory=lambda: [FrequencySlotConstraint()],
        alias="effective-freq-slot"
    )
    spacing: float = 50_000_000_000.0
    max_nb_of_channel: Optional[int] = Field(default=None, alias="max-nb-of-channel")
    output_power: Optional[float] = Field(default=None, alias="output-power")
    path_bandwidth: float = 100_000_000_000.0


class PathConstraints(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    te_bandwidth: TeBandwidth = Field(..., alias="te-bandwidth")


class PathRequestItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    request_id: str = Field(default="test", alias="request-id")
    source: str
    destination: str
    src_tp_id: str = Field(..., alias="src-tp-id")
    dst_tp_id: str = Field(..., alias="dst-tp-id")
    bidirectional: bool
    path_constraints: PathConstraints = Field(..., alias="path-constraints")


class PathRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path_request: List[PathRequestItem] = Field(..., alias="path-request")

    def to_wire(self) -> Dict[str, Any]:
        """Engine payload; all structural keys present, null-valued when unconstrained."""
        return self.model_dump(by_alias=True)


class PathPlanResult(BaseModel):
    """Route, wavelength and power plan decoded from an engine response."""
    route: List[str] = Field(default_factory=list)
    forward_power: Dict[str, float] = Field(default_factory=dict)
    backward_power: Dict[str, float] = Field(default_factory=dict)
    launch_power: float = UNKNOWN_POWER
    osnr: float = UNKNOWN_OSNR
    slot: Optional[WavelengthSlot] = None
    path: SuggestedPath = Field(default_factory=SuggestedPath)


# ============ API Models ============
class CrossConnectRequest(BaseModel):
    """Request to add or drop a single cross-connect on a ROADM."""
    device_id: str = Field(..., description="ROADM device ID")
    src_port: int = Field(..., description="Cross-connect source port")
    dst_port: int = Field(..., description="Cross-connect destination port")
    frequency_mhz: int = Field(..., description="Central frequency in MHz")
    slot_width_ghz: float = Field(..., description="Slot width in GHz, e.g. 50 or 62.5")

    @field_validator('frequency_mhz', 'slot_width_ghz')
    @classmethod
    def validate_positive(cls, v, info):
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive")
        return v


class ConnectivityRequest(BaseModel):
    """Request for end-to-end provisioning through the path computation engine."""
    ingress: str = Field(..., description="Ingress connect point, e.g. netconf:10.0.0.1:830/1")
    egress: str = Field(..., description="Egress connect point")
    bidirectional: bool = Field(default=False)

    @field_validator('ingress', 'egress')
    @classmethod
    def validate_connect_point(cls, v):
        ConnectPoint.parse(v)
        return v


class ConnectivityResponse(BaseModel):
    circuit_id: str
    osnr: float


class PceConnectRequest(BaseModel):
    protocol: str = "http"
    host: str
    port: int
    username: Optional[str] = None
    password: Optional[str] = None


class PortPowerResponse(BaseModel):
    """Optical power readings of a terminal device line port."""
    device_id: str
    port: int
    target_power: Optional[float] = None
    output_power: Optional[float] = None
    input_power: Optional[float] = None
    target_power_range: Optional[Tuple[float, float]] = None
    input_power_range: Optional[Tuple[float, float]] = None


class HealthCheckResponse(BaseModel):
    status: str
    controller_id: str
    pce_connected: bool
    linkdb_connected: bool = False
    version: str
