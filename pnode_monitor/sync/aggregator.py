"""Network-wide aggregation and per-node derivations over successful polls.

Every function here is pure: the same inputs always give bit-identical
outputs. Byte products use ``Decimal`` so totals above 2**53 stay exact.
"""

import ipaddress
import math
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..prpc.schemas import NodeStats

SECONDS_PER_DAY = 86400
UPTIME_FLOOR_PERCENT = 95.0
UPTIME_CEILING_PERCENT = 99.99
UPTIME_PERCENT_PER_DAY = 0.5

# (first octet low, high, region), evaluated in order
REGION_RANGES = (
    (192, 223, "US East"),
    (161, 191, "EU West"),
    (173, 255, "EU Central"),
)


@dataclass(frozen=True)
class AggregationSettings:
    storage_headroom: float = 1.3
    shard_size_bytes: int = 10 * 1024 * 1024
    shard_availability: float = 0.98
    average_latency_ms: float = 35.0

    @classmethod
    def from_config(cls, config) -> "AggregationSettings":
        return cls(
            storage_headroom=config.storage_headroom,
            shard_size_bytes=config.shard_size_bytes,
            shard_availability=config.shard_availability,
            average_latency_ms=config.average_latency_ms,
        )


@dataclass(frozen=True)
class NodeSnapshotValues:
    """Column values for one persisted node snapshot."""

    ip_address: str
    status: str
    file_size: int
    storage_used: int
    storage_capacity: int
    cpu_percent: float
    ram_used: int
    ram_total: int
    uptime_seconds: int
    active_streams: int
    packets_received: int
    packets_sent: int
    region: str
    last_updated: int

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class NetworkAggregate:
    total_pnodes: int
    active_pnodes: int
    total_storage: int
    used_storage: int
    total_shards: int
    available_shards: int
    average_uptime: float
    average_latency: float

    def to_dict(self) -> dict:
        return asdict(self)


def scale_half_up(value: int, factor: float) -> int:
    """``round(value * factor)`` with half-up rounding and exact integer math."""
    product = Decimal(value) * Decimal(str(factor))
    return int(product.to_integral_value(rounding=ROUND_HALF_UP))


def uptime_percent(uptime_seconds: int) -> float:
    """Map raw uptime seconds onto the dashboard's uptime percentage."""
    percent = UPTIME_FLOOR_PERCENT + (uptime_seconds / SECONDS_PER_DAY) * UPTIME_PERCENT_PER_DAY
    return min(UPTIME_CEILING_PERCENT, percent)


def shard_count(file_size: int, shard_size_bytes: int) -> int:
    return file_size // shard_size_bytes


def estimate_region(address: str) -> str:
    """Coarse region guess from the first IPv4 octet."""
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return "Unknown"
    if ip.version != 4:
        return "Unknown"
    first_octet = ip.packed[0]
    for low, high, region in REGION_RANGES:
        if low <= first_octet <= high:
            return region
    return "Unknown"


def build_node_snapshot(
    address: str,
    stats: NodeStats,
    settings: Optional[AggregationSettings] = None,
) -> NodeSnapshotValues:
    """Derive persisted column values for one responding node."""
    settings = settings or AggregationSettings()
    return NodeSnapshotValues(
        ip_address=address,
        status="active",
        file_size=stats.file_size,
        storage_used=stats.file_size,
        storage_capacity=scale_half_up(stats.file_size, settings.storage_headroom),
        cpu_percent=stats.cpu_percent,
        ram_used=stats.ram_used,
        ram_total=stats.ram_total,
        uptime_seconds=stats.uptime,
        active_streams=stats.active_streams,
        packets_received=stats.packets_received,
        packets_sent=stats.packets_sent,
        region=estimate_region(address),
        last_updated=stats.last_updated,
    )


def aggregate(
    successes: Sequence[tuple[str, NodeStats]],
    roster_size: int,
    settings: Optional[AggregationSettings] = None,
) -> NetworkAggregate:
    """Compute network totals from the successful polls of one cycle."""
    settings = settings or AggregationSettings()
    stats = [s for _, s in successes]

    used_storage = sum(s.file_size for s in stats)
    total_shards = sum(shard_count(s.file_size, settings.shard_size_bytes) for s in stats)
    if stats:
        average_uptime = math.fsum(uptime_percent(s.uptime) for s in stats) / len(stats)
    else:
        average_uptime = 0.0

    return NetworkAggregate(
        total_pnodes=roster_size,
        active_pnodes=len(stats),
        total_storage=scale_half_up(used_storage, settings.storage_headroom),
        used_storage=used_storage,
        total_shards=total_shards,
        available_shards=scale_half_up(total_shards, settings.shard_availability),
        average_uptime=average_uptime,
        average_latency=settings.average_latency_ms,
    )
