"""Survey zone registry.

Each zone groups a set of administrative areas (LGAs and named road
corridors) under one survey fee schedule.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterator, List, Mapping, Optional, Union

from .errors import UnknownZone
from .schedule_loader import TariffSchedule, Zone, load_schedule
from .tiers import Number

__all__ = [
    "Zone",
    "ZoneRegistry",
    "default_registry",
    "list_zones",
    "lookup_tier",
    "resolve_zone",
]

logger = logging.getLogger(__name__)


class ZoneRegistry(Mapping[str, Zone]):
    """Read-only mapping of zone key -> :class:`Zone`, in schedule order."""

    def __init__(self, zones: Mapping[str, Zone]):
        self._zones: Dict[str, Zone] = {key.upper(): zone for key, zone in zones.items()}

    @classmethod
    def from_schedule(cls, schedule: TariffSchedule) -> "ZoneRegistry":
        return cls(schedule.zones)

    def __getitem__(self, key: str) -> Zone:
        return self._zones[key.strip().upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._zones)

    def __len__(self) -> int:
        return len(self._zones)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.strip().upper() in self._zones

    def get_zone(self, key: str) -> Zone:
        """Like ``registry[key]`` but raises :class:`UnknownZone`."""
        try:
            return self[key or ""]
        except KeyError:
            raise UnknownZone(key) from None

    def resolve(self, area_name: str) -> Optional[str]:
        """Return the key of the first zone with an area entry containing ``area_name``."""

        needle = (area_name or "").strip().lower()
        if not needle:
            return None
        for key, zone in self._zones.items():
            if any(needle in area.lower() for area in zone.areas):
                return key
        logger.debug("No survey zone matches area %r", area_name)
        return None


def default_registry() -> ZoneRegistry:
    return ZoneRegistry.from_schedule(load_schedule())


def resolve_zone(area_name: str, registry: Optional[ZoneRegistry] = None) -> Optional[str]:
    """Map an administrative area (e.g. ``"Ikeja"``) to its zone key, or ``None``."""

    return (registry or default_registry()).resolve(area_name)


def lookup_tier(zone: Union[Zone, str], plot_size: Number, registry: Optional[ZoneRegistry] = None) -> Decimal:
    """Flat schedule fee for ``plot_size`` square metres within ``zone``.

    Plots larger than the schedule's last tier get the last tier's fee;
    the per-hectare overflow is priced by the survey calculator.
    """
    if isinstance(zone, str):
        zone = (registry or default_registry()).get_zone(zone)
    return zone.tiers.lookup(plot_size)


def list_zones(registry: Optional[ZoneRegistry] = None) -> List[Dict[str, object]]:
    """Summaries of every zone, for pickers and documentation pages."""

    out: List[Dict[str, object]] = []
    for key, zone in (registry or default_registry()).items():
        out.append(
            {
                "key": key,
                "name": zone.name,
                "areas": list(zone.areas),
                "additional_unit_fee": str(zone.additional_unit_fee),
                "tiers": [
                    {
                        "min": str(t.min),
                        "max": None if t.max is None else str(t.max),
                        "fee": str(t.fee),
                    }
                    for t in zone.tiers
                ],
            }
        )
    return out
