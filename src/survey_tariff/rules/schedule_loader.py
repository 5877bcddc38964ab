"""Tariff schedule loader.

The survey zones and due-diligence tables live in ``schedules.json`` next to
this module. The file is read once per path and turned into immutable
structures, so the result can be shared by any number of callers.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..settings import settings
from .errors import InvalidRange, MissingScheduleField
from .tiers import TierTable

__all__ = [
    "DEFAULT_SCHEDULE_PATH",
    "TariffSchedule",
    "Zone",
    "load_schedule",
]

logger = logging.getLogger(__name__)

DEFAULT_SCHEDULE_PATH = Path(__file__).with_name("schedules.json")

_REQUIRED_TOP_KEYS = ("zones", "due_diligence")
_REQUIRED_ZONE_KEYS = ("name", "areas", "tiers", "additional_unit_fee")
_REQUIRED_DD_TABLES = ("land_information", "charting_information")
_CLIENT_TYPES = ("individual", "corporate")


@dataclass(frozen=True)
class Zone:
    key: str
    name: str
    areas: Tuple[str, ...]
    tiers: TierTable
    additional_unit_fee: Decimal


@dataclass(frozen=True)
class TariffSchedule:
    source: str
    effective: Optional[date]
    currency: str
    zones: Mapping[str, Zone]
    # table name -> client type -> tiers
    due_diligence: Mapping[str, Mapping[str, TierTable]]


def _resolve_schedule_path(path: str | os.PathLike[str] | None) -> Path:
    if path is not None:
        return Path(path)
    if settings.schedule_path:
        return Path(settings.schedule_path)
    return DEFAULT_SCHEDULE_PATH


def _effective_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value), "%Y-%m-%d").date()
    except ValueError as exc:
        raise InvalidRange(f"effective date must be YYYY-MM-DD, got {value!r}") from exc


def _require(record: Mapping[str, Any], key: str, where: str) -> Any:
    if not isinstance(record, Mapping) or key not in record:
        raise MissingScheduleField(f"{where}.{key}" if where else key)
    return record[key]


def _tier_table(rows: Any, where: str) -> TierTable:
    if not isinstance(rows, list) or not rows:
        raise MissingScheduleField(where)
    try:
        return TierTable.from_rows(rows)
    except InvalidRange as exc:
        raise InvalidRange(f"{where}: {exc}") from exc


def _normalise_zone(key: str, record: Mapping[str, Any]) -> Zone:
    where = f"zones.{key}"
    for field_name in _REQUIRED_ZONE_KEYS:
        _require(record, field_name, where)

    areas = record["areas"]
    if not isinstance(areas, list):
        raise InvalidRange(f"{where}.areas must be a list of area names")

    try:
        additional = Decimal(str(record["additional_unit_fee"]))
    except ArithmeticError:
        raise InvalidRange(f"{where}.additional_unit_fee must be a number") from None
    if not additional.is_finite():
        raise InvalidRange(f"{where}.additional_unit_fee must be a number")
    if additional < 0:
        raise InvalidRange(f"{where}.additional_unit_fee must not be negative")

    tiers = _tier_table(record["tiers"], f"{where}.tiers")
    if tiers.max_covered is None:
        raise InvalidRange(f"{where}.tiers must end with a closed tier for overflow pricing")

    return Zone(
        key=key.upper(),
        name=str(record["name"]),
        areas=tuple(str(a) for a in areas),
        tiers=tiers,
        additional_unit_fee=additional,
    )


def _normalise_due_diligence(record: Mapping[str, Any]) -> Mapping[str, Mapping[str, TierTable]]:
    tables: Dict[str, Mapping[str, TierTable]] = {}
    for table_name in _REQUIRED_DD_TABLES:
        by_client = _require(record, table_name, "due_diligence")
        tables[table_name] = MappingProxyType(
            {
                client: _tier_table(
                    _require(by_client, client, f"due_diligence.{table_name}"),
                    f"due_diligence.{table_name}.{client}",
                )
                for client in _CLIENT_TYPES
            }
        )
    return MappingProxyType(tables)


@lru_cache(maxsize=None)
def _load(path_str: str) -> TariffSchedule:
    path = Path(path_str)
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, Mapping):
        raise InvalidRange("tariff schedule must be a mapping")

    for key in _REQUIRED_TOP_KEYS:
        _require(data, key, "")

    raw_zones = data["zones"]
    if not isinstance(raw_zones, Mapping) or not raw_zones:
        raise MissingScheduleField("zones")

    zones = {str(k).upper(): _normalise_zone(str(k), v) for k, v in raw_zones.items()}
    schedule = TariffSchedule(
        source=str(path),
        effective=_effective_date(data.get("effective")),
        currency=str(data.get("currency") or "NGN"),
        zones=MappingProxyType(zones),
        due_diligence=_normalise_due_diligence(data["due_diligence"]),
    )
    logger.info("Loaded tariff schedule from %s (%d zones)", path, len(zones))
    return schedule


def load_schedule(path: str | os.PathLike[str] | None = None) -> TariffSchedule:
    """Return the validated tariff schedule, reading it at most once per path."""

    return _load(str(_resolve_schedule_path(path)))
