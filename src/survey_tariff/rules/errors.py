"""Error taxonomy for the tariff engine."""
from __future__ import annotations

__all__ = [
    "TariffError",
    "UnknownZone",
    "MissingParameter",
    "ServiceUnavailable",
    "InvalidRange",
    "MissingScheduleField",
]


class TariffError(ValueError):
    """Base class for every error raised while pricing a request."""


class UnknownZone(TariffError):
    """Raised when a zone key or administrative area cannot be resolved."""

    def __init__(self, zone: str):
        super().__init__(f"unknown survey zone: {zone!r}")
        self.zone = zone


class MissingParameter(TariffError):
    """Raised when a kind-specific field is absent or not positive."""

    def __init__(self, field_name: str, reason: str = "is required and must be positive"):
        super().__init__(f"{field_name} {reason}")
        self.field_name = field_name
        self.reason = reason


class ServiceUnavailable(TariffError):
    """Raised for survey kinds that are listed but not priced yet."""

    def __init__(self, kind: str):
        super().__init__(f"{kind} service is coming soon")
        self.kind = kind


class InvalidRange(TariffError):
    """Raised when a tier table is malformed or a size is out of range."""


class MissingScheduleField(InvalidRange):
    """Raised when an expected field is missing from the tariff schedule file."""

    def __init__(self, field_path: str):
        super().__init__(field_path)
        self.field_path = field_path

    def __str__(self) -> str:
        return f"missing required schedule field: {self.field_path}"
