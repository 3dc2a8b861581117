# triage/models/incident.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from triage.services.clock import parse_ts
from triage.services.geo import resolve_point


class IncidentType(str, Enum):
    FIRE = "Fire"
    ACCIDENT = "Accident"
    MEDICAL = "Medical"
    CRIME = "Crime"
    INFRASTRUCTURE = "Infrastructure"
    OTHER = "Other"


class Severity(str, Enum):
    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Status(str, Enum):
    REPORTED = "Reported"
    VERIFIED = "Verified"
    IN_PROGRESS = "In Progress"
    DISPATCHED = "Dispatched"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


TERMINAL_STATUSES = frozenset({Status.RESOLVED, Status.CLOSED})
ACTIVE_STATUSES = frozenset({Status.REPORTED, Status.VERIFIED, Status.IN_PROGRESS, Status.DISPATCHED})


def _lookup(enum_cls, value: Any):
    """Case-insensitive enum lookup; None for anything outside the enumeration."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    key = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == key:
            return member
    return None


def _float_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _normalize_location(value: Any) -> Any:
    if value is None or isinstance(value, Location):
        return value
    if not isinstance(value, dict):
        return None
    return {
        "lat": _float_or_none(value.get("lat")),
        "lng": _float_or_none(value.get("lng", value.get("lon"))),
        "address": value.get("address") if isinstance(value.get("address"), str) else None,
    }


def _normalize_type(value: Any) -> str:
    member = _lookup(IncidentType, value)
    return (member or IncidentType.OTHER).value


class Location(BaseModel):
    lat: Optional[float] = Field(None, description="Latitude (decimal degrees)")
    lng: Optional[float] = Field(None, description="Longitude (decimal degrees)")
    address: Optional[str] = Field(None, description="Display only")

    @property
    def point(self) -> Optional[Tuple[float, float]]:
        return resolve_point(self)


class Incident(BaseModel):
    """
    Local mirror of a backend incident. Severity and status are kept as
    received; use `severity_level` / `status_level` for the normalized value
    (None when the backend sent something outside the enumeration).
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    type: str = Field(IncidentType.OTHER.value, description="Incident category")
    severity: Optional[str] = None
    status: Optional[str] = None
    location: Optional[Location] = None
    timestamp: Optional[datetime] = Field(None, validation_alias=AliasChoices("timestamp", "createdAt"))
    upvotes: int = 0
    verified: bool = False
    description: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> Any:
        return str(v) if isinstance(v, (int, str)) and not isinstance(v, bool) else v

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return _normalize_type(v)

    @field_validator("severity", "status", mode="before")
    @classmethod
    def _enum_text(cls, v: Any) -> Optional[str]:
        if isinstance(v, Enum):
            return v.value
        return v if isinstance(v, str) else None

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, v: Any) -> Any:
        return _normalize_location(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, v: Any) -> Optional[datetime]:
        # unparsable timestamps are treated as missing
        return parse_ts(v)

    @field_validator("upvotes", mode="before")
    @classmethod
    def _upvotes(cls, v: Any) -> int:
        try:
            return max(0, int(v))
        except (TypeError, ValueError, OverflowError):
            return 0

    @field_validator("verified", mode="before")
    @classmethod
    def _verified(cls, v: Any) -> bool:
        return bool(v) if v is not None else False

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, v: Any) -> str:
        return v if isinstance(v, str) else ""

    @property
    def severity_level(self) -> Optional[Severity]:
        return _lookup(Severity, self.severity)

    @property
    def status_level(self) -> Optional[Status]:
        return _lookup(Status, self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status_level in TERMINAL_STATUSES

    @property
    def point(self) -> Optional[Tuple[float, float]]:
        return self.location.point if self.location is not None else None


# Payload for a report that has not been submitted yet
class IncidentDraft(BaseModel):
    type: str = Field(..., description="Incident category (Fire, Accident, ...)")
    location: Optional[Location] = Field(None, description="Reporter position; may be unavailable")
    description: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, v: Any) -> str:
        return _normalize_type(v)

    @field_validator("location", mode="before")
    @classmethod
    def _location(cls, v: Any) -> Any:
        return _normalize_location(v)

    @property
    def point(self) -> Optional[Tuple[float, float]]:
        return self.location.point if self.location is not None else None


class DuplicateMatch(BaseModel):
    incident: Incident
    confidence: int = Field(..., ge=0, le=100)
    distance_m: float


class ScoredIncident(BaseModel):
    incident: Incident
    priority: int = Field(..., ge=0, le=100)
    distance_m: Optional[float] = None
