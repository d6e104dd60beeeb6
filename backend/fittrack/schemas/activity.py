from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fittrack.core.time_utils import to_utc_second


class GeoPoint(BaseModel):
    """One position fix, in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float


class ActivityBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    date: datetime                      # session start, UTC, second precision
    duration: int = Field(..., ge=0)    # whole seconds
    distance: float = Field(..., ge=0)  # kilometres
    route: tuple[GeoPoint, ...] = ()    # chronological
    photo_reference: Optional[str] = None  # opaque, never interpreted

    @field_validator("date")
    @classmethod
    def _utc_second(cls, v: datetime) -> datetime:
        return to_utc_second(v)


class ActivityCreate(ActivityBase):
    """A finished activity that has not been stored yet (no id)."""
    pass


class ActivityUpload(ActivityCreate):
    """Body of POST /activities/. An activity without a route is rejected."""

    route: tuple[GeoPoint, ...] = Field(..., min_length=1)


class ActivityRead(ActivityBase):
    """A stored activity."""

    id: int


class ActivitySummary(BaseModel):
    """Row of the activity list view; the route is left out."""

    id: int
    name: str
    date: datetime
    duration: int
    distance: float
    duration_display: str  # e.g. "1h 2m 3s"
    pace: str              # e.g. "5:30/km"
    photo_reference: Optional[str] = None


class ActivityDetail(ActivityRead):
    """Schema returned by the detail view."""

    duration_display: str
    pace: str
