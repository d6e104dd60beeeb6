from sqlalchemy import CheckConstraint, Column, Float, Integer, String, Text

from fittrack.core.constants import ACTIVITIES_TABLE
from fittrack.db import Base


class Activity(Base):
    __tablename__ = ACTIVITIES_TABLE
    __table_args__ = (
        CheckConstraint("duration >= 0", name="ck_activities_duration"),
        CheckConstraint("distance >= 0", name="ck_activities_distance"),
        # never reuse the id of a deleted row
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String, nullable=False)

    # ISO-8601 UTC string, e.g. "2025-01-01T07:00:00+00:00"
    # Stored as text so ORDER BY date sorts chronologically on every backend
    date = Column(String, nullable=False, index=True)

    # Duration stored as **total seconds** (int)
    duration = Column(Integer, nullable=False)

    # Kilometres
    distance = Column(Float, nullable=False)

    # JSON array of {"latitude", "longitude"}, see storage.route_codec
    route = Column(Text, nullable=True)

    photo_uri = Column("photoUri", String, nullable=True)
