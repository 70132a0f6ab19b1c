from datetime import datetime

from pydantic import Field, field_validator

from events_api.core.timeutils import as_utc, utcnow
from events_api.schemas.base import CamelModel
from events_api.schemas.users import UserOut


# ---------- Event ----------
class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=200)
    date: datetime
    location: str = Field(min_length=1, max_length=200)
    capacity: int = Field(ge=1, le=1000, strict=True)

    @field_validator("date")
    @classmethod
    def date_in_future(cls, value: datetime) -> datetime:
        value = as_utc(value)
        if value <= utcnow():
            raise ValueError("Date must be in the future")
        return value


class EventCreatedOut(CamelModel):
    event_id: int


class EventOut(CamelModel):
    id: int
    title: str
    date: datetime
    location: str
    capacity: int

    @field_validator("date")
    @classmethod
    def date_as_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class EventDetailOut(EventOut):
    registered_users: list[UserOut]


class EventStatsOut(CamelModel):
    total_registrations: int
    remaining_capacity: int
    percentage_used: str
