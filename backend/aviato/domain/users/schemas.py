"""Pydantic records for persisted users.

Persisted users keep the client's camelCase layout with one flat
``availability`` bag; the domain model holds a settings variant per mode.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from aviato.domain.availability.models import (
    AvailabilityMode,
    BlueSettings,
    BrownSettings,
    ModeSettings,
    OrangeSettings,
    YellowSettings,
    parse_mode,
)
from aviato.domain.users.models import Review, User

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AvailabilityBag(_CamelModel):
    open_date: Optional[int] = None
    later_minutes: int = 0
    later_start_time: Optional[int] = None
    max_contact: int = 5
    current_contacts: int = 0
    timed_hour: Optional[int] = Field(default=None, ge=0, le=23)
    timed_minute: Optional[int] = Field(default=None, ge=0, le=59)

    @field_validator("open_date", "later_start_time", mode="before")
    def _epoch_ms(cls, value):  # type: ignore[override]
        """Accept epoch milliseconds or an ISO-8601 string."""
        if value in (None, ""):
            return None
        if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
            return int(datetime.fromisoformat(value.strip().replace("Z", "+00:00")).timestamp() * 1000)
        return value

    @field_validator("later_minutes", "max_contact", "current_contacts", mode="before")
    def _zero_when_null(cls, value):  # type: ignore[override]
        return 0 if value is None else value

    def to_settings(self, mode: Optional[AvailabilityMode]) -> Optional[ModeSettings]:
        if mode is AvailabilityMode.BLUE:
            return BlueSettings(open_date=self.open_date)
        if mode is AvailabilityMode.YELLOW:
            return YellowSettings(later_minutes=self.later_minutes, later_start_time=self.later_start_time)
        if mode is AvailabilityMode.ORANGE:
            return OrangeSettings(max_contact=self.max_contact, current_contacts=self.current_contacts)
        if mode is AvailabilityMode.BROWN:
            return BrownSettings(timed_hour=self.timed_hour, timed_minute=self.timed_minute)
        return None

    @classmethod
    def from_settings(cls, mode_settings: Optional[ModeSettings]) -> "AvailabilityBag":
        if isinstance(mode_settings, BlueSettings):
            return cls(open_date=mode_settings.open_date)
        if isinstance(mode_settings, YellowSettings):
            return cls(later_minutes=mode_settings.later_minutes, later_start_time=mode_settings.later_start_time)
        if isinstance(mode_settings, OrangeSettings):
            return cls(max_contact=mode_settings.max_contact, current_contacts=mode_settings.current_contacts)
        if isinstance(mode_settings, BrownSettings):
            return cls(timed_hour=mode_settings.timed_hour, timed_minute=mode_settings.timed_minute)
        return cls()


class ReviewRecord(_CamelModel):
    rater_id: str
    rater_name: str = ""
    rating: int = Field(ge=1, le=5)


class UserRecord(_CamelModel):
    id: str
    name: str = ""
    email: Optional[str] = None
    profile_pic: Optional[str] = None
    availability_mode: Optional[str] = AvailabilityMode.GREEN.value
    availability: AvailabilityBag = Field(default_factory=AvailabilityBag)
    approval_rating: int = 0
    review_rating: float = 0.0
    review_count: int = 0
    reviews: List[ReviewRecord] = Field(default_factory=list)
    selections: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    def _stringify_id(cls, value):  # type: ignore[override]
        return str(value) if value is not None else value

    @field_validator("availability", mode="before")
    def _empty_bag(cls, value):  # type: ignore[override]
        return {} if value is None else value

    def to_domain(self) -> User:
        mode = parse_mode(self.availability_mode)
        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            profile_pic=self.profile_pic,
            availability_mode=mode,
            availability_settings=self.availability.to_settings(mode),
            approval_rating=self.approval_rating,
            review_rating=self.review_rating,
            review_count=self.review_count,
            reviews=tuple(Review(r.rater_id, r.rater_name, r.rating) for r in self.reviews),
            selections=tuple(self.selections),
        )

    @classmethod
    def from_domain(cls, user: User) -> "UserRecord":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            profile_pic=user.profile_pic,
            availability_mode=user.availability_mode.value if user.availability_mode else None,
            availability=AvailabilityBag.from_settings(user.availability_settings),
            approval_rating=user.approval_rating,
            review_rating=user.review_rating,
            review_count=user.review_count,
            reviews=[
                ReviewRecord(rater_id=r.rater_id, rater_name=r.rater_name, rating=r.rating) for r in user.reviews
            ],
            selections=list(user.selections),
        )


def dump_user(user: User) -> dict[str, Any]:
    return UserRecord.from_domain(user).model_dump(by_alias=True, mode="json")


def load_user(payload: Any) -> Optional[User]:
    if not isinstance(payload, dict):
        return None
    try:
        return UserRecord.model_validate(payload).to_domain()
    except ValidationError as exc:
        logger.warning("dropping invalid persisted user", extra={"errors": exc.error_count()})
        return None


def dump_users(users: Tuple[User, ...]) -> list[dict[str, Any]]:
    return [dump_user(user) for user in users]


def load_users(payload: Any) -> Tuple[User, ...]:
    if not isinstance(payload, list):
        return ()
    loaded = (load_user(item) for item in payload)
    return tuple(user for user in loaded if user is not None)
