from dataclasses import dataclass, field
from datetime import UTC, datetime


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class User:
    """A member; owns zero or more characters and is the unit of taxation."""

    id: int | None = None
    external_id: str | None = None
    nickname: str | None = None
    group_nickname: str | None = None


@dataclass
class Character:
    """An individual actor, optionally owned by a user."""

    character_id: int
    name: str
    corporation_id: int
    birthday: datetime = field(default_factory=_utc_now)
    alliance_id: int | None = None
    user_id: int | None = None
    is_main: bool = False


@dataclass
class Corporation:
    """An organization actor."""

    corporation_id: int
    name: str
    ticker: str
    date_founded: datetime | None = None
    description: str | None = None
