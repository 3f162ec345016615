from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

ItemId = int
GenreId = int


class Decision(str, Enum):
    ACCEPT = "accept"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: Any) -> "Decision":
        """
        Normalize a raw decision value.
        Accepts the enum itself, 'accept'/'reject' and the legacy swipe
        names 'like'/'skip' (any case). Raises ValueError otherwise.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"unrecognized decision: {value!r}")
        v = value.strip().lower()
        v = _DECISION_ALIASES.get(v, v)
        try:
            return cls(v)
        except ValueError:
            raise ValueError(f"unrecognized decision: {value!r}") from None


_DECISION_ALIASES = {"like": "accept", "skip": "reject"}


@dataclass(frozen=True)
class Identity:
    """
    Viewer reference used to scope history and preferences.
    Exactly one key is used for lookups: account_id wins when both are set.
    """

    account_id: str | None = None
    session_token: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.account_id or self.session_token)

    @property
    def is_account(self) -> bool:
        return bool(self.account_id)

    def lookup_key(self) -> tuple[str, str]:
        """(column, value) pair for store queries."""
        if self.account_id:
            return "account_id", self.account_id
        if self.session_token:
            return "session_token", self.session_token
        raise ValueError("identity has neither account_id nor session_token")


class DisplayMetadata(BaseModel):
    title: str | None = None
    artist_name: str | None = None
    cover_art_url: str | None = None
    preview_url: str | None = None

    @property
    def is_complete(self) -> bool:
        # legacy records were written without a title
        return bool(self.title)


@dataclass(frozen=True)
class DecisionRecord:
    id: int
    item_id: ItemId
    decision: Decision
    created_at: datetime  # tz-aware
    genre_id: GenreId | None = None
    account_id: str | None = None
    session_token: str | None = None
    display: DisplayMetadata = field(default_factory=DisplayMetadata)


@dataclass(frozen=True)
class GenreStat:
    likes: int = 0
    skips: int = 0

    @property
    def total(self) -> int:
        return self.likes + self.skips

    @property
    def skip_ratio(self) -> float:
        return self.skips / self.total if self.total else 0.0


@dataclass
class Candidate:
    item_id: ItemId
    display: DisplayMetadata
    source_genre_id: GenreId | None = None
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass
class FeedParams:
    history_window: int = 20
    aversion_min_samples: int = 3
    aversion_skip_ratio: float = 0.8
    fatigue_window: int = 10
    fatigue_min_rejects: int = 7
    genres_per_round: int = 3
    seed_pool: int = 5  # newest ACCEPT records eligible as expansion seed
    related_limit: int = 20
    chart_limit: int = 40
