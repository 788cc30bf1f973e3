"""Tournament aggregate and registry records.

Attribute names are snake_case; the stored form is camelCase JSON. Decoding
is forgiving about older documents: missing collections become empty ones
and the legacy 18-slot ``holeResults`` array is folded into the sparse
hole-number map.
"""

from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .time_utils import coerce_utc, trim_fractional_seconds

HOLES_PER_MATCH = 18


class MatchResult(str, Enum):
    PENDING = "pending"
    TEAM1 = "team1"
    TEAM2 = "team2"
    TIE = "tie"


class HoleOutcome(str, Enum):
    TEAM1 = "team1"
    TEAM2 = "team2"
    HALVED = "halved"


class RoundType(str, Enum):
    LAUDERDALE = "lauderdale"
    FOURSOME = "foursome"
    FOURBALL = "fourball"
    SINGLES = "singles"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def decode_hole_results(value: Any) -> Any:
    """Return ``value`` as a sparse ``{hole: outcome}`` mapping.

    Accepts the current keyed form as well as the legacy array form where
    index ``i`` holds hole ``i + 1``. Empty entries mean "not played" and
    are dropped, so decoding an already-sparse map is a no-op.
    """

    if value is None:
        return {}
    if isinstance(value, (list, tuple)):
        return {hole: outcome for hole, outcome in enumerate(value, start=1) if outcome}
    if isinstance(value, Mapping):
        return {hole: outcome for hole, outcome in value.items() if outcome}
    return value


def _decode_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return trim_fractional_seconds(value)
    return value


class Player(CamelModel):
    id: str
    name: str
    team_id: str = ""
    user_email: Optional[str] = None

    @field_validator("user_email", mode="before")
    @classmethod
    def _blank_email_is_unlinked(cls, value: Any) -> Any:
        return value or None


class Team(CamelModel):
    id: str
    name: str
    players: List[Player] = Field(default_factory=list)

    @field_validator("players", mode="before")
    @classmethod
    def _players_default(cls, value: Any) -> Any:
        return [] if value is None else value


class Match(CamelModel):
    id: str
    round_number: int
    team1_players: List[str] = Field(default_factory=list)
    team2_players: List[str] = Field(default_factory=list)
    result: MatchResult = MatchResult.PENDING
    score: str = ""
    hole_results: dict[int, HoleOutcome] = Field(default_factory=dict)

    @field_validator("team1_players", "team2_players", mode="before")
    @classmethod
    def _sides_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("result", mode="before")
    @classmethod
    def _result_default(cls, value: Any) -> Any:
        return value or MatchResult.PENDING

    @field_validator("score", mode="before")
    @classmethod
    def _score_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("hole_results", mode="before")
    @classmethod
    def _hole_results_shape(cls, value: Any) -> Any:
        return decode_hole_results(value)


class Round(CamelModel):
    number: int
    name: str
    type: RoundType
    points_per_match: float
    matches: List[Match] = Field(default_factory=list)

    @field_validator("matches", mode="before")
    @classmethod
    def _matches_default(cls, value: Any) -> Any:
        return [] if value is None else value


class Tournament(CamelModel):
    id: str
    name: str
    teams: List[Team] = Field(min_length=2, max_length=2)
    rounds: List[Round] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("rounds", mode="before")
    @classmethod
    def _rounds_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("created_at", "updated_at", mode="before")
    @classmethod
    def _timestamp_precision(cls, value: Any) -> Any:
        return _decode_timestamp(value)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamp_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return coerce_utc(value)

    @property
    def team1_name(self) -> str:
        return self.teams[0].name

    @property
    def team2_name(self) -> str:
        return self.teams[1].name


class RoundScore(CamelModel):
    round_number: int
    round_name: str
    team1_points: float = 0.0
    team2_points: float = 0.0
    points_per_match: float
    matches_played: int = 0
    total_matches: int = 0


class Scoreboard(CamelModel):
    team1_name: str
    team2_name: str
    team1_total: float = 0.0
    team2_total: float = 0.0
    round_scores: List[RoundScore] = Field(default_factory=list)


class Pairing(CamelModel):
    """Players assigned to the two sides of one match."""

    team1_players: List[str] = Field(default_factory=list)
    team2_players: List[str] = Field(default_factory=list)


class TeamRoster(CamelModel):
    name: str
    players: List[str] = Field(default_factory=list)


class RegisteredUser(CamelModel):
    email: str
    name: str = ""
    picture: str = ""


class LocalUser(CamelModel):
    email: str
    name: str = ""
    password_hash: str = ""
    email_verified: bool = False
    confirmed: bool = False
    verification_token: str = ""
    created_at: Optional[datetime] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _timestamp_precision(cls, value: Any) -> Any:
        return _decode_timestamp(value)

    @field_validator("created_at")
    @classmethod
    def _timestamp_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return coerce_utc(value)


def default_rounds() -> list[Round]:
    """Return the fixed five-round competition template with no matches."""

    return [
        Round(number=1, name="Lauderdale", type=RoundType.LAUDERDALE, points_per_match=1.0),
        Round(
            number=2,
            name="Foursome (Alternate Shot) - Friday PM",
            type=RoundType.FOURSOME,
            points_per_match=0.5,
        ),
        Round(
            number=3,
            name="Foursome (Alternate Shot) - Saturday AM",
            type=RoundType.FOURSOME,
            points_per_match=0.5,
        ),
        Round(number=4, name="Four-Ball", type=RoundType.FOURBALL, points_per_match=1.0),
        Round(number=5, name="Singles", type=RoundType.SINGLES, points_per_match=1.0),
    ]
