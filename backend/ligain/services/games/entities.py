from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from ligain.errors import ValidationError

MIN_DISPLAY_NAME_LENGTH = 2
MAX_DISPLAY_NAME_LENGTH = 20


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def validate_display_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError('display name cannot be empty')
    name = name.strip()
    if len(name) < MIN_DISPLAY_NAME_LENGTH:
        raise ValidationError(f'display name must be at least {MIN_DISPLAY_NAME_LENGTH} characters long')
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise ValidationError(f'display name must be {MAX_DISPLAY_NAME_LENGTH} characters or less')
    return name


class MatchStatus(str, Enum):
    SCHEDULED = 'scheduled'
    STARTED = 'started'
    FINISHED = 'finished'


@dataclass(frozen=True)
class Player:
    """A game participant. Equality and hashing use the id only, so a renamed
    player is still the same player."""
    id: str
    name: str = field(default='', compare=False)

    def to_dict(self):
        return {'id': self.id, 'name': self.name}


@dataclass
class Match:
    home_team: str
    away_team: str
    season_code: str
    competition_code: str
    date: datetime
    matchday: int = 0
    status: MatchStatus = MatchStatus.SCHEDULED
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    home_team_odds: Optional[float] = None
    away_team_odds: Optional[float] = None
    draw_odds: Optional[float] = None
    local_id: Optional[str] = None

    def __post_init__(self):
        self.date = as_utc(self.date)
        self.status = MatchStatus(self.status)

    @property
    def id(self) -> str:
        if self.local_id:
            return self.local_id
        return f"{self.competition_code}-{self.season_code}-{self.home_team}-{self.away_team}-{self.matchday}"

    def start(self) -> None:
        self.status = MatchStatus.STARTED

    def finish(self, home_goals: int, away_goals: int) -> None:
        self.home_goals = home_goals
        self.away_goals = away_goals
        self.status = MatchStatus.FINISHED

    def is_finished(self) -> bool:
        return self.status == MatchStatus.FINISHED

    def is_in_progress(self) -> bool:
        return self.status == MatchStatus.STARTED

    def to_dict(self):
        return {
            'id': self.id,
            'home_team': self.home_team,
            'away_team': self.away_team,
            'season_code': self.season_code,
            'competition_code': self.competition_code,
            'matchday': self.matchday,
            'date': self.date.isoformat(),
            'status': self.status.value,
            'home_goals': self.home_goals,
            'away_goals': self.away_goals,
            'home_team_odds': self.home_team_odds,
            'away_team_odds': self.away_team_odds,
            'draw_odds': self.draw_odds,
        }


def _check_goals(value, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f'{label} must be a non-negative integer, got {value!r}')


@dataclass
class Bet:
    match: Match
    predicted_home_goals: int
    predicted_away_goals: int
    id: Optional[str] = None

    def __post_init__(self):
        _check_goals(self.predicted_home_goals, 'predicted home goals')
        _check_goals(self.predicted_away_goals, 'predicted away goals')

    def to_dict(self):
        return {
            'id': self.id,
            'match_id': self.match.id,
            'predicted_home_goals': self.predicted_home_goals,
            'predicted_away_goals': self.predicted_away_goals,
        }


@dataclass
class MatchResult:
    """One match with its bets and scores, keyed by player id.

    ``scores`` stays ``None`` until the match has been scored.
    """
    match: Match
    bets: Dict[str, Bet] = field(default_factory=dict)
    scores: Optional[Dict[str, int]] = None

    def is_scored(self) -> bool:
        return self.scores is not None
