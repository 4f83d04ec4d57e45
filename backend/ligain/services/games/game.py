from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional

from ligain.errors import NotFoundError, ValidationError

from .entities import Bet, Match, MatchResult, Player, as_utc
from .scoring import Scorer


class GameStatus(str, Enum):
    FRESH = 'fresh'
    STARTED = 'started'
    FINISHED = 'finished'


class Game:
    """A competition between players on one season of one competition.

    The game is a transient projection rebuilt from the store on every read.
    Its status is derived from what it holds:

    - FRESH: no matches, bets or scores yet
    - STARTED: at least one of them exists and some matches are still to play
    - FINISHED: every match has been played, or the last member left;
      the game is read-only
    """

    def __init__(self, season_year: str, competition_name: str, name: str, scorer: Scorer,
                 players: Iterable[Player] = (), matches: Iterable[Match] = (),
                 bets: Optional[Mapping[str, Mapping[str, Bet]]] = None,
                 scores: Optional[Mapping[str, Mapping[str, int]]] = None,
                 members: Optional[Iterable[str]] = None, closed: bool = False,
                 id: Optional[str] = None):
        self.id = id
        self.season_year = season_year
        self.competition_name = competition_name
        self.name = name
        self.scorer = scorer
        self._players: Dict[str, Player] = {}
        for player in players:
            self._players[player.id] = player
        # players shown in the game may include former members who still have bets
        self._members = set(members) if members is not None else set(self._players)
        self._closed = closed
        self._incoming: Dict[str, Match] = {}
        self._past: Dict[str, Match] = {}
        for match in matches:
            if match.is_finished():
                self._past[match.id] = match
            else:
                self._incoming[match.id] = match
        # match id -> player id -> bet / points
        self._bets: Dict[str, Dict[str, Bet]] = {m: dict(b) for m, b in (bets or {}).items()}
        self._scores: Dict[str, Dict[str, int]] = {m: dict(s) for m, s in (scores or {}).items()}

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def status(self) -> GameStatus:
        if self._closed:
            return GameStatus.FINISHED
        has_bets = any(self._bets.values())
        has_scores = any(self._scores.values())
        if not (self._incoming or self._past or has_bets or has_scores):
            return GameStatus.FRESH
        if self._past and not self._incoming:
            return GameStatus.FINISHED
        return GameStatus.STARTED

    def is_finished(self) -> bool:
        return self.status == GameStatus.FINISHED

    def is_closed(self) -> bool:
        return self._closed

    def finish(self) -> None:
        """Close the game whatever its matches. Used once nobody is left to play."""
        self._closed = True

    def _ensure_writable(self) -> None:
        if self.status == GameStatus.FINISHED:
            raise ValidationError(f"game {self.id or self.name} is finished and read-only")

    @property
    def players(self) -> List[Player]:
        return sorted(self._players.values(), key=lambda p: (p.name, p.id))

    def has_player(self, player: Player) -> bool:
        return player.id in self._members

    @property
    def members(self) -> List[Player]:
        return [p for p in self.players if p.id in self._members]

    def get_player(self, player_id: str) -> Player:
        try:
            return self._players[player_id]
        except KeyError:
            raise NotFoundError(f"player {player_id} is not in game {self.id}") from None

    def add_player(self, player: Player) -> None:
        self._ensure_writable()
        if player.id in self._members:
            raise ValidationError(f"player {player.id} is already in the game")
        self._players[player.id] = player
        self._members.add(player.id)

    def remove_player(self, player: Player) -> None:
        """Drop the membership. A former member who bet stays listed with their points."""
        if player.id not in self._members:
            raise NotFoundError(f"player {player.id} is not in the game")
        self._ensure_writable()
        self._members.discard(player.id)
        if not any(player.id in bets for bets in self._bets.values()):
            self._players.pop(player.id, None)

    def get_match(self, match_id: str) -> Match:
        match = self._incoming.get(match_id) or self._past.get(match_id)
        if match is None:
            raise NotFoundError(f"match {match_id} not found")
        return match

    # ------------------------------------------------------------------
    # Betting
    # ------------------------------------------------------------------

    def check_player_bet_validity(self, player: Player, bet: Bet, now: datetime) -> None:
        """Raise unless *player* may place *bet* at *now*.

        Any member may bet, whether or not they have bet before.
        """
        self._ensure_writable()
        match_id = bet.match.id
        if match_id in self._past:
            raise ValidationError(f"match {match_id} is already finished")
        match = self._incoming.get(match_id)
        if match is None:
            raise NotFoundError(f"match {match_id} not found")
        if player.id not in self._members:
            raise ValidationError(f"player {player.id} is not a member of this game")
        if as_utc(now) >= match.date:
            raise ValidationError(f"too late to bet on match {match_id}")

    def add_player_bet(self, player: Player, bet: Bet) -> None:
        """Record *bet*, replacing any previous bet of *player* on that match.

        Callers run :meth:`check_player_bet_validity` first.
        """
        self._ensure_writable()
        match_id = bet.match.id
        if match_id not in self._incoming:
            raise NotFoundError(f"match {match_id} not found")
        if player.id not in self._members:
            raise ValidationError(f"player {player.id} is not a member of this game")
        self._bets.setdefault(match_id, {})[player.id] = bet

    def get_bets(self, match_id: str) -> Dict[str, Bet]:
        return dict(self._bets.get(match_id, {}))

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def update_match(self, match: Match) -> None:
        self._ensure_writable()
        if match.id not in self._incoming:
            raise NotFoundError(f"match {match.id} not found")
        self._incoming[match.id] = match

    def calculate_match_scores(self, match: Match) -> Dict[str, int]:
        """Points for every player who bet on the finished *match*. Does not mutate."""
        if match.id not in self._incoming and match.id not in self._past:
            raise NotFoundError(f"match {match.id} not found")
        if not match.is_finished():
            raise ValidationError(f"match {match.id} is not finished")
        scores = {}
        for player_id, bet in self._bets.get(match.id, {}).items():
            scores[player_id] = self.scorer.score(
                bet.predicted_home_goals, bet.predicted_away_goals,
                match.home_goals, match.away_goals,
            )
        return scores

    def apply_match_scores(self, match: Match, scores: Mapping[str, int]) -> None:
        """Store the points of *match* and move it to the past results.

        Reapplying the same scores leaves every total unchanged.
        """
        if match.id not in self._incoming and match.id not in self._past:
            raise NotFoundError(f"match {match.id} not found")
        if not match.is_finished():
            raise ValidationError(f"match {match.id} is not finished")
        self._scores[match.id] = dict(scores)
        self._incoming.pop(match.id, None)
        self._past[match.id] = match

    def get_past_results(self) -> Dict[str, MatchResult]:
        return {
            match_id: MatchResult(
                match=match,
                bets=dict(self._bets.get(match_id, {})),
                scores=dict(self._scores.get(match_id, {})),
            )
            for match_id, match in self._past.items()
        }

    def get_incoming_matches(self, viewer: Optional[Player] = None) -> Dict[str, MatchResult]:
        """Upcoming matches with their bets.

        With a *viewer*, a scheduled match only shows the viewer's own bet;
        once a match has started every bet is visible.
        """
        results = {}
        for match_id, match in self._incoming.items():
            bets = self._bets.get(match_id, {})
            if viewer is not None and not match.is_in_progress():
                bets = {pid: bet for pid, bet in bets.items() if pid == viewer.id}
            results[match_id] = MatchResult(match=match, bets=dict(bets))
        return results

    def get_players_points(self) -> Dict[str, int]:
        points = {player_id: 0 for player_id in self._players}
        for match_id, match_scores in self._scores.items():
            if match_id not in self._past:
                continue
            for player_id, value in match_scores.items():
                points[player_id] = points.get(player_id, 0) + value
        return points

    def get_winner(self) -> List[Player]:
        if self.status != GameStatus.FINISHED:
            return []
        points = self.get_players_points()
        if not points:
            return []
        best = max(points.values())
        return [self._players.get(pid, Player(pid)) for pid, value in points.items() if value == best]

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _result_to_dict(self, result: MatchResult):
        def name_of(player_id):
            player = self._players.get(player_id)
            return player.name if player else None

        payload = result.match.to_dict()
        payload['bets'] = {
            pid: dict(bet.to_dict(), player_name=name_of(pid)) for pid, bet in result.bets.items()
        }
        if result.is_scored():
            payload['scores'] = {
                pid: {'points': points, 'player_name': name_of(pid)} for pid, points in result.scores.items()
            }
        return payload

    def to_dict(self, viewer: Optional[Player] = None):
        return {
            'id': self.id,
            'season_year': self.season_year,
            'competition_name': self.competition_name,
            'name': self.name,
            'status': self.status.value,
            'players': [p.to_dict() for p in self.players],
            'incoming_matches': {
                mid: self._result_to_dict(r) for mid, r in self.get_incoming_matches(viewer).items()
            },
            'past_results': {mid: self._result_to_dict(r) for mid, r in self.get_past_results().items()},
            'points': self.get_players_points(),
            'winners': [p.to_dict() for p in self.get_winner()],
        }
