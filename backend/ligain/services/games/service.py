from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional

from flask import current_app

from ligain.errors import NotFoundError

from .entities import Bet, Match, Player, as_utc
from .game import Game, GameStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameService:
    """Per-game orchestration on top of the repositories.

    Every call rehydrates the game from the store, applies the change to the
    aggregate for validation and persists it through the repositories.
    """

    def __init__(self, game_id: str, repos, odds_freeze: timedelta = timedelta(seconds=360),
                 clock: Callable[[], datetime] = utcnow):
        self.game_id = game_id
        self.repos = repos
        self.odds_freeze = odds_freeze
        self.clock = clock

    def load(self) -> Game:
        return self.repos.games.get_game(self.game_id)

    def _now(self, now: Optional[datetime]) -> datetime:
        return as_utc(now) if now is not None else as_utc(self.clock())

    # ------------------------------------------------------------------
    # Bets
    # ------------------------------------------------------------------

    def place_bet(self, player_id: str, match_id: str, predicted_home_goals: int, predicted_away_goals: int,
                  now: Optional[datetime] = None) -> str:
        now = self._now(now)
        game = self.load()
        player = self.repos.players.get_player(player_id)
        match = game.get_match(match_id)
        bet = Bet(match=match, predicted_home_goals=predicted_home_goals, predicted_away_goals=predicted_away_goals)
        game.check_player_bet_validity(player, bet, now)
        bet_id = self.repos.bets.save_bet(self.game_id, bet, player)
        game.add_player_bet(player, bet)
        return bet_id

    def get_player_bets(self, player_id: str) -> List[Bet]:
        player = self.repos.players.get_player(player_id)
        return self.repos.bets.get_bets(self.game_id, player)

    # ------------------------------------------------------------------
    # Match feed
    # ------------------------------------------------------------------

    def _freeze_odds(self, incoming: Match, known: Match, now: datetime) -> Match:
        if now < known.date - self.odds_freeze:
            return incoming
        return replace(incoming,
                       home_team_odds=known.home_team_odds,
                       away_team_odds=known.away_team_odds,
                       draw_odds=known.draw_odds)

    def _score_match(self, game: Game, match: Match) -> Dict[str, int]:
        scores = game.calculate_match_scores(match)
        for player_id, points in scores.items():
            bet_id = self.repos.bets.get_bet_id(self.game_id, player_id, match.id)
            self.repos.scores.save_score(self.game_id, bet_id, points)
        game.apply_match_scores(match, scores)
        return scores

    def handle_match_updates(self, matches: Iterable[Match], now: Optional[datetime] = None) -> Game:
        """Apply a batch of fixture updates to the game.

        Unknown matches are ignored. Odds are frozen once kick-off is within
        the freeze window. Finished matches are scored; scoring a match again
        overwrites its previous points.
        """
        now = self._now(now)
        game = self.load()
        touched = False
        for update in matches:
            try:
                known = game.get_match(update.id)
            except NotFoundError:
                current_app.logger.debug(f"[match-update] game={self.game_id} match={update.id} not in game, skipped")
                continue
            update = self._freeze_odds(update, known, now)
            if known.is_finished() and not update.is_finished():
                current_app.logger.warning(
                    f"[match-update] game={self.game_id} match={update.id} already finished, "
                    f"ignoring status {update.status.value}"
                )
                continue
            if game.is_finished() and not update.is_finished():
                current_app.logger.debug(f"[match-update] game={self.game_id} is finished, match={update.id} skipped")
                continue
            self.repos.matches.save_match(update)
            touched = True
            if update.is_finished():
                scores = self._score_match(game, update)
                current_app.logger.info(
                    f"[match-scored] game={self.game_id} match={update.id} "
                    f"result={update.home_goals}-{update.away_goals} bettors={len(scores)}"
                )
            else:
                game.update_match(update)

        if touched:
            self.repos.games.save_with_id(self.game_id, game)
        if game.status == GameStatus.FINISHED:
            winners = ', '.join(p.name or p.id for p in game.get_winner())
            current_app.logger.info(f"[game-finished] game={self.game_id} winners={winners}")
        return game

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def join(self, player_id: str) -> Player:
        """Add the player to the game. Joining twice is a no-op."""
        game = self.load()
        player = self.repos.players.get_player(player_id)
        if not game.has_player(player):
            game.add_player(player)
        self.repos.players.add_player_to_game(self.game_id, player.id)
        return player

    def leave(self, player_id: str) -> None:
        """Remove the player from the game. The last member leaving finishes it."""
        game = self.load()
        game.remove_player(self.repos.players.get_player(player_id))
        self.repos.players.remove_player_from_game(self.game_id, player_id)
        if not game.members:
            game.finish()
            self.repos.games.save_with_id(self.game_id, game)
            current_app.logger.info(f"[game-closed] game={self.game_id} last member {player_id} left")

    def get_players(self) -> List[Player]:
        return self.repos.players.get_players(self.game_id)

    def leaderboard(self) -> List[dict]:
        """Players ranked by points, ties broken by name."""
        game = self.load()
        points = game.get_players_points()
        rows = [{'player': game.get_player(pid).to_dict(), 'points': value} for pid, value in points.items()]
        rows.sort(key=lambda r: (-r['points'], r['player']['name'], r['player']['id']))
        return rows

    def get_player_summary(self, player_id: str) -> dict:
        """The game as one player sees it in their game list: metadata, status,
        everyone's totals and the player's points per scored match."""
        game = self.load()
        points = game.get_players_points()
        match_scores = {
            match_id: result.scores[player_id]
            for match_id, result in game.get_past_results().items()
            if result.scores and player_id in result.scores
        }
        return {
            'id': game.id,
            'name': game.name,
            'season_year': game.season_year,
            'competition_name': game.competition_name,
            'status': game.status.value,
            'points': points,
            'total_points': points.get(player_id, 0),
            'match_scores': match_scores,
        }
