from typing import Dict

from flask import current_app
from sqlalchemy import and_

from ligain import db
from ligain.models import BetRecord, GameRecord, MatchRecord, PlayerRecord, generate_id
from ligain.services.games.entities import Bet, Match, Player
from ligain.services.games.game import Game, GameStatus
from ligain.services.games.scoring import Scorer

from .base import store_call, upsert
from .match import match_from_columns
from .player import PlayerRepository
from .score import ScoreRepository


class GameRepository:
    """Games are never cached: every read rebuilds the aggregate from the store."""

    def __init__(self, scorer: Scorer, players: PlayerRepository, scores: ScoreRepository):
        self._scorer = scorer
        self._players = players
        self._scores = scores

    @property
    def scorer(self) -> Scorer:
        return self._scorer

    def create_game(self, game: Game) -> str:
        game_id = game.id or generate_id()
        record = GameRecord(
            id=game_id,
            season_year=game.season_year,
            competition_name=game.competition_name,
            game_name=game.name,
            status=game.status.value,
        )
        with store_call(f'create game {game.name}'):
            db.session.add(record)
            db.session.commit()
        current_app.logger.info(
            f"[game-create] game={game_id} competition={game.competition_name} season={game.season_year}"
        )
        game.id = game_id
        return game_id

    def save_with_id(self, game_id: str, game: Game) -> None:
        values = {
            'id': game_id,
            'season_year': game.season_year,
            'competition_name': game.competition_name,
            'game_name': game.name,
            'status': game.status.value,
        }
        with store_call(f'save game {game_id}'):
            upsert(GameRecord, values, ['id'], ['season_year', 'competition_name', 'game_name', 'status'])
            db.session.commit()
        game.id = game_id

    def get_game(self, game_id: str) -> Game:
        with store_call(f'get game {game_id}'):
            record = GameRecord.query.filter_by(id=game_id).one()
            rows = (db.session.query(
                        MatchRecord.id, MatchRecord.home_team_id, MatchRecord.away_team_id,
                        MatchRecord.season_code, MatchRecord.competition_code, MatchRecord.match_date,
                        MatchRecord.matchday, MatchRecord.match_status,
                        MatchRecord.home_team_score, MatchRecord.away_team_score,
                        MatchRecord.home_win_odds, MatchRecord.away_win_odds, MatchRecord.draw_odds,
                        BetRecord.id.label('bet_id'), BetRecord.player_id,
                        BetRecord.predicted_home_goals, BetRecord.predicted_away_goals,
                        PlayerRecord.name.label('player_name'))
                    .outerjoin(BetRecord, and_(BetRecord.match_id == MatchRecord.id,
                                               BetRecord.game_id == game_id))
                    .outerjoin(PlayerRecord, PlayerRecord.id == BetRecord.player_id)
                    .filter(MatchRecord.season_code == record.season_year,
                            MatchRecord.competition_code == record.competition_name)
                    .order_by(MatchRecord.matchday, MatchRecord.match_date, MatchRecord.id)
                    .all())

        matches: Dict[str, Match] = {}
        bets: Dict[str, Dict[str, Bet]] = {}
        bettors: Dict[str, Player] = {}
        for row in rows:
            match = matches.get(row.id)
            if match is None:
                match = match_from_columns(
                    row.id, row.home_team_id, row.away_team_id, row.season_code, row.competition_code,
                    row.match_date, row.matchday, row.match_status, row.home_team_score,
                    row.away_team_score, row.home_win_odds, row.away_win_odds, row.draw_odds,
                )
                matches[match.id] = match
            # matches nobody bet on come back with every bet column NULL
            if row.bet_id is None or row.player_id is None:
                continue
            if row.predicted_home_goals is None or row.predicted_away_goals is None:
                current_app.logger.warning(f"[hydrate] game={game_id} bet={row.bet_id} has no prediction, skipped")
                continue
            bets.setdefault(match.id, {})[row.player_id] = Bet(
                match=match,
                predicted_home_goals=row.predicted_home_goals,
                predicted_away_goals=row.predicted_away_goals,
                id=row.bet_id,
            )
            bettors[row.player_id] = Player(id=row.player_id, name=row.player_name or '')

        members = self._players.get_players_in_game(game_id)
        players = dict(bettors)
        for member in members:
            players[member.id] = member

        scores = self._scores.get_scores_by_match_and_player(game_id)

        game = Game(
            season_year=record.season_year,
            competition_name=record.competition_name,
            name=record.game_name,
            scorer=self._scorer,
            players=players.values(),
            matches=matches.values(),
            bets=bets,
            scores=scores,
            members=[member.id for member in members],
            closed=record.status == GameStatus.FINISHED.value,
            id=record.id,
        )
        current_app.logger.debug(
            f"[hydrate] game={game_id} status={game.status.value} matches={len(matches)} "
            f"players={len(players)} bets={sum(len(b) for b in bets.values())}"
        )
        return game

    def get_all_games(self) -> Dict[str, Game]:
        """Games still in play (persisted status not finished), newest first."""
        with store_call('get all games'):
            game_ids = [row.id for row in (db.session.query(GameRecord.id)
                                           .filter(GameRecord.status != GameStatus.FINISHED.value)
                                           .order_by(GameRecord.created_at.desc(), GameRecord.id)
                                           .all())]
        return {game_id: self.get_game(game_id) for game_id in game_ids}
