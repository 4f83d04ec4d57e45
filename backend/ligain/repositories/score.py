from typing import Dict

from flask import current_app

from ligain import db
from ligain.errors import NotFoundError, ValidationError
from ligain.models import BetRecord, ScoreRecord, generate_id

from .base import CachedRepository, store_call, upsert


class ScoreRepository(CachedRepository):
    """Points per bet. The cache maps (game id, bet id) -> points."""

    def save_score(self, game_id: str, bet_id: str, points: int) -> None:
        if isinstance(points, bool) or not isinstance(points, int):
            raise ValidationError(f"points must be an integer, got {points!r}")
        with store_call(f'save score of bet {bet_id} in game {game_id}'):
            # the bet has to belong to this game
            BetRecord.query.filter_by(id=bet_id, game_id=game_id).one()
            upsert(ScoreRecord, {'id': generate_id(), 'bet_id': bet_id, 'points': points}, ['bet_id'], ['points'])
            db.session.commit()
        current_app.logger.info(f"[score-save] game={game_id} bet={bet_id} points={points}")
        self._cache_set((game_id, bet_id), points)

    def get_score(self, game_id: str, bet_id: str) -> int:
        points, found = self._cache_get((game_id, bet_id))
        if found:
            return points
        with store_call(f'get score of bet {bet_id} in game {game_id}'):
            points = (db.session.query(ScoreRecord.points)
                      .join(BetRecord, BetRecord.id == ScoreRecord.bet_id)
                      .filter(BetRecord.game_id == game_id, ScoreRecord.bet_id == bet_id)
                      .scalar())
        if points is None:
            raise NotFoundError(f"bet {bet_id} in game {game_id} has not been scored")
        self._cache_set((game_id, bet_id), points)
        return points

    def get_scores(self, game_id: str) -> Dict[str, int]:
        """Scored bets of the game only: bet id -> points."""
        with store_call(f'get scores of game {game_id}'):
            rows = (db.session.query(ScoreRecord.bet_id, ScoreRecord.points)
                    .join(BetRecord, BetRecord.id == ScoreRecord.bet_id)
                    .filter(BetRecord.game_id == game_id)
                    .all())
        scores = {}
        for bet_id, points in rows:
            scores[bet_id] = points
            self._cache_set((game_id, bet_id), points)
        return scores

    def get_scores_by_match_and_player(self, game_id: str) -> Dict[str, Dict[str, int]]:
        with store_call(f'get scores by match of game {game_id}'):
            rows = (db.session.query(BetRecord.id, BetRecord.match_id, BetRecord.player_id, ScoreRecord.points)
                    .join(ScoreRecord, ScoreRecord.bet_id == BetRecord.id)
                    .filter(BetRecord.game_id == game_id)
                    .all())
        scores: Dict[str, Dict[str, int]] = {}
        for bet_id, match_id, player_id, points in rows:
            scores.setdefault(match_id, {})[player_id] = points
            self._cache_set((game_id, bet_id), points)
        return scores
