from dataclasses import dataclass
from typing import List, Tuple

from flask import current_app

from ligain import db
from ligain.errors import NotFoundError
from ligain.models import BetRecord, MatchRecord, generate_id
from ligain.services.games.entities import Bet, Match, Player

from .base import CachedRepository, store_call, upsert
from .cache import Cache
from .match import MatchRepository, match_from_record
from .player import PlayerRepository


@dataclass(frozen=True)
class BetEntry:
    """What the bet cache holds. No display name: names come from the players."""
    bet_id: str
    game_id: str
    match_id: str
    player_id: str
    predicted_home_goals: int
    predicted_away_goals: int


def _entry_from_record(record: BetRecord) -> BetEntry:
    return BetEntry(
        bet_id=record.id,
        game_id=record.game_id,
        match_id=record.match_id,
        player_id=record.player_id,
        predicted_home_goals=record.predicted_home_goals,
        predicted_away_goals=record.predicted_away_goals,
    )


class BetRepository(CachedRepository):
    """Bets keyed by (game, match, player).

    ``id_index`` maps (game, player, match) -> bet id. It is only a shortcut:
    a miss falls back to the store.
    """

    def __init__(self, cache: Cache, id_index: Cache, players: PlayerRepository, matches: MatchRepository):
        super().__init__(cache)
        self._id_index = id_index
        self._players = players
        self._matches = matches

    @property
    def id_index(self) -> Cache:
        return self._id_index

    def _remember(self, entry: BetEntry) -> None:
        self._cache_set((entry.game_id, entry.match_id, entry.player_id), entry)
        try:
            self._id_index.set((entry.game_id, entry.player_id, entry.match_id), entry.bet_id)
        except Exception as exc:
            current_app.logger.warning(f"[cache-degraded] bet id index set {entry.bet_id}: {exc}")

    def _to_bet(self, entry: BetEntry, match: Match) -> Bet:
        return Bet(match=match, predicted_home_goals=entry.predicted_home_goals,
                   predicted_away_goals=entry.predicted_away_goals, id=entry.bet_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save_bet(self, game_id: str, bet: Bet, player: Player) -> str:
        """Insert or replace *player*'s bet on the match; returns the bet id.

        Re-submitting keeps the first id and overwrites the prediction.
        """
        values = {
            'id': generate_id(),
            'game_id': game_id,
            'match_id': bet.match.id,
            'player_id': player.id,
            'predicted_home_goals': bet.predicted_home_goals,
            'predicted_away_goals': bet.predicted_away_goals,
        }
        with store_call(f'save bet of {player.id} on {bet.match.id} in game {game_id}'):
            upsert(BetRecord, values, ['game_id', 'match_id', 'player_id'],
                   ['predicted_home_goals', 'predicted_away_goals'])
            bet_id = (db.session.query(BetRecord.id)
                      .filter(BetRecord.game_id == game_id, BetRecord.match_id == bet.match.id,
                              BetRecord.player_id == player.id)
                      .scalar())
            db.session.commit()
        current_app.logger.info(
            f"[bet-save] game={game_id} match={bet.match.id} player={player.id} bet={bet_id} "
            f"prediction={bet.predicted_home_goals}-{bet.predicted_away_goals}"
        )
        bet.id = bet_id
        self._remember(BetEntry(bet_id, game_id, bet.match.id, player.id,
                                bet.predicted_home_goals, bet.predicted_away_goals))
        return bet_id

    def save_with_id(self, game_id: str, bet_id: str, bet: Bet, player: Player) -> None:
        values = {
            'id': bet_id,
            'game_id': game_id,
            'match_id': bet.match.id,
            'player_id': player.id,
            'predicted_home_goals': bet.predicted_home_goals,
            'predicted_away_goals': bet.predicted_away_goals,
        }
        with store_call(f'save bet {bet_id} in game {game_id}'):
            upsert(BetRecord, values, ['id'], ['predicted_home_goals', 'predicted_away_goals'])
            db.session.commit()
        bet.id = bet_id
        self._remember(BetEntry(bet_id, game_id, bet.match.id, player.id,
                                bet.predicted_home_goals, bet.predicted_away_goals))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_bets(self, game_id: str, player: Player) -> List[Bet]:
        """Every bet *player* placed in the game, earliest match first."""
        with store_call(f'get bets of {player.id} in game {game_id}'):
            rows = (db.session.query(BetRecord, MatchRecord)
                    .join(MatchRecord, MatchRecord.id == BetRecord.match_id)
                    .filter(BetRecord.game_id == game_id, BetRecord.player_id == player.id)
                    .order_by(MatchRecord.match_date, MatchRecord.id)
                    .all())
        bets = []
        for record, match_record in rows:
            entry = _entry_from_record(record)
            self._remember(entry)
            bets.append(self._to_bet(entry, match_from_record(match_record)))
        return bets

    def get_bets_for_match(self, match: Match, game_id: str) -> Tuple[List[Bet], List[Player]]:
        """Bets on *match* in the game, and their authors in the same order."""
        with store_call(f'get bets on {match.id} in game {game_id}'):
            records = (BetRecord.query
                       .filter_by(game_id=game_id, match_id=match.id)
                       .order_by(BetRecord.created_at, BetRecord.id)
                       .all())
        bets, players = [], []
        for record in records:
            entry = _entry_from_record(record)
            self._remember(entry)
            bets.append(self._to_bet(entry, match))
            players.append(self._players.get_player(entry.player_id))
        return bets, players

    def get_bet(self, game_id: str, match_id: str, player_id: str) -> Bet:
        entry, found = self._cache_get((game_id, match_id, player_id))
        if not found:
            with store_call(f'get bet of {player_id} on {match_id} in game {game_id}'):
                record = BetRecord.query.filter_by(game_id=game_id, match_id=match_id, player_id=player_id).one()
            entry = _entry_from_record(record)
            self._remember(entry)
        return self._to_bet(entry, self._matches.get_match(match_id))

    def get_bet_id(self, game_id: str, player_id: str, match_id: str) -> str:
        try:
            bet_id, found = self._id_index.get((game_id, player_id, match_id))
        except Exception as exc:
            current_app.logger.warning(f"[cache-degraded] bet id index get {game_id}/{player_id}/{match_id}: {exc}")
            bet_id, found = None, False
        if found:
            return bet_id
        with store_call(f'get bet id of {player_id} on {match_id} in game {game_id}'):
            record = BetRecord.query.filter_by(game_id=game_id, match_id=match_id, player_id=player_id).first()
        if record is None:
            raise NotFoundError(f"no bet of player {player_id} on match {match_id} in game {game_id}")
        self._remember(_entry_from_record(record))
        return record.id
