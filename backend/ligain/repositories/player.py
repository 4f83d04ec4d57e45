from typing import Dict, List

from flask import current_app
from ligain import db
from ligain.errors import NotFoundError
from ligain.models import BetRecord, GamePlayerRecord, PlayerRecord, generate_id
from ligain.services.games.entities import Player, validate_display_name

from .base import CachedRepository, insert_or_ignore, store_call


def player_from_record(record: PlayerRecord) -> Player:
    return Player(id=record.id, name=record.name)


class PlayerRepository(CachedRepository):
    """Players and their game memberships.

    The cache maps player id -> Player. Renames write through, so the cache
    is the only place a display name lives outside the store.
    """

    def create_player(self, name: str) -> Player:
        name = validate_display_name(name)
        record = PlayerRecord(id=generate_id(), name=name)
        with store_call(f'create player {name}'):
            db.session.add(record)
            db.session.commit()
        player = player_from_record(record)
        self._cache_set(player.id, player)
        return player

    def get_player(self, player_id: str) -> Player:
        player, found = self._cache_get(player_id)
        if found:
            return player
        with store_call(f'get player {player_id}'):
            record = PlayerRecord.query.filter_by(id=player_id).one()
        player = player_from_record(record)
        self._cache_set(player_id, player)
        return player

    def update_player_name(self, player_id: str, name: str) -> Player:
        name = validate_display_name(name)
        with store_call(f'rename player {player_id}'):
            record = PlayerRecord.query.filter_by(id=player_id).one()
            record.name = name
            db.session.commit()
        player = player_from_record(record)
        current_app.logger.info(f"[player-rename] player={player_id} name={name}")
        self._cache_set(player_id, player)
        return player

    def _refresh(self, records) -> List[Player]:
        players = [player_from_record(r) for r in records]
        for player in players:
            self._cache_set(player.id, player)
        return players

    def get_players(self, game_id: str) -> List[Player]:
        """Members of the game plus anyone who has bet in it, by id."""
        with store_call(f'get players of game {game_id}'):
            members = self.get_players_in_game(game_id)
            bettors = (PlayerRecord.query
                       .join(BetRecord, BetRecord.player_id == PlayerRecord.id)
                       .filter(BetRecord.game_id == game_id)
                       .distinct()
                       .all())
        players: Dict[str, Player] = {p.id: p for p in self._refresh(bettors)}
        players.update({p.id: p for p in members})
        return sorted(players.values(), key=lambda p: (p.name, p.id))

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_player_to_game(self, game_id: str, player_id: str) -> None:
        """Idempotent: joining twice keeps a single membership row."""
        with store_call(f'add player {player_id} to game {game_id}'):
            insert_or_ignore(GamePlayerRecord, {'game_id': game_id, 'player_id': player_id}, ['game_id', 'player_id'])
            db.session.commit()
        current_app.logger.info(f"[game-join] game={game_id} player={player_id}")

    def remove_player_from_game(self, game_id: str, player_id: str) -> None:
        with store_call(f'remove player {player_id} from game {game_id}'):
            deleted = GamePlayerRecord.query.filter_by(game_id=game_id, player_id=player_id).delete()
            db.session.commit()
        if not deleted:
            raise NotFoundError(f"player {player_id} is not in game {game_id}")
        current_app.logger.info(f"[game-leave] game={game_id} player={player_id}")

    def get_players_in_game(self, game_id: str) -> List[Player]:
        with store_call(f'get members of game {game_id}'):
            records = (PlayerRecord.query
                       .join(GamePlayerRecord, GamePlayerRecord.player_id == PlayerRecord.id)
                       .filter(GamePlayerRecord.game_id == game_id)
                       .order_by(PlayerRecord.name)
                       .all())
        return self._refresh(records)

    def get_player_games(self, player_id: str) -> List[str]:
        with store_call(f'get games of player {player_id}'):
            rows = (db.session.query(GamePlayerRecord.game_id)
                    .filter(GamePlayerRecord.player_id == player_id)
                    .order_by(GamePlayerRecord.created_at.desc(), GamePlayerRecord.id.desc())
                    .all())
        return [row.game_id for row in rows]

    def is_player_in_game(self, game_id: str, player_id: str) -> bool:
        with store_call(f'check player {player_id} in game {game_id}'):
            query = GamePlayerRecord.query.filter_by(game_id=game_id, player_id=player_id)
            return db.session.query(query.exists()).scalar()
