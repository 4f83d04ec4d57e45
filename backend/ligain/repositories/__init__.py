"""Store-backed repositories and the caches in front of them.

``build_repositories`` is the only place caches are created; every
repository gets its collaborators handed in.
"""
from dataclasses import dataclass

from ligain.services.games.scoring import Scorer

from .bet import BetEntry, BetRepository
from .cache import Cache, LRUCache
from .game import GameRepository
from .match import MatchRepository
from .player import PlayerRepository
from .score import ScoreRepository


@dataclass
class Repositories:
    games: GameRepository
    players: PlayerRepository
    matches: MatchRepository
    bets: BetRepository
    scores: ScoreRepository

    def clear_caches(self) -> None:
        for repo in (self.players, self.matches, self.bets, self.scores):
            repo.cache.clear()
        self.bets.id_index.clear()


def build_repositories(config, scorer: Scorer) -> Repositories:
    players = PlayerRepository(LRUCache(config['PLAYER_CACHE_SIZE']))
    matches = MatchRepository(LRUCache(config['MATCH_CACHE_SIZE']))
    scores = ScoreRepository(LRUCache(config['SCORE_CACHE_SIZE']))
    bets = BetRepository(
        LRUCache(config['BET_CACHE_SIZE']),
        LRUCache(config['BET_ID_INDEX_SIZE']),
        players,
        matches,
    )
    games = GameRepository(scorer, players, scores)
    return Repositories(games=games, players=players, matches=matches, bets=bets, scores=scores)


__all__ = [
    'BetEntry', 'BetRepository', 'Cache', 'GameRepository', 'LRUCache', 'MatchRepository',
    'PlayerRepository', 'Repositories', 'ScoreRepository', 'build_repositories',
]
