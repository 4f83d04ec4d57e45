"""Game domain: entities, the Game aggregate, scoring and orchestration.

This package holds the game rules and is imported by the HTTP routes and
the repositories, keeping transport and storage concerns separated from
core game mechanics.
"""
from .entities import Bet, Match, MatchResult, MatchStatus, Player
from .game import Game, GameStatus
from .scoring import OutcomeScorer, Scorer
from .service import GameService

__all__ = [
    'Bet', 'Game', 'GameService', 'GameStatus', 'Match', 'MatchResult', 'MatchStatus',
    'OutcomeScorer', 'Player', 'Scorer',
]
