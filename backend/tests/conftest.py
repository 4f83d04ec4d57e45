import os
import sys
from datetime import datetime, timezone

import pytest

# Ensure the backend root (containing the `ligain` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from ligain import create_app, db
from ligain.services.games.entities import Match
from ligain.services.games.game import Game

SEASON = '2024'
COMPETITION = 'Premier League'
KICKOFF = datetime(2030, 5, 10, 15, 0, tzinfo=timezone.utc)


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # statement_timeout is a PostgreSQL option
    SQLALCHEMY_ENGINE_OPTIONS = {}
    STORE_REQUEST_TIMEOUT_SEC = 30
    BET_CACHE_SIZE = 100
    BET_ID_INDEX_SIZE = 100
    MATCH_CACHE_SIZE = 100
    PLAYER_CACHE_SIZE = 100
    SCORE_CACHE_SIZE = 100


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def repos(flask_app):
    return flask_app.extensions['ligain']


@pytest.fixture()
def make_match(repos):
    def _make(home, away, matchday=1, date=KICKOFF, save=True, **kwargs):
        match = Match(home, away, SEASON, COMPETITION, date, matchday=matchday, **kwargs)
        if save:
            repos.matches.save_match(match)
        return match
    return _make


@pytest.fixture()
def make_game(repos):
    def _make(name='Friends League', season=SEASON, competition=COMPETITION):
        game = Game(season, competition, name, repos.games.scorer)
        return repos.games.create_game(game)
    return _make


@pytest.fixture()
def make_member(repos):
    def _make(game_id, name):
        player = repos.players.create_player(name)
        repos.players.add_player_to_game(game_id, player.id)
        return player
    return _make
