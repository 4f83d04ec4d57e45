import time
from datetime import datetime, timedelta, timezone

import click
from flask import Flask, g
from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

from config import Config

db = SQLAlchemy()
migrate = Migrate()


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FOREIGN KEY clauses unless asked per connection
    if type(dbapi_connection).__module__.startswith('sqlite3'):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=flask_app.config.get('CORS_ORIGINS', []))

    # Composition root: caches, repositories and scorer live for the app's lifetime
    from ligain import models  # noqa: F401
    from ligain.repositories import build_repositories
    from ligain.services.games.scoring import OutcomeScorer
    scorer = OutcomeScorer.from_config(flask_app.config)
    flask_app.extensions['ligain'] = build_repositories(flask_app.config, scorer)

    @flask_app.before_request
    def set_store_deadline():
        timeout = flask_app.config.get('STORE_REQUEST_TIMEOUT_SEC')
        g.store_deadline = time.monotonic() + timeout if timeout else None

    from ligain.api.errors import register_error_handlers
    from ligain.api.games import games
    from ligain.api.players import players
    flask_app.register_blueprint(games, url_prefix='/api/games')
    flask_app.register_blueprint(players, url_prefix='/api/players')
    register_error_handlers(flask_app)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from ligain.services.games.entities import Match
        from ligain.services.games.game import Game
        repos = flask_app.extensions['ligain']
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            repos.clear_caches()

            # Seed players, a few fixtures and one game they all joined
            kickoff = datetime.now(timezone.utc) + timedelta(days=1)
            fixtures = [('Arsenal', 'Chelsea'), ('Liverpool', 'Everton'), ('Milan', 'Inter')]
            for matchday, (home, away) in enumerate(fixtures, start=1):
                repos.matches.save_match(Match(home, away, '2024', 'Premier League',
                                               kickoff + timedelta(days=7 * (matchday - 1)), matchday=matchday))
            game_id = repos.games.create_game(Game('2024', 'Premier League', 'Friends League', scorer))
            for name in ['testuser1', 'testuser2', 'testuser3']:
                player = repos.players.create_player(name)
                repos.players.add_player_to_game(game_id, player.id)

            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
