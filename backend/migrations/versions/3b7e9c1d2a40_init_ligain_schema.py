"""create game, player, game_player, match, bet and score tables

Revision ID: 3b7e9c1d2a40
Revises:
Create Date: 2025-09-14 10:20:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7e9c1d2a40'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    if 'game' not in existing_tables:
        op.create_table(
            'game',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('season_year', sa.String(length=255), nullable=False),
            sa.Column('competition_name', sa.String(length=255), nullable=False),
            sa.Column('game_name', sa.String(length=255), nullable=False, server_default=''),
            sa.Column('status', sa.String(length=32), nullable=False, server_default='fresh'),
            *_timestamps(),
        )

    if 'player' not in existing_tables:
        op.create_table(
            'player',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('name', sa.String(length=255), nullable=False),
            *_timestamps(),
        )
        op.create_index('ix_player_name', 'player', ['name'], unique=True)

    if 'game_player' not in existing_tables:
        op.create_table(
            'game_player',
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column('game_id', sa.String(length=36), sa.ForeignKey('game.id', ondelete='CASCADE'), nullable=False),
            sa.Column('player_id', sa.String(length=36), sa.ForeignKey('player.id', ondelete='CASCADE'), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
            sa.UniqueConstraint('game_id', 'player_id', name='game_player_game_id_player_id_key'),
        )
        op.create_index('ix_game_player_game_id', 'game_player', ['game_id'])
        op.create_index('ix_game_player_player_id', 'game_player', ['player_id'])

    if 'match' not in existing_tables:
        op.create_table(
            'match',
            sa.Column('id', sa.String(length=255), primary_key=True),
            sa.Column('home_team_id', sa.String(length=255), nullable=False),
            sa.Column('away_team_id', sa.String(length=255), nullable=False),
            sa.Column('home_team_score', sa.Integer(), nullable=True),
            sa.Column('away_team_score', sa.Integer(), nullable=True),
            sa.Column('match_date', sa.DateTime(timezone=True), nullable=False),
            sa.Column('match_status', sa.String(length=32), nullable=False, server_default='scheduled'),
            sa.Column('season_code', sa.String(length=255), nullable=False),
            sa.Column('competition_code', sa.String(length=255), nullable=False),
            sa.Column('matchday', sa.Integer(), nullable=False, server_default='0'),
            sa.Column('home_win_odds', sa.Float(), nullable=True),
            sa.Column('away_win_odds', sa.Float(), nullable=True),
            sa.Column('draw_odds', sa.Float(), nullable=True),
            *_timestamps(),
            sa.UniqueConstraint('home_team_id', 'away_team_id', 'season_code', 'competition_code', 'matchday',
                                name='match_natural_key'),
        )

    if 'bet' not in existing_tables:
        op.create_table(
            'bet',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('game_id', sa.String(length=36), sa.ForeignKey('game.id', ondelete='CASCADE'), nullable=False),
            sa.Column('match_id', sa.String(length=255), sa.ForeignKey('match.id'), nullable=False),
            sa.Column('player_id', sa.String(length=36), sa.ForeignKey('player.id', ondelete='CASCADE'), nullable=False),
            sa.Column('predicted_home_goals', sa.Integer(), nullable=False),
            sa.Column('predicted_away_goals', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('game_id', 'match_id', 'player_id', name='bet_game_id_match_id_player_id_key'),
        )
        op.create_index('ix_bet_game_id', 'bet', ['game_id'])

    if 'score' not in existing_tables:
        op.create_table(
            'score',
            sa.Column('id', sa.String(length=36), primary_key=True),
            sa.Column('bet_id', sa.String(length=36), sa.ForeignKey('bet.id', ondelete='CASCADE'), nullable=False),
            sa.Column('points', sa.Integer(), nullable=False),
            *_timestamps(),
            sa.UniqueConstraint('bet_id', name='score_bet_id_key'),
        )


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    existing_tables = set(insp.get_table_names())

    # Children first so foreign keys never dangle
    for table in ('score', 'bet', 'match', 'game_player', 'player', 'game'):
        if table in existing_tables:
            op.drop_table(table)
