import uuid

from ligain import db


def generate_id():
    return str(uuid.uuid4())


class GameRecord(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    season_year = db.Column(db.String(255), nullable=False)
    competition_name = db.Column(db.String(255), nullable=False)
    game_name = db.Column(db.String(255), nullable=False, default='')
    status = db.Column(db.String(32), nullable=False, default='fresh')  # fresh, started, finished
    created_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            'id': self.id,
            'season_year': self.season_year,
            'competition_name': self.competition_name,
            'name': self.game_name,
            'status': self.status,
        }


class PlayerRecord(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    name = db.Column(db.String(255), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now(), onupdate=db.func.now())


class GamePlayerRecord(db.Model):
    __tablename__ = 'game_player'
    __table_args__ = (db.UniqueConstraint('game_id', 'player_id', name='game_player_game_id_player_id_key'),)
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.String(36), db.ForeignKey('game.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.String(36), db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now())


class MatchRecord(db.Model):
    __tablename__ = 'match'
    __table_args__ = (
        db.UniqueConstraint('home_team_id', 'away_team_id', 'season_code', 'competition_code', 'matchday',
                            name='match_natural_key'),
    )
    # Stable local id, see Match.id
    id = db.Column(db.String(255), primary_key=True)
    home_team_id = db.Column(db.String(255), nullable=False)
    away_team_id = db.Column(db.String(255), nullable=False)
    home_team_score = db.Column(db.Integer, nullable=True)
    away_team_score = db.Column(db.Integer, nullable=True)
    match_date = db.Column(db.DateTime(timezone=True), nullable=False)
    match_status = db.Column(db.String(32), nullable=False, default='scheduled')
    season_code = db.Column(db.String(255), nullable=False)
    competition_code = db.Column(db.String(255), nullable=False)
    matchday = db.Column(db.Integer, nullable=False, default=0)
    home_win_odds = db.Column(db.Float, nullable=True)
    away_win_odds = db.Column(db.Float, nullable=True)
    draw_odds = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now(), onupdate=db.func.now())


class BetRecord(db.Model):
    __tablename__ = 'bet'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'match_id', 'player_id', name='bet_game_id_match_id_player_id_key'),
    )
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    game_id = db.Column(db.String(36), db.ForeignKey('game.id', ondelete='CASCADE'), nullable=False, index=True)
    match_id = db.Column(db.String(255), db.ForeignKey('match.id'), nullable=False)
    player_id = db.Column(db.String(36), db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False)
    predicted_home_goals = db.Column(db.Integer, nullable=False)
    predicted_away_goals = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now(), onupdate=db.func.now())


class ScoreRecord(db.Model):
    __tablename__ = 'score'
    id = db.Column(db.String(36), primary_key=True, default=generate_id)
    bet_id = db.Column(db.String(36), db.ForeignKey('bet.id', ondelete='CASCADE'), nullable=False, unique=True)
    points = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), server_default=db.func.now(), onupdate=db.func.now())
