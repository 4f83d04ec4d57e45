from datetime import datetime, timedelta

from flask import Blueprint, current_app, jsonify, request

from ligain.errors import ValidationError
from ligain.services.games.entities import Match, MatchStatus
from ligain.services.games.game import Game
from ligain.services.games.service import GameService


games = Blueprint('games', __name__)


def _repos():
    return current_app.extensions['ligain']


def _service(game_id: str) -> GameService:
    freeze = timedelta(seconds=current_app.config.get('ODDS_FREEZE_SEC', 360))
    return GameService(game_id, _repos(), odds_freeze=freeze)


def _require(data: dict, *fields):
    missing = [f for f in fields if data.get(f) in (None, '')]
    if missing:
        raise ValidationError(f"missing required field(s): {', '.join(missing)}")
    return [data[f] for f in fields]


def _parse_date(value) -> datetime:
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f"invalid date {value!r}") from None


def _parse_matchday(value) -> int:
    if value in (None, ''):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"invalid matchday {value!r}") from None


def match_from_payload(data: dict) -> Match:
    home, away, season, competition, date = _require(
        data, 'home_team', 'away_team', 'season_code', 'competition_code', 'date')
    try:
        status = MatchStatus(data.get('status') or MatchStatus.SCHEDULED.value)
    except ValueError:
        raise ValidationError(f"invalid match status {data.get('status')!r}") from None
    match = Match(
        home_team=home,
        away_team=away,
        season_code=season,
        competition_code=competition,
        date=_parse_date(date),
        matchday=_parse_matchday(data.get('matchday')),
        home_team_odds=data.get('home_team_odds'),
        away_team_odds=data.get('away_team_odds'),
        draw_odds=data.get('draw_odds'),
        local_id=data.get('id'),
    )
    if status == MatchStatus.FINISHED:
        home_goals, away_goals = data.get('home_goals'), data.get('away_goals')
        if not all(isinstance(g, int) and not isinstance(g, bool) and g >= 0 for g in (home_goals, away_goals)):
            raise ValidationError('a finished match needs home_goals and away_goals')
        match.finish(home_goals, away_goals)
    elif status == MatchStatus.STARTED:
        match.start()
    return match


@games.route('', methods=['POST'])
def create_game():
    data = request.get_json(silent=True) or {}
    season_year, competition_name = _require(data, 'season_year', 'competition_name')
    game = Game(season_year, competition_name, data.get('name') or competition_name, _repos().games.scorer)
    game_id = _repos().games.create_game(game)
    return jsonify(_repos().games.get_game(game_id).to_dict()), 201


@games.route('', methods=['GET'])
def list_games():
    all_games = _repos().games.get_all_games()
    return jsonify([game.to_dict() for game in all_games.values()])


@games.route('/<string:game_id>', methods=['GET'])
def get_game(game_id):
    game = _repos().games.get_game(game_id)
    viewer_id = request.args.get('player_id')
    viewer = _repos().players.get_player(viewer_id) if viewer_id else None
    return jsonify(game.to_dict(viewer))


@games.route('/<string:game_id>/players', methods=['POST'])
def join_game(game_id):
    data = request.get_json(silent=True) or {}
    (player_id,) = _require(data, 'player_id')
    player = _service(game_id).join(player_id)
    return jsonify(player.to_dict()), 201


@games.route('/<string:game_id>/players', methods=['GET'])
def list_players(game_id):
    return jsonify([p.to_dict() for p in _service(game_id).get_players()])


@games.route('/<string:game_id>/players/<string:player_id>', methods=['DELETE'])
def leave_game(game_id, player_id):
    _service(game_id).leave(player_id)
    return jsonify({'message': 'Player left the game'}), 200


@games.route('/<string:game_id>/players/<string:player_id>/bets', methods=['GET'])
def player_bets(game_id, player_id):
    return jsonify([bet.to_dict() for bet in _service(game_id).get_player_bets(player_id)])


@games.route('/<string:game_id>/bets', methods=['POST'])
def place_bet(game_id):
    data = request.get_json(silent=True) or {}
    player_id, match_id = _require(data, 'player_id', 'match_id')
    bet_id = _service(game_id).place_bet(
        player_id, match_id, data.get('predicted_home_goals'), data.get('predicted_away_goals'))
    return jsonify({'bet_id': bet_id}), 201


@games.route('/<string:game_id>/matches/<string:match_id>/bets', methods=['GET'])
def match_bets(game_id, match_id):
    match = _repos().games.get_game(game_id).get_match(match_id)
    bets, players = _repos().bets.get_bets_for_match(match, game_id)
    return jsonify([
        dict(bet.to_dict(), player_id=player.id, player_name=player.name)
        for bet, player in zip(bets, players)
    ])


@games.route('/<string:game_id>/matches', methods=['POST'])
def update_matches(game_id):
    """Fixture feed: apply match updates (odds, kick-off, results) to the game."""
    data = request.get_json(silent=True) or {}
    payload = data.get('matches')
    if not isinstance(payload, list):
        raise ValidationError('matches must be a list')
    updates = [match_from_payload(item or {}) for item in payload]
    game = _service(game_id).handle_match_updates(updates)
    return jsonify(game.to_dict())


@games.route('/<string:game_id>/leaderboard', methods=['GET'])
def leaderboard(game_id):
    return jsonify(_service(game_id).leaderboard())
