from datetime import timedelta

from flask import Blueprint, current_app, jsonify, request

from ligain.services.games.service import GameService

players = Blueprint('players', __name__)


def _players():
    return current_app.extensions['ligain'].players


@players.route('', methods=['POST'])
def create_player():
    data = request.get_json(silent=True) or {}
    player = _players().create_player(data.get('name'))
    return jsonify(player.to_dict()), 201


@players.route('/<string:player_id>', methods=['GET'])
def get_player(player_id):
    return jsonify(_players().get_player(player_id).to_dict())


@players.route('/<string:player_id>', methods=['PATCH'])
def rename_player(player_id):
    data = request.get_json(silent=True) or {}
    player = _players().update_player_name(player_id, data.get('name'))
    return jsonify(player.to_dict())


@players.route('/<string:player_id>/games', methods=['GET'])
def player_games(player_id):
    """Every game the player is in, newest membership first, with their scores."""
    repos = current_app.extensions['ligain']
    repos.players.get_player(player_id)
    freeze = timedelta(seconds=current_app.config.get('ODDS_FREEZE_SEC', 360))
    return jsonify([
        GameService(game_id, repos, odds_freeze=freeze).get_player_summary(player_id)
        for game_id in repos.players.get_player_games(player_id)
    ])
