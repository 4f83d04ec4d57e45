from datetime import datetime, timedelta, timezone

from ligain.api.games import match_from_payload
from ligain.errors import StorageError


def _kickoff(days=2):
    return (datetime.now(timezone.utc) + timedelta(days=days)).replace(microsecond=0)


def _fixture(home, away, matchday, date, **extra):
    payload = {
        'home_team': home,
        'away_team': away,
        'season_code': '2024',
        'competition_code': 'Premier League',
        'matchday': matchday,
        'date': date.isoformat(),
    }
    payload.update(extra)
    return payload


def _create_game(client, name='Friends League'):
    res = client.post('/api/games', json={'season_year': '2024', 'competition_name': 'Premier League', 'name': name})
    assert res.status_code == 201
    return res.get_json()


def _create_player(client, name):
    res = client.post('/api/players', json={'name': name})
    assert res.status_code == 201
    return res.get_json()


def _seed_fixtures(client, game_id, *fixtures):
    res = client.post(f'/api/games/{game_id}/matches', json={'matches': list(fixtures)})
    assert res.status_code == 200
    return res.get_json()


def test_create_game(client):
    game = _create_game(client)
    assert game['status'] == 'fresh'
    assert game['name'] == 'Friends League'
    assert game['players'] == []


def test_create_game_requires_season_and_competition(client):
    res = client.post('/api/games', json={'name': 'Nope'})
    assert res.status_code == 400
    assert 'season_year' in res.get_json()['error']


def test_unknown_game_is_404(client):
    res = client.get('/api/games/does-not-exist')
    assert res.status_code == 404
    assert res.get_json()['kind'] == 'NotFoundError'


def test_join_and_bet_flow(client, repos, make_match):
    kickoff = _kickoff()
    match = make_match('Arsenal', 'Chelsea', date=kickoff)
    game = _create_game(client)
    alice = _create_player(client, 'Alice')
    bob = _create_player(client, 'Bob')
    for player in (alice, bob):
        res = client.post(f"/api/games/{game['id']}/players", json={'player_id': player['id']})
        assert res.status_code == 201

    res = client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': alice['id'], 'match_id': match.id,
        'predicted_home_goals': 2, 'predicted_away_goals': 1,
    })
    assert res.status_code == 201
    bet_id = res.get_json()['bet_id']

    res = client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': bob['id'], 'match_id': match.id,
        'predicted_home_goals': 0, 'predicted_away_goals': 0,
    })
    assert res.status_code == 201

    # before kick-off Alice only sees her own bet
    state = client.get(f"/api/games/{game['id']}?player_id={alice['id']}").get_json()
    assert state['status'] == 'started'
    assert list(state['incoming_matches'][match.id]['bets']) == [alice['id']]
    assert state['incoming_matches'][match.id]['bets'][alice['id']]['id'] == bet_id

    bets = client.get(f"/api/games/{game['id']}/matches/{match.id}/bets").get_json()
    assert {b['player_name'] for b in bets} == {'Alice', 'Bob'}

    mine = client.get(f"/api/games/{game['id']}/players/{alice['id']}/bets").get_json()
    assert [(b['match_id'], b['predicted_home_goals']) for b in mine] == [(match.id, 2)]


def test_bet_validation_errors_map_to_400(client, make_match):
    match = make_match('Arsenal', 'Chelsea', date=_kickoff())
    game = _create_game(client)
    alice = _create_player(client, 'Alice')
    outsider = _create_player(client, 'Outsider')
    client.post(f"/api/games/{game['id']}/players", json={'player_id': alice['id']})

    res = client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': alice['id'], 'match_id': match.id,
        'predicted_home_goals': 'two', 'predicted_away_goals': 1,
    })
    assert res.status_code == 400

    res = client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': outsider['id'], 'match_id': match.id,
        'predicted_home_goals': 1, 'predicted_away_goals': 1,
    })
    assert res.status_code == 400

    res = client.post(f"/api/games/{game['id']}/bets", json={'player_id': alice['id']})
    assert res.status_code == 400


def test_late_bet_is_rejected(client, make_match):
    match = make_match('Arsenal', 'Chelsea', date=datetime.now(timezone.utc) - timedelta(minutes=1))
    game = _create_game(client)
    alice = _create_player(client, 'Alice')
    client.post(f"/api/games/{game['id']}/players", json={'player_id': alice['id']})
    res = client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': alice['id'], 'match_id': match.id,
        'predicted_home_goals': 1, 'predicted_away_goals': 0,
    })
    assert res.status_code == 400
    assert 'too late' in res.get_json()['error']


def test_duplicate_player_name_is_409(client):
    _create_player(client, 'Alice')
    res = client.post('/api/players', json={'name': 'Alice'})
    assert res.status_code == 409


def test_invalid_player_name_is_400(client):
    assert client.post('/api/players', json={'name': 'A'}).status_code == 400
    assert client.post('/api/players', json={}).status_code == 400


def test_rename_is_reflected_in_game_state(client, make_match):
    kickoff = _kickoff()
    match = make_match('Arsenal', 'Chelsea', date=kickoff)
    game = _create_game(client)
    alice = _create_player(client, 'Alice')
    client.post(f"/api/games/{game['id']}/players", json={'player_id': alice['id']})
    client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': alice['id'], 'match_id': match.id,
        'predicted_home_goals': 2, 'predicted_away_goals': 1,
    })
    # read once so every cache holds the old name
    client.get(f"/api/games/{game['id']}")

    res = client.patch(f"/api/players/{alice['id']}", json={'name': 'Alicia'})
    assert res.status_code == 200
    assert res.get_json()['name'] == 'Alicia'

    state = client.get(f"/api/games/{game['id']}").get_json()
    assert [p['name'] for p in state['players']] == ['Alicia']
    assert state['incoming_matches'][match.id]['bets'][alice['id']]['player_name'] == 'Alicia'
    bets = client.get(f"/api/games/{game['id']}/matches/{match.id}/bets").get_json()
    assert [b['player_name'] for b in bets] == ['Alicia']


def test_match_feed_scores_and_leaderboard(client, repos):
    kickoff = _kickoff()
    game = _create_game(client)
    opener = _fixture('Arsenal', 'Chelsea', 1, kickoff)
    closer = _fixture('Milan', 'Inter', 2, kickoff + timedelta(days=7))
    # the feed only updates matches the game already knows
    repos.matches.save_match(match_from_payload(opener))
    repos.matches.save_match(match_from_payload(closer))

    alice = _create_player(client, 'Alice')
    bob = _create_player(client, 'Bob')
    for player in (alice, bob):
        client.post(f"/api/games/{game['id']}/players", json={'player_id': player['id']})
    match_id = 'Premier League-2024-Arsenal-Chelsea-1'
    client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': alice['id'], 'match_id': match_id, 'predicted_home_goals': 2, 'predicted_away_goals': 1})
    client.post(f"/api/games/{game['id']}/bets", json={
        'player_id': bob['id'], 'match_id': match_id, 'predicted_home_goals': 1, 'predicted_away_goals': 0})

    state = _seed_fixtures(client, game['id'],
                           dict(opener, status='finished', home_goals=2, away_goals=1))
    assert match_id in state['past_results']
    assert state['points'] == {alice['id']: 3, bob['id']: 1}

    board = client.get(f"/api/games/{game['id']}/leaderboard").get_json()
    assert [(row['player']['name'], row['points']) for row in board] == [('Alice', 3), ('Bob', 1)]

    res = client.post(f"/api/games/{game['id']}/matches", json={'matches': [dict(opener, status='finished')]})
    assert res.status_code == 400


def test_list_games_and_player_games(client):
    first = _create_game(client, 'First')
    second = _create_game(client, 'Second')
    alice = _create_player(client, 'Alice')
    client.post(f"/api/games/{second['id']}/players", json={'player_id': alice['id']})

    listed = client.get('/api/games').get_json()
    assert {g['id'] for g in listed} == {first['id'], second['id']}
    summaries = client.get(f"/api/players/{alice['id']}/games").get_json()
    assert [(g['id'], g['name'], g['status'], g['total_points']) for g in summaries] == [
        (second['id'], 'Second', 'fresh', 0)]
    assert client.get('/api/players/nobody/games').status_code == 404


def test_leave_game(client):
    game = _create_game(client)
    alice = _create_player(client, 'Alice')
    client.post(f"/api/games/{game['id']}/players", json={'player_id': alice['id']})
    res = client.delete(f"/api/games/{game['id']}/players/{alice['id']}")
    assert res.status_code == 200
    assert client.get(f"/api/games/{game['id']}/players").get_json() == []
    assert client.delete(f"/api/games/{game['id']}/players/{alice['id']}").status_code == 404


def test_storage_errors_map_to_503(client, repos, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError('get all games', 'connection refused')

    monkeypatch.setattr(repos.games, 'get_all_games', broken)
    res = client.get('/api/games')
    assert res.status_code == 503
    assert res.get_json()['kind'] == 'StorageError'


def test_invalid_matchday_is_400(client):
    game = _create_game(client)
    res = client.post(f"/api/games/{game['id']}/matches",
                      json={'matches': [_fixture('Arsenal', 'Chelsea', 'abc', _kickoff())]})
    assert res.status_code == 400
    assert 'matchday' in res.get_json()['error']


def test_last_member_leaving_closes_the_game(client):
    game = _create_game(client)
    alice = _create_player(client, 'Alice')
    client.post(f"/api/games/{game['id']}/players", json={'player_id': alice['id']})
    client.delete(f"/api/games/{game['id']}/players/{alice['id']}")

    assert client.get(f"/api/games/{game['id']}").get_json()['status'] == 'finished'
    assert game['id'] not in {g['id'] for g in client.get('/api/games').get_json()}
