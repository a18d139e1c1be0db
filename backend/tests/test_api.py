from clickrank.errors import ConnectionLost
from clickrank.models import UserSession


def test_register_login_play_dashboard(client, login_as):
    login_as('Alice', 'a@x.com', 'pw123')
    res = client.post('/game/result', json={'score': 7})
    assert res.status_code == 200
    assert res.get_json()['games_played'] == 1

    res = client.get('/dashboard')
    assert res.status_code == 200
    stats = res.get_json()['user_stats']
    assert stats['name'] == 'Alice'
    assert stats['games_played'] == 1
    assert stats['best_score'] == 7
    assert stats['average_clicks'] == '7.00'


def test_dashboard_without_games_shows_zeros(client, login_as):
    login_as()
    stats = client.get('/dashboard').get_json()['user_stats']
    assert stats['games_played'] == 0
    assert stats['best_score'] == 0
    assert stats['average_clicks'] == '0.00'


def test_form_encoded_score_is_parsed(client, login_as):
    login_as()
    res = client.post('/game/result', data={'score': '12'})
    assert res.status_code == 200
    assert res.get_json()['best_score'] == 12


def test_invalid_scores_rejected(client, login_as):
    login_as()
    for bad in (-1, 'abc', 3.5, True, None, '\u00b2', 10**20, str(2**31)):
        res = client.post('/game/result', json={'score': bad})
        assert res.status_code == 400
    assert client.get('/dashboard').get_json()['user_stats']['games_played'] == 0


def test_non_object_json_bodies_are_rejected(client, login_as):
    for body in (['a'], 'a@x.com', 5):
        assert client.post('/login', json=body).status_code == 401
        assert client.post('/register', json=body).status_code == 400
    login_as()
    for body in ([7], '7'):
        assert client.post('/game/result', json=body).status_code == 400


def test_non_string_credentials_are_rejected(client):
    res = client.post('/register', json={'name': 'Alice', 'email': 'a@x.com', 'password': 12345})
    assert res.status_code == 400
    res = client.post('/login', json={'email': ['a@x.com'], 'password': 12345})
    assert res.status_code == 401


def test_duplicate_registration_conflicts(client):
    payload = {'name': 'Alice', 'email': 'a@x.com', 'password': 'pw123'}
    assert client.post('/register', json=payload).status_code == 201
    res = client.post('/register', json=dict(payload, name='Other'))
    assert res.status_code == 409
    assert 'already be in use' in res.get_json()['error']


def test_register_requires_fields(client):
    res = client.post('/register', json={'name': 'Alice', 'email': 'a@x.com'})
    assert res.status_code == 400


def test_login_failures_share_one_message(client):
    client.post('/register', json={'name': 'Alice', 'email': 'a@x.com', 'password': 'pw123'})
    attempts = [
        {'email': 'a@x.com', 'password': 'nope'},
        {'email': 'a@x.com', 'password': ''},
        {'email': 'ghost@x.com', 'password': 'pw123'},
    ]
    messages = set()
    for body in attempts:
        res = client.post('/login', json=body)
        assert res.status_code == 401
        messages.add(res.get_json()['error'])
    assert messages == {'Invalid email or password'}


def test_protected_routes_redirect_to_login(client):
    for path in ('/', '/game', '/dashboard', '/leaderboard'):
        res = client.get(path)
        assert res.status_code == 302
        assert '/login' in res.headers['Location']
    res = client.post('/game/result', json={'score': 1})
    assert res.status_code == 302


def test_authenticated_user_is_sent_away_from_login(client, login_as):
    login_as()
    for path in ('/login', '/register'):
        res = client.get(path)
        assert res.status_code == 302
        assert res.headers['Location'].endswith('/')


def test_index_and_game_settings(client, login_as):
    login_as('Alice')
    assert client.get('/').get_json()['name'] == 'Alice'
    assert client.get('/game').get_json() == {'duration_sec': 10}


def test_logout_unbinds_session(flask_app, client, login_as):
    login_as()
    assert UserSession.query.count() == 1
    res = client.post('/logout')
    assert res.status_code == 200
    assert UserSession.query.count() == 0
    assert client.get('/dashboard').status_code == 302


def test_logout_via_delete(client, login_as):
    login_as()
    assert client.delete('/logout').status_code == 200
    assert client.get('/').status_code == 302


def test_leaderboard_top_three(client, login_as):
    login_as('Alice', 'a@x.com')
    client.post('/game/result', json={'score': 30})
    client.post('/logout')
    login_as('Bob', 'b@x.com')
    client.post('/game/result', json={'score': 10})
    client.post('/logout')
    login_as('Cara', 'c@x.com')
    client.post('/game/result', json={'score': 50})
    client.post('/logout')
    login_as('Dan', 'd@x.com')
    client.post('/game/result', json={'score': 20})

    top = client.get('/leaderboard').get_json()['top_users']
    assert top == [
        {'name': 'Cara', 'best_score': 50},
        {'name': 'Alice', 'best_score': 30},
        {'name': 'Dan', 'best_score': 20},
    ]


def test_leaderboard_storage_failure_falls_back_to_empty(client, login_as, monkeypatch):
    login_as()

    def boom(n):
        raise ConnectionLost('database went away')

    monkeypatch.setattr('clickrank.api.game.top_scores', boom)
    res = client.get('/leaderboard')
    assert res.status_code == 200
    assert res.get_json()['top_users'] == []


def test_dashboard_storage_failure_falls_back_to_defaults(client, login_as, monkeypatch):
    login_as('Alice')

    def boom(user):
        raise ConnectionLost('database went away')

    monkeypatch.setattr('clickrank.api.game.dashboard_for', boom)
    stats = client.get('/dashboard').get_json()['user_stats']
    assert stats['name'] == 'Alice'
    assert stats['games_played'] == 0


def test_result_storage_failure_is_surfaced(client, login_as, monkeypatch):
    login_as()

    def boom(user_id, score):
        raise ConnectionLost('database went away')

    monkeypatch.setattr('clickrank.api.game.record_result', boom)
    res = client.post('/game/result', json={'score': 4})
    assert res.status_code == 503
    assert res.get_json()['retryable'] is True
