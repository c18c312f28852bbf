# tests/test_users.py
from gymgain import config
from gymgain.member import SESSION_KEY

from conftest import balance_of


def _register(client, **overrides):
    form = {
        "username": "newbie",
        "email": "Newbie@Example.com",
        "password": "hunter22",
        "firstname": "New",
        "lastname": "Bie",
    }
    form.update(overrides)
    return client.post("/users/register", data=form)


def test_register_creates_member_with_starting_tokens(client):
    resp = _register(client)
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/users/login")

    resp = client.post("/users/login", data={"email": "newbie@example.com", "password": "hunter22"})
    assert resp.headers["Location"].endswith("/dashboard")
    with client.session_transaction() as sess:
        stored = sess[SESSION_KEY]
    assert stored["username"] == "newbie"
    assert stored["token_balance"] == config.STARTING_TOKENS
    assert stored["membership_tier"] == config.DEFAULT_TIER
    assert balance_of(stored["id"]) == config.STARTING_TOKENS


def test_register_missing_fields(client):
    resp = _register(client, password="")
    assert resp.status_code == 400
    assert b"Please fill in all fields" in resp.data


def test_register_duplicate_email(client):
    _register(client)
    resp = _register(client, username="other")
    assert resp.status_code == 400
    assert b"already registered" in resp.data


def test_login_unknown_email(client):
    resp = client.post("/users/login", data={"email": "ghost@example.com", "password": "x"})
    assert resp.status_code == 401
    assert b"No user found with that email" in resp.data


def test_login_wrong_password(client, make_user):
    member = make_user(password="right")
    resp = client.post("/users/login", data={"email": member.email, "password": "wrong"})
    assert resp.status_code == 401
    assert b"Incorrect password" in resp.data
    with client.session_transaction() as sess:
        assert SESSION_KEY not in sess


def test_logout_clears_session(client, login, make_user):
    login(make_user())
    resp = client.get("/users/logout")
    assert resp.headers["Location"].endswith("/users/login")
    with client.session_transaction() as sess:
        assert SESSION_KEY not in sess
    assert client.get("/dashboard").status_code == 302
