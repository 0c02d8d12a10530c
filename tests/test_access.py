import hashlib

import pytest

from access import AccessGateway, SessionManager, bearer_token
from config import Settings
from errors import Unauthorized


@pytest.fixture
def gateway():
    return AccessGateway(Settings(database_url="sqlite+aiosqlite://"), SessionManager())


def test_login_issues_registered_token(gateway):
    token = gateway.login("admin", "ipassword")
    assert gateway.sessions.is_valid(token)
    assert gateway.sessions.issued_at(token) is not None
    assert gateway.check(token) == token


def test_each_login_gets_a_new_token(gateway):
    assert gateway.login("admin", "ipassword") != gateway.login("admin", "ipassword")
    assert len(gateway.sessions) == 2


@pytest.mark.parametrize("login, password", [
    ("admin", "wrong"),
    ("root", "ipassword"),
    ("", ""),
    (None, None),
])
def test_bad_credentials_look_the_same(gateway, login, password):
    with pytest.raises(Unauthorized) as excinfo:
        gateway.login(login, password)
    assert excinfo.value.detail == "Invalid credentials"
    assert len(gateway.sessions) == 0


def test_configured_password_digest():
    digest = hashlib.sha256(b"s3cret").hexdigest()
    gateway = AccessGateway(
        Settings(database_url="sqlite+aiosqlite://", admin_login="boss", admin_password_sha256=digest),
        SessionManager(),
    )
    assert gateway.login("boss", "s3cret")
    with pytest.raises(Unauthorized):
        gateway.login("admin", "ipassword")


@pytest.mark.parametrize("token", [None, "", "not-a-session"])
def test_check_rejects_unknown_tokens(gateway, token):
    with pytest.raises(Unauthorized):
        gateway.check(token)


def test_logout_revokes_only_that_token(gateway):
    first = gateway.login("admin", "ipassword")
    second = gateway.login("admin", "ipassword")

    gateway.logout(first)

    assert not gateway.sessions.is_valid(first)
    assert gateway.sessions.is_valid(second)


def test_sessions_are_per_manager():
    settings = Settings(database_url="sqlite+aiosqlite://")
    token = AccessGateway(settings, SessionManager()).login("admin", "ipassword")
    with pytest.raises(Unauthorized):
        AccessGateway(settings, SessionManager()).check(token)


@pytest.mark.parametrize("header, expected", [
    ("Bearer abc", "abc"),
    ("bearer abc", "abc"),
    ("Basic abc", None),
    ("Bearer", None),
    ("", None),
    (None, None),
])
def test_bearer_token(header, expected):
    assert bearer_token(header) == expected


def test_logout_logs_session_age(gateway, caplog):
    token = gateway.login("admin", "ipassword")
    issued = gateway.sessions.issued_at(token)

    with caplog.at_level("INFO", logger="access"):
        gateway.logout(token)

    assert f"session issued at {issued:%Y-%m-%d %H:%M:%S} UTC" in caplog.text
    assert gateway.sessions.issued_at(token) is None
