import pytest
from flask import Flask

from web.access_gate import AccessGate


class RecordingView:
    """Flask view that records whether it was reached."""

    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return "ok", 200

    def assert_called_once(self):
        assert self.calls == 1

    def assert_not_called(self):
        assert self.calls == 0


@pytest.fixture(name="view")
def view_fixture():
    return RecordingView()


def make_client(secret, view):
    app = Flask(__name__)
    app.add_url_rule("/", "gated", AccessGate(secret, endpoint="test")(view))
    return app.test_client()


@pytest.mark.parametrize("query", ["", "?token=", "?token=wrong", "?token=s3cret2", "?other=s3cret"])
def test_rejects_missing_or_wrong_token(view, query):
    response = make_client("s3cret", view).get(f"/{query}")

    assert response.status_code == 401
    assert response.get_data(as_text=True) == "Unauthorized\n"
    view.assert_not_called()


def test_accepts_matching_token(view):
    response = make_client("s3cret", view).get("/?token=s3cret")

    assert response.status_code == 200
    view.assert_called_once()


@pytest.mark.parametrize("query", ["", "?token=", "?token=anything"])
def test_empty_secret_lets_everything_through(view, query):
    response = make_client("", view).get(f"/{query}")

    assert response.status_code == 200
    view.assert_called_once()


def test_non_ascii_token_is_compared_safely(view):
    response = make_client("s3cret", view).get("/?token=%C3%A9")

    assert response.status_code == 401
    view.assert_not_called()


def test_enabled_flag():
    assert AccessGate("x", endpoint="stats").enabled
    assert not AccessGate("", endpoint="stats").enabled
    assert not AccessGate(None, endpoint="stats").enabled
