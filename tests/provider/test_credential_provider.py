import json
import os
import stat
from unittest.mock import MagicMock, patch

import pytest

from api.google.reports import REPORTS_SCOPE
from provider.google.credential_provider import CredentialError, OAuthFileCredentialProvider

CLIENT_CONFIG = {
    "installed": {
        "client_id": "client-id.apps.googleusercontent.com",
        "client_secret": "client-secret",
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
        "redirect_uris": ["http://localhost"],
    }
}


@pytest.fixture(name="credentials_file")
def credentials_file_fixture(tmp_path):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps(CLIENT_CONFIG), encoding="utf-8")
    return str(path)


@pytest.fixture(name="token_file")
def token_file_fixture(tmp_path):
    return str(tmp_path / "token.json")


@pytest.fixture(name="mock_flow")
def mock_flow_fixture():
    flow = MagicMock()
    flow.authorization_url.return_value = ("https://accounts.google.com/o/oauth2/auth?x=1", "state")
    flow.credentials.to_json.return_value = '{"token": "abc", "refresh_token": "def"}'
    with patch(
        "provider.google.credential_provider.InstalledAppFlow.from_client_config",
        return_value=flow,
    ) as from_client_config:
        flow.from_client_config = from_client_config
        yield flow


def test_missing_credentials_file(tmp_path, token_file):
    with pytest.raises(CredentialError):
        OAuthFileCredentialProvider(str(tmp_path / "missing.json"), token_file, [REPORTS_SCOPE])


def test_unparseable_credentials_file(tmp_path, token_file):
    path = tmp_path / "credentials.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(CredentialError):
        OAuthFileCredentialProvider(str(path), token_file, [REPORTS_SCOPE])


def test_credentials_file_without_client_section(tmp_path, token_file):
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"type": "service_account"}), encoding="utf-8")

    with pytest.raises(CredentialError):
        OAuthFileCredentialProvider(str(path), token_file, [REPORTS_SCOPE])


def test_loads_existing_token(credentials_file, token_file, mock_flow):
    with open(token_file, "w", encoding="utf-8") as f:
        f.write("{}")
    saved = MagicMock()

    with patch(
        "provider.google.credential_provider.Credentials.from_authorized_user_file",
        return_value=saved,
    ) as from_file:
        provider = OAuthFileCredentialProvider(credentials_file, token_file, [REPORTS_SCOPE])
        credentials = provider.get_credentials()

    assert credentials is saved
    from_file.assert_called_once_with(token_file, [REPORTS_SCOPE])
    mock_flow.from_client_config.assert_not_called()


def test_authorizes_and_saves_token_when_missing(credentials_file, token_file, mock_flow):
    provider = OAuthFileCredentialProvider(
        credentials_file, token_file, [REPORTS_SCOPE], prompt=lambda _: " the-code \n"
    )

    credentials = provider.get_credentials()

    assert credentials is mock_flow.credentials
    mock_flow.from_client_config.assert_called_once_with(CLIENT_CONFIG, [REPORTS_SCOPE])
    mock_flow.authorization_url.assert_called_once_with(access_type="offline", prompt="consent")
    mock_flow.fetch_token.assert_called_once_with(code="the-code")
    assert mock_flow.redirect_uri == "http://localhost"
    with open(token_file, encoding="utf-8") as f:
        assert json.load(f) == {"token": "abc", "refresh_token": "def"}
    assert stat.S_IMODE(os.stat(token_file).st_mode) == 0o600


def test_unparseable_token_triggers_authorization(credentials_file, token_file, mock_flow):
    with open(token_file, "w", encoding="utf-8") as f:
        f.write("garbage")
    provider = OAuthFileCredentialProvider(
        credentials_file, token_file, [REPORTS_SCOPE], prompt=lambda _: "code"
    )

    assert provider.get_credentials() is mock_flow.credentials
    mock_flow.fetch_token.assert_called_once_with(code="code")


def test_empty_authorization_code(credentials_file, token_file, mock_flow):
    provider = OAuthFileCredentialProvider(
        credentials_file, token_file, [REPORTS_SCOPE], prompt=lambda _: "   "
    )

    with pytest.raises(CredentialError):
        provider.get_credentials()
    assert not os.path.exists(token_file)


def test_no_stdin(credentials_file, token_file, mock_flow):
    def closed_stdin(_):
        raise EOFError

    provider = OAuthFileCredentialProvider(
        credentials_file, token_file, [REPORTS_SCOPE], prompt=closed_stdin
    )

    with pytest.raises(CredentialError):
        provider.get_credentials()


def test_token_exchange_failure(credentials_file, token_file, mock_flow):
    mock_flow.fetch_token.side_effect = ValueError("invalid_grant")
    provider = OAuthFileCredentialProvider(
        credentials_file, token_file, [REPORTS_SCOPE], prompt=lambda _: "code"
    )

    with pytest.raises(CredentialError):
        provider.get_credentials()
    assert not os.path.exists(token_file)
