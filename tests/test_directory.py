import pytest
import requests

from dojo_matcher import directory as directory_module
from dojo_matcher.directory import DirectoryConfig, DirectoryError, DojoDirectory
from dojo_matcher.structures import Candidate


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} error", response=self)

    def json(self):
        return self.payload


class FakeSession:
    """Answer GET requests by table name, recording every call."""

    def __init__(self, responses):
        self.responses = {table: list(items) for table, items in responses.items()}
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        table = url.rsplit("/", 1)[-1]
        self.calls.append({"table": table, "url": url, "headers": headers, "params": params, "timeout": timeout})
        outcome = self.responses[table].pop(0) if len(self.responses[table]) > 1 else self.responses[table][0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def config():
    return DirectoryConfig(url="https://example.supabase.co/", api_key="anon-key", max_retries=3)


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(directory_module.time, "sleep", lambda seconds: None)


def test_config_reads_environment(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://env.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "env-key")
    config = DirectoryConfig()
    assert config.endpoint("dojos") == "https://env.supabase.co/rest/v1/dojos"
    assert config.headers()["Authorization"] == "Bearer env-key"
    assert config.headers()["apikey"] == "env-key"


def test_missing_url_raises(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    session = FakeSession({"dojos": [FakeResponse([])]})
    with pytest.raises(DirectoryError):
        DojoDirectory(DirectoryConfig(), session=session).list_dojos()
    assert session.calls == []


def test_list_dojos_reads_active_dojos(config):
    session = FakeSession(
        {
            "dojos": [
                FakeResponse(
                    [
                        {"id": "d1", "name": "Dojo Central"},
                        {"id": "d2", "name": "  "},
                        {"id": "d1", "name": "Dojo Central (copy)"},
                        {"id": "d3", "name": "Dojo Norte"},
                    ]
                )
            ]
        }
    )
    dojos = DojoDirectory(config, session=session).list_dojos()

    assert dojos == [Candidate("d1", "Dojo Central"), Candidate("d3", "Dojo Norte")]
    call = session.calls[0]
    assert call["url"] == "https://example.supabase.co/rest/v1/dojos"
    assert call["params"] == {"select": "id,name", "order": "name.asc", "is_active": "eq.true"}
    assert call["headers"]["apikey"] == "anon-key"
    assert call["timeout"] == (config.connection_timeout, config.timeout_seconds)


def test_list_dojos_can_include_inactive(config):
    session = FakeSession({"dojos": [FakeResponse([{"id": "d1", "name": "Dojo Central"}])]})
    DojoDirectory(config, session=session).list_dojos(active_only=False)
    assert "is_active" not in session.calls[0]["params"]


def test_list_senseis_of_a_dojo(config):
    session = FakeSession(
        {
            "dojo_senseis": [FakeResponse([{"user_id": "u1"}, {"user_id": "u2"}, {"user_id": "u1"}])],
            "profiles": [
                FakeResponse(
                    [
                        {"user_id": "u2", "name": "Ana Souza"},
                        {"user_id": "u1", "name": "João Silva"},
                    ]
                )
            ],
        }
    )
    senseis = DojoDirectory(config, session=session).list_senseis(dojo_id="d1")

    assert senseis == [Candidate("u2", "Ana Souza"), Candidate("u1", "João Silva")]
    assert session.calls[0]["params"]["dojo_id"] == "eq.d1"
    assert session.calls[1]["params"]["user_id"] == "in.(u1,u2)"


def test_list_senseis_uses_roles_without_dojo(config):
    session = FakeSession(
        {
            "user_roles": [FakeResponse([{"user_id": "u1"}])],
            "profiles": [FakeResponse([{"user_id": "u1", "name": "João Silva"}])],
        }
    )
    senseis = DojoDirectory(config, session=session).list_senseis()
    assert senseis == [Candidate("u1", "João Silva")]
    assert session.calls[0]["params"]["role"] == "eq.sensei"


def test_list_senseis_without_links_skips_profiles(config):
    session = FakeSession({"dojo_senseis": [FakeResponse([])], "profiles": [FakeResponse([])]})
    assert DojoDirectory(config, session=session).list_senseis(dojo_id="d9") == []
    assert [call["table"] for call in session.calls] == ["dojo_senseis"]


def test_timeouts_are_retried(config):
    session = FakeSession(
        {
            "dojos": [
                requests.exceptions.Timeout("slow"),
                FakeResponse([{"id": "d1", "name": "Dojo Central"}]),
            ]
        }
    )
    assert DojoDirectory(config, session=session).list_dojos() == [Candidate("d1", "Dojo Central")]
    assert len(session.calls) == 2


def test_server_errors_exhaust_retries(config):
    session = FakeSession({"dojos": [FakeResponse(status_code=503)]})
    with pytest.raises(DirectoryError):
        DojoDirectory(config, session=session).list_dojos()
    assert len(session.calls) == 3


def test_client_errors_fail_immediately(config):
    session = FakeSession({"dojos": [FakeResponse(status_code=401)]})
    with pytest.raises(DirectoryError, match="401"):
        DojoDirectory(config, session=session).list_dojos()
    assert len(session.calls) == 1


def test_unexpected_payload_raises(config):
    session = FakeSession({"dojos": [FakeResponse({"message": "not a list"})]})
    with pytest.raises(DirectoryError):
        DojoDirectory(config, session=session).list_dojos()


def test_connection_errors_are_retried(config):
    session = FakeSession(
        {
            "dojos": [
                requests.exceptions.ConnectionError("refused"),
                requests.exceptions.ConnectionError("refused"),
                FakeResponse([{"id": "d1", "name": "Dojo Central"}]),
            ]
        }
    )
    assert DojoDirectory(config, session=session).list_dojos() == [Candidate("d1", "Dojo Central")]
    assert len(session.calls) == 3


def test_connection_errors_exhaust_retries(config):
    session = FakeSession({"dojos": [requests.exceptions.ConnectionError("refused")]})
    with pytest.raises(DirectoryError, match="after 3 attempts"):
        DojoDirectory(config, session=session).list_dojos()
    assert len(session.calls) == 3


def test_retry_messages_are_printed_when_verbose(config, capsys):
    session = FakeSession(
        {"dojos": [requests.exceptions.Timeout("slow"), FakeResponse([{"id": "d1", "name": "Dojo Central"}])]}
    )
    DojoDirectory(config, session=session).list_dojos()
    assert "Directory Timeout on attempt 1/3" in capsys.readouterr().out


def test_retry_messages_are_silent_when_not_verbose(capsys):
    config = DirectoryConfig(url="https://example.supabase.co", api_key="anon-key", verbose=False)
    session = FakeSession(
        {"dojos": [FakeResponse(status_code=503), FakeResponse([{"id": "d1", "name": "Dojo Central"}])]}
    )
    assert DojoDirectory(config, session=session).list_dojos() == [Candidate("d1", "Dojo Central")]
    assert capsys.readouterr().out == ""
