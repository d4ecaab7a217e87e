import pytest
import requests

from medsearch.core.config import ConfigError, Settings
from medsearch.core.errors import FetchError
from medsearch.vendors import matching_service


class DummyResponse:
    def __init__(self, status_code=200, payload=None, reason="OK", invalid_json=False):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason
        self.text = str(payload)
        self.invalid_json = invalid_json

    def json(self):
        if self.invalid_json:
            raise ValueError("no json")
        return self._payload


class DummySession:
    def __init__(self):
        self.calls = []
        self.response = None
        self.error = None

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, params, headers, timeout))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def session():
    return DummySession()


@pytest.fixture
def client(session):
    return matching_service.MatchingServiceClient(
        "https://project.example.co/", token="secret", timeout=10, session=session
    )


def test_doctors_by_pathology_success(client, session):
    session.response = DummyResponse(payload=[{"id": "d1", "first_name": "Ana"}])

    rows = client.doctors_by_pathology("p 1")

    assert rows == [{"id": "d1", "first_name": "Ana"}]
    url, params, headers, timeout = session.calls[0]
    assert url == "https://project.example.co/functions/v1/doctors-by-pathology"
    assert params == {"pathology_id": "p 1"}
    assert headers == {"Authorization": "Bearer secret"}
    assert timeout == 10


def test_null_payload_is_empty(client, session):
    session.response = DummyResponse(payload=None)
    assert client.doctors_by_pathology("p1") == []


def test_non_2xx_raises_fetch_error_with_status(client, session):
    session.response = DummyResponse(status_code=401, payload={"msg": "expired"}, reason="Unauthorized")

    with pytest.raises(FetchError) as excinfo:
        client.doctors_by_pathology("p1")

    assert excinfo.value.status == 401
    assert str(excinfo.value) == "Error 401: Unauthorized"


def test_timeout_raises_fetch_error(client, session):
    session.error = requests.Timeout("slow")

    with pytest.raises(FetchError) as excinfo:
        client.doctors_by_pathology("p1")

    assert "10s" in str(excinfo.value)
    assert excinfo.value.status is None


def test_connection_error_raises_fetch_error(client, session):
    session.error = requests.ConnectionError("refused")

    with pytest.raises(FetchError):
        client.doctors_by_pathology("p1")


def test_unexpected_payloads_raise(client, session):
    session.response = DummyResponse(payload={"doctors": []})
    with pytest.raises(FetchError):
        client.doctors_by_pathology("p1")

    session.response = DummyResponse(invalid_json=True)
    with pytest.raises(FetchError):
        client.doctors_by_pathology("p1")


def test_from_settings_requires_url():
    settings = Settings(database_url="postgres://", match_service_url="")
    with pytest.raises(ConfigError):
        matching_service.MatchingServiceClient.from_settings(settings)

    settings = Settings(database_url="", match_service_url="https://x.example", match_service_token="t", request_timeout=3)
    client = matching_service.MatchingServiceClient.from_settings(settings)
    assert client.base_url == "https://x.example"
    assert client.timeout == 3


def test_build_session_mounts_retrying_adapters():
    session = matching_service.build_session()
    adapter = session.get_adapter("https://project.example.co")
    assert adapter.max_retries.total == 1
    assert adapter.max_retries.read is False
    assert adapter.max_retries.connect == 0
    assert 503 in adapter.max_retries.status_forcelist
