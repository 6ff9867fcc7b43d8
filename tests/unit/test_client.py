import re
from urllib.parse import parse_qs, parse_qsl, urlparse

import pytest
import requests

from moodle_ws.config.settings import ClientSettings, Credentials
from moodle_ws.core.moodle import MoodleClient, encode_params, flatten_params
from moodle_ws.core.moodle.responses import RemoteException, Success, TransportFailure
from tests.conftest import FakeSession, StubResponse


def unflatten(pairs):
    """Rebuild the nested mapping from PHP bracket notation."""
    root = {}
    for raw_key, value in pairs:
        parts = re.findall(r"[^\[\]]+", raw_key)
        node = root
        for part, nxt in zip(parts, parts[1:]):
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return _lists(root)


def _lists(node):
    if not isinstance(node, dict):
        return node
    if node and all(key.isdigit() for key in node):
        return [_lists(node[key]) for key in sorted(node, key=int)]
    return {key: _lists(value) for key, value in node.items()}


class TestBuildUrl:
    def test_json_format_adds_rest_format(self, client):
        url = client.build_url("core_user_get_users")
        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == \
            "https://moodle.example.com/webservice/rest/server.php"
        assert parse_qs(parsed.query) == {
            "wstoken": ["abc123"],
            "wsfunction": ["core_user_get_users"],
            "moodlewsrestformat": ["json"],
        }

    def test_xml_format_omits_rest_format(self):
        client = MoodleClient(Credentials("https://m.test", "tok", "xml"), session=FakeSession())
        query = parse_qs(urlparse(client.build_url("core_user_get_users")).query)
        assert "moodlewsrestformat" not in query
        assert query["wsfunction"] == ["core_user_get_users"]


class TestEncoding:
    def test_criteria_use_bracket_index_notation(self):
        pairs = flatten_params({"criteria": [{"key": "username", "value": "likel"}]})
        assert pairs == [("criteria[0][key]", "username"), ("criteria[0][value]", "likel")]

    def test_scalar_lists(self):
        assert flatten_params({"userids": [4, 5]}) == [("userids[0]", "4"), ("userids[1]", "5")]

    def test_booleans_none_and_empty_lists(self):
        pairs = flatten_params({"a": True, "b": False, "c": None, "d": [], "e": 0})
        assert pairs == [("a", "1"), ("b", "0"), ("e", "0")]

    @pytest.mark.parametrize("params", [
        {"users": [
            {"username": "likel", "firstname": "Liam", "lastname": "Kelly", "email": "a@b.co", "mailformat": "1"},
            {"username": "likel2", "firstname": "Liam & co", "lastname": "K=lly", "email": "c@d.co", "mailformat": "1"},
        ]},
        {"criteria": [{"key": "email", "value": "x+y@example.com"}]},
        {"userid": "12"},
        {"options": {"ids": ["1", "2"]}, "name": "space and ümlaut"},
    ])
    def test_body_round_trips(self, params):
        body = encode_params(params)
        assert unflatten(parse_qsl(body, keep_blank_values=True)) == params


class TestPost:
    def test_posts_form_body(self, credentials):
        session = FakeSession({"core_user_get_users": '{"users": []}'})
        client = MoodleClient(credentials, timeout=9, verify_ssl=False, session=session)

        raw = client.post("core_user_get_users", {"criteria": [{"key": "id", "value": 3}]})

        assert raw == '{"users": []}'
        call = session.calls[0]
        assert call["data"] == "criteria%5B0%5D%5Bkey%5D=id&criteria%5B0%5D%5Bvalue%5D=3"
        assert call["kwargs"]["timeout"] == 9
        assert call["kwargs"]["verify"] is False
        assert call["kwargs"]["allow_redirects"] is False

    def test_verifies_tls_by_default(self, credentials, fake_session):
        MoodleClient(credentials, session=fake_session).post("core_webservice_get_site_info")
        assert fake_session.calls[0]["kwargs"]["verify"] is True

    def test_connection_error_is_transport_failure(self, credentials):
        session = FakeSession({"core_user_get_users": requests.ConnectionError("refused")})
        result = MoodleClient(credentials, session=session).post("core_user_get_users", {})
        assert isinstance(result, TransportFailure)
        assert result.short == "transport_error"
        assert "refused" in result.message

    def test_timeout_is_transport_failure(self, credentials):
        session = FakeSession({"core_user_get_users": requests.Timeout("slow")})
        result = MoodleClient(credentials, session=session).call("core_user_get_users", {})
        assert result.short == "transport_error"

    def test_http_error_status(self, credentials):
        session = FakeSession({"core_user_get_users": StubResponse("Server Error", status_code=503)})
        result = MoodleClient(credentials, session=session).call("core_user_get_users", {})
        assert result == TransportFailure(message="HTTP 503: Server Error", short="http_error", status_code=503)


class TestCall:
    def test_success(self, client, fake_session):
        fake_session.responses["core_webservice_get_site_info"] = '{"sitename": "Demo"}'
        result = client.call("core_webservice_get_site_info")
        assert result == Success(response={"sitename": "Demo"})

    def test_remote_exception(self, client, fake_session):
        fake_session.responses["core_user_get_users"] = \
            '{"exception": "invalid_parameter_exception", "message": "Invalid parameter value detected"}'
        result = client.call("core_user_get_users", {"criteria": []})
        assert isinstance(result, RemoteException)
        assert result.message == "Invalid parameter value detected"

    def test_xml_client_decodes_xml(self):
        session = FakeSession({"core_user_get_users": "<RESPONSE><SINGLE><KEY name=\"users\"><MULTIPLE></MULTIPLE></KEY></SINGLE></RESPONSE>"})
        client = MoodleClient(Credentials("https://m.test", "tok", "xml"), session=session)
        assert client.call("core_user_get_users", {}) == Success(response={"users": []})

    def test_from_settings(self, credentials, fake_session):
        cfg = ClientSettings(credentials=credentials, timeout_seconds=12, verify_ssl=False)
        client = MoodleClient.from_settings(cfg, session=fake_session)
        assert client.timeout == 12
        assert client.verify_ssl is False
        assert client.rest_format == "json"
