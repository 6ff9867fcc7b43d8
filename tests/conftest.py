"""Pytest shared fixtures for the Moodle web service client."""
import pathlib
import sys
from typing import Optional
from urllib.parse import parse_qs, urlparse

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from moodle_ws.config.settings import Credentials
from moodle_ws.core.moodle import MoodleAPI, MoodleClient


class StubResponse:
    def __init__(self, text: str = "", status_code: int = 200):
        self.text = text
        self.status_code = status_code


class FakeSession:
    """Stands in for requests.Session; answers per wsfunction.

    ``responses`` maps a function name to a body string, a StubResponse,
    an exception instance to raise, or a list of those consumed in order.
    """

    def __init__(self, responses: Optional[dict] = None, default: str = ""):
        self.responses = dict(responses or {})
        self.default = default
        self.calls = []
        self.closed = False

    def post(self, url, data=None, **kwargs):
        query = parse_qs(urlparse(url).query)
        function_name = query["wsfunction"][0]
        self.calls.append({"url": url, "function": function_name, "data": data, "kwargs": kwargs})

        answer = self.responses.get(function_name, self.default)
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, StubResponse):
            return answer
        return StubResponse(answer)

    def close(self):
        self.closed = True

    def functions(self):
        return [call["function"] for call in self.calls]


@pytest.fixture
def credentials():
    return Credentials(url="https://moodle.example.com", token="abc123", rest_format="json")


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(credentials, fake_session):
    return MoodleClient(credentials, timeout=5, session=fake_session)


@pytest.fixture
def api(client):
    return MoodleAPI(client=client)


@pytest.fixture
def credentials_file(tmp_path):
    """Write a credentials.ini and return its path; pass body=... to override."""
    def _write(body: str = None) -> pathlib.Path:
        path = tmp_path / "credentials.ini"
        path.write_text(body if body is not None else (
            "[moodle_api]\n"
            'url = "https://moodle.example.com/"\n'
            'token = "abc123"\n'
        ), encoding="utf-8")
        return path
    return _write
