import os
import sys
# Ensure project root is importable for tests, regardless of runner CWD
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from jiralog.cache import LookupCache, ReportContext


class FakeResponse:
    def __init__(
        self,
        status_code: int = 200,
        json_data: Optional[Any] = None,
        text: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        url: str = "",
    ):
        self.status_code = status_code
        self._json_data = json_data
        if text is None:
            text = json.dumps(json_data) if json_data is not None else ""
        self.text = text
        self.headers = headers or {}
        self.url = url

    def json(self):
        if self._json_data is None:
            raise ValueError("No JSON object could be decoded")
        return self._json_data


class FakeSession:
    """Replays canned responses (or raises canned exceptions) and records calls."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, params=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "json": json, "timeout": timeout})
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


def make_connection_error(msg: str = "Connection refused") -> requests.exceptions.ConnectionError:
    return requests.exceptions.ConnectionError(msg)


def make_context(issues: Dict[str, Any], users: Optional[Dict[str, Any]] = None, **kwargs) -> ReportContext:
    """ReportContext over in-memory dicts; records fetched ids on the caches."""
    issue_calls: List[str] = []
    user_calls: List[str] = []

    def fetch_issue(k):
        issue_calls.append(k)
        return issues.get(k)

    def fetch_user(k):
        user_calls.append(k)
        return (users or {}).get(k)

    ctx = ReportContext(
        issues=LookupCache("issue", fetch_issue),
        users=LookupCache("user", fetch_user),
        **kwargs,
    )
    ctx.issues.calls = issue_calls
    ctx.users.calls = user_calls
    return ctx


@pytest.fixture
def tmp_config_file(tmp_path):
    """Create a complete config.ini and return its path."""
    p = tmp_path / "config.ini"
    p.write_text(
        "[jira]\n"
        "base_url = https://source.atlassian.net/\n"
        "email = user@example.com\n"
        "api_token = token123\n"
        "\n"
        "[tempo]\n"
        "base_url = https://api.tempo.io/4\n"
        "api_token = tempo%token\n"
        "author_account_id = acc-1\n"
        "\n"
        "[destination]\n"
        "base_url = https://jira.dest.example\n"
        "bearer_token = bearer123\n"
        "email = me@dest.example\n"
        "\n"
        "[http]\n"
        "verify_ssl = true\n",
        encoding="utf-8",
    )
    return p


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every jiralog env var so config tests only see what they set."""
    from jiralog.config import OPTIONS
    for _section, _option, env in OPTIONS.values():
        monkeypatch.delenv(env, raising=False)
    yield


# Expose utilities for tests
__all__ = ["FakeResponse", "FakeSession", "make_connection_error", "make_context"]
