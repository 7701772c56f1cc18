"""
Thin request wrappers for the Jira and Tempo REST endpoints used by jiralog.

Every call is a single blocking round trip: HTTP error statuses become
ApiError, requests-level failures become TransportError. No retries.
"""
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from .errors import ApiError, TransportError

DEFAULT_TIMEOUT = 120


def make_session(email: str = "", token: str = "", bearer_token: str = "",
                 verify: Optional[bool] = True, ca_bundle: Optional[str] = "",
                 http_proxy: str = "", https_proxy: str = "") -> requests.Session:
    """Create a configured requests.Session for Jira/Tempo API access.

    Uses basic auth (email/token) unless a bearer token is given, JSON
    headers, optional proxies, and SSL verification or a custom CA bundle.

    Args:
        email: Account email (basic auth username).
        token: API token (basic auth password).
        bearer_token: Token sent as 'Authorization: Bearer ...'; takes precedence.
        verify: Whether to verify SSL certs (ignored if ca_bundle provided).
        ca_bundle: Path to CA bundle to use for SSL verification.
        http_proxy: HTTP proxy URL.
        https_proxy: HTTPS proxy URL.

    Returns:
        requests.Session: Configured session instance.
    """
    s = requests.Session()
    s.headers.update({"Accept": "application/json", "Content-Type": "application/json"})
    if bearer_token:
        s.headers["Authorization"] = f"Bearer {bearer_token}"
    elif email or token:
        s.auth = (email, token)
    if http_proxy or https_proxy:
        proxies = {}
        if http_proxy:
            proxies["http"] = http_proxy
        if https_proxy:
            proxies["https"] = https_proxy
        s.proxies.update(proxies)
    if ca_bundle:
        s.verify = ca_bundle
    else:
        s.verify = verify
    return s


class ApiClient:
    """Base wrapper: one session, one base URL, JSON in and out."""

    def __init__(self, session: requests.Session, base_url: str, timeout: int = DEFAULT_TIMEOUT):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            r = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise TransportError(e) from e
        if r.status_code >= 400:
            raise ApiError.from_response(r)
        if not r.text:
            return {}
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(r.status_code, [f"invalid JSON response: {r.text.strip()[:200]}"],
                           url=getattr(r, "url", "") or url) from e


# --- Jira ---------------------------------------------------------------

class IssueSearch(ApiClient):
    """JQL issue search (startAt/maxResults/total pages)."""

    path = "/rest/api/3/search"

    def execute(self, jql: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = {"jql": jql}
        params.update(options or {})
        return self._request("GET", self.path, params=params)


class IssueWorklog(ApiClient):
    """Worklogs attached to a single issue."""

    def _path(self, issue_key: str) -> str:
        return f"/rest/api/2/issue/{quote(issue_key, safe='')}/worklog"

    def get(self, issue_key: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", self._path(issue_key), params=options or None)

    def create(self, issue_key: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", self._path(issue_key), json=payload)


class JiraUser(ApiClient):

    def get_by_account_id(self, account_id: str) -> Dict[str, Any]:
        return self._request("GET", "/rest/api/3/user", params={"accountId": account_id})


# --- Tempo --------------------------------------------------------------

class TempoWorklog(ApiClient):
    """Tempo worklogs (offset/limit pages with metadata.next)."""

    def get(self, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "/worklogs", params=options or None)

    def get_for_user(self, account_id: str, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", f"/worklogs/user/{quote(account_id, safe='')}", params=options or None)


class TempoAccount(ApiClient):

    def get(self, options: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "/accounts", params=options or None)


class TempoAccountLinks(ApiClient):

    def get_for_project(self, project_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/account-links/project/{project_id}")


class TempoWorkAttributes(ApiClient):

    def get(self) -> Dict[str, Any]:
        return self._request("GET", "/work-attributes")


class TempoPeriods(ApiClient):

    def get(self, date_from: str, date_to: str) -> Dict[str, Any]:
        return self._request("GET", "/periods", params={"from": date_from, "to": date_to})
