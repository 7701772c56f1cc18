import pytest

from jiralog import api
from jiralog.errors import ApiError, TransportError
from tests.conftest import FakeResponse, FakeSession, make_connection_error


def test_make_session_configures_auth_proxies_and_verify():
    s = api.make_session(
        email="user@example.com",
        token="tok",
        verify=False,
        ca_bundle="",
        http_proxy="http://proxy.local:8080",
        https_proxy="http://proxy.local:8080",
    )
    assert s.auth == ("user@example.com", "tok")
    assert s.headers["Accept"] == "application/json"
    assert "Authorization" not in s.headers
    assert s.proxies["http"] == "http://proxy.local:8080"
    assert s.proxies["https"] == "http://proxy.local:8080"
    assert s.verify is False

    s2 = api.make_session("u", "t", verify=True, ca_bundle="/etc/ssl/root.pem")
    # when ca_bundle is provided, it's used instead of boolean verify
    assert s2.verify == "/etc/ssl/root.pem"


def test_make_session_bearer_token_takes_precedence():
    s = api.make_session(email="u", token="t", bearer_token="abc")
    assert s.headers["Authorization"] == "Bearer abc"
    assert s.auth is None


def test_issue_search_sends_jql_and_options():
    sess = FakeSession(FakeResponse(json_data={"issues": [], "total": 0}))
    search = api.IssueSearch(sess, "https://src.example/", timeout=7)

    body = search.execute("id in (1,2)", {"startAt": 100, "maxResults": 100})

    assert body == {"issues": [], "total": 0}
    call = sess.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://src.example/rest/api/3/search"
    assert call["params"] == {"jql": "id in (1,2)", "startAt": 100, "maxResults": 100}
    assert call["timeout"] == 7


def test_issue_worklog_get_and_create_paths():
    sess = FakeSession(
        FakeResponse(json_data={"worklogs": []}),
        FakeResponse(status_code=201, json_data={"id": "555"}),
    )
    client = api.IssueWorklog(sess, "https://dest.example")

    client.get("BMITFOX-1", {"startAt": 0})
    created = client.create("BMITFOX-1", {"comment": "c", "timeSpent": "1h"})

    assert sess.calls[0]["url"] == "https://dest.example/rest/api/2/issue/BMITFOX-1/worklog"
    assert sess.calls[1]["method"] == "POST"
    assert sess.calls[1]["json"] == {"comment": "c", "timeSpent": "1h"}
    assert created == {"id": "555"}


def test_tempo_endpoints():
    sess = FakeSession(*[FakeResponse(json_data={"results": []}) for _ in range(5)])
    base = "https://api.tempo.io/4"

    api.TempoWorklog(sess, base).get_for_user("acc-1", {"updatedFrom": "2024-03-01"})
    api.TempoAccount(sess, base).get({"offset": 0, "limit": 1000})
    api.TempoAccountLinks(sess, base).get_for_project("10000")
    api.TempoWorkAttributes(sess, base).get()
    api.TempoPeriods(sess, base).get("2024-03-01", "2024-03-31")

    urls = [c["url"] for c in sess.calls]
    assert urls == [
        f"{base}/worklogs/user/acc-1",
        f"{base}/accounts",
        f"{base}/account-links/project/10000",
        f"{base}/work-attributes",
        f"{base}/periods",
    ]
    assert sess.calls[0]["params"] == {"updatedFrom": "2024-03-01"}
    assert sess.calls[4]["params"] == {"from": "2024-03-01", "to": "2024-03-31"}


def test_jira_user_lookup_by_account_id():
    sess = FakeSession(FakeResponse(json_data={"accountId": "a1", "displayName": "Ada"}))
    user = api.JiraUser(sess, "https://src.example").get_by_account_id("a1")
    assert user["displayName"] == "Ada"
    assert sess.calls[0]["params"] == {"accountId": "a1"}


def test_empty_body_decodes_to_empty_dict():
    sess = FakeSession(FakeResponse(status_code=204, text=""))
    assert api.TempoWorkAttributes(sess, "https://x").get() == {}


def test_jira_error_payload_becomes_api_error():
    sess = FakeSession(FakeResponse(
        status_code=404,
        json_data={"errorMessages": ["Issue does not exist"], "errors": {}},
    ))
    with pytest.raises(ApiError) as ei:
        api.IssueWorklog(sess, "https://dest.example").get("NOPE-1")
    assert ei.value.status_code == 404
    assert ei.value.messages == ["Issue does not exist"]


def test_jira_field_errors_and_tempo_error_list():
    err = ApiError.from_response(FakeResponse(status_code=400, json_data={"errors": {"timeSpent": "invalid"}}))
    assert err.messages == ["timeSpent: invalid"]

    err = ApiError.from_response(FakeResponse(status_code=401, json_data={"errors": [{"message": "Bad token"}]}))
    assert err.messages == ["Bad token"]


def test_non_json_error_body_falls_back_to_status_and_text():
    err = ApiError.from_response(FakeResponse(status_code=502, text="<html>Bad Gateway</html>"))
    assert err.messages == ["HTTP 502: <html>Bad Gateway</html>"]


def test_non_json_success_body_becomes_api_error():
    sess = FakeSession(FakeResponse(status_code=200, text="<html>login</html>"))
    with pytest.raises(ApiError) as ei:
        api.TempoWorklog(sess, "https://x").get()
    assert ei.value.status_code == 200
    assert ei.value.messages == ["invalid JSON response: <html>login</html>"]


def test_connection_failure_becomes_transport_error():
    cause = make_connection_error("Connection refused")
    sess = FakeSession(cause)
    with pytest.raises(TransportError) as ei:
        api.TempoAccount(sess, "https://x").get()
    assert ei.value.cause is cause
    assert "Connection refused" in str(ei.value)
