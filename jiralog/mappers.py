"""
Row mappers: raw worklog documents + per-run context -> flat report rows.

Three fixed schemas:
- ACTIVITY_COLS (activity-report CSV)
- EXTRACT_COLS (extract-logs review table)
- ISSUE_WORKLOG_COLS (get-worklogs tables)
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from .cache import Entity, ReportContext
from .errors import ApiError, MissingEntityError
from .formatting import (
    RECORDED_FMT,
    STARTED_FMT,
    format_time,
    format_work_date,
    parse_timestamp,
    seconds_to_hours,
    to_local,
)

ACTIVITY_COLS = [
    "Issue Key",
    "Issue summary",
    "Hours",
    "Work date",
    "User Account ID",
    "Full name",
    "Tempo Team",
    "Period",
    "Account Key",
    "Account Name",
    "Account Lead ID",
    "Account Category",
    "Account Customer",
    "Activity Name",
    "Component",
    "All Components",
    "Version Name",
    "Issue Type",
    "Issue Status",
    "Project Key",
    "Project Name",
    "Epic",
    "Epic Link",
    "Work Description",
    "Parent Key",
    "Reporter ID",
    "External Hours",
    "Billed Hours",
    "Issue Original Estimate",
    "Issue Remaining Estimate",
    "External Jira Key",
    "External Jira Epic",
    "External Jira Id",
    "Activity",
    "Date created",
    "Date updated",
]

EXTRACT_COLS = [
    "issue_id",
    "external_key",
    "time",
    "date",
    "start_time",
    "end_time",
    "formatted_time",
    "description",
]

ISSUE_WORKLOG_COLS = [
    "started",
    "worklogId",
    "author",
    "author_email",
    "timeSpent",
    "timeSpentSeconds",
]

PLACEHOLDER = "-"
ALL_AUTHORS = "all"


def _name(obj: Optional[Dict[str, Any]], key: str = "name") -> str:
    return (obj or {}).get(key) or ""


# --- get-worklogs ---------------------------------------------------------

def select_worklogs(worklogs: Iterable[Entity], email: str) -> List[Entity]:
    """Sort worklogs by start (stable, ascending) and keep one author's entries.

    The email match is exact; ALL_AUTHORS disables the filter.
    """
    ordered = sorted(worklogs, key=lambda w: parse_timestamp(w["started"]))
    if email == ALL_AUTHORS:
        return ordered
    return [w for w in ordered if (w.get("author") or {}).get("emailAddress") == email]


def total_seconds(worklogs: Iterable[Entity]) -> int:
    return sum(int(w.get("timeSpentSeconds") or 0) for w in worklogs)


def map_issue_worklog(worklog: Entity) -> Dict[str, Any]:
    author = worklog.get("author") or {}
    return {
        "started": to_local(worklog.get("started", ""), STARTED_FMT),
        "worklogId": worklog.get("id", ""),
        "author": author.get("displayName", ""),
        "author_email": author.get("emailAddress", ""),
        "timeSpent": worklog.get("timeSpent", ""),
        "timeSpentSeconds": worklog.get("timeSpentSeconds", 0),
    }


# --- extract-logs ---------------------------------------------------------

def external_key_from_summary(summary: str, markers: Iterable[str]) -> str:
    """First space-delimited token of summary if it contains one of markers, else ''."""
    token = (summary or "").split(" ")[0]
    if any(m in token for m in markers):
        return token
    return ""


def map_extract_row(worklog: Entity, ctx: ReportContext) -> Dict[str, Any]:
    """Map a Tempo worklog to the review/replication row."""
    issue_id = str(worklog["issue"]["id"])
    issue = ctx.issues.resolve(issue_id)
    summary = (issue.get("fields") or {}).get("summary", "")

    seconds = int(worklog.get("timeSpentSeconds") or 0)
    start = datetime.strptime(f"{worklog['startDate']} {worklog['startTime']}", "%Y-%m-%d %H:%M:%S")
    end = start + timedelta(seconds=seconds)

    return {
        "issue_id": issue_id,
        "external_key": external_key_from_summary(summary, ctx.fields.external_key_markers),
        "time": seconds,
        "date": worklog["startDate"],
        "start_time": start.strftime("%H:%M"),
        "end_time": end.strftime("%H:%M"),
        "formatted_time": format_time(seconds),
        "description": worklog.get("description") or "",
    }


# --- activity-report ------------------------------------------------------

def translate_attributes(worklog: Entity, dictionary: Dict[str, Dict[str, str]]) -> Dict[str, str]:
    """Attribute key -> human label; unknown codes pass through unchanged."""
    translated: Dict[str, str] = {}
    for attr in (worklog.get("attributes") or {}).get("values") or []:
        key, value = attr.get("key"), attr.get("value")
        translated[key] = dictionary.get(key, {}).get(value, value)
    return translated


def _project_account(issue: Entity, ctx: ReportContext) -> Optional[Entity]:
    project_id = _name((issue.get("fields") or {}).get("project"), "id")
    if ctx.project_accounts is None or not project_id:
        return None
    try:
        links = ctx.project_accounts.resolve(project_id).get("results") or []
    except (ApiError, MissingEntityError):
        # remembered as "no links" so the project is not asked again
        ctx.project_accounts.seed({project_id: {"results": []}})
        return None
    if not links:
        return None
    chosen = next((link for link in links if link.get("default")), links[0])
    return ctx.accounts.get(str((chosen.get("account") or {}).get("id")))


def resolve_account(issue: Entity, ctx: ReportContext) -> Entity:
    """Account linked to the issue, falling back to the project's account link.

    Returns {} (and warns) when no account can be found.
    """
    linked = (issue.get("fields") or {}).get(ctx.fields.account_field)
    account = None
    if isinstance(linked, dict) and linked.get("id") is not None:
        account = ctx.accounts.get(str(linked["id"]))
    if account is None:
        account = _project_account(issue, ctx)
    if account is None:
        ctx.warn(f"account not found for issue {issue.get('key', '')}")
        return {}
    return account


def find_period(work_date: str, periods: Iterable[Dict[str, str]]) -> str:
    for period in periods:
        if period.get("from", "") <= work_date <= period.get("to", ""):
            return f"{format_work_date(period['from'])} - {format_work_date(period['to'])}"
    return ""


def map_activity_row(worklog: Entity, ctx: ReportContext) -> Dict[str, Any]:
    """Map one Tempo worklog to the 36-column activity report row.

    Resolves the issue, its parent (when present) and the author before
    building the row; any of those failing to resolve propagates.
    """
    f = ctx.fields
    issue = ctx.issues.resolve(worklog["issue"]["id"])
    fields = issue.get("fields") or {}
    parent_id = (fields.get("parent") or {}).get("id")
    parent = ctx.issues.resolve(parent_id) if parent_id else {}
    parent_fields = parent.get("fields") or {}

    author_id = (worklog.get("author") or {}).get("accountId", "")
    user = ctx.users.resolve(author_id) if ctx.users is not None else {}

    attributes = translate_attributes(worklog, ctx.work_attributes)
    account = resolve_account(issue, ctx)
    project = fields.get("project") or {}

    return {
        "Issue Key": issue.get("key", ""),
        "Issue summary": fields.get("summary", ""),
        "Hours": seconds_to_hours(worklog.get("timeSpentSeconds")),
        "Work date": format_work_date(worklog.get("startDate")),
        "User Account ID": author_id,
        "Full name": user.get("displayName", ""),
        "Tempo Team": "",
        "Period": find_period(worklog.get("startDate", ""), ctx.periods),
        "Account Key": account.get("key", ""),
        "Account Name": account.get("name", ""),
        "Account Lead ID": _name(account.get("lead"), "accountId"),
        "Account Category": _name(account.get("category")),
        "Account Customer": _name(account.get("customer")),
        "Activity Name": project.get("name", ""),
        "Component": "",
        "All Components": "",
        "Version Name": "",
        "Issue Type": _name(fields.get("issuetype")),
        "Issue Status": _name(fields.get("status")),
        "Project Key": project.get("key", ""),
        "Project Name": project.get("name", ""),
        "Epic": "",
        "Epic Link": parent_fields.get(f.epic_link_field) or PLACEHOLDER,
        "Work Description": worklog.get("description") or "",
        "Parent Key": parent.get("key") or PLACEHOLDER,
        "Reporter ID": _name(fields.get("reporter"), "accountId"),
        "External Hours": "",
        "Billed Hours": seconds_to_hours(worklog.get("billableSeconds")),
        "Issue Original Estimate": seconds_to_hours(fields.get("timeoriginalestimate"), places=0),
        "Issue Remaining Estimate": seconds_to_hours(fields.get("timeestimate"), places=0),
        "External Jira Key": fields.get(f.external_key_field) or "",
        "External Jira Epic": fields.get(f.external_epic_field) or "",
        "External Jira Id": fields.get(f.external_id_field) or "",
        "Activity": attributes.get(f.activity_attribute, ""),
        "Date created": to_local(worklog.get("createdAt", ""), RECORDED_FMT),
        "Date updated": to_local(worklog.get("updatedAt", ""), RECORDED_FMT),
    }
