"""
The three jiralog commands.

Each `*_command(args, cfg)` builds its API clients from configuration and
delegates to a `run_*` function that only talks to the clients it is given,
so the flows can be driven with fakes.
"""
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from tqdm import tqdm

from . import config as config_mod
from .api import (
    IssueSearch,
    IssueWorklog,
    JiraUser,
    TempoAccount,
    TempoAccountLinks,
    TempoPeriods,
    TempoWorkAttributes,
    TempoWorklog,
    make_session,
)
from .cache import (
    FieldConfig,
    JsonSnapshot,
    LookupCache,
    ReportContext,
    build_attribute_dictionary,
    index_accounts,
)
from .formatting import DEFAULT_TZ, format_time, jira_started
from .mappers import (
    ACTIVITY_COLS,
    EXTRACT_COLS,
    ISSUE_WORKLOG_COLS,
    map_activity_row,
    map_extract_row,
    map_issue_worklog,
    select_worklogs,
    total_seconds,
)
from .pagination import paginate_offset, paginate_start_at
from .writers import error, render_table, vprint, write_csv

ISSUE_CHUNK = 100
PAGE_LIMIT = 1000

Confirm = Callable[[str], bool]


@dataclass
class Clients:
    search: Optional[IssueSearch] = None
    users: Optional[JiraUser] = None
    worklogs: Optional[TempoWorklog] = None
    accounts: Optional[TempoAccount] = None
    account_links: Optional[TempoAccountLinks] = None
    work_attributes: Optional[TempoWorkAttributes] = None
    periods: Optional[TempoPeriods] = None
    destination: Optional[IssueWorklog] = None


def prompt_confirm(prompt: str) -> bool:
    """Ask a yes/no question on the terminal; anything but y/yes means no."""
    try:
        answer = input(prompt)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def _session_options(cfg: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "verify": cfg.get("verify_ssl", True),
        "ca_bundle": cfg.get("ca_bundle", ""),
        "http_proxy": cfg.get("http_proxy", ""),
        "https_proxy": cfg.get("https_proxy", ""),
    }


def build_clients(cfg: Dict[str, Any], timeout: int, source: bool = False, tempo: bool = False,
                  destination: bool = False) -> Clients:
    """Create sessions and clients for the requested systems only."""
    opts = _session_options(cfg)
    clients = Clients()
    if source:
        s = make_session(cfg["jira_email"], cfg["jira_token"], **opts)
        clients.search = IssueSearch(s, cfg["jira_base_url"], timeout)
        clients.users = JiraUser(s, cfg["jira_base_url"], timeout)
    if tempo:
        t = make_session(bearer_token=cfg["tempo_token"], **opts)
        base = cfg["tempo_base_url"]
        clients.worklogs = TempoWorklog(t, base, timeout)
        clients.accounts = TempoAccount(t, base, timeout)
        clients.account_links = TempoAccountLinks(t, base, timeout)
        clients.work_attributes = TempoWorkAttributes(t, base, timeout)
        clients.periods = TempoPeriods(t, base, timeout)
    if destination:
        d = make_session(bearer_token=cfg["dest_token"], **opts)
        clients.destination = IssueWorklog(d, cfg["dest_base_url"], timeout)
    return clients


def issue_fetcher(search: IssueSearch) -> Callable[[str], Optional[Dict[str, Any]]]:
    """Single-issue fetch for a LookupCache; None when the search finds nothing."""
    def fetch(issue_id: str) -> Optional[Dict[str, Any]]:
        issues = search.execute(f"id = {issue_id}").get("issues") or []
        return issues[0] if issues else None
    return fetch


def prefetch_issues(search: IssueSearch, issue_ids: Iterable[Any],
                    chunk_size: int = ISSUE_CHUNK) -> Dict[str, Dict[str, Any]]:
    """Bulk-load issues with 'id in (...)' searches, chunk_size ids at a time."""
    ids = list(dict.fromkeys(str(i) for i in issue_ids))
    found: Dict[str, Dict[str, Any]] = {}
    for i in range(0, len(ids), chunk_size):
        jql = "id in (%s)" % ",".join(ids[i:i + chunk_size])
        issues = paginate_start_at(lambda opts: search.execute(jql, opts),
                                   {"startAt": 0, "maxResults": 100})
        for issue in issues:
            found[str(issue["id"])] = issue
    return found


# --- get-worklogs ---------------------------------------------------------

def run_get_worklogs(api: IssueWorklog, issue_keys: List[str], email: str) -> int:
    """Print one table per issue with the selected author's worklogs and their total."""
    for key in issue_keys:
        worklogs = paginate_start_at(lambda opts: api.get(key, opts),
                                     {"startAt": 0, "maxResults": PAGE_LIMIT}, items_key="worklogs")
        selected = select_worklogs(worklogs, email)
        if not selected:
            continue
        render_table(
            [map_issue_worklog(w) for w in selected],
            title=key,
            footer=f"Total: {format_time(total_seconds(selected))}",
            headers=ISSUE_WORKLOG_COLS,
        )
    return 0


def get_worklogs_command(args, cfg: Dict[str, Any]) -> int:
    config_mod.require(cfg, config_mod.DESTINATION)
    clients = build_clients(cfg, args.timeout, destination=True)
    email = args.email or cfg["dest_email"]
    return run_get_worklogs(clients.destination, args.issues, email)


# --- activity-report ------------------------------------------------------

def run_activity_report(clients: Clients, date_from: str, date_to: str, out_path: str,
                        fields: Optional[FieldConfig] = None, snapshot_dir: Optional[str] = ".",
                        verbose: bool = False) -> int:
    """Build the activity report CSV for [date_from, date_to].

    Args:
        clients: Source Jira (search, users) and Tempo clients.
        date_from: First day, YYYY-MM-DD.
        date_to: Last day, YYYY-MM-DD.
        out_path: CSV destination.
        fields: Custom field ids; defaults when None.
        snapshot_dir: Where issues.json/users.json are written; None disables snapshots.
        verbose: Whether to print per-lookup details.

    Returns:
        int: 0 on success, 4 when the CSV cannot be written.
    """
    fields = fields or FieldConfig()

    print("Fetching accounts...")
    accounts = paginate_offset(clients.accounts.get, {"offset": 0, "limit": PAGE_LIMIT})

    print("Fetching work attributes...")
    attributes = build_attribute_dictionary(clients.work_attributes.get().get("results") or [])

    periods: List[Dict[str, str]] = []
    if clients.periods:
        periods = clients.periods.get(date_from, date_to).get("periods") or []

    worklogs = paginate_offset(
        clients.worklogs.get,
        {"from": date_from, "to": date_to, "limit": PAGE_LIMIT},
        on_page=lambda n: print(f"[Page {n}] fetching worklogs..."),
    )
    vprint(verbose, f"Worklogs fetched: {len(worklogs)}")

    def fetch_user(account_id: str) -> Dict[str, Any]:
        vprint(verbose, f"Fetching user {account_id}")
        return clients.users.get_by_account_id(account_id)

    issue_snap = [JsonSnapshot(os.path.join(snapshot_dir, "issues.json"))] if snapshot_dir else []
    user_snap = [JsonSnapshot(os.path.join(snapshot_dir, "users.json"))] if snapshot_dir else []
    ctx = ReportContext(
        issues=LookupCache("issue", issue_fetcher(clients.search), on_insert=issue_snap),
        users=LookupCache("user", fetch_user, on_insert=user_snap),
        accounts=index_accounts(accounts),
        work_attributes=attributes,
        periods=periods,
        project_accounts=(LookupCache("project account links", clients.account_links.get_for_project)
                          if clients.account_links else None),
        fields=fields,
    )

    if worklogs:
        print("Fetching issues...")
        ctx.issues.seed(prefetch_issues(clients.search, (w["issue"]["id"] for w in worklogs)))
        parents = [
            ((issue.get("fields") or {}).get("parent") or {}).get("id")
            for issue in ctx.issues.snapshot().values()
        ]
        parents = [p for p in parents if p and p not in ctx.issues]
        if parents:
            ctx.issues.seed(prefetch_issues(clients.search, parents))

    rows = [map_activity_row(w, ctx) for w in tqdm(worklogs, desc="Mapping worklogs", unit="worklog")]

    try:
        write_csv(rows, ACTIVITY_COLS, out_path)
    except OSError as e:
        error(f"failed to write {out_path}: {e}")
        return 4

    print(f"Done. Worklogs exported: {len(rows)}")
    print(f"File written: {out_path}")
    return 0


def activity_report_command(args, cfg: Dict[str, Any]) -> int:
    config_mod.require(cfg, config_mod.TEMPO + config_mod.SOURCE_JIRA)
    clients = build_clients(cfg, args.timeout, source=True, tempo=True)
    return run_activity_report(clients, args.date, args.end_date, args.out,
                               fields=cfg["fields"], verbose=args.verbose)


# --- extract-logs ---------------------------------------------------------

def replication_payload(row: Dict[str, Any]) -> Dict[str, Any]:
    """Destination Jira worklog body for an extract row; start is local (DEFAULT_TZ) time."""
    start = datetime.strptime(f"{row['date']} {row['start_time']}", "%Y-%m-%d %H:%M")
    return {
        "comment": row["description"],
        "started": jira_started(start.replace(tzinfo=DEFAULT_TZ)),
        "timeSpent": row["formatted_time"],
    }


def run_extract_logs(clients: Clients, author_account_id: str, since: str,
                     confirm: Confirm = prompt_confirm, fields: Optional[FieldConfig] = None) -> int:
    """Review a user's Tempo worklogs and replicate the externally-keyed ones.

    Rows whose issue summary does not start with a recognized external key are
    shown in the review table but never replicated.
    """
    fields = fields or FieldConfig()
    worklogs = paginate_offset(
        lambda opts: clients.worklogs.get_for_user(author_account_id, opts),
        {"updatedFrom": since, "limit": PAGE_LIMIT},
    )
    if not worklogs:
        print("No worklogs found.")
        return 0

    ctx = ReportContext(issues=LookupCache("issue", issue_fetcher(clients.search)), fields=fields)
    ctx.issues.seed(prefetch_issues(clients.search, (w["issue"]["id"] for w in worklogs)))
    rows = [map_extract_row(w, ctx) for w in worklogs]

    render_table(rows, headers=EXTRACT_COLS)

    if not confirm("Export worklogs to the destination Jira? [y/N] "):
        return 0
    print()

    for row in rows:
        if not row["external_key"]:
            continue
        print(f"{row['external_key']} - exporting...")
        if not confirm("Proceed? [y/N] "):
            continue
        created = clients.destination.create(row["external_key"], replication_payload(row))
        print(f"Worklog created with ID: {created.get('id', '')}")
        print()
    return 0


def extract_logs_command(args, cfg: Dict[str, Any]) -> int:
    config_mod.require(cfg, config_mod.TEMPO + config_mod.SOURCE_JIRA + config_mod.DESTINATION
                       + ("author_account_id",))
    clients = build_clients(cfg, args.timeout, source=True, tempo=True, destination=True)
    return run_extract_logs(clients, cfg["author_account_id"], args.date, fields=cfg["fields"])
