"""
jiralog package

Worklog reports built from the Jira and Tempo REST APIs:
- get-worklogs: per-issue worklog tables from the destination Jira
- activity-report: Tempo activity report CSV
- extract-logs: replicate Tempo worklogs to the destination Jira

Provides a package-level main() suitable for console_scripts entrypoints.
"""

__version__ = "1.0.0"


def main() -> None:
    """Package entrypoint. Delegates to jiralog.cli.main()."""
    from .cli import main as _main
    _main()
