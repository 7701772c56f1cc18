"""
config.ini loading with environment variable fallback.

Each option may be given in config.ini or through its environment variable;
the file wins when both are set.
"""
import configparser
import os
import sys
from typing import Any, Dict, Iterable

from .cache import FieldConfig

# key -> (section, option, env var)
OPTIONS = {
    "jira_base_url": ("jira", "base_url", "JIRA_ENDPOINT"),
    "jira_email": ("jira", "email", "JIRA_EMAIL"),
    "jira_token": ("jira", "api_token", "JIRA_TOKEN"),
    "tempo_base_url": ("tempo", "base_url", "TEMPO_ENDPOINT"),
    "tempo_token": ("tempo", "api_token", "TEMPO_TOKEN"),
    "author_account_id": ("tempo", "author_account_id", "AUTHOR_ACCOUNT_ID"),
    "dest_base_url": ("destination", "base_url", "DEST_JIRA_ENDPOINT"),
    "dest_token": ("destination", "bearer_token", "DEST_JIRA_BEARER_TOKEN"),
    "dest_email": ("destination", "email", "DEST_JIRA_EMAIL"),
}

SOURCE_JIRA = ("jira_base_url", "jira_email", "jira_token")
TEMPO = ("tempo_base_url", "tempo_token")
DESTINATION = ("dest_base_url", "dest_token", "dest_email")


def app_dir() -> str:
    """Directory holding config.ini by default.

    When running as a PyInstaller-frozen executable this is the directory of
    the bundled executable; otherwise the current working directory.
    """
    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return os.path.dirname(sys.executable)
    return os.getcwd()


def default_config_path() -> str:
    return os.path.join(app_dir(), "config.ini")


def read_config(path: str) -> Dict[str, Any]:
    """Read configuration from an INI file, falling back to environment variables.

    A missing file is not an error: every value can come from the environment.
    Required values are checked per command by require().

    Args:
        path: Path to config.ini.

    Returns:
        Dict[str, Any]: Normalized configuration values.
    """
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path, encoding="utf-8")

    def opt(section: str, option: str, env: str = "", default: str = "") -> str:
        value = cp.get(section, option, fallback="").strip()
        if not value and env:
            value = os.environ.get(env, "").strip()
        return value or default

    cfg: Dict[str, Any] = {key: opt(*entry) for key, entry in OPTIONS.items()}
    for key in ("jira_base_url", "tempo_base_url", "dest_base_url"):
        cfg[key] = cfg[key].rstrip("/")

    cfg["verify_ssl"] = opt("http", "verify_ssl", default="true").lower() in ("1", "true", "yes", "on")
    cfg["ca_bundle"] = opt("http", "ca_bundle")
    cfg["http_proxy"] = opt("http", "http_proxy")
    cfg["https_proxy"] = opt("http", "https_proxy")

    defaults = FieldConfig()
    markers = opt("fields", "external_key_markers")
    cfg["fields"] = FieldConfig(
        account_field=opt("fields", "account_field", default=defaults.account_field),
        epic_link_field=opt("fields", "epic_link_field", default=defaults.epic_link_field),
        external_key_field=opt("fields", "external_key_field", default=defaults.external_key_field),
        external_epic_field=opt("fields", "external_epic_field", default=defaults.external_epic_field),
        external_id_field=opt("fields", "external_id_field", default=defaults.external_id_field),
        external_key_markers=[m.strip() for m in markers.split(",") if m.strip()] if markers
        else defaults.external_key_markers,
        activity_attribute=opt("fields", "activity_attribute", default=defaults.activity_attribute),
    )
    return cfg


def require(cfg: Dict[str, Any], keys: Iterable[str]) -> None:
    """Exit with status 2 if any of keys is empty, naming the env vars to set."""
    missing = [k for k in keys if not cfg.get(k)]
    if missing:
        names = ", ".join(f"{OPTIONS[k][0]}.{OPTIONS[k][1]} ({OPTIONS[k][2]})" for k in missing)
        print(f"ERROR: missing configuration: {names}", file=sys.stderr)
        sys.exit(2)
