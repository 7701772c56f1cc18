"""
Error kinds raised by jiralog.

The command boundary (cli.main) decides how each kind is reported and which
exit status it maps to; nothing below it retries or swallows them.
"""
from typing import Any, List, Optional


class JiralogError(Exception):
    """Base class for all jiralog errors."""


class ApiError(JiralogError):
    """Upstream answered with an error status (and usually an error payload)."""

    def __init__(self, status_code: int, messages: List[str], url: str = ""):
        self.status_code = status_code
        self.messages = messages
        self.url = url
        super().__init__("; ".join(messages) or f"HTTP {status_code}")

    @classmethod
    def from_response(cls, response: Any) -> "ApiError":
        """Build an ApiError from a requests.Response.

        Understands the Jira shape ({"errorMessages": [...], "errors": {...}})
        and the Tempo shape ({"errors": [{"message": ...}]}). Falls back to the
        status code and raw body text when neither is present.
        """
        status = getattr(response, "status_code", 0)
        try:
            body = response.json()
        except ValueError:
            body = None

        messages: List[str] = []
        if isinstance(body, dict):
            for msg in body.get("errorMessages") or []:
                messages.append(str(msg))
            errors = body.get("errors")
            if isinstance(errors, dict):
                for field, msg in errors.items():
                    messages.append(f"{field}: {msg}")
            elif isinstance(errors, list):
                for err in errors:
                    if isinstance(err, dict):
                        messages.append(str(err.get("message", err)))
                    else:
                        messages.append(str(err))
        if not messages:
            text = (getattr(response, "text", "") or "").strip()
            messages.append(f"HTTP {status}: {text[:200]}" if text else f"HTTP {status}")
        return cls(status, messages, url=getattr(response, "url", "") or "")


class TransportError(JiralogError):
    """No usable response at all (DNS, connection refused, TLS, timeout...)."""

    def __init__(self, cause: Optional[BaseException]):
        self.cause = cause
        super().__init__(str(cause))


class MissingEntityError(JiralogError):
    """A lookup the upstream could not resolve."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found upstream")
