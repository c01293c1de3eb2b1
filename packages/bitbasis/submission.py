"""Submit imported transactions to the portfolio backend.

Non-streaming POST of ``{"transactions": [...]}`` to ``BITBASIS_API_URL``
(or an explicit endpoint), authenticated with ``BITBASIS_API_TOKEN`` when
set. A submission either succeeds as a whole or raises
:class:`SubmissionError`; there is no retry and nothing is assumed persisted
on failure, so callers can simply resubmit.
"""

from __future__ import annotations

import http.client
import json
import os
import urllib.error
import urllib.request
from collections.abc import Sequence
from typing import Any

from .export import to_submission_payload
from .logging_setup import get_logger
from .transactions import CanonicalTransaction

_logger = get_logger("bitbasis.submission")

DEFAULT_TIMEOUT_SECONDS = 30.0


class SubmissionError(RuntimeError):
    """Backend rejected the import or could not be reached."""

    def __init__(self, message: str, *, status: int | None = None, details: Sequence[str] = ()) -> None:
        self.status = status
        self.details = tuple(details)
        text = message
        if self.details:
            text = f"{message}\nDetails: {', '.join(self.details)}"
        super().__init__(text)


def _error_from_body(status: int, reason: str, body: str) -> SubmissionError:
    """Build an error from the backend's ``{"error", "details": [{field, message}]}`` body."""

    try:
        parsed = json.loads(body) if body else {}
    except json.JSONDecodeError:
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}

    message = str(parsed.get("error") or f"Import failed: {status} {reason}".strip())
    details: list[str] = []
    for item in parsed.get("details") or []:
        if isinstance(item, dict):
            details.append(f"{item.get('field')}: {item.get('message')}")
    if not parsed and body:
        message = f"{message}: {body}"
    return SubmissionError(message, status=status, details=details)


def resolve_endpoint(endpoint: str | None = None) -> str:
    url = endpoint or os.environ.get("BITBASIS_API_URL")
    if not url:
        raise SubmissionError("BITBASIS_API_URL environment variable is required for submission")
    return url


def submit_transactions(
    transactions: Sequence[CanonicalTransaction],
    *,
    endpoint: str | None = None,
    api_token: str | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> int:
    """POST the transactions and return how many the backend imported."""

    url = resolve_endpoint(endpoint)
    token = api_token or os.environ.get("BITBASIS_API_TOKEN")
    payload = to_submission_payload(transactions)

    data = json.dumps({"transactions": payload}).encode("utf-8")
    req = urllib.request.Request(url, data=data, method="POST")
    req.add_header("Content-Type", "application/json")
    if token:
        req.add_header("Authorization", f"Bearer {token}")

    _logger.info("submit_start url=%s count=%d", url, len(payload))
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            body = resp.read()
    except urllib.error.HTTPError as e:
        try:
            err_body = e.read().decode("utf-8", errors="replace")
        except OSError:
            err_body = ""
        raise _error_from_body(e.code, str(e.reason or ""), err_body) from e
    except urllib.error.URLError as e:
        raise SubmissionError(f"Failed to reach import endpoint: {e.reason}") from e
    except (OSError, http.client.HTTPException) as e:
        raise SubmissionError(f"Failed to reach import endpoint: {e}") from e

    result: Any
    try:
        result = json.loads(body.decode("utf-8")) if body else {}
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SubmissionError("Failed to parse JSON from import endpoint") from e

    count = result.get("count") if isinstance(result, dict) else None
    imported = count if isinstance(count, int) else len(payload)
    _logger.info("submit_done imported=%d", imported)
    return imported


__all__ = ["SubmissionError", "resolve_endpoint", "submit_transactions"]
