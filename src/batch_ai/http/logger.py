"""
Backend traffic log.

Every request and response a networked backend exchanges can be appended to
a file, tagged with the run that issued it, so a failed item can be traced
back to the exact exchange. Credentials in headers are masked.
"""

import json
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Any
from typing import Protocol

SENSITIVE_HEADERS = {"authorization", "x-api-key", "api-key"}

Payload = str | dict[str, Any] | None


class HTTPLogger(Protocol):
    """Receives each exchange made by an HTTPClient."""

    def log_request(
        self, method: str, url: str, headers: dict[str, str], body: Payload, run_id: str | None = None
    ) -> None: ...

    def log_response(self, url: str, status: int, body: Payload, run_id: str | None = None) -> None: ...


def mask_headers(headers: dict[str, str]) -> dict[str, str]:
    """Hide credentials, keeping the first 10 and last 4 characters of long values."""

    def mask(value: str) -> str:
        return f"{value[:10]}...{value[-4:]}" if len(value) > 14 else "***"

    return {k: mask(v) if k.lower() in SENSITIVE_HEADERS else v for k, v in headers.items()}


class FileHTTPLogger:
    """
    Appends backend traffic to a file, one JSON entry per line.

    Line format:
        [2024-05-01T12:30:45.123+00:00] [<run id>|no-run] >>> REQUEST {...}
        [2024-05-01T12:30:46.456+00:00] [<run id>|no-run] <<< RESPONSE {...}
    """

    def __init__(self, log_file: Path):
        """
        Args:
            log_file: Target file; missing parent folders are created.
        """
        self.log_file = log_file
        log_file.parent.mkdir(parents=True, exist_ok=True)
        log_file.touch(exist_ok=True)

    def log_request(
        self, method: str, url: str, headers: dict[str, str], body: Payload, run_id: str | None = None
    ) -> None:
        entry = {"method": method, "url": url, "headers": mask_headers(headers), "body": body}
        self._append(">>> REQUEST", entry, run_id)

    def log_response(self, url: str, status: int, body: Payload, run_id: str | None = None) -> None:
        # Response text is stored decoded when it is JSON
        if isinstance(body, str):
            try:
                body = json.loads(body)
            except json.JSONDecodeError:
                pass
        self._append("<<< RESPONSE", {"url": url, "status": status, "body": body}, run_id)

    def _append(self, marker: str, entry: dict[str, Any], run_id: str | None) -> None:
        stamp = datetime.now(UTC).isoformat(timespec="milliseconds")
        line = f"[{stamp}] [{run_id or 'no-run'}] {marker} {json.dumps(entry, ensure_ascii=False)}\n"
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(line)
