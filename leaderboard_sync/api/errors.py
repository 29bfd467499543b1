from __future__ import annotations

from typing import Any

NETWORK_ERROR = "NETWORK_ERROR"
HTTP_ERROR = "HTTP_ERROR"
INVALID_PAYLOAD = "INVALID_PAYLOAD"


class TransportError(Exception):
    """Any failed exchange with the scoring service.

    Connectivity failures, non-success statuses and malformed payloads all
    surface as this one kind; ``code`` is kept for logs only.
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)
