"""
Exception types raised by the bill store and the two bill containers.
"""

from typing import Literal


class BilledError(Exception):
    """Base class for every error raised by this package"""


class StoreError(BilledError):
    """
    Rejection from the remote bill store.

    The message is display text ("Erreur 404", "Erreur 500") and is shown
    to the user verbatim.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else _status_from_message(message)

    @property
    def kind(self) -> Literal["not_found", "server_error"]:
        if self.status_code is not None and 400 <= self.status_code < 500:
            return "not_found"
        return "server_error"


class SubmissionError(BilledError):
    """Raised when a new bill cannot be submitted"""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class SessionError(BilledError):
    """Raised when the session blob is missing or malformed"""


def _status_from_message(message: str) -> int | None:
    # "Erreur 404" -> 404
    parts = message.split()
    if parts and parts[-1].isdigit():
        return int(parts[-1])
    return None
