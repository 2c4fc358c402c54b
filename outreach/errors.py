from __future__ import annotations


class OutreachError(Exception):
    """
    Base for every error the core reports to callers.

    status_code is the HTTP status the API layer answers with; the message is
    always human-readable and safe to show.
    """

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class ValidationError(OutreachError):
    """Missing required field or a value outside the closed vocabularies."""

    status_code = 400


class NotFoundError(OutreachError):
    status_code = 404


class AuthorizationError(OutreachError):
    """No session (401), wrong role or no active assignment (403)."""

    status_code = 403


class StoreError(OutreachError):
    """The record store failed a scan/append/update. Never retried here."""

    status_code = 502
