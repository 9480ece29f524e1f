"""User-facing card errors.

A ``CardError`` is rendered as the error SVG with its ``status_code``; it is not
a crash. Upstream failures are ``github_client.GitHubAPIError`` instead.
"""

from __future__ import annotations


class CardError(Exception):
    """Error whose message is shown on the rendered card."""

    status_code: int = 200

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class MissingParameterError(CardError):
    pass


class InvalidParameterError(CardError):
    pass


class EmptyResultError(CardError):
    """No qualifying data after filtering."""
