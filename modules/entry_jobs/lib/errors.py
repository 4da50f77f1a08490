from __future__ import annotations


class EntryJobsError(Exception):
    """Base exception for the aggregation pipeline."""


class TransientFetchError(EntryJobsError):
    """Rate limit, anti-bot challenge or timeout that outlived its retries."""

    def __init__(self, message: str, *, url: str = "", outcome: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.outcome = outcome


class ParseError(EntryJobsError):
    """A result card is missing a mandatory field (title, company, apply URL)."""


class SourceFailure(EntryJobsError):
    """A source produced nothing usable this cycle (first page exhausted its retries)."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.reason = message


class CycleCancelled(EntryJobsError):
    """The running cycle was cancelled; the current source is abandoned."""
