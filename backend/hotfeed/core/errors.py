"""Error kinds raised by the feed and post services.

The HTTP layer maps each kind to a status code in ``hotfeed.main``; services
only raise.
"""
from __future__ import annotations


class HotfeedError(Exception):
    """Base exception for all hotfeed errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MalformedQuery(HotfeedError):
    """page/limit did not parse as positive integers."""


class NotFound(HotfeedError):
    """A referenced post does not exist."""


class DanglingAuthor(NotFound):
    """A stored author reference points at no user (data integrity fault)."""

    def __init__(self, post_id: object, author_id: object) -> None:
        super().__init__(f"author {author_id} of post {post_id} does not exist")
        self.post_id = post_id
        self.author_id = author_id


class Forbidden(HotfeedError):
    """The requesting user does not own the post."""


class StoreUnavailable(HotfeedError):
    """The underlying store failed on a read. Callers may retry."""


class PersistFailure(HotfeedError):
    """A validated write failed to commit."""


class InvalidToken(HotfeedError):
    """A bearer token failed signature, expiry or claim checks."""
