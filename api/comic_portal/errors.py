"""Failure kinds raised by the comic service.

Each error carries a human readable ``message`` and a ``status_code`` hint
that the HTTP layer uses when translating it into a response.
"""
from typing import Optional


class ComicPortalError(Exception):
    status_code = 500
    title = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIdError(ComicPortalError):
    status_code = 400
    title = "Invalid comic ID"

    def __init__(self, comic_id=None):
        super().__init__("Comic ID must be a positive integer")
        self.comic_id = comic_id


class InvalidQueryError(ComicPortalError):
    status_code = 400
    title = "Invalid query"

    def __init__(self, message: str = "Search query must be a non-empty string"):
        super().__init__(message)


class NotFoundError(ComicPortalError):
    status_code = 404
    title = "Comic not found"

    def __init__(self, comic_id: int):
        super().__init__(f"Comic {comic_id} does not exist")
        self.comic_id = comic_id


class UpstreamError(ComicPortalError):
    status_code = 502
    title = "Upstream error"

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        # None when the request never got a response (timeout, connection reset)
        self.status = status


class InvalidStateError(ComicPortalError):
    status_code = 500
    title = "Invalid state"
