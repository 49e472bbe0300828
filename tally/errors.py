"""Errors raised while loading and decoding a vote sheet."""

from __future__ import annotations

from typing import Optional


class VoteSheetError(Exception):
    """Base class for every failure surfaced by a vote sheet load."""


class FetchFailure(VoteSheetError):
    def __init__(self, locator: str, reason: str, status_code: Optional[int] = None) -> None:
        self.locator = locator
        self.reason = reason
        self.status_code = status_code
        detail = f"HTTP {status_code}: {reason}" if status_code is not None else reason
        super().__init__(f"Could not fetch {locator}: {detail}")


class MalformedRow(VoteSheetError):
    def __init__(self, line_number: int, reason: str, expected: int = 0, found: int = 0) -> None:
        self.line_number = line_number
        self.reason = reason
        self.expected = expected
        self.found = found
        super().__init__(f"Line {line_number}: {reason}")


class UnknownMemberType(VoteSheetError):
    def __init__(self, token: str, line_number: Optional[int] = None) -> None:
        self.token = token
        self.line_number = line_number
        where = f"Line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}unknown member type {token!r}")


class UnknownVoteType(VoteSheetError):
    def __init__(self, token: str, line_number: Optional[int] = None) -> None:
        self.token = token
        self.line_number = line_number
        where = f"Line {line_number}: " if line_number is not None else ""
        super().__init__(f"{where}unknown vote type {token!r}")
