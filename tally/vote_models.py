"""
Data models for the vote sheet.

A sheet row decodes into a MemberVote: who the member is, which chamber
they sit in and where they stand on the nomination.
"""

from __future__ import annotations

from enum import Enum, IntEnum
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict

from tally.errors import UnknownMemberType, UnknownVoteType


_VOTE_CODE = re.compile(r"[+-]?[0-9]+")


class MemberType(str, Enum):
    """Chamber a member belongs to, keyed by the two-letter sheet code."""

    UPPER_HOUSE = "SV"  # senator
    LOWER_HOUSE = "SS"  # (prospective) member of the house of representatives

    @classmethod
    def decode(cls, token: str, line_number: Optional[int] = None) -> "MemberType":
        value = (token or "").strip()
        for member_type in cls:
            if member_type.value == value:
                return member_type
        raise UnknownMemberType(value, line_number)


class VoteType(IntEnum):
    """Five-step scale from a firm no to a firm yes."""

    STRONG_NO = -2
    LEAN_NO = -1
    UNDECIDED = 0
    LEAN_YES = 1
    STRONG_YES = 2

    @classmethod
    def decode(cls, token: str, line_number: Optional[int] = None) -> "VoteType":
        value = (token or "").strip()
        # ASCII digits only, no underscores.
        if not _VOTE_CODE.fullmatch(value):
            raise UnknownVoteType(value, line_number)
        try:
            return cls(int(value))
        except ValueError:
            raise UnknownVoteType(value, line_number) from None


class MemberVote(BaseModel):
    """One member's expected vote."""

    model_config = ConfigDict(frozen=True)

    id: str                           # also names the avatar image, e.g. "a1" -> a1.png
    name: str
    member_type: MemberType
    party_name: Optional[str] = None
    color: Optional[str] = None       # CSS color used behind the avatar
    vote_type: VoteType
    reference: str                    # citation URL


class ColumnMapping(BaseModel):
    """Sheet column name for each MemberVote field."""

    model_config = ConfigDict(frozen=True)

    id: str = "id"
    name: str = "name"
    member_type: str = "memberType"
    party_name: str = "partyName"
    color: str = "color"
    vote_type: str = "voteType"
    reference: str = "reference"

    def required(self) -> tuple[str, ...]:
        return (self.id, self.name, self.member_type, self.vote_type, self.reference)
