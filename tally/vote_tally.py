"""
Turn sheet records into member votes and tally them.

records -> MemberVote list -> BucketedVotes (one bucket per VoteType)
-> VoteCounts (yes / undecided / no).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from types import MappingProxyType
from typing import Iterable, List, Literal, Mapping, Optional, Sequence, Union

import httpx
from rapidfuzz import fuzz, process

from tally.errors import MalformedRow
from tally.vote_models import ColumnMapping, MemberType, MemberVote, VoteType
from tally.vote_sheet import DEFAULT_TIMEOUT, Record, load_records


DEFAULT_VOTE_TARGET = 376

ChamberFilter = Union[Literal["all"], MemberType]

logger = logging.getLogger(__name__)


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def member_vote_from_record(record: Mapping[str, str], columns: ColumnMapping, line_number: int) -> MemberVote:
    missing = [name for name in columns.required() if name not in record]
    if missing:
        raise MalformedRow(line_number, f"missing column(s): {', '.join(missing)}")
    member_id = record[columns.id]
    if not member_id:
        raise MalformedRow(line_number, "empty id")
    return MemberVote(
        id=member_id,
        name=record[columns.name],
        member_type=MemberType.decode(record[columns.member_type], line_number),
        party_name=_optional(record.get(columns.party_name)),
        color=_optional(record.get(columns.color)),
        vote_type=VoteType.decode(record[columns.vote_type], line_number),
        reference=record[columns.reference],
    )


def build_member_votes(records: Iterable[Mapping[str, str]], columns: ColumnMapping = ColumnMapping()) -> List[MemberVote]:
    # Plain mappings carry no source line; assume header on line 1, one row per line.
    return [
        member_vote_from_record(record, columns, getattr(record, "line_number", position))
        for position, record in enumerate(records, start=2)
    ]


class BucketedVotes(Mapping[VoteType, Sequence[MemberVote]]):
    """Read-only VoteType -> members mapping. All five keys are always present."""

    def __init__(self, buckets: Mapping[VoteType, Sequence[MemberVote]]) -> None:
        self._buckets = MappingProxyType(
            {vote_type: tuple(buckets.get(vote_type, ())) for vote_type in VoteType}
        )

    def __getitem__(self, vote_type: VoteType) -> Sequence[MemberVote]:
        try:
            return self._buckets[VoteType(vote_type)]
        except ValueError:
            raise KeyError(vote_type) from None

    def __iter__(self):
        return iter(self._buckets)

    def __len__(self) -> int:
        return len(self._buckets)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, BucketedVotes):
            return dict(self._buckets) == dict(other._buckets)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._buckets.items()))

    def __repr__(self) -> str:
        sizes = ", ".join(f"{vote_type.name}={len(votes)}" for vote_type, votes in self._buckets.items())
        return f"BucketedVotes({sizes})"

    def total(self) -> int:
        return sum(len(votes) for votes in self._buckets.values())


def bucket_votes(votes: Iterable[MemberVote]) -> BucketedVotes:
    buckets: dict[VoteType, list[MemberVote]] = {vote_type: [] for vote_type in VoteType}
    for vote in votes:
        buckets[vote.vote_type].append(vote)
    return BucketedVotes(buckets)


@dataclass(frozen=True)
class VoteCounts:
    yes: int = 0
    undecided: int = 0
    no: int = 0

    @property
    def total(self) -> int:
        return self.yes + self.undecided + self.no

    def percent(self, count: int) -> float:
        total = self.total
        if total == 0:
            return 0.0
        return 100.0 * count / total

    @property
    def yes_percent(self) -> float:
        return self.percent(self.yes)

    @property
    def undecided_percent(self) -> float:
        return self.percent(self.undecided)

    @property
    def no_percent(self) -> float:
        return self.percent(self.no)


def count_votes(buckets: Mapping[VoteType, Sequence[MemberVote]]) -> VoteCounts:
    return VoteCounts(
        yes=len(buckets[VoteType.STRONG_YES]) + len(buckets[VoteType.LEAN_YES]),
        undecided=len(buckets[VoteType.UNDECIDED]),
        no=len(buckets[VoteType.STRONG_NO]) + len(buckets[VoteType.LEAN_NO]),
    )


def votes_to_target(counts: VoteCounts, target: int = DEFAULT_VOTE_TARGET) -> int:
    """Yes votes still missing; 0 once the target is met."""
    return max(0, target - counts.yes)


def filter_by_chamber(votes: Iterable[MemberVote], show: ChamberFilter = "all") -> List[MemberVote]:
    if show == "all":
        return list(votes)
    chamber = MemberType(show)
    return [vote for vote in votes if vote.member_type is chamber]


def normalize_text(value: str) -> str:
    return " ".join((value or "").lower().split())


def search_by_name(votes: Sequence[MemberVote], query: str, threshold: float = 0.9) -> List[MemberVote]:
    """Fuzzy match on name and party. Keeps sheet order."""
    normalized_query = normalize_text(query)
    if not normalized_query:
        return list(votes)
    choices = [normalize_text(f"{vote.name} {vote.party_name or ''}") for vote in votes]
    matches = process.extract(
        normalized_query,
        choices,
        scorer=fuzz.token_set_ratio,
        score_cutoff=int(threshold * 100),
        limit=None,
    )
    matched = {idx for _, _, idx in matches}
    return [vote for idx, vote in enumerate(votes) if idx in matched]


@dataclass(frozen=True)
class VoteTally:
    """Everything the dashboard needs from one successful load."""

    votes: tuple[MemberVote, ...]
    buckets: BucketedVotes
    counts: VoteCounts
    source_key: str = ""
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)


def build_tally(
    records: Iterable[Record],
    columns: ColumnMapping = ColumnMapping(),
    source_key: str = "",
) -> VoteTally:
    votes = tuple(build_member_votes(records, columns))
    buckets = bucket_votes(votes)
    counts = count_votes(buckets)
    logger.debug("Tallied %d votes from %s: %s", len(votes), source_key or "<records>", buckets)
    return VoteTally(votes=votes, buckets=buckets, counts=counts, source_key=source_key)


def load_tally(
    locator: str,
    *,
    columns: ColumnMapping = ColumnMapping(),
    quoted: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> VoteTally:
    records = load_records(locator, quoted=quoted, timeout=timeout, client=client)
    return build_tally(records, columns, source_key=locator)
