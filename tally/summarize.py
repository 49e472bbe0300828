"""
Print a tally summary for a vote sheet.

Usage:
    python -m tally.summarize
    python -m tally.summarize --url https://example.org/vote.csv --version 5
    python -m tally.summarize --chamber SV --json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional, Sequence

from tally.errors import VoteSheetError
from tally.log import configure_logging
from tally.settings import Settings, load_settings
from tally.vote_models import MemberType, VoteType
from tally.vote_tally import VoteTally, bucket_votes, count_votes, filter_by_chamber, load_tally, votes_to_target


logger = logging.getLogger("tally.summarize")


def summary_payload(tally: VoteTally, target: int, chamber: str = "all") -> dict[str, Any]:
    votes = filter_by_chamber(tally.votes, chamber if chamber == "all" else MemberType(chamber))
    buckets = bucket_votes(votes)
    counts = count_votes(buckets)
    return {
        "source": tally.source_key,
        "chamber": chamber,
        "yes": counts.yes,
        "undecided": counts.undecided,
        "no": counts.no,
        "total": counts.total,
        "yesPercent": round(counts.yes_percent, 2),
        "undecidedPercent": round(counts.undecided_percent, 2),
        "noPercent": round(counts.no_percent, 2),
        "target": target,
        "shortOfTarget": votes_to_target(counts, target),
        "buckets": {str(int(vote_type)): len(buckets[vote_type]) for vote_type in VoteType},
    }


def format_summary(payload: dict[str, Any]) -> str:
    lines = [
        f"Source: {payload['source']} (chamber: {payload['chamber']})",
        f"Yes:       {payload['yes']:>4} ({payload['yesPercent']:.2f}%)",
        f"Undecided: {payload['undecided']:>4} ({payload['undecidedPercent']:.2f}%)",
        f"No:        {payload['no']:>4} ({payload['noPercent']:.2f}%)",
        f"Total:     {payload['total']:>4}",
    ]
    if payload["shortOfTarget"]:
        lines.append(f"Short of target {payload['target']} by {payload['shortOfTarget']}")
    else:
        lines.append(f"Target {payload['target']} reached")
    buckets = ", ".join(f"{VoteType(int(k)).name}={v}" for k, v in payload["buckets"].items())
    lines.append(f"Buckets: {buckets}")
    return "\n".join(lines)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Summarize a vote sheet.")
    parser.add_argument("--url", default=settings.sheet_url, help=f"Sheet URL or path (default: {settings.sheet_url})")
    parser.add_argument("--version", default=settings.sheet_version, help="Cache-busting version appended as ?v=")
    parser.add_argument("--quoted", action="store_true", default=settings.quoted_csv, help="Parse with CSV quoting rules")
    parser.add_argument("--chamber", choices=["all"] + [m.value for m in MemberType], default="all")
    parser.add_argument("--target", type=int, default=settings.vote_target, help="Yes votes needed")
    parser.add_argument("--json", action="store_true", help="Print JSON instead of text")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = load_settings()
    configure_logging(settings.log_level)
    args = build_parser(settings).parse_args(argv)

    sheet = Settings(sheet_url=args.url, sheet_version=args.version)
    try:
        tally = load_tally(sheet.sheet_key, quoted=args.quoted, timeout=settings.fetch_timeout)
    except VoteSheetError as exc:
        logger.error("%s", exc)
        return 1

    payload = summary_payload(tally, args.target, args.chamber)
    if args.json:
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        print(format_summary(payload))
    return 0


if __name__ == "__main__":
    sys.exit(main())
