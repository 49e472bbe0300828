"""
Fetch a vote sheet and split it into records.

A sheet is comma-delimited UTF-8 text whose first line is the header. Each
following line becomes a record mapping header keys to trimmed values.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Optional, Sequence
from urllib.parse import unquote, urlparse

import httpx

from tally.errors import FetchFailure, MalformedRow


class Record(Mapping[str, str]):
    """Read-only row of the sheet. `line_number` is where the row starts in the source text."""

    def __init__(self, values: Mapping[str, str], line_number: int) -> None:
        self._values = MappingProxyType(dict(values))
        self.line_number = line_number

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Record(line {self.line_number}: {dict(self._values)!r})"


USER_AGENT = "RoadTo376/1.0"
DEFAULT_TIMEOUT = 30.0

logger = logging.getLogger(__name__)


def is_remote(locator: str) -> bool:
    return urlparse(locator).scheme in ("http", "https")


def local_path(locator: str) -> Path:
    """Filesystem path for a non-HTTP locator, ignoring any `?v=` suffix."""
    parsed = urlparse(locator)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        raise FetchFailure(locator, f"unsupported scheme {parsed.scheme!r}")
    return Path(locator.split("?", 1)[0])


def _decode(locator: str, payload: bytes) -> str:
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FetchFailure(locator, f"not valid UTF-8 ({exc.reason})") from exc


def _fetch_remote(locator: str, timeout: float, client: Optional[httpx.Client]) -> bytes:
    owns_client = client is None
    if client is None:
        headers = {"User-Agent": USER_AGENT, "Accept": "text/csv, text/plain, */*"}
        client = httpx.Client(http2=True, timeout=timeout, headers=headers, follow_redirects=True)
    try:
        response = client.get(locator)
        response.raise_for_status()
        return response.content
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise FetchFailure(locator, exc.response.reason_phrase or "request failed", status) from exc
    except httpx.HTTPError as exc:
        raise FetchFailure(locator, str(exc) or type(exc).__name__) from exc
    finally:
        if owns_client:
            client.close()


def fetch_sheet_text(
    locator: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> str:
    """Read the sheet behind `locator` (an http(s) URL or a local path)."""
    if is_remote(locator):
        payload = _fetch_remote(locator, timeout, client)
    else:
        path = local_path(locator)
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise FetchFailure(locator, exc.strerror or str(exc)) from exc
    logger.info("Fetched %s (%d bytes)", locator, len(payload))
    return _decode(locator, payload)


def _build_record(header: Sequence[str], fields: Sequence[str], line_number: int) -> Record:
    if len(fields) < len(header):
        raise MalformedRow(
            line_number,
            f"expected {len(header)} fields, found {len(fields)}",
            expected=len(header),
            found=len(fields),
        )
    # Extra trailing fields are dropped.
    return Record({key: fields[idx].strip() for idx, key in enumerate(header)}, line_number)


def _records_from_rows(rows: Iterable[tuple[int, Sequence[str]]]) -> List[Record]:
    header: Optional[List[str]] = None
    records: List[Record] = []
    for line_number, fields in rows:
        if not fields or (len(fields) == 1 and not fields[0].strip()):
            continue
        if header is None:
            header = [field.strip() for field in fields]
            continue
        records.append(_build_record(header, fields, line_number))
    return records


def parse_records(text: str) -> List[Record]:
    """Split on newlines, then on commas. Quotes get no special treatment."""
    text = text.lstrip("\ufeff")
    rows = ((idx, line.split(",")) for idx, line in enumerate(text.split("\n"), start=1))
    return _records_from_rows(rows)


def parse_quoted_records(text: str) -> List[Record]:
    """Same contract as parse_records, but honours CSV quoting."""
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff"), newline=""), skipinitialspace=True)
    rows: List[tuple[int, List[str]]] = []
    try:
        # A quoted field can span lines; number the record by its first line.
        first_line = 1
        for row in reader:
            rows.append((first_line, row))
            first_line = reader.line_num + 1
    except csv.Error as exc:
        raise MalformedRow(reader.line_num, str(exc)) from exc
    return _records_from_rows(rows)


def load_records(
    locator: str,
    *,
    quoted: bool = False,
    timeout: float = DEFAULT_TIMEOUT,
    client: Optional[httpx.Client] = None,
) -> List[Record]:
    text = fetch_sheet_text(locator, timeout=timeout, client=client)
    records = parse_quoted_records(text) if quoted else parse_records(text)
    logger.info("Parsed %d records from %s", len(records), locator)
    return records
