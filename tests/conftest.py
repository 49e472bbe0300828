from __future__ import annotations

from pathlib import Path

import pytest


SHEET_TEXT = (
    "id,name,memberType,partyName,color,voteType,reference\n"
    "sv001,Senator One,SV,,,2,https://example.org/sv001\n"
    "ss001,Rep One,SS,Party A,#f47932,2,https://example.org/ss001\n"
    "sv002,Senator Two,SV,,,2,https://example.org/sv002\n"
    "ss002,Rep Two,SS,Party B,#1f3c88,1,https://example.org/ss002\n"
    "sv003,Senator Three,SV,,,0,https://example.org/sv003\n"
    "ss003,Rep Three,SS,Party C,,-1,https://example.org/ss003\n"
    "sv004,Senator Four,SV,,,-2,https://example.org/sv004\n"
)


@pytest.fixture
def sheet_text() -> str:
    return SHEET_TEXT


@pytest.fixture
def sheet_file(tmp_path: Path) -> Path:
    path = tmp_path / "vote.csv"
    path.write_text(SHEET_TEXT, encoding="utf-8")
    return path
