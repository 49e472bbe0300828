from __future__ import annotations

import json

from tally import summarize


def test_json_summary(sheet_file, capsys):
    exit_code = summarize.main(["--url", str(sheet_file), "--version", "4", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["source"] == f"{sheet_file}?v=4"
    assert (payload["yes"], payload["undecided"], payload["no"], payload["total"]) == (4, 1, 2, 7)
    assert payload["shortOfTarget"] == 372
    assert payload["buckets"] == {"-2": 1, "-1": 1, "0": 1, "1": 1, "2": 3}


def test_chamber_filter(sheet_file, capsys):
    summarize.main(["--url", str(sheet_file), "--chamber", "SV", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert (payload["yes"], payload["undecided"], payload["no"]) == (2, 1, 1)


def test_text_summary_reports_target(sheet_file, capsys):
    summarize.main(["--url", str(sheet_file), "--target", "3"])

    out = capsys.readouterr().out
    assert "Yes:          4" in out
    assert "Target 3 reached" in out


def test_missing_sheet_exits_with_error(tmp_path, capsys):
    exit_code = summarize.main(["--url", str(tmp_path / "missing.csv")])

    assert exit_code == 1
    assert capsys.readouterr().out == ""
