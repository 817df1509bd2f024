from __future__ import annotations

import re
from pathlib import Path

from account_import.cli.__main__ import main as cli_main

"""SUMMARY line contract: exactly one line, fixed key order."""

SUMMARY_RE = re.compile(
    r"^SUMMARY entity=(users|customers) rows=\d+ accepted=\d+ rejected=\d+ inserted=\d+ "
    r"errors=\d+ policy=(buffer_then_commit|per_row|dry_run) elapsed_sec=[0-9.]+$"
)


def test_summary_line_format(write_config, temp_workdir: Path, xlsx_factory, capsys):
    path = xlsx_factory(
        temp_workdir / "data" / "c.xlsx",
        [["u", "e", "p", "a"], ["bob", "b@x", "0812", "Jakarta"], ["", "c@x", "", "Bandung"]],
    )
    cli_main(["import", "customers", str(path), "--dry-run"])
    lines = [x for x in capsys.readouterr().out.splitlines() if x.startswith("SUMMARY")]
    assert len(lines) == 1
    assert SUMMARY_RE.match(lines[0])
    assert "rows=2 accepted=1 rejected=1 inserted=0 errors=2" in lines[0]


def test_summary_label_printed_once(write_config, temp_workdir: Path, xlsx_factory, capsys):
    path = xlsx_factory(
        temp_workdir / "data" / "u.xlsx",
        [["u", "e", "p"], ["alice", "a@x", "pw"]],
    )
    cli_main(["import", "users", str(path), "--dry-run"])
    out = capsys.readouterr().out
    assert out.count("SUMMARY") == 1
    assert "SUMMARY SUMMARY" not in out
