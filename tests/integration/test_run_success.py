from __future__ import annotations

import re
from pathlib import Path

import pandas as pd
import pytest

from datagrid.cli import main as cli_main
from datagrid.logging.init import reset_logging

"""Integration test: validate a multi-sheet workbook end to end through the CLI.

The XLSX input is written with openpyxl, read back through pandas, loaded
into a grid built from config/grid.yml and validated in batches. The SUMMARY
line must agree with the workbook contents.
"""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY rows=(\d+) valid=(\d+) invalid=(\d+) empty=(\d+) batches=(\d+) "
    r"elapsed_sec=([0-9.]+) throughput_rps=([0-9.]+)$",
    re.MULTILINE,
)


def _make_excel_file(path: Path, sheets: dict[str, list[list[object]]]) -> Path:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


@pytest.fixture
def workbook(temp_workdir: Path, write_config: Path) -> Path:
    return _make_excel_file(
        temp_workdir / "data" / "staff.xlsx",
        {
            "Notes": [["free text"]],
            "Staff": [
                ["Name", "Age", "Salary"],
                ["Ann", 30, 2500],
                ["Bob", 55, 4200.5],
                ["Cid", 64, 3000],
                ["Dee", 18, None],
            ],
        },
    )


def test_workbook_all_rows_valid(workbook: Path, temp_workdir: Path, capsys):
    reset_logging()
    export = temp_workdir / "out" / "staff.csv"

    code = cli_main([str(workbook), "--sheet", "Staff", "--export", str(export)])

    out = capsys.readouterr().out
    assert code == 0
    match = SUMMARY_PATTERN.search(out)
    assert match, out
    rows, valid, invalid, empty, batches = (int(g) for g in match.groups()[:5])
    assert (rows, valid, invalid, empty) == (4, 4, 0, 1)
    # validation_batch_size = 2
    assert batches == 2

    exported = pd.read_csv(export)
    assert list(exported.columns) == ["Name", "Age", "Salary"]
    assert exported["Name"].tolist() == ["Ann", "Bob", "Cid", "Dee"]
    assert exported["Salary"].isna().tolist() == [False, False, False, True]


def test_workbook_first_sheet_lacks_columns(workbook: Path, capsys):
    reset_logging()
    code = cli_main([str(workbook)])
    out = capsys.readouterr().out
    assert code == 0
    assert "WARN input lacks columns: Name, Age, Salary" in out
    assert "SUMMARY rows=0" in out
