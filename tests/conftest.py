# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from datagrid.models.column import Column
from datagrid.models.config_models import GridSettings
from datagrid.models.value_types import ValueType
from datagrid.services.grid import DataGrid


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("DATAGRID_CONFIG", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """settings:
  min_row_count: 5
  validation_batch_size: 2
columns:
  - name: Name
    type: string
  - name: Age
    type: integer
  - name: Salary
    type: decimal
special_columns:
  valid_alerts: true
  delete_action: true
rules:
  - column: Name
    kind: required
    message: Name is required
  - column: Age
    kind: range
    min: 18
    max: 65
    message: Age must be between 18 and 65
  - column: Salary
    kind: range
    min: 3000
    message: Salary must be at least 3000
    when:
      column: Age
      op: gt
      value: 50
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "grid.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def sample_columns() -> list[Column]:
    return [
        Column("Name", ValueType.STRING),
        Column("Age", ValueType.INTEGER),
        Column("Salary", ValueType.DECIMAL),
        Column.valid_alerts(),
        Column.delete_action(),
    ]


@pytest.fixture()
def small_settings() -> GridSettings:
    return GridSettings(min_row_count=5, validation_batch_size=2)


@pytest.fixture()
def grid(sample_columns: list[Column], small_settings: GridSettings) -> DataGrid:
    g = DataGrid(settings=small_settings)
    g.initialize(sample_columns)
    return g
