from __future__ import annotations

import pytest

from datagrid.models.column import Column
from datagrid.models.row import Row
from datagrid.services.navigation import UNSET, NavigationEngine

"""Unit tests for the cursor state machine."""


@pytest.fixture()
def nav(sample_columns) -> NavigationEngine:
    rows = [Row.for_columns(sample_columns) for _ in range(3)]
    engine = NavigationEngine()
    engine.initialize(rows, sample_columns)
    return engine


def test_initialize_positions_at_origin(nav):
    assert (nav.current_row_index, nav.current_column_index) == (0, 0)
    assert nav.current_cell is not None
    assert nav.current_cell.column_name == "Name"
    assert [c.name for c in nav.editable_columns] == ["Name", "Age", "Salary"]


def test_initialize_with_no_rows_stays_uninitialized(sample_columns):
    engine = NavigationEngine()
    engine.initialize([], sample_columns)
    assert (engine.current_row_index, engine.current_column_index) == (UNSET, UNSET)
    assert engine.current_cell is None
    assert engine.move_to_next_cell() is False


def test_initialize_none_is_rejected():
    with pytest.raises(ValueError):
        NavigationEngine().initialize(None, [])


def test_move_to_cell_out_of_range_is_ignored(nav):
    events = []
    nav.navigation_changed.subscribe(events.append)
    assert nav.move_to_cell(5, 0) is False
    assert nav.move_to_cell(0, 3) is False
    assert nav.move_to_cell(-1, 0) is False
    assert (nav.current_row_index, nav.current_column_index) == (0, 0)
    assert events == []


def test_move_to_cell_emits_old_and_new(nav):
    events = []
    nav.navigation_changed.subscribe(events.append)
    old_cell = nav.current_cell
    assert nav.move_to_cell(1, 2)
    (event,) = events
    assert (event.old_row_index, event.old_column_index) == (0, 0)
    assert (event.new_row_index, event.new_column_index) == (1, 2)
    assert event.old_cell is old_cell
    assert event.new_cell is nav.current_cell


def test_same_position_emits_nothing(nav):
    events = []
    nav.navigation_changed.subscribe(events.append)
    assert nav.move_to_cell(0, 0)
    assert events == []


def test_next_cell_wraps_to_origin(nav):
    nav.move_to_cell(2, 2)
    nav.move_to_next_cell()
    assert (nav.current_row_index, nav.current_column_index) == (0, 0)


def test_next_cell_wraps_to_next_row(nav):
    nav.move_to_cell(0, 2)
    nav.move_to_next_cell()
    assert (nav.current_row_index, nav.current_column_index) == (1, 0)


def test_previous_cell_wraps_backwards(nav):
    nav.move_to_previous_cell()
    assert (nav.current_row_index, nav.current_column_index) == (2, 2)
    nav.move_to_cell(1, 0)
    nav.move_to_previous_cell()
    assert (nav.current_row_index, nav.current_column_index) == (0, 2)


def test_row_moves_wrap_circularly(nav):
    nav.move_to_cell(2, 1)
    nav.move_to_next_row()
    assert (nav.current_row_index, nav.current_column_index) == (0, 1)
    nav.move_to_previous_row()
    assert (nav.current_row_index, nav.current_column_index) == (2, 1)


def _unpositioned(sample_columns) -> NavigationEngine:
    # rows arrive after initialize: the engine sees them but is not positioned
    rows: list[Row] = []
    engine = NavigationEngine()
    engine.initialize(rows, sample_columns)
    rows.extend(Row.for_columns(sample_columns) for _ in range(2))
    assert engine.is_positioned is False
    return engine


def test_moves_from_uninitialized_state(sample_columns):
    engine = _unpositioned(sample_columns)
    assert engine.move_to_previous_cell()
    assert (engine.current_row_index, engine.current_column_index) == (1, 2)

    engine = _unpositioned(sample_columns)
    assert engine.move_to_previous_row()
    assert (engine.current_row_index, engine.current_column_index) == (1, 0)

    engine = _unpositioned(sample_columns)
    assert engine.move_to_next_row()
    assert (engine.current_row_index, engine.current_column_index) == (0, 0)

    engine = _unpositioned(sample_columns)
    assert engine.move_to_next_cell()
    assert (engine.current_row_index, engine.current_column_index) == (0, 0)


def test_refresh_clamps_after_rows_shrink(sample_columns):
    rows = [Row.for_columns(sample_columns) for _ in range(3)]
    nav = NavigationEngine()
    nav.initialize(rows, sample_columns)
    nav.move_to_cell(2, 1)
    del rows[1:]
    nav.refresh()
    assert (nav.current_row_index, nav.current_column_index) == (0, 1)
    rows.clear()
    nav.refresh()
    assert nav.is_positioned is False


def test_failing_handler_does_not_block_others(nav):
    seen = []

    def broken(event):
        raise RuntimeError("ui crashed")

    nav.navigation_changed.subscribe(broken)
    nav.navigation_changed.subscribe(seen.append)
    assert nav.move_to_next_cell()
    assert len(seen) == 1
    assert nav.current_column_index == 1


def test_only_special_columns_means_nothing_editable():
    cols = [Column.valid_alerts(), Column.delete_action()]
    engine = NavigationEngine()
    engine.initialize([Row.for_columns(cols)], cols)
    assert engine.is_positioned is False
    assert engine.move_to_next_row() is False
