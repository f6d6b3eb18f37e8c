"""
Tests for the application controller: edits, clipboard, moves and undo/redo.
"""
import copy
from datetime import date, datetime

import pytest

from taskim.app import App
from taskim.month_view import DaySelection, TaskSelection

from conftest import FailingStorage, FakeStorage, make_task

TODAY = date(2024, 3, 15)


def create(app, title, begin=None):
    state = (begin or app.begin_insert)()
    state.title = title
    assert app.commit_edit()
    return app.selected_task()


def titles(app, d=TODAY):
    return [(t.title, t.order) for t in app.data.tasks_for_day(d)]


@pytest.fixture
def abc(app):
    a = create(app, "a")
    b = create(app, "b", app.begin_insert_below)
    c = create(app, "c", app.begin_insert_below)
    return a, b, c


def assert_undo_redo_round_trip(app, before):
    after = copy.deepcopy(app.data)
    assert app.undo()
    assert app.data == before
    assert app.redo()
    assert app.data == after


def test_data_is_loaded_once(clock):
    existing = make_task("existing", TODAY)
    storage = FakeStorage()
    storage.initial.insert_at_order(existing, 0)
    app = App(storage, clock=clock)
    app.move_down()
    create(app, "another", app.begin_insert_below)
    app.undo()
    assert storage.load_calls == 1
    assert app.data.find(existing.id).title == "existing"


def test_starts_on_today(app):
    assert app.month_view.selection == DaySelection(TODAY)
    assert app.month_view.current_date == date(2024, 3, 1)


def test_create_task_on_selected_day(app, storage):
    task = create(app, "  write report ")
    assert task.title == "write report"
    assert task.start == datetime(2024, 3, 15, 9, 0)
    assert task.order == 0
    assert app.month_view.selection == TaskSelection(task.id)
    assert app.edit_state is None
    assert len(storage.saved) == 1
    assert app.undo_stack.can_undo()


def test_create_with_content_adds_a_comment(app):
    state = app.begin_insert()
    state.title = "call"
    state.switch_field()
    for ch in "bob":
        state.add_char(ch)
    app.commit_edit()
    assert app.selected_task().content == "bob"


def test_empty_title_is_rejected(app, storage):
    state = app.begin_insert()
    state.title = "   "
    assert not app.commit_edit()
    assert app.edit_state is state
    assert app.status == "Task title cannot be empty."
    assert len(app.data) == 0
    assert storage.saved == []


def test_cancel_edit_discards(app):
    state = app.begin_insert()
    state.title = "never"
    app.cancel_edit()
    assert app.edit_state is None
    assert len(app.data) == 0


def test_insert_below_and_above(app, abc):
    a, b, c = abc
    assert titles(app) == [("a", 0), ("b", 1), ("c", 2)]
    app.month_view.focus_task(b.id, TODAY)
    create(app, "above b", app.begin_insert_above)
    assert titles(app) == [("a", 0), ("above b", 1), ("b", 2), ("c", 3)]
    app.month_view.focus_task(a.id, TODAY)
    create(app, "below a", app.begin_insert_below)
    assert titles(app) == [("a", 0), ("below a", 1), ("above b", 2), ("b", 3), ("c", 4)]


def test_insert_above_on_a_day_goes_first(app, abc):
    app.month_view.select_day(TODAY)
    create(app, "top", app.begin_insert_above)
    assert titles(app)[0] == ("top", 0)


def test_inserting_at_top_of_month_end_day(app):
    month_end = date(2024, 3, 31)
    app.month_view.navigate_to_date(month_end)
    first = create(app, "first")
    app.month_view.select_day(month_end)
    create(app, "second", app.begin_insert_above)
    assert app.data.find(first.id).order == 1
    assert titles(app, month_end) == [("second", 0), ("first", 1)]


def test_create_round_trip(app, abc):
    before = copy.deepcopy(app.data)
    app.month_view.focus_task(abc[1].id, TODAY)
    create(app, "middle", app.begin_insert_above)
    assert_undo_redo_round_trip(app, before)


def test_edit_keeps_identity_and_position(app, abc):
    a, b, c = abc
    app.month_view.focus_task(b.id, TODAY)
    before = copy.deepcopy(app.data)
    state = app.begin_insert()
    assert state.task_id == b.id
    assert state.title == "b"
    state.title = "B!"
    state.content = "more detail"
    assert app.commit_edit()
    edited = app.data.find(b.id)
    assert edited.title == "B!"
    assert edited.content == "more detail"
    assert edited.order == 1
    assert edited.start == b.start
    assert app.data.index_of(b.id) == 1
    assert_undo_redo_round_trip(app, before)


def test_unchanged_edit_is_not_recorded(app, abc):
    app.month_view.focus_task(abc[0].id, TODAY)
    depth = len(app.undo_stack.undo_operations)
    app.begin_insert()
    app.commit_edit()
    assert len(app.undo_stack.undo_operations) == depth


def test_toggle_complete_round_trip(app, abc):
    app.month_view.focus_task(abc[2].id, TODAY)
    before = copy.deepcopy(app.data)
    app.toggle_complete()
    assert app.data.find(abc[2].id).completed
    assert_undo_redo_round_trip(app, before)
    app.toggle_complete()
    assert not app.data.find(abc[2].id).completed


def test_delete_closes_gap_and_yanks(app, abc):
    a, b, c = abc
    app.month_view.focus_task(b.id, TODAY)
    app.delete_selected()
    assert titles(app) == [("a", 0), ("c", 1)]
    assert app.yanked_task.title == "b"
    assert app.month_view.selection == TaskSelection(a.id)


def test_delete_round_trip_restores_position(app, abc):
    a, b, c = abc
    app.month_view.focus_task(b.id, TODAY)
    before = copy.deepcopy(app.data)
    app.delete_selected()
    assert app.undo()
    assert app.data == before
    assert app.data.index_of(b.id) == 1
    assert app.month_view.selection == TaskSelection(b.id)
    assert app.redo()
    assert app.data.find(b.id) is None


def test_delete_with_day_selected_does_nothing(app, abc, storage):
    app.month_view.select_day(date(2024, 3, 16))
    saves = len(storage.saved)
    app.delete_selected()
    assert len(app.data) == 3
    assert len(storage.saved) == saves


def test_paste_below_creates_a_copy(app, abc):
    a, b, c = abc
    app.month_view.focus_task(a.id, TODAY)
    app.yank()
    app.month_view.focus_task(c.id, TODAY)
    before = copy.deepcopy(app.data)
    app.paste_below()
    pasted = app.selected_task()
    assert pasted.title == "a"
    assert pasted.id != a.id
    assert titles(app) == [("a", 0), ("b", 1), ("c", 2), ("a", 3)]
    assert_undo_redo_round_trip(app, before)


def test_paste_above_on_another_day_keeps_time_of_day(app):
    task = create(app, "meeting")
    app.data.find(task.id).start = datetime(2024, 3, 15, 14, 30)
    app.data.find(task.id).end = datetime(2024, 3, 15, 15, 0)
    app.yank()
    app.month_view.navigate_to_date(date(2024, 3, 20))
    app.paste_above()
    pasted = app.selected_task()
    assert pasted.start == datetime(2024, 3, 20, 14, 30)
    assert pasted.end == datetime(2024, 3, 20, 15, 0)
    assert pasted.order == 0


def test_paste_with_empty_clipboard(app):
    app.paste_below()
    assert app.status == "Nothing to paste."
    assert len(app.data) == 0


def test_cut_then_paste_moves_between_days(app, abc):
    a, b, c = abc
    app.month_view.focus_task(a.id, TODAY)
    app.delete_selected()
    app.month_view.navigate_to_date(date(2024, 4, 1))
    app.paste_below()
    assert titles(app, date(2024, 4, 1)) == [("a", 0)]
    assert titles(app) == [("b", 0), ("c", 1)]
    assert app.month_view.current_date == date(2024, 4, 1)


def test_move_task_to_next_day(app, abc):
    a, b, c = abc
    other = make_task("other", date(2024, 3, 16))
    app.data.insert_at_order(other, 0)
    app.month_view.focus_task(a.id, TODAY)
    before = copy.deepcopy(app.data)
    app.move_selected_task(1)
    moved = app.data.find(a.id)
    assert moved.day == date(2024, 3, 16)
    assert moved.order == 1
    assert titles(app) == [("b", 0), ("c", 1)]
    assert app.month_view.selection == TaskSelection(a.id)
    assert_undo_redo_round_trip(app, before)


def test_move_task_across_month_follows_the_task(app):
    app.month_view.navigate_to_date(date(2024, 3, 31))
    task = create(app, "month end")
    app.move_selected_task(1)
    assert app.data.find(task.id).day == date(2024, 4, 1)
    assert app.month_view.current_date == date(2024, 4, 1)
    app.undo()
    assert app.data.find(task.id).day == date(2024, 3, 31)
    assert app.month_view.current_date == date(2024, 3, 1)


def test_new_mutation_invalidates_redo(app, abc):
    app.undo()
    assert app.undo_stack.can_redo()
    app.month_view.select_day(TODAY)
    create(app, "fresh", app.begin_insert_above)
    assert not app.redo()
    assert app.status == "Nothing to redo."


def test_undo_depth_is_bounded(storage, clock):
    app = App(storage, undo_depth=3, clock=clock)
    create(app, "t0")
    for i in range(1, 5):
        create(app, f"t{i}", app.begin_insert_below)
    undone = 0
    while app.undo():
        undone += 1
    assert undone == 3
    assert [t for t, _ in titles(app)] == ["t0", "t1"]
    assert app.status == "Nothing to undo."


def test_undo_of_create_falls_back_to_the_day(app):
    create(app, "only")
    app.undo()
    assert app.month_view.selection == DaySelection(TODAY)
    assert len(app.data) == 0


def test_undo_and_redo_save(app, storage, abc):
    saves = len(storage.saved)
    app.undo()
    app.redo()
    assert len(storage.saved) == saves + 2
    assert storage.saved[-1] == app.data


def test_failed_save_keeps_change_in_memory(clock):
    app = App(FailingStorage(), clock=clock)
    task = create(app, "unsaved")
    assert app.data.find(task.id) is not None
    assert app.status.startswith("Save failed")
    assert app.undo_stack.can_undo()
    assert not app.save()


def test_navigation_pass_through(app):
    app.move_right()
    assert app.selected_date() == date(2024, 3, 16)
    app.next_month()
    assert app.selected_date() == date(2024, 4, 16)
    app.prev_year()
    assert app.selected_date() == date(2023, 4, 16)
    app.last_day_of_month()
    assert app.selected_date() == date(2023, 4, 30)
    app.go_to_today()
    assert app.selected_date() == TODAY
