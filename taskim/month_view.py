"""
Month view state: which month is on screen and where the cursor is.

The cursor is either on a day cell or on one task inside a day. Every
transition is expressed against the current TaskData so that task selections
are always resolved by id, never by a cached index.
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Union

from .calendar_grid import add_months, build_weeks, clamp_day
from .task import TaskData


@dataclass(frozen=True)
class DaySelection:
    date: date


@dataclass(frozen=True)
class TaskSelection:
    task_id: str


Selection = Union[DaySelection, TaskSelection]


class MonthView:
    def __init__(self, current_date: date):
        self.current_date = current_date.replace(day=1)
        self.weeks = build_weeks(self.current_date)
        self.selection: Selection = DaySelection(current_date)
        self.wrap_enabled = False
        # last date the selection resolved to; used when a selected task vanishes
        self.anchor_date = current_date

    # -----------------------------------------------------------------
    # low level selection helpers
    # -----------------------------------------------------------------
    def select_day(self, d: date):
        self.selection = DaySelection(d)
        self.anchor_date = d

    def select_task(self, task_id: str, d: Optional[date] = None):
        self.selection = TaskSelection(task_id)
        if d is not None:
            self.anchor_date = d

    def _set_month(self, d: date):
        first = d.replace(day=1)
        if first != self.current_date:
            self.current_date = first
            self.weeks = build_weeks(first)

    def in_view_month(self, d: date) -> bool:
        return (d.year, d.month) == (self.current_date.year, self.current_date.month)

    def navigate_to_date(self, target: date):
        self._set_month(target)
        self.select_day(target)

    def set_wrap(self, enabled: bool):
        self.wrap_enabled = enabled

    def _select_first_task(self, d: date, data: TaskData) -> bool:
        day_tasks = data.tasks_for_day(d)
        if day_tasks:
            self.select_task(day_tasks[0].id, d)
            return True
        return False

    # -----------------------------------------------------------------
    # queries
    # -----------------------------------------------------------------
    def selected_task_id(self) -> Optional[str]:
        if isinstance(self.selection, TaskSelection):
            return self.selection.task_id
        return None

    def resolve(self, data: TaskData) -> Selection:
        """Drop a task selection whose task no longer exists.

        Falls back to the anchor date (the last date the selection pointed
        at), which is always set, so the result is deterministic.
        """
        if isinstance(self.selection, TaskSelection):
            task = data.find(self.selection.task_id)
            if task is None:
                logging.debug(f"Selected task {self.selection.task_id} is gone, falling back to {self.anchor_date}")
                self.navigate_to_date(self.anchor_date)
            else:
                self.anchor_date = task.day
        return self.selection

    def selected_date(self, data: TaskData) -> date:
        selection = self.resolve(data)
        if isinstance(selection, DaySelection):
            return selection.date
        return self.anchor_date

    def current_task_order(self, data: TaskData) -> Optional[int]:
        task_id = self.selected_task_id()
        if task_id is None:
            return None
        task = data.find(task_id)
        return task.order if task else None

    # -----------------------------------------------------------------
    # horizontal movement
    # -----------------------------------------------------------------
    def move_left(self, data: TaskData):
        self.navigate_to_date(self.selected_date(data) - timedelta(days=1))

    def move_right(self, data: TaskData):
        self.navigate_to_date(self.selected_date(data) + timedelta(days=1))

    # -----------------------------------------------------------------
    # vertical movement
    # -----------------------------------------------------------------
    def _step_week(self, d: date, direction: int, data: TaskData, auto_select: bool = False):
        target = d + timedelta(weeks=direction)
        if (target.year, target.month) != (d.year, d.month):
            # leaving the month keeps the day-of-month in the adjacent month
            month = add_months(d, direction)
            target = clamp_day(month.year, month.month, d.day)
        self.navigate_to_date(target)
        if auto_select:
            self._select_first_task(target, data)

    def move_down(self, data: TaskData):
        selection = self.resolve(data)
        if isinstance(selection, DaySelection):
            if not self._select_first_task(selection.date, data):
                self._step_week(selection.date, 1, data)
            return
        task = data.find(selection.task_id)
        day_tasks = data.tasks_for_day(task.day)
        idx = [t.id for t in day_tasks].index(task.id)
        if idx < len(day_tasks) - 1:
            self.select_task(day_tasks[idx + 1].id, task.day)
        else:
            self._step_week(task.day, 1, data, auto_select=True)

    def move_up(self, data: TaskData):
        selection = self.resolve(data)
        if isinstance(selection, DaySelection):
            self._step_week(selection.date, -1, data)
            return
        task = data.find(selection.task_id)
        day_tasks = data.tasks_for_day(task.day)
        idx = [t.id for t in day_tasks].index(task.id)
        if idx > 0:
            self.select_task(day_tasks[idx - 1].id, task.day)
        else:
            self.select_day(task.day)

    # -----------------------------------------------------------------
    # jumps
    # -----------------------------------------------------------------
    def next_week(self, data: TaskData):
        self.navigate_to_date(self.selected_date(data) + timedelta(weeks=1))

    def prev_week(self, data: TaskData):
        self.navigate_to_date(self.selected_date(data) - timedelta(weeks=1))

    def _jump_months(self, months: int, data: Optional[TaskData]):
        if data is not None:
            day = self.selected_date(data).day
        elif isinstance(self.selection, DaySelection):
            day = self.selection.date.day
        else:
            day = self.anchor_date.day
        month = add_months(self.current_date, months)
        self.navigate_to_date(clamp_day(month.year, month.month, day))

    def next_month(self, data: Optional[TaskData] = None):
        self._jump_months(1, data)

    def prev_month(self, data: Optional[TaskData] = None):
        self._jump_months(-1, data)

    def next_year(self, data: Optional[TaskData] = None):
        self._jump_months(12, data)

    def prev_year(self, data: Optional[TaskData] = None):
        self._jump_months(-12, data)

    def first_day_of_month(self):
        self.select_day(self.current_date)

    def last_day_of_month(self):
        self.select_day(clamp_day(self.current_date.year, self.current_date.month, 31))

    def go_to_today(self, today: date):
        self.navigate_to_date(today)

    def focus_task(self, task_id: str, d: date):
        """Select a task, switching the grid to its month first."""
        self._set_month(d)
        self.select_task(task_id, d)

    def select_task_by_order(self, d: date, order: int, data: TaskData) -> bool:
        for task in data.tasks_for_day(d):
            if task.order == order:
                self.focus_task(task.id, d)
                return True
        return False
