"""
Application controller.

Turns user intents (move, insert, delete, paste, undo, ...) into changes on
the task collection and the month view, records every committed mutation on
the undo stack and saves after each one. Nothing here touches the terminal.
"""
import copy
import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Optional

from . import commands
from .errors import TaskimError
from .month_view import MonthView
from .storage import JsonStorage
from .task import Task, TaskComment, TaskData, new_id
from .undo import CreateTask, DeleteTask, EditTask, MoveTask, UndoStack

DEFAULT_TASK_TIME = time(9, 0)

TITLE_FIELD = "title"
CONTENT_FIELD = "content"


class TaskEditState:
    def __init__(self, day: date, title: str = "", content: str = "",
                 task_id: Optional[str] = None, insert_order: Optional[int] = None):
        self.date = day
        self.title = title
        self.content = content
        self.task_id = task_id
        self.insert_order = insert_order
        self.editing_field = TITLE_FIELD

    @classmethod
    def for_task(cls, task: Task) -> "TaskEditState":
        return cls(task.day, title=task.title, content=task.content, task_id=task.id)

    @property
    def is_new_task(self) -> bool:
        return self.task_id is None

    def add_char(self, ch: str):
        if self.editing_field == TITLE_FIELD:
            self.title += ch
        else:
            self.content += ch

    def remove_char(self):
        if self.editing_field == TITLE_FIELD:
            self.title = self.title[:-1]
        else:
            self.content = self.content[:-1]

    def switch_field(self):
        self.editing_field = CONTENT_FIELD if self.editing_field == TITLE_FIELD else TITLE_FIELD


class App:
    def __init__(self, storage: JsonStorage, undo_depth: int = 50,
                 clock: Callable[[], datetime] = datetime.now, data: Optional[TaskData] = None,
                 show_keybinds: bool = True):
        self.storage = storage
        self.clock = clock
        self.data = data if data is not None else storage.load()
        self.month_view = MonthView(self.clock().date())
        self.undo_stack = UndoStack(undo_depth)
        self.yanked_task: Optional[Task] = None
        self.edit_state: Optional[TaskEditState] = None
        self.status = ""
        self.should_exit = False
        self.show_help = False
        self.show_keybinds = show_keybinds
        self.scramble_mode = False

    # -----------------------------------------------------------------
    # persistence
    # -----------------------------------------------------------------
    def save(self) -> bool:
        try:
            self.storage.save(self.data)
        except Exception as e:
            # the in-memory change stays; the next successful save catches up
            logging.error(f"Error saving tasks to {self.storage.data_file}: {e}")
            self.status = f"Save failed: {e}"
            return False
        return True

    def _commit(self, operation):
        self.undo_stack.push(operation)
        logging.info(operation.description)
        self.save()

    # -----------------------------------------------------------------
    # navigation
    # -----------------------------------------------------------------
    def selected_date(self) -> date:
        return self.month_view.selected_date(self.data)

    def selected_task(self) -> Optional[Task]:
        self.month_view.resolve(self.data)
        task_id = self.month_view.selected_task_id()
        return self.data.find(task_id) if task_id else None

    def move_left(self):
        self.month_view.move_left(self.data)

    def move_right(self):
        self.month_view.move_right(self.data)

    def move_up(self):
        self.month_view.move_up(self.data)

    def move_down(self):
        self.month_view.move_down(self.data)

    def next_week(self):
        self.month_view.next_week(self.data)

    def prev_week(self):
        self.month_view.prev_week(self.data)

    def next_month(self):
        self.month_view.next_month(self.data)

    def prev_month(self):
        self.month_view.prev_month(self.data)

    def next_year(self):
        self.month_view.next_year(self.data)

    def prev_year(self):
        self.month_view.prev_year(self.data)

    def first_day_of_month(self):
        self.month_view.first_day_of_month()

    def last_day_of_month(self):
        self.month_view.last_day_of_month()

    def go_to_today(self):
        self.month_view.go_to_today(self.clock().date())

    def _select_day_or_first_task(self, d: date):
        day_tasks = self.data.tasks_for_day(d)
        if day_tasks:
            self.month_view.focus_task(day_tasks[0].id, d)
        else:
            self.month_view.navigate_to_date(d)

    # -----------------------------------------------------------------
    # creating and editing
    # -----------------------------------------------------------------
    def begin_insert(self) -> Optional[TaskEditState]:
        """'i': new task on a selected day, or edit the selected task."""
        task = self.selected_task()
        if task is not None:
            self.edit_state = TaskEditState.for_task(task)
        else:
            self.edit_state = TaskEditState(self.selected_date())
        return self.edit_state

    def begin_insert_below(self) -> TaskEditState:
        d = self.selected_date()
        current = self.month_view.current_task_order(self.data)
        order = current + 1 if current is not None else self.data.next_order(d)
        self.edit_state = TaskEditState(d, insert_order=order)
        return self.edit_state

    def begin_insert_above(self) -> TaskEditState:
        d = self.selected_date()
        current = self.month_view.current_task_order(self.data)
        self.edit_state = TaskEditState(d, insert_order=current if current is not None else 0)
        return self.edit_state

    def cancel_edit(self):
        self.edit_state = None

    def commit_edit(self, state: Optional[TaskEditState] = None) -> bool:
        """Save the edit popup. Returns False (popup stays open) for an empty title."""
        state = state or self.edit_state
        if state is None:
            return False
        title = state.title.strip()
        if not title:
            self.status = "Task title cannot be empty."
            return False
        self.edit_state = None
        if state.is_new_task:
            self._create_task(state, title)
        else:
            self._edit_task(state, title)
        return True

    def _create_task(self, state: TaskEditState, title: str):
        task = Task.new(title, datetime.combine(state.date, DEFAULT_TASK_TIME))
        if state.content:
            task.add_comment(state.content)
        order = state.insert_order if state.insert_order is not None else self.data.next_order(state.date)
        self.data.insert_at_order(task, order)
        self.month_view.focus_task(task.id, task.day)
        self._commit(CreateTask(copy.deepcopy(task)))

    def _edit_task(self, state: TaskEditState, title: str):
        existing = self.data.find(state.task_id)
        if existing is None:
            logging.debug(f"Edit target {state.task_id} no longer exists")
            return
        updated = copy.deepcopy(existing)
        updated.title = title
        if state.content and updated.comments:
            updated.comments[0] = TaskComment(updated.comments[0].id, state.content)
        elif state.content:
            updated.add_comment(state.content)
        elif updated.comments:
            updated.comments.pop(0)
        if updated == existing:
            return
        self.data.replace(updated)
        self._commit(EditTask(updated.id, copy.deepcopy(existing), copy.deepcopy(updated)))

    def toggle_complete(self):
        task = self.selected_task()
        if task is None:
            return
        updated = copy.deepcopy(task)
        updated.completed = not task.completed
        self.data.replace(updated)
        self._commit(EditTask(task.id, copy.deepcopy(task), copy.deepcopy(updated)))

    # -----------------------------------------------------------------
    # delete / yank / paste / move
    # -----------------------------------------------------------------
    def delete_selected(self):
        """Cut the selected task: it is removed and kept for pasting."""
        task = self.selected_task()
        if task is None:
            return
        index = self.data.index_of(task.id)
        removed = self.data.remove_and_close_gap(task.id)
        self.yanked_task = copy.deepcopy(removed)
        self._select_day_or_first_task(removed.day)
        self._commit(DeleteTask(copy.deepcopy(removed), index))

    def yank(self):
        task = self.selected_task()
        if task is not None:
            self.yanked_task = copy.deepcopy(task)
            self.status = f"Yanked '{task.title}'"

    def _paste(self, above: bool):
        if self.yanked_task is None:
            self.status = "Nothing to paste."
            return
        d = self.selected_date()
        current = self.month_view.current_task_order(self.data)
        if above:
            order = current if current is not None else 0
        else:
            order = current + 1 if current is not None else self.data.next_order(d)
        task = self.yanked_task.moved_to(d)
        task.id = new_id()
        task.comments = [TaskComment(new_id(), c.text) for c in task.comments]
        self.data.insert_at_order(task, order)
        self.month_view.select_task_by_order(d, order, self.data)
        self._commit(CreateTask(copy.deepcopy(task)))

    def paste_below(self):
        self._paste(above=False)

    def paste_above(self):
        self._paste(above=True)

    def move_selected_task(self, days: int):
        task = self.selected_task()
        if task is None or days == 0:
            return
        old_date, old_order = task.day, task.order
        moved = self.data.move_to_date(task.id, old_date + timedelta(days=days))
        self.month_view.focus_task(moved.id, moved.day)
        self._commit(MoveTask(moved.id, old_date, moved.day, old_order, moved.order))

    # -----------------------------------------------------------------
    # undo / redo
    # -----------------------------------------------------------------
    def undo(self) -> bool:
        operation = self.undo_stack.undo()
        if operation is None:
            self.status = "Nothing to undo."
            return False
        if isinstance(operation, CreateTask):
            self.data.remove_and_close_gap(operation.task.id)
            self._select_day_or_first_task(operation.task.day)
        elif isinstance(operation, DeleteTask):
            restored = copy.deepcopy(operation.task)
            self.data.insert_at_order(restored, restored.order, operation.index)
            self.month_view.focus_task(restored.id, restored.day)
        elif isinstance(operation, EditTask):
            if self.data.replace(copy.deepcopy(operation.old_task)):
                self.month_view.focus_task(operation.task_id, operation.old_task.day)
        elif isinstance(operation, MoveTask):
            if self.data.move_to_date(operation.task_id, operation.old_date, operation.old_order):
                self.month_view.focus_task(operation.task_id, operation.old_date)
        self.month_view.resolve(self.data)
        logging.info(f"Undo: {operation.description}")
        self.save()
        return True

    def redo(self) -> bool:
        operation = self.undo_stack.redo()
        if operation is None:
            self.status = "Nothing to redo."
            return False
        if isinstance(operation, CreateTask):
            restored = copy.deepcopy(operation.task)
            self.data.insert_at_order(restored, restored.order)
            self.month_view.focus_task(restored.id, restored.day)
        elif isinstance(operation, DeleteTask):
            self.data.remove_and_close_gap(operation.task.id)
            self._select_day_or_first_task(operation.task.day)
        elif isinstance(operation, EditTask):
            if self.data.replace(copy.deepcopy(operation.new_task)):
                self.month_view.focus_task(operation.task_id, operation.new_task.day)
        elif isinstance(operation, MoveTask):
            if self.data.move_to_date(operation.task_id, operation.new_date, operation.new_order):
                self.month_view.focus_task(operation.task_id, operation.new_date)
        self.month_view.resolve(self.data)
        logging.info(f"Redo: {operation.description}")
        self.save()
        return True

    # -----------------------------------------------------------------
    # commands
    # -----------------------------------------------------------------
    def execute_command(self, text: str) -> bool:
        try:
            commands.execute_command(self, text)
        except TaskimError as e:
            logging.info(f"Command failed: {e}")
            self.status = str(e)
            return False
        return True
