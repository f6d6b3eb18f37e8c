"""
Undo/redo history.

Operations carry full task snapshots (never deltas) and are frozen once
built, so replaying them in either direction needs no other state.
"""
from collections import deque
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from .task import Task

DEFAULT_MAX_SIZE = 50


@dataclass(frozen=True)
class CreateTask:
    task: Task

    @property
    def description(self) -> str:
        return f"Create '{self.task.title}'"


@dataclass(frozen=True)
class DeleteTask:
    task: Task
    index: Optional[int] = None  # position in the collection before removal

    @property
    def description(self) -> str:
        return f"Delete '{self.task.title}'"


@dataclass(frozen=True)
class EditTask:
    task_id: str
    old_task: Task
    new_task: Task

    @property
    def description(self) -> str:
        return f"Edit '{self.old_task.title}'"


@dataclass(frozen=True)
class MoveTask:
    task_id: str
    old_date: date
    new_date: date
    old_order: int
    new_order: int

    @property
    def description(self) -> str:
        return f"Move task {self.old_date.isoformat()} -> {self.new_date.isoformat()}"


Operation = Union[CreateTask, DeleteTask, EditTask, MoveTask]


class UndoStack:
    def __init__(self, max_size: int = DEFAULT_MAX_SIZE):
        if max_size < 1:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self.max_size = max_size
        # deque(maxlen) drops from the left, i.e. the oldest entry
        self.undo_operations = deque(maxlen=max_size)
        self.redo_operations = deque(maxlen=max_size)

    def push(self, operation: Operation):
        self.undo_operations.append(operation)
        self.redo_operations.clear()

    def undo(self) -> Optional[Operation]:
        if not self.undo_operations:
            return None
        operation = self.undo_operations.pop()
        self.redo_operations.append(operation)
        return operation

    def redo(self) -> Optional[Operation]:
        if not self.redo_operations:
            return None
        operation = self.redo_operations.pop()
        self.undo_operations.append(operation)
        return operation

    def can_undo(self) -> bool:
        return bool(self.undo_operations)

    def can_redo(self) -> bool:
        return bool(self.redo_operations)

    def is_empty(self) -> bool:
        return not self.undo_operations and not self.redo_operations

    def clear(self):
        self.undo_operations.clear()
        self.redo_operations.clear()

    def __len__(self):
        return len(self.undo_operations) + len(self.redo_operations)
