"""
Tasks and the flat task collection.

Tasks live in one insertion-ordered list. Per-day ordering is carried by each
task's ``order`` field and is only ever read back through ``tasks_for_day``;
there are no nested per-day lists to keep in sync.
"""
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_DURATION = timedelta(hours=1)


def new_id() -> str:
    return str(uuid.uuid4())


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    # Older data files were written in UTC with a trailing "Z"
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed.replace(microsecond=0)


@dataclass
class TaskComment:
    id: str
    text: str

    def to_dict(self) -> dict:
        return {"id": self.id, "text": self.text}

    @classmethod
    def from_dict(cls, raw: dict) -> "TaskComment":
        return cls(id=str(raw.get("id") or new_id()), text=str(raw.get("text", "")))


@dataclass
class Task:
    id: str
    title: str
    start: datetime
    end: datetime
    comments: List[TaskComment] = field(default_factory=list)
    completed: bool = False
    order: int = 0

    @classmethod
    def new(cls, title: str, start: datetime) -> "Task":
        return cls(id=new_id(), title=title, start=start, end=start + DEFAULT_DURATION)

    @property
    def day(self) -> date:
        return self.start.date()

    def is_on_date(self, d: date) -> bool:
        return self.start.date() == d

    def add_comment(self, text: str):
        self.comments.append(TaskComment(id=new_id(), text=text))

    @property
    def content(self) -> str:
        return self.comments[0].text if self.comments else ""

    def moved_to(self, new_date: date) -> "Task":
        """Copy of this task on ``new_date`` with the same time of day and duration."""
        duration = self.end - self.start
        start = datetime.combine(new_date, self.start.time())
        return Task(id=self.id, title=self.title, start=start, end=start + duration,
                    comments=[TaskComment(c.id, c.text) for c in self.comments],
                    completed=self.completed, order=self.order)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "start": format_timestamp(self.start),
            "end": format_timestamp(self.end),
            "comments": [c.to_dict() for c in self.comments],
            "completed": self.completed,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> "Task":
        start = parse_timestamp(raw["start"])
        end = parse_timestamp(raw["end"]) if raw.get("end") else start + DEFAULT_DURATION
        if end < start:
            end = start
        return cls(
            id=str(raw.get("id") or new_id()),
            title=str(raw.get("title", "")),
            start=start,
            end=end,
            comments=[TaskComment.from_dict(c) for c in raw.get("comments") or []],
            completed=bool(raw.get("completed", False)),
            order=max(0, int(raw.get("order", 0))),
        )


class TaskData:
    def __init__(self, events: Optional[List[Task]] = None):
        self.events: List[Task] = list(events) if events else []

    def __eq__(self, other):
        if not isinstance(other, TaskData):
            return NotImplemented
        return self.events == other.events

    def __len__(self):
        return len(self.events)

    # -----------------------------------------------------------------
    # lookups
    # -----------------------------------------------------------------
    def find(self, task_id: str) -> Optional[Task]:
        for task in self.events:
            if task.id == task_id:
                return task
        return None

    def index_of(self, task_id: str) -> Optional[int]:
        for idx, task in enumerate(self.events):
            if task.id == task_id:
                return idx
        return None

    def tasks_for_day(self, d: date) -> List[Task]:
        return sorted((t for t in self.events if t.is_on_date(d)), key=lambda t: t.order)

    def max_order(self, d: date) -> int:
        return max((t.order for t in self.events if t.is_on_date(d)), default=0)

    def next_order(self, d: date) -> int:
        """Order value that appends a task after everything already on ``d``."""
        if not any(t.is_on_date(d) for t in self.events):
            return 0
        return self.max_order(d) + 1

    # -----------------------------------------------------------------
    # mutations
    # -----------------------------------------------------------------
    def _shift_from(self, d: date, from_order: int, delta: int, skip_id: Optional[str] = None):
        for task in self.events:
            if task.id != skip_id and task.is_on_date(d) and task.order >= from_order:
                task.order += delta

    def insert_at_order(self, task: Task, target_order: int, index: Optional[int] = None):
        target_order = max(0, target_order)
        self._shift_from(task.day, target_order, 1)
        task.order = target_order
        if index is None or not 0 <= index <= len(self.events):
            self.events.append(task)
        else:
            self.events.insert(index, task)

    def remove_and_close_gap(self, task_id: str) -> Optional[Task]:
        idx = self.index_of(task_id)
        if idx is None:
            return None
        removed = self.events.pop(idx)
        self._shift_from(removed.day, removed.order + 1, -1)
        return removed

    def normalize(self, d: date):
        for new_order, task in enumerate(self.tasks_for_day(d)):
            task.order = new_order

    def replace(self, task: Task) -> bool:
        idx = self.index_of(task.id)
        if idx is None:
            return False
        self.events[idx] = task
        return True

    def move_to_date(self, task_id: str, new_date: date, target_order: Optional[int] = None) -> Optional[Task]:
        """Move a task to ``new_date`` keeping its place in ``events``.

        The gap left on the old day is closed. Without ``target_order`` the
        task is appended after the tasks already on ``new_date``.
        """
        idx = self.index_of(task_id)
        if idx is None:
            return None
        task = self.events[idx]
        self._shift_from(task.day, task.order + 1, -1, skip_id=task_id)
        if target_order is None:
            others = [t.order for t in self.events if t.id != task_id and t.is_on_date(new_date)]
            target_order = max(others) + 1 if others else 0
        moved = task.moved_to(new_date)
        self._shift_from(new_date, max(0, target_order), 1, skip_id=task_id)
        moved.order = max(0, target_order)
        self.events[idx] = moved
        return moved

    # -----------------------------------------------------------------
    # serialization
    # -----------------------------------------------------------------
    def to_dict(self) -> dict:
        return {"events": [t.to_dict() for t in self.events]}

    @classmethod
    def from_dict(cls, raw: dict) -> "TaskData":
        return cls([Task.from_dict(e) for e in raw.get("events") or []])
