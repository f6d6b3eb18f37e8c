"""
Shared fixtures for the taskim tests.
"""
import copy
from datetime import date, datetime, time
from pathlib import Path

import pytest

from taskim.app import App
from taskim.task import Task, TaskData


def make_task(title, day: date, order=0, hour=9, minute=0, task_id=None):
    start = datetime.combine(day, time(hour, minute))
    task = Task.new(title, start)
    if task_id:
        task.id = task_id
    task.order = order
    return task


class FakeStorage:
    """In-memory stand-in for JsonStorage that records every save."""

    def __init__(self, data=None):
        self.data_file = Path("memory.json")
        self.initial = data or TaskData()
        self.load_calls = 0
        self.saved = []

    def load(self):
        self.load_calls += 1
        return copy.deepcopy(self.initial)

    def save(self, data):
        self.saved.append(copy.deepcopy(data))


class FailingStorage(FakeStorage):
    def save(self, data):
        raise OSError("disk full")


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def clock():
    return lambda: datetime(2024, 3, 15, 12, 0)


@pytest.fixture
def app(storage, clock):
    return App(storage, undo_depth=50, clock=clock)
