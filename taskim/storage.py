"""
JSON persistence for the task collection.

File layout: ``{"events": [task, ...]}`` with timestamps written as
``YYYY-MM-DDTHH:MM:SS`` local time.
"""
import json
import logging
import os
import tempfile
from pathlib import Path

from .task import TaskData


class JsonStorage:
    def __init__(self, data_file: Path):
        self.data_file = Path(data_file).expanduser()

    def load(self) -> TaskData:
        if not self.data_file.exists():
            logging.info(f"No data file at {self.data_file}, starting empty")
            return TaskData()
        try:
            with self.data_file.open("r", encoding="utf-8") as f:
                raw = json.load(f)
            data = TaskData.from_dict(raw)
            for d in sorted({t.day for t in data.events}):
                data.normalize(d)
        except Exception as e:
            logging.error(f"Error reading data file {self.data_file}: {e}")
            return TaskData()
        logging.info(f"Loaded {len(data)} tasks from {self.data_file}")
        return data

    def save(self, data: TaskData):
        """Write ``data`` atomically. Raises OSError on failure."""
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=".taskim-", suffix=".json", dir=str(self.data_file.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data.to_dict(), f, indent=2)
            os.replace(tmp_path, self.data_file)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
