"""
The ':' command language.

Besides the named commands in COMMANDS, a command can be a navigation
target: a year (2025), a full date (06/15/2025 or 2025-06-15) or a day of the
viewed month (15).
"""
import logging
import re
from datetime import date
from typing import Optional

from .calendar_grid import clamp_day, days_in_month
from .errors import UnknownCommandError

MIN_YEAR = 1900
MAX_YEAR = 2050

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$", re.ASCII)
US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", re.ASCII)


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    if not 1 <= month <= 12 or not 1 <= day <= days_in_month(year, month):
        return None
    return date(year, month, day)


def parse_date_command(text: str, view_date: date, selected_date: date) -> Optional[date]:
    text = text.strip()
    if text.isdecimal() and text.isascii():
        number = int(text)
        if len(text) == 4 and MIN_YEAR <= number <= MAX_YEAR:
            return clamp_day(number, view_date.month, selected_date.day)
        if 1 <= number <= 31 and number <= days_in_month(view_date.year, view_date.month):
            return date(view_date.year, view_date.month, number)
        return None
    m = US_DATE_RE.match(text)
    if m:
        month, day, year = (int(g) for g in m.groups())
        return _build_date(year, month, day)
    m = ISO_DATE_RE.match(text)
    if m:
        year, month, day = (int(g) for g in m.groups())
        return _build_date(year, month, day)
    return None


def _quit(app):
    app.should_exit = True


def _save_and_quit(app):
    app.save()
    app.should_exit = True


def _toggle_help(app):
    app.show_help = not app.show_help


def _set_keybinds(visible):
    def handler(app):
        app.show_keybinds = visible
    return handler


def _set_wrap(enabled):
    def handler(app):
        app.month_view.set_wrap(enabled)
    return handler


def _today(app):
    app.go_to_today()


COMMANDS = {
    "q": ("Quit the application.", _quit),
    "quit": ("Quit the application.", _quit),
    "q!": ("Quit without saving.", _quit),
    "quit!": ("Quit without saving.", _quit),
    "wq": ("Save and quit.", _save_and_quit),
    "x": ("Save and quit.", _save_and_quit),
    "help": ("Toggle this help.", _toggle_help),
    "seekeys": ("Show keybindings bar.", _set_keybinds(True)),
    "set seekeys": ("Show keybindings bar.", _set_keybinds(True)),
    "nokeys": ("Hide keybindings bar.", _set_keybinds(False)),
    "set nokeys": ("Hide keybindings bar.", _set_keybinds(False)),
    "wrap": ("Enable text wrapping.", _set_wrap(True)),
    "set wrap": ("Enable text wrapping.", _set_wrap(True)),
    "nowrap": ("Disable text wrapping.", _set_wrap(False)),
    "set nowrap": ("Disable text wrapping.", _set_wrap(False)),
    "today": ("Jump to today.", _today),
}

DATE_COMMAND_HELP = [
    ("YYYY", "Jump to a year, keeping month and day (e.g. 2025)."),
    ("MM/DD/YYYY", "Jump to a date (e.g. 06/15/2025)."),
    ("YYYY-MM-DD", "Jump to a date (e.g. 2025-06-15)."),
    ("DD", "Jump to a day in the current month (e.g. 15)."),
]


def execute_command(app, text: str):
    """Run one command line against ``app``.

    Raises UnknownCommandError for anything that is neither a named command
    nor a valid date target; the app is left untouched in that case.
    """
    command = " ".join(text.strip().lstrip(":").split())
    if not command:
        return
    if command in COMMANDS:
        logging.debug(f"Running command '{command}'")
        COMMANDS[command][1](app)
        return
    target = parse_date_command(command, app.month_view.current_date, app.selected_date())
    if target is None:
        raise UnknownCommandError(command)
    logging.debug(f"Command '{command}' navigates to {target}")
    app.month_view.navigate_to_date(target)
