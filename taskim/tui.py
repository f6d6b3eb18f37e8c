#!/usr/bin/env python3
"""
TASKIM: vim-flavoured month calendar with ordered per-day tasks.

Keys (defaults, see config.yaml to change them):
  h/j/k/l      : move day / step through the day's tasks / move week
  w/b          : next / previous week
  L/H          : next / previous month (keeps the day)
  G/gg         : next / previous year
  0/$          : first / last day of the month
  t            : today
  i            : new task on the selected day, or edit the selected task
  o/O          : new task below / above the selected one
  x, dd        : cut the selected task
  y, p/P       : yank, paste below / above
  >/<          : move the selected task to the next / previous day
  c            : toggle completion
  u / Ctrl+r   : undo / redo
  :            : command line (:help lists commands)
  s            : scramble task titles
  q, Esc       : quit

Dependencies: curses, yaml
"""
import curses
import logging
import os
import sys
from datetime import date

from .app import App
from .calendar_grid import WEEKDAY_NAMES
from .commands import COMMANDS, DATE_COMMAND_HELP
from .config import is_sequence, key_label, load_config, parse_key, setup_logging
from .month_view import DaySelection, TaskSelection
from .storage import JsonStorage

MIN_HEIGHT = 20
MIN_WIDTH = 50

COLOR_NAMES = {
    "default": -1,
    "black": curses.COLOR_BLACK,
    "red": curses.COLOR_RED,
    "green": curses.COLOR_GREEN,
    "yellow": curses.COLOR_YELLOW,
    "blue": curses.COLOR_BLUE,
    "magenta": curses.COLOR_MAGENTA,
    "cyan": curses.COLOR_CYAN,
    "white": curses.COLOR_WHITE,
}

# color pair numbers
PAIR_DEFAULT = 1
PAIR_TITLE = 2
PAIR_TODAY = 3
PAIR_SELECTED_DAY = 4
PAIR_SELECTED_TASK = 5
PAIR_COMPLETED = 6
PAIR_OTHER_MONTH = 7
PAIR_ERROR = 8

# actions that map straight onto an App method
NORMAL_ACTIONS = {
    "move_left": "move_left",
    "move_down": "move_down",
    "move_up": "move_up",
    "move_right": "move_right",
    "next_week": "next_week",
    "prev_week": "prev_week",
    "next_month": "next_month",
    "prev_month": "prev_month",
    "next_year": "next_year",
    "prev_year": "prev_year",
    "first_day_of_month": "first_day_of_month",
    "last_day_of_month": "last_day_of_month",
    "go_to_today": "go_to_today",
    "insert_edit": "begin_insert",
    "insert_below": "begin_insert_below",
    "insert_above": "begin_insert_above",
    "delete": "delete_selected",
    "delete_line": "delete_selected",
    "toggle_complete": "toggle_complete",
    "yank": "yank",
    "paste": "paste_below",
    "paste_above": "paste_above",
    "undo": "undo",
    "redo": "redo",
}

FOOTER_KEYS = [
    ("move_left", "hjkl", "Move"),
    ("insert_edit", None, "Insert/Edit"),
    ("delete", None, "Delete"),
    ("undo", None, "Undo"),
    ("redo", None, "Redo"),
    ("toggle_complete", None, "Toggle Complete"),
    ("next_month", None, "Month"),
    ("next_year", None, "Year"),
    ("command", None, "Command"),
    ("quit", None, "Quit"),
]


def scramble_text(text: str, enabled: bool) -> str:
    """Replace every visible character with a stable pseudo-random digit."""
    if not enabled:
        return text
    return "".join(ch if ch.isspace() else str(((i * 31 + ord(ch)) * 17) % 10)
                   for i, ch in enumerate(text))


def wrap_text(text: str, width: int):
    if width <= 0:
        return [text]
    return [text[i:i + width] for i in range(0, len(text), width)] or [""]


def build_keymap(keybindings: dict):
    """Split the configured bindings into single keys and two-key sequences."""
    single, sequences = {}, {}
    for action, spec in keybindings.items():
        try:
            codes = parse_key(spec)
        except Exception as e:
            logging.error(f"Ignoring key binding {action}={spec!r}: {e}")
            continue
        if is_sequence(spec):
            sequences[codes] = action
        else:
            for code in codes:
                single.setdefault(code, action)
    return single, sequences


class TaskimTUI:
    def __init__(self, stdscr, app: App, config: dict):
        self.stdscr = stdscr
        self.app = app
        self.config = config
        self.keybindings = config["keybindings"]
        self.normal_keys, self.sequences = build_keymap(
            {k: v for k, v in self.keybindings.items()
             if k not in ("save_task", "cancel_edit", "switch_field", "backspace")})
        self.edit_keys, _ = build_keymap(
            {k: self.keybindings[k] for k in ("save_task", "cancel_edit", "switch_field", "backspace")})
        self.pending_key = None
        self.command_input = None  # text after ':' while the command line is open
        curses.raw()
        curses.curs_set(0)
        self.init_colors()

    def init_colors(self):
        curses.start_color()
        curses.use_default_colors()
        colors = self.config["colors"]

        def c(name):
            return COLOR_NAMES.get(str(colors.get(name, "default")).lower(), -1)

        curses.init_pair(PAIR_DEFAULT, c("default_fg"), c("default_bg"))
        curses.init_pair(PAIR_TITLE, c("title"), -1)
        curses.init_pair(PAIR_TODAY, c("today"), -1)
        curses.init_pair(PAIR_SELECTED_DAY, curses.COLOR_BLACK, c("selected_day"))
        curses.init_pair(PAIR_SELECTED_TASK, c("selected_task_fg"), c("selected_task_bg"))
        curses.init_pair(PAIR_COMPLETED, c("completed_task_fg"), -1)
        curses.init_pair(PAIR_OTHER_MONTH, c("other_month"), -1)
        curses.init_pair(PAIR_ERROR, c("error"), -1)

    # -----------------------------------------------------------------
    # main loop
    # -----------------------------------------------------------------
    def run(self):
        while not self.app.should_exit:
            self.stdscr.erase()
            height, width = self.stdscr.getmaxyx()
            if height < MIN_HEIGHT or width < MIN_WIDTH:
                self.display_minimum_size_warning(height, width)
            else:
                self.draw(height, width)
            self.stdscr.refresh()
            key = self.stdscr.getch()
            if key == curses.KEY_RESIZE:
                continue
            self.handle_key(key)

    def handle_key(self, key: int):
        if self.app.edit_state is not None:
            self.handle_edit_key(key)
        elif self.command_input is not None:
            self.handle_command_key(key)
        else:
            self.app.status = ""
            self.handle_normal_key(key)

    def handle_normal_key(self, key: int):
        if self.pending_key is not None:
            action = self.sequences.get((self.pending_key, key))
            self.pending_key = None
            if action:
                self.dispatch(action)
                return
        action = self.normal_keys.get(key)
        if action:
            self.dispatch(action)
        elif any(seq[0] == key for seq in self.sequences):
            self.pending_key = key

    def dispatch(self, action: str):
        if action in ("quit", "quit_alt", "force_quit"):
            self.app.should_exit = True
        elif action == "command":
            self.command_input = ""
        elif action == "scramble":
            self.app.scramble_mode = not self.app.scramble_mode
        elif action == "move_task_next_day":
            self.app.move_selected_task(1)
        elif action == "move_task_prev_day":
            self.app.move_selected_task(-1)
        elif action in NORMAL_ACTIONS:
            getattr(self.app, NORMAL_ACTIONS[action])()

    def handle_edit_key(self, key: int):
        state = self.app.edit_state
        action = self.edit_keys.get(key)
        if action == "cancel_edit":
            self.app.cancel_edit()
        elif action == "save_task":
            self.app.commit_edit()
        elif action == "switch_field":
            state.switch_field()
        elif action == "backspace":
            state.remove_char()
        elif 32 <= key <= 126:
            state.add_char(chr(key))

    def handle_command_key(self, key: int):
        if key == 27:
            self.command_input = None
            self.app.show_help = False
        elif key in (10, 13, curses.KEY_ENTER):
            text = self.command_input.strip().lstrip(":").strip()
            if text == "help":
                self.app.show_help = not self.app.show_help
                self.command_input = ""
                return
            self.command_input = None
            self.app.show_help = False
            if text:
                self.app.execute_command(text)
        elif key in (8, 127, curses.KEY_BACKSPACE):
            self.command_input = self.command_input[:-1]
            self.app.show_help = False
        elif 32 <= key <= 126:
            self.command_input += chr(key)
            self.app.show_help = False

    # -----------------------------------------------------------------
    # drawing
    # -----------------------------------------------------------------
    def addstr(self, y, x, text, attr=curses.A_NORMAL, limit=None):
        height, width = self.stdscr.getmaxyx()
        if y < 0 or y >= height or x >= width:
            return
        n = width - x if limit is None else min(limit, width - x)
        if n <= 0:
            return
        try:
            self.stdscr.addnstr(y, x, text, n, attr)
        except curses.error:
            pass

    def display_minimum_size_warning(self, height, width):
        warning = "Terminal too small. Resize or press 'q' to quit."
        self.addstr(height // 2, max(0, (width - len(warning)) // 2), warning, curses.A_BOLD)

    def footer_height(self):
        if self.command_input is not None and self.app.show_help:
            return len(COMMANDS) // 2 + len(DATE_COMMAND_HELP) + 2
        return 2

    def draw(self, height, width):
        footer_h = self.footer_height()
        self.draw_month(0, 0, height - footer_h, width)
        self.draw_footer(height - footer_h, width, footer_h)
        if self.app.edit_state is not None:
            # flush the grid first so the popup window stays on top
            self.stdscr.refresh()
            self.draw_edit_popup(height, width)

    def draw_month(self, top, left, height, width):
        view = self.app.month_view
        title = view.current_date.strftime("%B %Y")
        self.addstr(top, left + max(0, (width - len(title)) // 2), title,
                    curses.color_pair(PAIR_TITLE) | curses.A_BOLD)
        cell_w = max(6, width // 7)
        for idx, name in enumerate(WEEKDAY_NAMES):
            self.addstr(top + 1, left + idx * cell_w, name.center(cell_w), curses.A_BOLD, cell_w)
        rows = len(view.weeks)
        cell_h = max(2, (height - 2) // rows)
        selection = view.resolve(self.app.data)
        today = self.app.clock().date()
        for r, week in enumerate(view.weeks):
            for c, day in enumerate(week):
                self.draw_cell(top + 2 + r * cell_h, left + c * cell_w, cell_h, cell_w,
                               day, selection, today)

    def draw_cell(self, y, x, h, w, day: date, selection, today: date):
        view = self.app.month_view
        if isinstance(selection, DaySelection) and selection.date == day:
            attr = curses.color_pair(PAIR_SELECTED_DAY) | curses.A_BOLD
        elif day == today:
            attr = curses.color_pair(PAIR_TODAY) | curses.A_BOLD
        elif not view.in_view_month(day):
            attr = curses.color_pair(PAIR_OTHER_MONTH)
        else:
            attr = curses.color_pair(PAIR_DEFAULT)
        self.addstr(y, x, f"{day.day:>2}".ljust(w - 1), attr, w - 1)

        lines = []
        text_w = max(1, w - 3)
        for task in self.app.data.tasks_for_day(day):
            title = scramble_text(task.title, self.app.scramble_mode)
            chunks = wrap_text(title, text_w) if view.wrap_enabled else [title[:text_w]]
            task_attr = curses.A_NORMAL
            if task.completed:
                task_attr = curses.color_pair(PAIR_COMPLETED) | curses.A_DIM
            if isinstance(selection, TaskSelection) and selection.task_id == task.id:
                task_attr = curses.color_pair(PAIR_SELECTED_TASK) | curses.A_BOLD
            mark = "x" if task.completed else "-"
            for n, chunk in enumerate(chunks):
                lines.append(((mark + " " if n == 0 else "  ") + chunk, task_attr))
        available = h - 1
        if len(lines) > available and available > 0:
            lines = lines[:available - 1] + [(f"+{len(lines) - available + 1} more", curses.A_DIM)]
        for n, (text, task_attr) in enumerate(lines[:max(0, available)]):
            self.addstr(y + 1 + n, x, text, task_attr, w - 1)

    def draw_footer(self, y, width, footer_h):
        app = self.app
        if self.command_input is not None:
            if app.show_help:
                self.draw_command_help(y, width)
            self.addstr(y + footer_h - 1, 0, ":" + self.command_input)
            try:
                curses.curs_set(1)
                self.stdscr.move(y + footer_h - 1, min(width - 1, 1 + len(self.command_input)))
            except curses.error:
                pass
            return
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        if app.status:
            self.addstr(y, 0, app.status, curses.color_pair(PAIR_ERROR) | curses.A_BOLD)
        if app.edit_state is not None:
            self.addstr(y + 1, 0, "Tab: Switch field | Enter: Save | Esc: Cancel")
        elif app.show_keybinds:
            self.addstr(y + 1, 0, self.keybind_bar())

    def keybind_bar(self) -> str:
        parts = []
        for action, label, description in FOOTER_KEYS:
            if action == "undo" and not self.app.undo_stack.can_undo():
                continue
            if action == "redo" and not self.app.undo_stack.can_redo():
                continue
            key = label or key_label(self.keybindings.get(action, "?"))
            if action == "next_month":
                key = f"{key}/{key_label(self.keybindings['prev_month'])}"
            elif action == "next_year":
                key = f"{key}/{key_label(self.keybindings['prev_year'])}"
            parts.append(f"{key}: {description}")
        return " | ".join(parts)

    def draw_command_help(self, y, width):
        self.addstr(y, 0, "Date navigation:", curses.color_pair(PAIR_TITLE) | curses.A_BOLD)
        row = y + 1
        for pattern, description in DATE_COMMAND_HELP:
            self.addstr(row, 2, f"{pattern:<12} {description}")
            row += 1
        seen = set()
        pairs = []
        for name, (description, _) in COMMANDS.items():
            if description in seen:
                continue
            seen.add(description)
            pairs.append(f":{name} - {description}")
        for idx in range(0, len(pairs), 2):
            self.addstr(row, 2, " | ".join(pairs[idx:idx + 2]))
            row += 1

    def draw_edit_popup(self, height, width):
        state = self.app.edit_state
        popup_h = min(12, height - 2)
        popup_w = min(70, width - 4)
        start_y = (height - popup_h) // 2
        start_x = (width - popup_w) // 2
        win = curses.newwin(popup_h, popup_w, start_y, start_x)
        try:
            win.border()
        except curses.error:
            pass
        title = " New Task " if state.is_new_task else " Edit Task "
        try:
            win.addstr(0, (popup_w - len(title)) // 2, title, curses.A_BOLD)
            win.addstr(1, 2, state.date.strftime("%A %Y-%m-%d"), curses.A_DIM)
        except curses.error:
            pass
        fields = [("Title", state.title, "title"), ("Content", state.content, "content")]
        row = 3
        for label, value, name in fields:
            active = state.editing_field == name
            attr = curses.color_pair(PAIR_TITLE) | curses.A_BOLD if active else curses.A_NORMAL
            try:
                win.addstr(row, 2, f"{label}:", attr)
            except curses.error:
                pass
            lines = wrap_text(value, popup_w - 6) if name == "content" else [value[-(popup_w - 6):]]
            for n, line in enumerate(lines[:popup_h - row - 3]):
                try:
                    win.addstr(row + 1 + n, 4, line, curses.A_REVERSE if active else curses.A_NORMAL)
                except curses.error:
                    pass
            row += 2 + (len(lines) if name == "content" else 1)
        try:
            win.addstr(popup_h - 2, 2, "Tab: Switch field | Enter: Save | Esc: Cancel", curses.A_DIM)
        except curses.error:
            pass
        win.refresh()


# ---------------------------------------------------------------------
# MAIN FUNCTION
# ---------------------------------------------------------------------
def main():
    config = load_config()
    setup_logging(config)
    storage = JsonStorage(config["data_file"])
    app = App(storage, undo_depth=int(config.get("undo_depth", 50)),
              show_keybinds=bool(config.get("show_keybinds", True)))

    def run(stdscr):
        TaskimTUI(stdscr, app, config).run()

    # Esc delay in milliseconds
    os.environ.setdefault("ESCDELAY", "25")
    try:
        curses.wrapper(run)
    except Exception as e:
        logging.critical(f"Unhandled exception: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
