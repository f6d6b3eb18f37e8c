"""
Configuration for taskim.

The config lives in ~/.config/taskim/config.yaml (or wherever TASKIM_CONFIG
points). A default file is written on first run; user values are merged over
DEFAULT_CONFIG so a partial file only needs the keys it changes.
"""
import copy
import logging
import os
from pathlib import Path

import yaml

from .errors import ConfigError

CONFIG_DIR = Path.home() / ".config" / "taskim"
CONFIG_FILE = Path(os.environ.get("TASKIM_CONFIG", CONFIG_DIR / "config.yaml"))

DEFAULT_KEYBINDINGS = {
    # navigation
    "move_left": "h",
    "move_down": "j",
    "move_up": "k",
    "move_right": "l",
    "next_week": "w",
    "prev_week": "b",
    "next_month": "L",
    "prev_month": "H",
    "next_year": "G",
    "prev_year": "gg",
    "first_day_of_month": "0",
    "last_day_of_month": "$",
    "go_to_today": "t",
    # task operations
    "insert_edit": "i",
    "insert_below": "o",
    "insert_above": "O",
    "delete": "x",
    "delete_line": "dd",
    "toggle_complete": "c",
    "yank": "y",
    "paste": "p",
    "paste_above": "P",
    "move_task_next_day": ">",
    "move_task_prev_day": "<",
    "undo": "u",
    "redo": "ctrl+r",
    # app control
    "command": ":",
    "scramble": "s",
    "quit": "q",
    "quit_alt": "esc",
    "force_quit": "ctrl+c",
    # task edit popup
    "save_task": "enter",
    "cancel_edit": "esc",
    "switch_field": "tab",
    "backspace": "backspace",
}

DEFAULT_COLORS = {
    "default_fg": "white",
    "default_bg": "default",
    "title": "cyan",
    "today": "yellow",
    "selected_day": "cyan",
    "selected_task_fg": "black",
    "selected_task_bg": "yellow",
    "completed_task_fg": "green",
    "other_month": "blue",
    "error": "red",
}

DEFAULT_CONFIG = {
    "data_file": str(Path.home() / ".local" / "share" / "taskim" / "task_manager_data.json"),
    "log_file": "/tmp/taskim.log",
    "undo_depth": 50,
    "show_keybinds": True,
    "keybindings": DEFAULT_KEYBINDINGS,
    "colors": DEFAULT_COLORS,
}

NAMED_KEYS = {
    "enter": (10, 13, 343),
    "esc": (27,),
    "tab": (9,),
    "backspace": (8, 127, 263),
    "space": (32,),
    "left": (260,),
    "right": (261,),
    "up": (259,),
    "down": (258,),
}


def merge_config(user_config: dict) -> dict:
    config = copy.deepcopy(DEFAULT_CONFIG)
    for key, value in (user_config or {}).items():
        if isinstance(config.get(key), dict) and isinstance(value, dict):
            config[key].update(value)
        else:
            config[key] = value
    return config


def load_config(config_file: Path = CONFIG_FILE) -> dict:
    config_file = Path(config_file)
    if config_file.exists():
        try:
            with config_file.open("r", encoding="utf-8") as f:
                user_config = yaml.safe_load(f) or {}
            if not isinstance(user_config, dict):
                raise ConfigError(f"expected a mapping, got {type(user_config).__name__}")
            return merge_config(user_config)
        except Exception as e:
            logging.error(f"Error loading config file {config_file}: {e}")
            return merge_config({})
    try:
        config_file.parent.mkdir(parents=True, exist_ok=True)
        with config_file.open("w", encoding="utf-8") as f:
            yaml.dump(DEFAULT_CONFIG, f, indent=2, sort_keys=False)
        logging.info(f"Default config file created at {config_file}")
    except Exception as e:
        logging.error(f"Error creating default config file: {e}")
    return merge_config({})


def setup_logging(config: dict):
    # load_config may already have logged to the default stderr handler
    logging.basicConfig(filename=config["log_file"], level=logging.DEBUG,
                        format='%(asctime)s [%(levelname)s] %(message)s', force=True)


def parse_key(spec) -> tuple:
    """Turn a key string from the config into a tuple of alternative key codes
    or, for two-character sequences such as "gg", a tuple of single codes to
    be pressed in turn (see ``is_sequence``)."""
    if not isinstance(spec, str) or not spec:
        raise ConfigError(f"Invalid key binding: {spec!r}")
    lowered = spec.lower()
    if lowered in NAMED_KEYS:
        return NAMED_KEYS[lowered]
    if lowered.startswith("ctrl+") and len(spec) == 6:
        letter = lowered[-1]
        if not "a" <= letter <= "z":
            raise ConfigError(f"Invalid key binding: {spec!r}")
        return (ord(letter) - ord("a") + 1,)
    if len(spec) == 1:
        return (ord(spec),)
    if len(spec) == 2:
        return (ord(spec[0]), ord(spec[1]))
    raise ConfigError(f"Invalid key binding: {spec!r}")


def is_sequence(spec: str) -> bool:
    return isinstance(spec, str) and len(spec) == 2 and spec.lower() not in NAMED_KEYS \
        and not spec.lower().startswith("ctrl+")


def key_label(spec: str) -> str:
    lowered = spec.lower()
    if lowered.startswith("ctrl+"):
        return "Ctrl+" + lowered[-1]
    if lowered in NAMED_KEYS:
        return lowered.capitalize()
    return spec
