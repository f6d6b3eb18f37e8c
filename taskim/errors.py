class TaskimError(Exception):
    """Base class for errors surfaced to the user in the footer."""


class UnknownCommandError(TaskimError):
    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Unknown command: {command}. Type ':help' for available commands.")


class ConfigError(TaskimError):
    pass
