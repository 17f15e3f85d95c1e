"""Whitelisted command dispatcher for authenticated termsh sessions."""

import logging
from datetime import datetime
from typing import Callable

from .exceptions import SecurityViolation
from .sandbox import Sandbox


logger = logging.getLogger(__name__)

HELP_TEXT = """Available commands:
  help            Show this help
  echo [text...]  Print the arguments
  time            Show the current server time
  pwd             Show the working directory
  ls              List entries in the working directory
  touch <file>    Create an empty file
  cat <file>      Show the contents of a file
  exit | quit     Close the session
Use double quotes for arguments containing spaces."""

EMPTY_LISTING = "(empty)"

Handler = Callable[[list[str]], str]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class Shell:
    """Maps command names to handlers.

    Each call to execute() is independent; the shell keeps no state between
    commands beyond the sandbox it was built with. execute() never raises:
    any failure comes back as text starting with "ERROR:".
    """

    def __init__(self, sandbox: Sandbox, clock: Callable[[], datetime] = _local_now):
        """Initialize the shell.

        Args:
            sandbox: Sandbox every file command resolves names through
            clock: Returns the current timezone-aware time (for `time`)
        """
        self.sandbox = sandbox
        self._clock = clock
        self._handlers: dict[str, Handler] = {
            "help": self.cmd_help,
            "echo": self.cmd_echo,
            "time": self.cmd_time,
            "pwd": self.cmd_pwd,
            "ls": self.cmd_ls,
            "touch": self.cmd_touch,
            "cat": self.cmd_cat,
        }

    @property
    def commands(self) -> list[str]:
        """Names of all whitelisted commands."""
        return list(self._handlers)

    def execute(self, argv: list[str]) -> str:
        """Run one tokenized command line.

        Args:
            argv: Tokens, argv[0] being the command name (any case)

        Returns:
            Result text (possibly multi-line, possibly empty)
        """
        if not argv:
            return ""

        name = argv[0].lower()
        handler = self._handlers.get(name)
        if handler is None:
            return f"Unknown command: {argv[0]}. Type 'help' to see available commands."

        try:
            return handler(argv[1:])
        except SecurityViolation as e:
            logger.warning(f"Blocked '{name}': {e}")
            return f"ERROR: {e}"
        except Exception as e:
            logger.warning(f"Command '{name}' failed: {e}")
            return f"ERROR: {e}"

    def cmd_help(self, args: list[str]) -> str:
        return HELP_TEXT

    def cmd_echo(self, args: list[str]) -> str:
        return " ".join(args)

    def cmd_time(self, args: list[str]) -> str:
        return self._clock().isoformat(timespec="seconds")

    def cmd_pwd(self, args: list[str]) -> str:
        return str(self.sandbox.work_dir)

    def cmd_ls(self, args: list[str]) -> str:
        entries = sorted(self.sandbox.work_dir.iterdir(), key=lambda p: p.name)
        if not entries:
            return EMPTY_LISTING
        return "\n".join(
            f"{entry.name}/" if entry.is_dir() else entry.name
            for entry in entries
        )

    def cmd_touch(self, args: list[str]) -> str:
        if len(args) != 1:
            return "Usage: touch <filename>"

        name = args[0]
        path = self.sandbox.resolve(name)
        try:
            path.touch(exist_ok=False)
        except FileExistsError:
            return f"File already exists: {name}"
        return f"Created: {name}"

    def cmd_cat(self, args: list[str]) -> str:
        if len(args) != 1:
            return "Usage: cat <filename>"

        name = args[0]
        path = self.sandbox.resolve(name)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return f"No such file: {name}"
        except IsADirectoryError:
            return f"Is a directory: {name}"
        return data.decode("utf-8")
