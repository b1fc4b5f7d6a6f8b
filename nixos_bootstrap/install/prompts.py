"""Interactive prompts on the controlling terminal.

The tool is meant to work when piped in (curl ... | sh style), so answers are
read from /dev/tty whenever stdin is not a terminal.
"""

from __future__ import annotations

import sys
from typing import IO, Optional, Protocol

from rich.console import Console
from rich.prompt import Prompt
from rich.text import Text


CONFIRMATION_TOKEN = "yes"

INPUT_STYLE = "bold"
WARN_STYLE = "bold yellow"


def is_confirmed(answer: Optional[str]) -> bool:
    """Exact, case-sensitive match against the confirmation token."""
    return answer == CONFIRMATION_TOKEN


class Prompter(Protocol):
    def ask(self, message: str) -> str: ...

    def show(self, *lines: str) -> None: ...

    def warn(self, *lines: str) -> None: ...


class AnswerPrompt(Prompt):
    # Questions already end in ":"
    prompt_suffix = " "


class TerminalPrompter:
    """Prompter bound to a pair of text streams.

    Use TerminalPrompter.open() to get one attached to the controlling
    terminal. Output goes through a rich Console; markup and emoji codes in
    the displayed values are never interpreted.
    """

    def __init__(self, input_stream: IO[str], output_stream: IO[str], color: bool = True):
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.color = color
        self.console = Console(
            file=output_stream,
            color_system="auto" if color else None,
            highlight=False,
            emoji=False,
            markup=False,
            soft_wrap=True,
        )
        self._owned: list[IO[str]] = []

    @classmethod
    def open(cls) -> TerminalPrompter:
        if sys.stdin.isatty():
            return cls(sys.stdin, sys.stdout)
        try:
            tty = open("/dev/tty", "r+", encoding="utf-8")
        except OSError:
            # No controlling terminal at all; fall back to the pipes.
            return cls(sys.stdin, sys.stdout, color=False)
        prompter = cls(tty, tty)
        prompter._owned.append(tty)
        return prompter

    def close(self) -> None:
        for stream in self._owned:
            stream.close()
        self._owned.clear()

    def __enter__(self) -> TerminalPrompter:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def show(self, *lines: str) -> None:
        for line in lines:
            self.console.print(Text(line))

    def warn(self, *lines: str) -> None:
        for line in lines:
            self.console.print(Text.assemble(("[WARN]", WARN_STYLE), "  ", line))

    def ask(self, message: str) -> str:
        """Read one answer, stripped of surrounding whitespace. EOF reads as ""."""
        prompt = Text.assemble(("[INPUT]", INPUT_STYLE), " ", message)
        return AnswerPrompt.ask(prompt, console=self.console, stream=self.input_stream)
