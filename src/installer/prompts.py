"""Interactive prompts on the terminal."""

from __future__ import annotations

import re
from typing import List, Optional, Sequence, TextIO

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt


class ConsolePrompter:
    """Numbered-menu prompts rendered with rich.

    Any object with ``select``, ``multi_select`` and ``confirm`` can stand in
    for this class.

    Args:
        console: Console used for menus and prompts; a fresh one when omitted.
        stream: Optional stream answers are read from instead of stdin.
    """

    def __init__(self, console: Optional[Console] = None, stream: Optional[TextIO] = None):
        self.console = console or Console()
        self.stream = stream

    def _show(self, prompt: str, items: Sequence[str]) -> None:
        self.console.print(prompt, markup=False, highlight=False)
        for number, item in enumerate(items, start=1):
            self.console.print(f"  {number:>3}) {item}", markup=False, highlight=False)

    def select(self, prompt: str, items: Sequence[str], default: int = 0) -> int:
        """Return the 0-based index of the chosen item."""
        self._show(prompt, items)
        answer = Prompt.ask(
            "Choice",
            console=self.console,
            choices=[str(number) for number in range(1, len(items) + 1)],
            show_choices=False,
            default=str(default + 1),
            stream=self.stream,
        )
        return int(answer) - 1

    def multi_select(self, prompt: str, items: Sequence[str]) -> List[int]:
        """Return the 0-based indices of the chosen items (may be empty)."""
        self._show(prompt, items)
        while True:
            answer = Prompt.ask(
                "Numbers separated by commas or spaces (empty for none)",
                console=self.console,
                default="",
                show_default=False,
                stream=self.stream,
            ).strip()
            if not answer:
                return []
            tokens = [t for t in re.split(r"[,\s]+", answer) if t]
            if all(t.isdigit() and 1 <= int(t) <= len(items) for t in tokens):
                chosen = []
                for token in tokens:
                    index = int(token) - 1
                    if index not in chosen:
                        chosen.append(index)
                return chosen
            self.console.print(f"[prompt.invalid]Please enter numbers between 1 and {len(items)}.")

    def confirm(self, prompt: str, default: bool = True) -> bool:
        return Confirm.ask(escape(prompt), console=self.console, default=default, stream=self.stream)
