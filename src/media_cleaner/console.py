"""Interactive console used by the cleanup command."""

from __future__ import annotations

import sys
from typing import Callable, Iterable, Sequence, TextIO, TypeVar

from colorama import Fore, Style
from tqdm import tqdm

from .exceptions import InvalidSelectionError
from .media.locations import LOCATION_CHOICES, SearchLocation, parse_location_selection

T = TypeVar("T")

SELECTION_QUESTION = "Indicate the locations to search, separated by commas (e.g., 1,2,3,6):"


class ConsolePrompter:
    """Print status lines, ask questions and draw progress bars.

    ``assume_yes`` answers every confirmation with yes, for unattended runs.
    """

    def __init__(
        self,
        *,
        assume_yes: bool = False,
        show_progress: bool = True,
        input_func: Callable[[str], str] | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self._assume_yes = assume_yes
        self._show_progress = show_progress
        self._input = input_func or input
        self._stream = stream or sys.stdout

    def line(self, message: str = "") -> None:
        print(message, file=self._stream, flush=True)

    def success(self, message: str) -> None:
        self.line(f"{Fore.GREEN}Success:{Style.RESET_ALL} {message}")

    def warning(self, message: str) -> None:
        self.line(f"{Fore.YELLOW}Warning:{Style.RESET_ALL} {message}")

    def confirm(self, question: str) -> bool:
        if self._assume_yes:
            self.line(f"{question} [y/n] y")
            return True
        answer = self._input(f"{question} [y/n] ")
        return answer.strip().lower() in ("y", "yes")

    def show_legend(self) -> None:
        self.line("\nBefore we scan, please specify where we should look for media usage.")
        self.line("This helps to ensure we don't accidentally mark a file as 'unused'.")
        self.line("\n--- Search Locations Legend ---")
        for number, choice in LOCATION_CHOICES.items():
            self.line(f"[{number}] {choice.label}")
        self.line("-------------------------------")

    def select_locations(self) -> list[SearchLocation]:
        """Ask until the operator enters a valid selection."""
        self.show_legend()
        while True:
            raw = self._input(f"{SELECTION_QUESTION} ")
            try:
                return parse_location_selection(raw)
            except InvalidSelectionError as exc:
                self.warning(str(exc))

    def progress(self, items: Sequence[T], description: str) -> Iterable[T]:
        return tqdm(items, desc=description, total=len(items), disable=not self._show_progress)


__all__ = ["ConsolePrompter", "SELECTION_QUESTION"]
