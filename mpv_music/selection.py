"""
Selection capability — how the core asks the user to pick.

The query resolver only needs something with a ``select()`` method; the
fuzzy finder used by the interactive front-end lives elsewhere. The CLI
falls back to ``PromptSelector``, a plain numbered prompt on stdin.
"""

from __future__ import annotations

import sys
from typing import Callable, List, Protocol, TextIO

from .models import Candidate, SelectionResult


class Selector(Protocol):
    def select(self, candidates: List[Candidate], allow_multi: bool = False) -> SelectionResult:
        ...


class PromptSelector:
    """Numbered list on ``out``; reads the choice with ``read``. Empty input or 'q' aborts."""

    def __init__(
        self,
        prompt: str = "Pick > ",
        read: Callable[[str], str] = input,
        out: TextIO = sys.stdout,
    ) -> None:
        self.prompt = prompt
        self._read = read
        self._out = out

    def select(self, candidates: List[Candidate], allow_multi: bool = False) -> SelectionResult:
        if not candidates:
            return SelectionResult.abort()

        for i, c in enumerate(candidates, start=1):
            suffix = f"  ({c.preview})" if c.preview else ""
            print(f"  {i:>3}) {c.display}{suffix}", file=self._out)

        try:
            raw = self._read(self.prompt).strip()
        except (EOFError, KeyboardInterrupt):
            return SelectionResult.abort()
        if not raw or raw.lower() == "q":
            return SelectionResult.abort()

        picks = raw.replace(",", " ").split() if allow_multi else [raw]
        chosen: List[str] = []
        for p in picks:
            if not p.isdigit() or not 1 <= int(p) <= len(candidates):
                print(f"Invalid choice: {p}", file=self._out)
                return SelectionResult.abort()
            value = candidates[int(p) - 1].value
            if value not in chosen:
                chosen.append(value)
        return SelectionResult(chosen=chosen)
