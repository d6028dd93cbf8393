"""Rotating example-question suggestions."""

from __future__ import annotations

from dataclasses import dataclass, replace

DEFAULT_INTERVAL = 5.0  # seconds between rotations


@dataclass(frozen=True)
class SuggestionRotator:
    """Cycles through example questions; the UI advances it on a timer."""

    questions: tuple[str, ...] = ()
    index: int = 0

    @property
    def current(self) -> str:
        """The suggestion to display, or an empty string when there are none."""
        if not self.questions:
            return ""
        return self.questions[self.index % len(self.questions)]

    def advance(self) -> SuggestionRotator:
        """Return the rotator moved to the next question, wrapping around."""
        if not self.questions:
            return self
        return replace(self, index=(self.index + 1) % len(self.questions))
