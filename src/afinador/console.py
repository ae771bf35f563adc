from __future__ import annotations

import sys
from typing import Optional, TextIO

from .notes import nearest_string


class ConsoleNotifier:
    def __init__(self, beats_per_bar: int = 4, in_tune_cents: float = 5.0, stream: Optional[TextIO] = None):
        self.beats_per_bar = beats_per_bar
        self.in_tune_cents = in_tune_cents
        self.stream = stream or sys.stdout

    def on_pitch(self, name: str, hz: float, cents: float) -> None:
        string, string_cents = nearest_string(hz)
        mark = "  afinado" if abs(cents) < self.in_tune_cents else ""
        self._write(
            f"{name:<2} {hz:7.1f} Hz  {cents:+5.1f} cents"
            f"  (corda {string.number} {string.name}: {string_cents:+6.1f}){mark}"
        )

    def on_beat(self, beat_index: int) -> None:
        dots = ["o"] * self.beats_per_bar
        dots[beat_index] = "X" if beat_index == 0 else "x"
        self._write(" ".join(dots))

    def _write(self, line: str) -> None:
        self.stream.write(line + "\n")
        self.stream.flush()
