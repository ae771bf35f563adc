from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

from .dsp import cents_between, midi_to_hz, nearest_midi

NOTE_NAMES: Tuple[str, ...] = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")


@dataclass(frozen=True)
class OpenString:
    number: int
    name: str
    hz: float


# Low to high, string 6 is the thickest.
STANDARD_TUNING: Tuple[OpenString, ...] = (
    OpenString(6, "E", 82.41),
    OpenString(5, "A", 110.00),
    OpenString(4, "D", 146.83),
    OpenString(3, "G", 196.00),
    OpenString(2, "B", 246.94),
    OpenString(1, "E", 329.63),
)


@dataclass(frozen=True)
class NoteMatch:
    name: str
    reference_hz: float
    midi: int
    cents: float
    in_tune_cents: float = 5.0

    @property
    def in_tune(self) -> bool:
        return abs(self.cents) < self.in_tune_cents

    @property
    def octave(self) -> int:
        return self.midi // 12 - 1


def match_note(hz: float, in_tune_cents: float = 5.0) -> NoteMatch:
    """Snap a frequency to the nearest equal-tempered note (A4 = 440 Hz)."""
    if hz <= 0 or not math.isfinite(hz):
        raise ValueError(f"frequency must be positive, got {hz}")
    midi = nearest_midi(hz)
    reference_hz = midi_to_hz(midi)
    return NoteMatch(
        name=NOTE_NAMES[midi % 12],
        reference_hz=reference_hz,
        midi=midi,
        cents=cents_between(hz, reference_hz),
        in_tune_cents=in_tune_cents,
    )


def nearest_string(hz: float, tuning: Sequence[OpenString] = STANDARD_TUNING) -> Tuple[OpenString, float]:
    if hz <= 0:
        raise ValueError(f"frequency must be positive, got {hz}")
    if not tuning:
        raise ValueError("tuning has no strings")
    best = min(tuning, key=lambda string: abs(cents_between(hz, string.hz)))
    return best, cents_between(hz, best.hz)
