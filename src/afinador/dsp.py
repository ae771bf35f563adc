import math
from typing import Optional

import numpy as np


def rms(frame: np.ndarray) -> float:
    if frame.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(frame.astype(np.float64) ** 2)))


def hz_to_midi(hz: float) -> Optional[float]:
    if hz <= 0:
        return None
    return 69.0 + 12.0 * math.log2(hz / 440.0)


def midi_to_hz(midi: float) -> float:
    return 440.0 * (2.0 ** ((midi - 69.0) / 12.0))


def cents_between(hz: float, reference_hz: float) -> float:
    return 1200.0 * math.log2(hz / reference_hz)


def nearest_midi(hz: float) -> Optional[int]:
    """Closest MIDI note, halfway points going up (a quarter-tone sharp A is A#)."""
    midi = hz_to_midi(hz)
    if midi is None:
        return None
    return int(math.floor(midi + 0.5))
