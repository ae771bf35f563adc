from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .dsp import rms


@dataclass(frozen=True)
class AudioFrame:
    samples: np.ndarray
    sample_rate: int

    def __len__(self) -> int:
        return int(self.samples.size)


@dataclass
class PitchEstimate:
    hz: Optional[float]

    @property
    def valid(self) -> bool:
        return self.hz is not None


NO_PITCH = PitchEstimate(None)


class PitchDetector:
    """Monophonic pitch detection by time-domain autocorrelation.

    The lag of the strongest autocorrelation peak after the initial
    downward slope is taken as the period, refined to sub-sample
    precision with a parabola through its neighbours.
    """

    def __init__(self, noise_gate_rms: float = 0.01, trim_threshold: float = 0.2):
        self.noise_gate_rms = noise_gate_rms
        self.trim_threshold = trim_threshold

    def detect(self, frame: AudioFrame) -> PitchEstimate:
        x = np.asarray(frame.samples, dtype=np.float64).ravel()
        if x.size == 0 or frame.sample_rate <= 0:
            return NO_PITCH
        if rms(x) < self.noise_gate_rms:
            return NO_PITCH

        x = self._trim(x)
        size = x.size
        if size < 3 or not np.any(x):
            return NO_PITCH

        # c[i] = sum_j x[j] * x[j + i], in-range products only
        corr = np.correlate(x, x, mode="full")[size - 1:]

        rising = np.nonzero(corr[:-1] <= corr[1:])[0]
        if rising.size == 0:
            return NO_PITCH
        start = int(rising[0])

        t0 = float(start + int(np.argmax(corr[start:])))
        lag = int(t0)
        if 0 < lag < size - 1:
            x1, x2, x3 = corr[lag - 1], corr[lag], corr[lag + 1]
            a = (x1 + x3 - 2.0 * x2) / 2.0
            b = (x3 - x1) / 2.0
            if a != 0:
                t0 = t0 - b / (2.0 * a)

        if t0 <= 0 or not math.isfinite(t0):
            return NO_PITCH
        hz = frame.sample_rate / t0
        if not math.isfinite(hz):
            return NO_PITCH
        return PitchEstimate(float(hz))

    def _trim(self, x: np.ndarray) -> np.ndarray:
        size = x.size
        half = (size + 1) // 2
        quiet = np.abs(x) < self.trim_threshold

        r1 = 0
        head = np.nonzero(quiet[:half])[0]
        if head.size:
            r1 = int(head[0])

        r2 = size - 1
        # backwards from the last sample, stopping short of the midpoint
        tail = np.nonzero(quiet[size - 1:size - half:-1])[0]
        if tail.size:
            r2 = size - 1 - int(tail[0])
        return x[r1:r2]
