from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List

import numpy as np


@dataclass(frozen=True)
class Envelope:
    attack_s: float = 0.001
    decay_s: float = 0.05
    peak: float = 1.0
    floor: float = 0.001

    def __post_init__(self):
        if self.peak <= 0 or self.floor <= 0:
            raise ValueError(f"envelope gains must be positive, got peak={self.peak} floor={self.floor}")

    def gain(self, t: np.ndarray) -> np.ndarray:
        """Exponential rise to ``peak`` then exponential fall to ``floor``.

        ``decay_s`` is measured from the onset, not from the end of the attack.
        """
        t = np.asarray(t, dtype=np.float64)
        out = np.full(t.shape, self.floor, dtype=np.float64)
        ratio = self.peak / self.floor

        rising = (t >= 0) & (t < self.attack_s)
        if self.attack_s > 0:
            out[rising] = self.floor * ratio ** (t[rising] / self.attack_s)

        fall_s = self.decay_s - self.attack_s
        falling = (t >= self.attack_s) & (t < self.decay_s)
        if fall_s > 0:
            out[falling] = self.peak * (1.0 / ratio) ** ((t[falling] - self.attack_s) / fall_s)
        return out


@dataclass(frozen=True)
class Tone:
    hz: float
    start_s: float
    duration_s: float
    envelope: Envelope


def render_tone(tone: Tone, sample_rate: int) -> np.ndarray:
    count = max(int(round(tone.duration_s * sample_rate)), 0)
    t = np.arange(count, dtype=np.float64) / sample_rate
    wave = np.sin(2.0 * np.pi * tone.hz * t) * tone.envelope.gain(t)
    return wave.astype(np.float32)


@dataclass
class _Voice:
    start_sample: int
    samples: np.ndarray

    @property
    def end_sample(self) -> int:
        return self.start_sample + self.samples.size


class ToneMixer:
    """Sample-accurate tone scheduler behind an output stream.

    ``time_s`` counts rendered samples, so it only moves when the device
    asks for audio and every scheduled tone lands on an exact sample.
    """

    def __init__(self, sample_rate: int, tone_duration_s: float = 0.05):
        self.sample_rate = sample_rate
        self.tone_duration_s = tone_duration_s
        self._position = 0
        self._voices: List[_Voice] = []
        self._lock = threading.Lock()

    @property
    def time_s(self) -> float:
        with self._lock:
            return self._position / self.sample_rate

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._voices)

    def schedule(self, tone: Tone) -> None:
        samples = render_tone(tone, self.sample_rate)
        if samples.size == 0:
            return
        start_sample = int(round(tone.start_s * self.sample_rate))
        with self._lock:
            # late tones play right away instead of being cut
            start_sample = max(start_sample, self._position)
            self._voices.append(_Voice(start_sample, samples))

    def schedule_tone(self, hz: float, start_s: float, envelope: Envelope) -> None:
        self.schedule(Tone(hz, start_s, self.tone_duration_s, envelope))

    def render(self, frames: int) -> np.ndarray:
        block = np.zeros(frames, dtype=np.float32)
        with self._lock:
            begin = self._position
            end = begin + frames
            alive: List[_Voice] = []
            for voice in self._voices:
                lo = max(voice.start_sample, begin)
                hi = min(voice.end_sample, end)
                if hi > lo:
                    block[lo - begin:hi - begin] += voice.samples[lo - voice.start_sample:hi - voice.start_sample]
                if voice.end_sample > end:
                    alive.append(voice)
            self._voices = alive
            self._position = end
        np.clip(block, -1.0, 1.0, out=block)
        return block
