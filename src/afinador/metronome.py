from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from .config import MetronomeConfig
from .synth import Envelope

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BeatEvent:
    beat_index: int
    time_s: float
    is_downbeat: bool


class AudioOutput(Protocol):
    def current_time(self) -> float: ...

    def schedule_tone(self, hz: float, start_s: float, envelope: Envelope) -> None: ...


class BeatListener(Protocol):
    def on_beat(self, beat_index: int) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class ThreadTimer:
    """Coarse one-shot timers on daemon threads. Not used for audio timing."""

    def call_later(self, delay_s: float, fn: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(max(delay_s, 0.0), fn)
        timer.daemon = True
        timer.start()
        return timer


class BeatScheduler:
    """Lookahead metronome.

    A coarse maintenance tick (every ``tick_interval_s``) commits every beat
    due within ``lookahead_s`` to the audio output at its exact audio-clock
    time. The tick may run late; the committed times never drift because
    they are accumulated from the audio clock, not from the tick.
    """

    def __init__(
        self,
        output: AudioOutput,
        listener: Optional[BeatListener] = None,
        config: Optional[MetronomeConfig] = None,
        timer=None,
    ):
        self.output = output
        self.listener = listener
        self.config = config or MetronomeConfig()
        self.timer = timer or ThreadTimer()
        self.envelope = Envelope(
            attack_s=self.config.attack_s,
            decay_s=self.config.tone_s,
            peak=self.config.peak_gain,
            floor=self.config.floor_gain,
        )
        self._bpm = float(self.config.bpm)
        self._running = False
        self._next_event_time = 0.0
        self._current_beat = 0
        self._pending: Optional[TimerHandle] = None
        self._generation = 0
        self._lock = threading.RLock()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def bpm(self) -> float:
        return self._bpm

    @property
    def current_beat(self) -> int:
        return self._current_beat

    @property
    def next_event_time(self) -> float:
        return self._next_event_time

    def set_tempo(self, bpm: float) -> None:
        if bpm <= 0:
            raise ValueError(f"bpm must be positive, got {bpm}")
        with self._lock:
            self._bpm = float(bpm)
        logger.debug("Tempo set to %s bpm", bpm)

    def start(self, bpm: Optional[float] = None) -> None:
        with self._lock:
            if self._running:
                return
            if bpm is not None:
                self.set_tempo(bpm)
            self._current_beat = 0
            self._next_event_time = self.output.current_time()
            self._running = True
            self._generation += 1
            generation = self._generation
        logger.info("Metronome started at %s bpm", self._bpm)
        self._run_tick(generation)

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._current_beat = 0
            self._next_event_time = 0.0
            pending, self._pending = self._pending, None
        if pending is not None:
            pending.cancel()
        logger.info("Metronome stopped")

    def tick(self) -> List[BeatEvent]:
        """Commit every beat that falls inside the lookahead window."""
        events: List[BeatEvent] = []
        with self._lock:
            if not self._running:
                return events
            horizon = self.output.current_time() + self.config.lookahead_s
            while self._next_event_time < horizon:
                event = BeatEvent(
                    beat_index=self._current_beat,
                    time_s=self._next_event_time,
                    is_downbeat=self._current_beat == 0,
                )
                self._schedule_beat(event)
                events.append(event)
                self._next_event_time += 60.0 / self._bpm
                self._current_beat = (self._current_beat + 1) % self.config.beats_per_bar
        return events

    def _run_tick(self, generation: int) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Metronome tick failed")
        with self._lock:
            if self._running and generation == self._generation:
                self._pending = self.timer.call_later(
                    self.config.tick_interval_s, lambda: self._run_tick(generation)
                )

    def _schedule_beat(self, event: BeatEvent) -> None:
        hz = self.config.downbeat_hz if event.is_downbeat else self.config.beat_hz
        self.output.schedule_tone(hz, event.time_s, self.envelope)
        if self.listener is None:
            return
        delay_s = max(0.0, event.time_s - self.output.current_time())
        self.timer.call_later(delay_s, lambda: self._notify(event.beat_index))

    def _notify(self, beat_index: int) -> None:
        try:
            self.listener.on_beat(beat_index)
        except Exception:
            logger.exception("Beat listener failed on beat %d", beat_index)
