from __future__ import annotations

import logging
from typing import Optional, Protocol

from .audio import AudioSession
from .config import TunerConfig
from .notes import NoteMatch, match_note
from .pitch import AudioFrame, PitchDetector

logger = logging.getLogger(__name__)


class PitchListener(Protocol):
    def on_pitch(self, name: str, hz: float, cents: float) -> None: ...


class Tuner:
    def __init__(
        self,
        session: AudioSession,
        listener: Optional[PitchListener] = None,
        config: Optional[TunerConfig] = None,
        detector: Optional[PitchDetector] = None,
    ):
        self.session = session
        self.listener = listener
        self.config = config or TunerConfig()
        self.detector = detector or PitchDetector(
            noise_gate_rms=self.config.noise_gate_rms,
            trim_threshold=self.config.trim_threshold,
        )
        self.running = False
        self.last_match: Optional[NoteMatch] = None

    def start(self) -> None:
        if self.running:
            return
        self.session.open_input()
        self.running = True
        self.last_match = None
        logger.info("Tuner started")

    def stop(self) -> None:
        if not self.running:
            return
        self.running = False
        self.session.close()
        self.last_match = None
        logger.info("Tuner stopped")

    def poll(self) -> Optional[NoteMatch]:
        if not self.running:
            return None
        frame = self.session.latest_frame()
        if frame is None:
            return None
        return self.process_frame(frame)

    def process_frame(self, frame: AudioFrame) -> Optional[NoteMatch]:
        estimate = self.detector.detect(frame)
        if not estimate.valid:
            return None
        match = match_note(estimate.hz, self.config.in_tune_cents)
        self.last_match = match
        if self.listener is not None:
            self.listener.on_pitch(match.name, estimate.hz, match.cents)
        return match
