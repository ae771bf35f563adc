from __future__ import annotations

import logging
from typing import Optional

from .audio import AudioSession
from .config import MAX_BPM, MIN_BPM, AudioConfig, MetronomeConfig, TunerConfig, validate_bpm
from .errors import AudioDeviceError
from .metronome import BeatScheduler
from .tuner import Tuner

logger = logging.getLogger(__name__)


class PracticeApp:
    """Owns the audio session and hands it to one engine at a time."""

    def __init__(
        self,
        listener=None,
        audio_config: Optional[AudioConfig] = None,
        tuner_config: Optional[TunerConfig] = None,
        metronome_config: Optional[MetronomeConfig] = None,
        session: Optional[AudioSession] = None,
        timer=None,
    ):
        self.metronome_config = metronome_config or MetronomeConfig()
        self.session = session or AudioSession(audio_config, tone_duration_s=self.metronome_config.tone_s)
        self.tuner = Tuner(self.session, listener, tuner_config)
        self.metronome = BeatScheduler(self.session, listener, self.metronome_config, timer=timer)
        self.bpm = validate_bpm(self.metronome_config.bpm)

    @property
    def tuner_running(self) -> bool:
        return self.tuner.running

    @property
    def metronome_running(self) -> bool:
        return self.metronome.running

    def toggle_tuner(self) -> bool:
        if self.tuner.running:
            self.tuner.stop()
            return False
        self.stop_metronome()
        try:
            self.tuner.start()
        except AudioDeviceError:
            logger.error("Microphone unavailable", exc_info=True)
            raise
        return True

    def toggle_metronome(self) -> bool:
        if self.metronome.running:
            self.stop_metronome()
            return False
        self.tuner.stop()
        try:
            self.session.open_output()
        except AudioDeviceError:
            logger.error("Audio output unavailable", exc_info=True)
            raise
        self.metronome.start(self.bpm)
        return True

    def stop_metronome(self) -> None:
        if not self.metronome.running:
            return
        self.metronome.stop()
        self.session.close()

    def stop(self) -> None:
        self.tuner.stop()
        self.stop_metronome()

    def set_bpm(self, bpm: int) -> int:
        self.bpm = validate_bpm(bpm)
        self.metronome.set_tempo(self.bpm)
        return self.bpm

    def nudge_bpm(self, step: int) -> int:
        target = self.bpm + step
        if target < MIN_BPM or target > MAX_BPM:
            return self.bpm
        return self.set_bpm(target)
