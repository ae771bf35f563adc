from __future__ import annotations

import logging
import queue
import time
from typing import Optional

import numpy as np

from .config import AudioConfig
from .errors import AudioDeviceError
from .pitch import AudioFrame
from .synth import Envelope, ToneMixer

logger = logging.getLogger(__name__)


class AudioSession:
    """The one audio device handle shared by the tuner and the metronome.

    Only one stream, input or output, may be open at a time; whoever opens
    it owns the device until ``close``.
    """

    def __init__(self, config: Optional[AudioConfig] = None, backend=None, tone_duration_s: float = 0.05):
        self.config = config or AudioConfig()
        self._backend = backend
        self.tone_duration_s = tone_duration_s
        self.mixer: Optional[ToneMixer] = None
        self._stream = None
        self._mode: Optional[str] = None
        self._frames: "queue.Queue[np.ndarray]" = queue.Queue()
        self.dropped_frames = 0

    @property
    def mode(self) -> Optional[str]:
        return self._mode

    @property
    def backend(self):
        if self._backend is None:
            try:
                import sounddevice
            except OSError as exc:
                raise AudioDeviceError(f"PortAudio indisponivel: {exc}") from exc
            self._backend = sounddevice
        return self._backend

    def open_output(self) -> None:
        self._claim()
        mixer = self.mixer = ToneMixer(self.config.sample_rate, self.tone_duration_s)

        def callback(outdata: np.ndarray, frames: int, time_info, status) -> None:
            if status:
                logger.debug("Output status: %s", status)
            block = mixer.render(frames)
            outdata[:] = block.reshape(-1, 1)

        self._open(
            "OutputStream",
            channels=1,
            samplerate=self.config.sample_rate,
            dtype="float32",
            callback=callback,
        )

    def open_input(self) -> None:
        self._claim()
        self._frames = queue.Queue()
        self.dropped_frames = 0

        def callback(indata: np.ndarray, frames: int, time_info, status) -> None:
            if status:
                logger.debug("Input status: %s", status)
                return
            self._frames.put(indata[:, 0].copy())

        self._open(
            "InputStream",
            channels=self.config.channels,
            samplerate=self.config.sample_rate,
            blocksize=self.config.block_size,
            dtype="float32",
            callback=callback,
        )

    def close(self, drain: bool = True, timeout_s: float = 0.5) -> None:
        if self._stream is None:
            return
        if drain and self._mode == "output" and self.mixer is not None:
            deadline = time.monotonic() + timeout_s
            while self.mixer.pending and time.monotonic() < deadline:
                time.sleep(0.01)
        stream, mode = self._stream, self._mode
        self._stream = None
        self._mode = None
        try:
            stream.stop()
            stream.close()
        except self._errors() as exc:
            logger.warning("Error closing %s stream: %s", mode, exc)
        logger.info("Audio %s closed", mode)

    def current_time(self) -> float:
        if self.mixer is None:
            raise AudioDeviceError("Saida de audio nao esta aberta")
        return self.mixer.time_s

    def schedule_tone(self, hz: float, start_s: float, envelope: Envelope) -> None:
        if self.mixer is None:
            raise AudioDeviceError("Saida de audio nao esta aberta")
        self.mixer.schedule_tone(hz, start_s, envelope)

    def latest_frame(self) -> Optional[AudioFrame]:
        latest = None
        while True:
            try:
                block = self._frames.get_nowait()
            except queue.Empty:
                break
            if latest is not None:
                self.dropped_frames += 1
            latest = block
        if latest is None:
            return None
        return AudioFrame(samples=latest, sample_rate=self.config.sample_rate)

    def _claim(self) -> None:
        if self._stream is not None:
            raise AudioDeviceError(f"Dispositivo de audio ocupado ({self._mode})")
        self._backend = self.backend

    def _open(self, kind: str, **kwargs) -> None:
        mode = "output" if kind == "OutputStream" else "input"
        backend = self.backend
        errors = self._errors()
        stream = None
        try:
            stream = getattr(backend, kind)(**kwargs)
            stream.start()
        except errors as exc:
            if stream is not None:
                stream.close()
            self.mixer = None
            raise AudioDeviceError(f"Nao consegui abrir o audio ({mode}): {exc}") from exc
        self._stream = stream
        self._mode = mode
        logger.info("Audio %s opened: %sHz", mode, self.config.sample_rate)

    def _errors(self):
        port_audio_error = getattr(self.backend, "PortAudioError", None)
        if isinstance(port_audio_error, type) and issubclass(port_audio_error, Exception):
            return (port_audio_error, OSError)
        return (OSError,)
