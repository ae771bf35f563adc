"""Pytest configuration and fixtures for afinador tests."""

import logging
from types import SimpleNamespace

import numpy as np
import pytest

from afinador.audio import AudioSession
from afinador.config import AudioConfig
from afinador.pitch import AudioFrame


logging.basicConfig(level=logging.INFO)


@pytest.fixture
def sine_frame():
    """Build a mono sine AudioFrame."""

    def make(hz=440.0, sample_rate=44100, size=2048, amplitude=0.8, phase=0.0):
        t = np.arange(size) / sample_rate
        samples = (amplitude * np.sin(2 * np.pi * hz * t + phase)).astype(np.float32)
        return AudioFrame(samples=samples, sample_rate=sample_rate)

    return make


class FakeOutput:
    """Audio output with a hand-driven clock that records scheduled tones."""

    def __init__(self, now=0.0):
        self.now = now
        self.tones = []

    def current_time(self):
        return self.now

    def schedule_tone(self, hz, start_s, envelope):
        self.tones.append((hz, start_s, envelope))


class FakeHandle:
    def __init__(self, delay_s, fn):
        self.delay_s = delay_s
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimer:
    """Collects call_later requests so tests decide when they fire."""

    def __init__(self):
        self.calls = []

    def call_later(self, delay_s, fn):
        handle = FakeHandle(delay_s, fn)
        self.calls.append(handle)
        return handle

    def pop_all(self):
        calls, self.calls = self.calls, []
        return calls


class FakeStream:
    def __init__(self, fail_on_start=False, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs.get("callback")
        self.fail_on_start = fail_on_start
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self):
        if self.fail_on_start:
            raise FakePortAudioError("device unavailable")
        self.started = True

    def stop(self):
        self.stopped = True

    def close(self):
        self.closed = True


class FakePortAudioError(Exception):
    pass


@pytest.fixture
def fake_output():
    return FakeOutput()


@pytest.fixture
def fake_timer():
    return FakeTimer()


@pytest.fixture
def fake_backend():
    """Stand-in for the sounddevice module, keeping every stream it opens."""
    streams = []

    def make_stream(**kwargs):
        stream = FakeStream(**kwargs)
        streams.append(stream)
        return stream

    return SimpleNamespace(
        InputStream=make_stream,
        OutputStream=make_stream,
        PortAudioError=FakePortAudioError,
        streams=streams,
    )


@pytest.fixture
def failing_backend():
    def make_stream(**kwargs):
        raise FakePortAudioError("no default device")

    return SimpleNamespace(
        InputStream=make_stream,
        OutputStream=make_stream,
        PortAudioError=FakePortAudioError,
    )


@pytest.fixture
def session(fake_backend):
    return AudioSession(AudioConfig(sample_rate=44100, block_size=2048), backend=fake_backend)


@pytest.fixture
def stalling_backend():
    """Backend whose streams are created but refuse to start."""
    streams = []

    def make_stream(**kwargs):
        stream = FakeStream(fail_on_start=True, **kwargs)
        streams.append(stream)
        return stream

    return SimpleNamespace(
        InputStream=make_stream,
        OutputStream=make_stream,
        PortAudioError=FakePortAudioError,
        streams=streams,
    )
