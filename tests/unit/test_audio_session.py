"""Unit tests for AudioSession using a fake sounddevice backend."""

import numpy as np
import pytest

from afinador.audio import AudioSession
from afinador.errors import AudioDeviceError
from afinador.synth import Envelope


@pytest.mark.unit
class TestAudioOutput:
    def test_open_output(self, session, fake_backend):
        session.open_output()

        stream = fake_backend.streams[0]
        assert session.mode == "output"
        assert stream.started is True
        assert stream.kwargs["samplerate"] == 44100
        assert stream.kwargs["channels"] == 1

    def test_callback_renders_scheduled_tone(self, session, fake_backend):
        session.open_output()
        stream = fake_backend.streams[0]
        session.schedule_tone(1000.0, 0.0, Envelope())

        outdata = np.zeros((256, 1), dtype=np.float32)
        stream.callback(outdata, 256, None, None)

        assert np.any(outdata)
        assert session.current_time() == pytest.approx(256 / 44100)

    def test_clock_requires_open_output(self, session):
        with pytest.raises(AudioDeviceError):
            session.current_time()
        with pytest.raises(AudioDeviceError):
            session.schedule_tone(800.0, 0.0, Envelope())

    def test_close_stops_stream(self, session, fake_backend):
        session.open_output()

        session.close()

        stream = fake_backend.streams[0]
        assert stream.stopped and stream.closed
        assert session.mode is None

    def test_close_waits_for_in_flight_tones(self, session, fake_backend):
        session.open_output()
        session.schedule_tone(1000.0, 0.0, Envelope())
        stream = fake_backend.streams[0]
        stream.callback(np.zeros((44100, 1), dtype=np.float32), 44100, None, None)

        session.close(timeout_s=5.0)

        assert session.mixer.pending == 0
        assert stream.closed

    def test_close_is_idempotent(self, session):
        session.close()
        session.close()

        assert session.mode is None


@pytest.mark.unit
class TestAudioInput:
    def test_open_input(self, session, fake_backend):
        session.open_input()

        stream = fake_backend.streams[0]
        assert session.mode == "input"
        assert stream.kwargs["blocksize"] == 2048

    def test_latest_frame_drops_older_frames(self, session, fake_backend):
        session.open_input()
        callback = fake_backend.streams[0].callback
        for value in (0.1, 0.2, 0.3):
            callback(np.full((2048, 1), value, dtype=np.float32), 2048, None, None)

        frame = session.latest_frame()

        assert frame.sample_rate == 44100
        assert frame.samples.shape == (2048,)
        assert frame.samples[0] == pytest.approx(0.3)
        assert session.dropped_frames == 2
        assert session.latest_frame() is None

    def test_frames_with_status_are_skipped(self, session, fake_backend):
        session.open_input()
        callback = fake_backend.streams[0].callback

        callback(np.ones((2048, 1), dtype=np.float32), 2048, None, "input overflow")

        assert session.latest_frame() is None

    def test_no_frames_yet(self, session):
        session.open_input()

        assert session.latest_frame() is None


@pytest.mark.unit
class TestDeviceOwnership:
    def test_only_one_stream_at_a_time(self, session):
        session.open_output()

        with pytest.raises(AudioDeviceError):
            session.open_input()
        assert session.mode == "output"

    def test_reopen_after_close(self, session, fake_backend):
        session.open_output()
        session.close()

        session.open_input()

        assert session.mode == "input"
        assert len(fake_backend.streams) == 2

    def test_backend_failure_leaves_session_idle(self, failing_backend):
        session = AudioSession(backend=failing_backend)

        with pytest.raises(AudioDeviceError):
            session.open_output()

        assert session.mode is None
        assert session.mixer is None

    def test_start_failure_closes_stream(self, stalling_backend):
        session = AudioSession(backend=stalling_backend)

        with pytest.raises(AudioDeviceError):
            session.open_input()

        assert stalling_backend.streams[0].closed is True
        assert session.mode is None
