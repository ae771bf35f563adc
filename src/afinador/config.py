from dataclasses import dataclass

from .errors import InvalidTempoError

MIN_BPM = 40
MAX_BPM = 218


@dataclass
class AudioConfig:
    sample_rate: int = 44100
    block_size: int = 2048
    channels: int = 1


@dataclass
class TunerConfig:
    noise_gate_rms: float = 0.01
    trim_threshold: float = 0.2
    in_tune_cents: float = 5.0


@dataclass
class MetronomeConfig:
    bpm: int = 120
    beats_per_bar: int = 4
    tick_interval_s: float = 0.025
    lookahead_s: float = 0.1
    downbeat_hz: float = 1000.0
    beat_hz: float = 800.0
    tone_s: float = 0.05
    attack_s: float = 0.001
    peak_gain: float = 1.0
    floor_gain: float = 0.001


def validate_bpm(bpm: int) -> int:
    if isinstance(bpm, bool) or not isinstance(bpm, int):
        raise InvalidTempoError(f"BPM precisa ser inteiro, recebi {bpm!r}")
    if bpm < MIN_BPM or bpm > MAX_BPM:
        raise InvalidTempoError(f"BPM fora da faixa {MIN_BPM}-{MAX_BPM}: {bpm}")
    return bpm
