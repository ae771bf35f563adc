class AfinadorError(Exception):
    pass


class InvalidTempoError(AfinadorError, ValueError):
    """Tempo request outside the supported BPM range."""


class AudioDeviceError(AfinadorError):
    """Microphone or speaker could not be acquired."""
