"""Domain error types."""


class TranscriptionError(Exception):
    """Base class for failures on the decode/transcribe path."""


class DecodeError(TranscriptionError):
    """Raised when an audio blob is not a recognized or parseable container."""


class EmptyInputError(TranscriptionError):
    """Raised when a zero-length buffer reaches the engine. Treated as a skip, not a failure."""


class ModelLoadError(TranscriptionError):
    """Raised when the speech pipeline fails to initialize."""


class ModelResolutionError(ModelLoadError):
    """Raised when a whisper model cannot be resolved to a local path."""


class InferenceError(TranscriptionError):
    """Raised when the model throws while transcribing one window."""


class AudioDeviceError(Exception):
    """Raised when the input device cannot be opened."""
