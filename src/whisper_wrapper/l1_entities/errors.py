"""Domain error types."""


class WhisperWrapperError(Exception):
    """Base class for every error raised by the binding layer."""


class InvalidArgumentError(WhisperWrapperError, TypeError):
    """Raised for missing or malformed caller input, before any engine call."""


class NoAudioError(InvalidArgumentError):
    """Raised when neither an audio buffer nor an input file was supplied."""


class HandleFreedError(WhisperWrapperError):
    """Raised when transcribing with a handle whose context was already released."""


class EngineError(WhisperWrapperError):
    """Raised when the whisper.cpp engine reports a failure."""


class EngineInitError(EngineError):
    """Raised when the engine cannot load a model."""


class DecodeError(EngineError):
    """Raised when the decoding pass returns a non-zero status."""


class AudioReadError(EngineError):
    """Raised when an input audio file cannot be read or decodes to nothing."""


class BindingLoadError(WhisperWrapperError):
    """Raised when no native whisper binding can be located or imported."""


class ModelResolutionError(Exception):
    """Raised when a whisper model cannot be resolved to a local path."""
