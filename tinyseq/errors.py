# errors.py


class TinySeqError(Exception):
    """Base class for sequencer errors."""


class ValidationError(TinySeqError, ValueError):
    """Malformed sequence or track description."""


class StateError(TinySeqError, RuntimeError):
    """Operation not valid in the sequencer's current state."""
