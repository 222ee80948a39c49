class EffectSyncError(Exception):
    """Base class for effectsync errors."""


class SchemaMismatchError(EffectSyncError):
    """Describes a config value without a usable schema property.

    The field introspector never raises this; it only uses the message to
    annotate the affected field.
    """

    def __init__(self, field: str) -> None:
        super().__init__(f"no usable schema for field {field!r}")
        self.field = field


class FetchError(EffectSyncError):
    """Raised when the initial data load fails."""


class ApplyError(EffectSyncError):
    """Raised when applying a preset or config to the data source fails."""


class PayloadError(EffectSyncError, ValueError):
    """Raised when a data source returns a malformed payload."""


class StoreError(EffectSyncError):
    """Raised when the local store cannot be read or written."""


class UnknownMessageError(EffectSyncError, TypeError):
    """Raised when the state machine receives an unrecognised message."""
