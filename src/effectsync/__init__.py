from .errors import ApplyError, EffectSyncError, FetchError, SchemaMismatchError
from .machine import (
    LoadPreset,
    Retry,
    SavePreset,
    SetConfig,
    SetEffectConfig,
    UIState,
    transition,
)
from .models import (
    ControllerConfig,
    DisplayState,
    EffectDescriptor,
    Preset,
    Segment,
    SegmentEffectState,
)
from .patch import apply_patch
from .schema import FieldDescriptor, PropertySchema, derive_fields
from .ui.value_parser import InputControl, InputKind, display_value, input_kind, parse_input

__all__ = [
    "ApplyError",
    "ControllerConfig",
    "DisplayState",
    "EffectDescriptor",
    "EffectSyncError",
    "FetchError",
    "FieldDescriptor",
    "InputControl",
    "InputKind",
    "LoadPreset",
    "Preset",
    "PropertySchema",
    "Retry",
    "SavePreset",
    "SchemaMismatchError",
    "Segment",
    "SegmentEffectState",
    "SetConfig",
    "SetEffectConfig",
    "UIState",
    "apply_patch",
    "derive_fields",
    "display_value",
    "input_kind",
    "parse_input",
    "transition",
]
