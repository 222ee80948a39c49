"""User interface helpers for effectsync.

This package contains the framework agnostic editor core, the settings
form model and the value coercion used by every front-end.  The command
line in :mod:`effectsync.cli` is the bundled front-end.
"""

from __future__ import annotations

__all__ = ["core", "labels", "settings_form", "value_parser"]
