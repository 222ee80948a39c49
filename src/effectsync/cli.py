from __future__ import annotations

import argparse
import json
import math
import sys
from pathlib import Path
from typing import Any

from .config import Settings, configure_logging, load_settings
from .errors import StoreError
from .paths import settings_file, user_config_dir, user_data_dir
from .store import FileStoreService
from .ui.core import GENERIC_ERROR, AppCore, AppState
from .ui.labels import pretty_name
from .ui.value_parser import InputControl, InputKind


def _settings(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    if args.store is not None:
        settings = Settings(store=args.store, workers=settings.workers, timeout=settings.timeout)
    return settings


def _store(args: argparse.Namespace) -> FileStoreService:
    return FileStoreService(_settings(args).store)


def _wait(core: AppCore, settings: Settings) -> AppState | None:
    """Wait for in-flight requests and return the state if it is ready."""
    if not core.wait_idle(settings.timeout):
        print("timed out waiting for the store", file=sys.stderr)
        return None
    snap = core.snapshot()
    if not snap.ready:
        print(GENERIC_ERROR, file=sys.stderr)
        return None
    return snap


def _open_core(args: argparse.Namespace) -> tuple[AppCore, Settings] | None:
    settings = _settings(args)
    try:
        store = FileStoreService(settings.store)
    except StoreError as exc:
        print(str(exc), file=sys.stderr)
        return None
    core = AppCore(store, workers=settings.workers)
    core.start()
    if _wait(core, settings) is None:
        core.close()
        return None
    return core, settings


def _finish(core: AppCore, settings: Settings) -> int:
    try:
        return 0 if _wait(core, settings) is not None else 1
    finally:
        core.close()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def show_paths(args: argparse.Namespace) -> int:
    data = {
        "user_config": user_config_dir(),
        "user_data": user_data_dir(),
        "settings": settings_file(),
        "store": _settings(args).store,
    }
    if args.as_json:
        print(json.dumps({k: str(v) for k, v in data.items()}))
    else:
        for k, v in data.items():
            print(f"{k}: {v}")
    return 0


def init_cmd(args: argparse.Namespace) -> int:
    try:
        store = _store(args)
        created = store.init(force=args.force)
    except StoreError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if not created:
        print(f"{store.path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    print(str(store.path))
    return 0


def _describe(snap: AppState, segment: int | None, core: AppCore) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for entry in snap.context.state.effects:
        if segment is not None and entry.segment_index != segment:
            continue
        rows = core.rows(entry.segment_index)
        out.append(
            {
                "segment": entry.segment_index,
                "effect": entry.effect,
                "fields": [
                    {
                        "name": r.name,
                        "label": r.label,
                        "kind": r.kind.value,
                        "value": r.display,
                        "disabled": r.disabled,
                    }
                    for r in rows
                ],
            }
        )
    return out


def show_cmd(args: argparse.Namespace) -> int:
    opened = _open_core(args)
    if opened is None:
        return 1
    core, _ = opened
    try:
        snap = core.snapshot()
        data = _describe(snap, args.segment, core)
    finally:
        core.close()
    if args.as_json:
        print(json.dumps(data))
        return 0
    for item in data:
        print(f"segment {item['segment']}: {pretty_name(item['effect'])}")
        if not item["fields"]:
            print("  No config options for this effect.")
        for f in item["fields"]:
            suffix = " [disabled]" if f["disabled"] else ""
            print(f"  {f['label']}: {f['value']}{suffix}")
    return 0


def set_cmd(args: argparse.Namespace) -> int:
    opened = _open_core(args)
    if opened is None:
        return 1
    core, settings = opened
    control = InputControl.from_text(args.value)
    row = next((r for r in core.rows(args.segment) if r.name == args.field), None)
    if row is not None and row.kind is InputKind.NUMERIC and not math.isfinite(control.value_as_number):
        core.close()
        print(f"{args.value!r} is not a number", file=sys.stderr)
        return 2
    if not core.edit_field(args.segment, args.field, control):
        core.close()
        print(f"field {args.field!r} is not editable on segment {args.segment}", file=sys.stderr)
        return 2
    return _finish(core, settings)


def preset_list(args: argparse.Namespace) -> int:
    opened = _open_core(args)
    if opened is None:
        return 1
    core, _ = opened
    try:
        names = sorted(core.snapshot().context.presets)
    finally:
        core.close()
    for name in names:
        print(name)
    return 0


def preset_load(args: argparse.Namespace) -> int:
    opened = _open_core(args)
    if opened is None:
        return 1
    core, settings = opened
    if args.name not in core.snapshot().context.presets:
        core.close()
        print(f"unknown preset {args.name!r}", file=sys.stderr)
        return 2
    core.load_preset(args.name)
    return _finish(core, settings)


def preset_save(args: argparse.Namespace) -> int:
    opened = _open_core(args)
    if opened is None:
        return 1
    core, settings = opened
    core.save_preset(args.name)
    return _finish(core, settings)


def brightness_cmd(args: argparse.Namespace) -> int:
    if not 0.0 <= args.value <= 1.0:
        print("brightness must be between 0 and 1", file=sys.stderr)
        return 2
    opened = _open_core(args)
    if opened is None:
        return 1
    core, settings = opened
    core.set_brightness(args.value)
    return _finish(core, settings)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="effectsync", description="Edit effect configuration of an LED controller."
    )
    parser.add_argument("--store", type=Path, default=None, help="Path of the store file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_paths = subparsers.add_parser("paths", help="Show effectsync paths.")
    p_paths.add_argument("--json", dest="as_json", action="store_true")
    p_paths.set_defaults(func=show_paths)

    p_init = subparsers.add_parser("init", help="Create a store with the built-in effects.")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing store")
    p_init.set_defaults(func=init_cmd)

    p_show = subparsers.add_parser("show", help="Show running effects and their settings.")
    p_show.add_argument("--segment", type=int, default=None)
    p_show.add_argument("--json", dest="as_json", action="store_true")
    p_show.set_defaults(func=show_cmd)

    p_set = subparsers.add_parser("set", help="Set FIELD of the effect on SEGMENT to VALUE.")
    p_set.add_argument("segment", type=int)
    p_set.add_argument("field")
    p_set.add_argument("value")
    p_set.set_defaults(func=set_cmd)

    p_preset = subparsers.add_parser("preset", help="Manage presets.")
    sp_preset = p_preset.add_subparsers(dest="preset_command", required=True)

    p_pre_list = sp_preset.add_parser("list", help="List presets")
    p_pre_list.set_defaults(func=preset_list)

    p_pre_load = sp_preset.add_parser("load", help="Load a preset")
    p_pre_load.add_argument("name")
    p_pre_load.set_defaults(func=preset_load)

    p_pre_save = sp_preset.add_parser("save", help="Save the running state as a preset")
    p_pre_save.add_argument("name")
    p_pre_save.set_defaults(func=preset_save)

    p_bright = subparsers.add_parser("brightness", help="Set the global brightness.")
    p_bright.add_argument("value", type=float)
    p_bright.set_defaults(func=brightness_cmd)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)
    configure_logging(True if args.verbose else None)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 1
    return int(func(args))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
