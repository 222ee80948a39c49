from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, Future
from typing import Any

from effectsync.models import (
    DisplayState,
    EffectDescriptor,
    InitialData,
    Preset,
    Segment,
    SegmentEffectState,
)

SPEED_SCHEMA = {
    "type": "object",
    "properties": {"speed": {"type": "number"}, "on": {"type": "boolean"}},
}


def sample_data() -> InitialData:
    """Two effects, one segment running ``lights`` and a ``dim`` preset."""
    lights = EffectDescriptor(
        "lights",
        {
            "type": "object",
            "properties": {
                "brightness": {"type": "number"},
                "count": {"type": "integer"},
                "label": {"type": "string"},
            },
        },
        {"brightness": 0.5, "count": 3, "label": "hall"},
    )
    spin = EffectDescriptor("spin", SPEED_SCHEMA, {"speed": 0.12345, "on": True})
    return InitialData(
        effects={"lights": lights, "spin": spin},
        segments=(Segment(0, 75), Segment(75, 75)),
        presets={
            "dim": Preset(
                "dim",
                DisplayState((SegmentEffectState(0, "spin"),)),
                {"spin": {"speed": 0.01, "on": False}},
            )
        },
        state=DisplayState((SegmentEffectState(0, "lights"), SegmentEffectState(1, "spin"))),
    )


class ManualExecutor(Executor):
    """Executor that only runs submitted work when a test asks it to."""

    def __init__(self) -> None:
        self.jobs: list[tuple[Future[Any], Callable[[], Any]]] = []

    def submit(self, fn, /, *args, **kwargs):  # type: ignore[override]
        future: Future[Any] = Future()
        self.jobs.append((future, lambda: fn(*args, **kwargs)))
        return future

    def run(self, index: int = 0) -> None:
        future, job = self.jobs.pop(index)
        try:
            result = job()
        except BaseException as exc:  # pragma: no cover - surfaced to the test
            future.set_exception(exc)
        else:
            future.set_result(result)

    def run_all(self) -> None:
        while self.jobs:
            self.run(0)
