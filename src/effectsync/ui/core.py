"""Framework agnostic editor core.

The :mod:`effectsync.ui.core` module drives one instance of the
reconciliation state machine.  It knows nothing about any widget toolkit;
it owns the current ``(UIState, Context)`` pair, runs the requests the
machine emits on a thread pool and feeds their results back in as messages.
Interested parties are notified through a tiny callback based event system.

Messages are processed one at a time.  :meth:`AppCore.send` may be called
from any thread, including from callbacks fired while another message is
being handled; such messages are queued and handled in order by whichever
thread is already draining the queue.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any

from ..errors import ApplyError, FetchError, UnknownMessageError
from ..machine import (
    ApplyControllerConfig,
    ApplyEffectConfig,
    ApplyFailed,
    ApplyPreset,
    Context,
    ControllerConfigApplied,
    EffectConfigApplied,
    FetchInitialData,
    InitialDataFailed,
    InitialDataLoaded,
    LoadPreset,
    Message,
    PresetApplied,
    PresetSaved,
    Request,
    Retry,
    SavePreset,
    SavePresetRequest,
    SetConfig,
    SetEffectConfig,
    UIState,
    is_message,
    start,
    transition,
)
from ..service import EffectsService
from .settings_form import FieldRow, SettingsForm
from .value_parser import Control

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong"

# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppState:
    """Read-only snapshot handed to the view layer."""

    ui: UIState
    context: Context

    @property
    def ready(self) -> bool:
        return self.ui is UIState.READY


# ---------------------------------------------------------------------------
# Event handling
# ---------------------------------------------------------------------------


class EventBus:
    """Simple callback based pub/sub system."""

    def __init__(self) -> None:
        self.on_state_changed: list[Callable[[AppState], None]] = []
        self.on_error: list[Callable[[str], None]] = []
        self.on_progress: list[Callable[[bool], None]] = []

    # Emit helpers -----------------------------------------------------
    def emit_state(self, state: AppState) -> None:
        for cb in list(self.on_state_changed):
            cb(state)

    def emit_error(self, msg: str) -> None:
        for cb in list(self.on_error):
            cb(msg)

    def emit_progress(self, started: bool) -> None:
        for cb in list(self.on_progress):
            cb(started)


# ---------------------------------------------------------------------------
# Request execution
# ---------------------------------------------------------------------------


def _as_error(kind: type[Exception], exc: BaseException) -> BaseException:
    if isinstance(exc, kind):
        return exc
    err = kind(str(exc) or type(exc).__name__)
    err.__cause__ = exc
    return err


def perform(service: EffectsService, request: Request) -> Message:
    """Run *request* against *service* and return the result message.

    Failures are turned into failure messages instead of being raised.
    """
    try:
        if isinstance(request, FetchInitialData):
            return InitialDataLoaded(request.seq, service.fetch_initial_data())
        if isinstance(request, ApplyPreset):
            state = service.apply_preset(request.name)
            return PresetApplied(request.seq, request.name, state)
        if isinstance(request, ApplyEffectConfig):
            service.apply_effect_config(request.effect, request.config)
            return EffectConfigApplied(request.seq, request.effect, request.config)
        if isinstance(request, ApplyControllerConfig):
            config = service.apply_config(request.config)
            return ControllerConfigApplied(request.seq, config)
        if isinstance(request, SavePresetRequest):
            preset = service.save_preset(request.name, request.state, request.effects)
            return PresetSaved(request.seq, preset)
    except Exception as exc:
        if isinstance(request, FetchInitialData):
            return InitialDataFailed(request.seq, _as_error(FetchError, exc))
        return ApplyFailed(request.seq, request.key, _as_error(ApplyError, exc))
    raise TypeError(f"unknown request {request!r}")


# ---------------------------------------------------------------------------
# App core
# ---------------------------------------------------------------------------


class AppCore:
    """Owner of the state machine instance behind one editor view.

    The only way to change the context is :meth:`send`; the view reads
    :meth:`snapshot` or listens to ``events.on_state_changed``.
    """

    def __init__(
        self,
        service: EffectsService,
        *,
        executor: Executor | None = None,
        workers: int = 4,
    ) -> None:
        self.service = service
        self.events = EventBus()
        self.form = SettingsForm()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=workers)
        self._state = UIState.LOADING
        self._context = Context()
        self._mailbox: deque[Message] = deque()
        self._draining = False
        self._pending = 0
        self._started = False
        self._closed = False
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)

    # --- state -------------------------------------------------------
    def snapshot(self) -> AppState:
        with self._lock:
            return AppState(self._state, self._context)

    # --- concurrency -------------------------------------------------
    def run_async(self, fn: Callable[[], Any]) -> Future[Any]:
        """Run ``fn`` in the thread pool and return the future."""

        def runner() -> Any:
            try:
                self.events.emit_progress(True)
                return fn()
            finally:
                self.events.emit_progress(False)

        return self._executor.submit(runner)

    def _dispatch(self, request: Request) -> None:
        with self._lock:
            if self._closed:
                logger.debug("core closed, dropping %s", request)
                return
            self._pending += 1
        logger.debug("dispatching %s", request)
        try:
            future = self.run_async(lambda: perform(self.service, request))
        except RuntimeError as exc:
            # executor already shut down
            self._finish_request()
            logger.warning("could not dispatch %s: %s", request, exc)
            return
        future.add_done_callback(self._complete)

    def _complete(self, future: Future[Any]) -> None:
        try:
            if future.cancelled():
                return
            exc = future.exception()
            if exc is not None:
                logger.error("request worker crashed: %s", exc)
                return
            self.send(future.result())
        finally:
            self._finish_request()

    def _finish_request(self) -> None:
        with self._idle:
            self._pending -= 1
            self._idle.notify_all()

    def _is_idle(self) -> bool:
        return self._pending == 0 and not self._draining and not self._mailbox

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no request is in flight; return ``False`` on timeout."""
        with self._idle:
            return self._idle.wait_for(self._is_idle, timeout=timeout)

    def close(self) -> None:
        with self._lock:
            self._closed = True
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # --- messages ----------------------------------------------------
    def start(self) -> None:
        """Issue the initial data fetch."""
        with self._lock:
            if self._started:
                return
            self._started = True
            result = start(self._context)
            self._state, self._context = result.state, result.context
            snap = AppState(self._state, self._context)
        self.events.emit_state(snap)
        for request in result.requests:
            self._dispatch(request)

    def send(self, message: Message) -> None:
        """Queue *message* for the state machine.

        Raises :class:`UnknownMessageError` for anything that is not one of
        the message types of :mod:`effectsync.machine`.
        """
        if not is_message(message):
            raise UnknownMessageError(f"unknown message {message!r}")
        with self._lock:
            self._mailbox.append(message)
            if self._draining:
                return
            self._draining = True
        self._drain()

    def _drain(self) -> None:
        while True:
            with self._idle:
                if not self._mailbox:
                    self._draining = False
                    self._idle.notify_all()
                    return
                message = self._mailbox.popleft()
                previous = self._state
                result = transition(self._state, self._context, message)
                changed = result.state is not previous or result.context is not self._context
                self._state, self._context = result.state, result.context
                snap = AppState(self._state, self._context)
            if changed:
                logger.debug(
                    "%s: %s -> %s", type(message).__name__, previous.value, snap.ui.value
                )
                if snap.ui is UIState.ERROR and previous is not UIState.ERROR:
                    self.events.emit_error(GENERIC_ERROR)
                self.events.emit_state(snap)
            for request in result.requests:
                self._dispatch(request)

    # --- commands ----------------------------------------------------
    def retry(self) -> None:
        self.send(Retry())

    def load_preset(self, name: str) -> None:
        self.send(LoadPreset(name))

    def save_preset(self, name: str) -> None:
        self.send(SavePreset(name))

    def set_effect_config(self, idx: int, effect: str, config: Mapping[str, Any]) -> None:
        self.send(SetEffectConfig(idx, effect, config))

    def set_brightness(self, brightness: float) -> None:
        config = self.snapshot().context.config
        self.send(SetConfig(replace(config, brightness=brightness)))

    def rows(self, idx: int) -> list[FieldRow]:
        """Return the settings rows of the effect running on segment *idx*."""
        effect = self.snapshot().context.effect_on_segment(idx)
        if effect is None:
            return []
        return self.form.rows(effect)

    def edit_field(self, idx: int, name: str, control: Control) -> bool:
        """Apply an edit of field *name* on the effect running on segment *idx*.

        Returns ``False`` when the edit cannot be offered: the editor is not
        ready, nothing runs on the segment, or the field is unknown or has an
        unusable schema.
        """
        snap = self.snapshot()
        if not snap.ready:
            return False
        effect = snap.context.effect_on_segment(idx)
        if effect is None:
            return False
        # patch on top of edits still in flight
        pending = snap.context.effect_config(effect.name)
        if pending is not effect.config:
            effect = effect.with_config(pending)
        config = self.form.edit(effect, name, control)
        if config is None:
            return False
        self.send(SetEffectConfig(idx, effect.name, config))
        return True


__all__ = [
    "AppCore",
    "AppState",
    "EventBus",
    "GENERIC_ERROR",
    "perform",
]
