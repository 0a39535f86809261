"""
Element preparer: the unit of work behind PrintJobElement.prepare().

Each preparer:
- Runs on its own thread, one per prepare() call (no pooling)
- Resolves the element's source to bytes and dispatches on the element type
  to exactly one decoder
- Delivers the output to the element once, or records the failure
- Optionally enforces a deadline with a watchdog timer and honours a
  cancel token before the transform and before delivery

Progress is reported through a PreparationHook; LoggingHook is the default.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

from print_elements.core.config import get_settings
from print_elements.core.errors import (
    ContractViolation,
    InvalidConfiguration,
    InvalidSourceData,
    PreparationCancelled,
    PreparationTimeout,
    PrintElementError,
)
from print_elements.core.logging import current_element
from print_elements.core.sources import read_source
from print_elements.printing.decoders import DEFAULT_DECODERS, Decoder
from print_elements.printing.types import ElementType, PreparedOutput, options_for

if TYPE_CHECKING:
    from print_elements.printing.element import PrintJobElement

logger = logging.getLogger(__name__)

# Source strings are embedded text only for these variants; otherwise they are locators.
TEXT_SOURCE_TYPES = (ElementType.RAW, ElementType.XML)


class CancelToken:
    """Cooperative cancellation shared by one or more preparations."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PreparationCancelled(self.reason or "cancelled")


class PreparationHook(Protocol):
    def on_event(self, event: str, element: "PrintJobElement", **fields: Any) -> None: ...


class LoggingHook:
    """
    Default hook: one log line per preparation event.
    Events are: started, prepared, failed, discarded.
    """

    LEVELS = {
        "started": logging.DEBUG,
        "prepared": logging.INFO,
        "failed": logging.WARNING,
        "discarded": logging.WARNING,
    }

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.log = log or logger

    def on_event(self, event: str, element: "PrintJobElement", **fields: Any) -> None:
        extras = " ".join(f"{k}={v}" for k, v in sorted(fields.items()))
        self.log.log(
            self.LEVELS.get(event, logging.INFO),
            "Element %s (%s, sequence=%s) %s %s",
            element.id,
            element.element_type.name,
            element.sequence,
            event,
            extras,
        )


def _close_output(output: Any) -> None:
    close = getattr(output, "close", None)
    if callable(close):
        try:
            close()
        except Exception as e:
            logger.debug(f"Closing discarded output failed: {e}")


class ElementPreparer:
    """Prepares exactly one element."""

    def __init__(
        self,
        element: "PrintJobElement",
        hook: Optional[PreparationHook] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
        decoders: Optional[Mapping[ElementType, Decoder]] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.element = element
        self.hook: PreparationHook = hook or LoggingHook()
        self.cancel_token = cancel_token or CancelToken()
        self.settings: Mapping[str, Any] = settings or get_settings()
        if timeout is None:
            timeout = self.settings.get("prepare_timeout_seconds") or 0
        try:
            timeout = float(timeout)
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"Invalid preparation timeout: {timeout!r}") from e
        self.timeout: Optional[float] = timeout if timeout and timeout > 0 else None
        self.decoders: Dict[ElementType, Decoder] = dict(DEFAULT_DECODERS)
        if decoders:
            self.decoders.update(decoders)
        self.thread: Optional[threading.Thread] = None
        self._watchdog: Optional[threading.Timer] = None
        # Set by the watchdog; kept apart from cancel_token, which may be shared by a whole job
        self._expired = threading.Event()

    def start(self) -> threading.Thread:
        """
        Spawn the preparer thread (and the deadline watchdog when a timeout
        is set). Raises RuntimeError when a thread cannot be started.
        """
        thread = threading.Thread(target=self.run, name=f"element-preparer-{self.element.id}", daemon=True)
        if self.timeout:
            watchdog = threading.Timer(self.timeout, self._expire)
            watchdog.daemon = True
            watchdog.start()
            self._watchdog = watchdog
        try:
            thread.start()
        except RuntimeError:
            self._stop_watchdog()
            raise
        self.thread = thread
        return thread

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the preparer thread, and the watchdog if it fired."""
        if self.thread is not None:
            self.thread.join(timeout)
        if self._watchdog is not None and self._watchdog.is_alive():
            self._watchdog.join(timeout)

    def run(self) -> None:
        """Prepare the element. Never raises; outcomes land on the element."""
        ctx = current_element.set(self.element.id)
        try:
            self._emit("started")
            started = time.monotonic()
            output = self._transform()
            self._deliver(output, elapsed=time.monotonic() - started)
        except PrintElementError as e:
            self._fail(e)
        except Exception as e:
            logger.exception(f"Preparer crashed for element {self.element.id}: {e}")
            self._fail(ContractViolation(f"Preparer crashed: {e}"))
        finally:
            self._stop_watchdog()
            current_element.reset(ctx)

    def _transform(self) -> PreparedOutput:
        el = self.element
        self.cancel_token.raise_if_cancelled()

        decoder = self.decoders.get(el.element_type)
        if decoder is None:
            raise ContractViolation(f"No decoder registered for {el.element_type.name} elements")

        options = options_for(el.element_type, el.options)
        source = read_source(
            el.source,
            el.encoding,
            text_allowed=el.element_type in TEXT_SOURCE_TYPES,
            max_bytes=int(self.settings.get("max_source_bytes") or 0),
        )
        try:
            return decoder(source, el.encoding, options, self.settings)
        except PrintElementError:
            raise
        except Exception as e:
            raise InvalidSourceData(f"{el.element_type.name} transform failed: {e}") from e

    def _deliver(self, output: PreparedOutput, elapsed: float) -> None:
        el = self.element
        if self._expired.is_set():
            _close_output(output)
            self._emit("discarded", output=type(output).__name__, reason="deadline expired")
            return
        if self.cancel_token.cancelled:
            _close_output(output)
            self._fail(PreparationCancelled(self.cancel_token.reason or "cancelled"))
            return
        if el.on_prepared(output):
            self._emit("prepared", seconds=f"{elapsed:.3f}")
            return
        _close_output(output)
        self._emit("discarded", output=type(output).__name__)
        if not el.done():
            el.on_failed(ContractViolation(f"{type(output).__name__} does not fit {el.element_type.name} elements"))

    def _fail(self, error: BaseException) -> None:
        if self.element.on_failed(error):
            self._emit("failed", error=f"{type(error).__name__}: {error}")
        else:
            self._emit("discarded", error=type(error).__name__)

    def _expire(self) -> None:
        error = PreparationTimeout(f"Element {self.element.id} not prepared within {self.timeout:.3f}s")
        self._expired.set()
        if self.element.on_failed(error):
            self._emit("failed", error=f"PreparationTimeout: {error}")

    def _stop_watchdog(self) -> None:
        if self._watchdog is not None:
            self._watchdog.cancel()

    def _emit(self, event: str, **fields: Any) -> None:
        try:
            self.hook.on_event(event, self.element, **fields)
        except Exception as e:
            # Observability must not break preparation
            logger.debug(f"Preparation hook failed on {event}: {e}")


__all__ = ["CancelToken", "ElementPreparer", "LoggingHook", "PreparationHook", "TEXT_SOURCE_TYPES"]
