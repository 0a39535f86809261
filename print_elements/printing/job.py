"""
Minimal owning job for print elements.

A PrintJob:
- Assigns sequence numbers as elements are appended
- Starts one preparer per element and waits on each element individually
- Records the order in which elements finish
- Hands prepared outputs back ordered by sequence, never by completion time

Device selection, paging and emission stay with the caller.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from print_elements.core.config import get_settings
from print_elements.core.errors import ContractViolation
from print_elements.printing.element import PrintJobElement
from print_elements.printing.preparer import CancelToken, PreparationHook
from print_elements.printing.types import ElementType, PreparedOutput

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PrintJob:
    def __init__(
        self,
        elements: Optional[Iterable[PrintJobElement]] = None,
        settings: Optional[Mapping[str, Any]] = None,
        hook: Optional[PreparationHook] = None,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.settings = dict(settings) if settings else get_settings()
        self.hook = hook
        self.created_at = self.updated_at = _utc_now_iso()
        self._elements: List[PrintJobElement] = []
        self._completed: List[int] = []
        self._lock = threading.RLock()
        for element in elements or ():
            self.append(element)

    def append(self, element: PrintJobElement) -> PrintJobElement:
        with self._lock:
            element.sequence = len(self._elements)
            self._elements.append(element)
            self.updated_at = _utc_now_iso()
        element.future.add_done_callback(lambda _f, el=element: self._record_completion(el))
        return element

    def _record_completion(self, element: PrintJobElement) -> None:
        with self._lock:
            self._completed.append(element.sequence)  # type: ignore[arg-type]
            self.updated_at = _utc_now_iso()

    @property
    def elements(self) -> List[PrintJobElement]:
        with self._lock:
            return list(self._elements)

    def prepare_all(
        self,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
        decoders: Optional[Mapping[ElementType, Any]] = None,
    ) -> None:
        """Start preparing every element. Returns without waiting."""
        elements = self.elements
        logger.info("Preparing %d elements for job %s", len(elements), self.id)
        for element in elements:
            element.prepare(
                hook=self.hook,
                cancel_token=cancel_token,
                timeout=timeout,
                decoders=decoders,
                settings=self.settings,
            )

    def wait_all(self, timeout: Optional[float] = None) -> bool:
        """
        Wait on each element in sequence order.

        Returns False if `timeout` elapsed before every element finished.
        Re-raises the error of the first failed element in sequence order.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        for element in self.elements:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            if not element.wait(remaining):
                return False
        return True

    def completion_order(self) -> List[int]:
        """Sequence numbers in the order their elements finished preparing."""
        with self._lock:
            return list(self._completed)

    def ordered_outputs(self) -> List[PreparedOutput]:
        """
        Prepared outputs ordered by sequence.

        Raises:
            ContractViolation if any element is not prepared yet.
        """
        outputs: List[PreparedOutput] = []
        for element in self.elements:
            if not element.is_prepared():
                raise ContractViolation(f"Element {element.sequence} of job {self.id} is not prepared")
            outputs.append(element.output)  # type: ignore[arg-type]
        return outputs

    def status(self) -> Dict[str, Any]:
        elements = self.elements
        prepared = sum(1 for el in elements if el.is_prepared())
        failed = sum(1 for el in elements if el.exception() is not None)
        return {
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "total": len(elements),
            "prepared": prepared,
            "failed": failed,
            "pending": len(elements) - prepared - failed,
        }

    def close(self) -> None:
        """Release native handles held by prepared outputs."""
        for element in self.elements:
            element.release()


__all__ = ["PrintJob"]
