"""
Print job elements.

A PrintJobElement is one piece of a print job: source data, the variant it
belongs to (raw, image, pdf, rtf, xml), its variant options, the character
encoding, and a sequence number assigned by the owning job for ordering.

Preparation runs on its own thread (see printing.preparer). The element is
written once by its preparer and read by the job after is_prepared() turns
true. Lifecycle: unprepared -> preparing -> prepared; a failed preparation
leaves the element unprepared with the error recorded. prepare() may be
called once per element.
"""

from __future__ import annotations

import codecs
import logging
import threading
import uuid
from collections.abc import Mapping
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeout
from enum import Enum
from typing import Any, Optional, Union

from PIL import Image

from print_elements.core.config import get_settings
from print_elements.core.errors import (
    ContractViolation,
    InvalidConfiguration,
    PrintElementError,
    SchedulingFailure,
)
from print_elements.core.sources import SourceData
from print_elements.printing.preparer import CancelToken, ElementPreparer, PreparationHook
from print_elements.printing.types import (
    ElementType,
    ImageOptions,
    LanguageType,
    ParsedDocument,
    PreparedBytes,
    PreparedOutput,
    RasterImage,
    RawOptions,
    RenderedSurface,
    VariantOptions,
    XmlOptions,
    options_for,
    output_matches,
)

logger = logging.getLogger(__name__)


class _State(str, Enum):
    UNPREPARED = "unprepared"
    PREPARING = "preparing"
    PREPARED = "prepared"


class PrintJobElement:
    """One unit of print content plus its prepared output."""

    def __init__(
        self,
        element_type: Union[ElementType, str],
        data: SourceData,
        encoding: Optional[str] = None,
        options: Union[VariantOptions, Mapping[str, Any], None] = None,
    ) -> None:
        self._type = ElementType.resolve(element_type)
        self._options = options_for(self._type, options)
        if data is None:
            raise InvalidConfiguration("Element source data is required")
        self._data = bytes(data) if isinstance(data, (bytearray, memoryview)) else data

        encoding = encoding or str(get_settings().get("default_encoding") or "utf-8")
        try:
            self._encoding = codecs.lookup(encoding).name
        except LookupError:
            raise InvalidConfiguration(f"Unknown encoding: {encoding!r}") from None

        self.id = uuid.uuid4().hex[:12]
        # Assigned by the owning job
        self.sequence: Optional[int] = None

        self._lock = threading.Lock()
        self._state = _State.UNPREPARED
        self._started = False
        self._prepared = threading.Event()
        self._output: Optional[PreparedOutput] = None
        self._error: Optional[BaseException] = None
        self._future: "Future[PreparedOutput]" = Future()

    # --- constructor shapes ------------------------------------------------

    @classmethod
    def raw(
        cls,
        data: SourceData,
        lang: Union[LanguageType, str, None] = None,
        dot_density: int = 32,
        encoding: Optional[str] = None,
    ) -> "PrintJobElement":
        return cls(ElementType.RAW, data, encoding, {"language": lang, "dot_density": dot_density})

    @classmethod
    def image(cls, data: SourceData, x: int = 0, y: int = 0, encoding: Optional[str] = None) -> "PrintJobElement":
        return cls(ElementType.IMAGE, data, encoding, {"x": x, "y": y})

    @classmethod
    def xml(cls, data: SourceData, tag: str, encoding: Optional[str] = None) -> "PrintJobElement":
        return cls(ElementType.XML, data, encoding, {"tag": tag})

    @classmethod
    def document(
        cls, element_type: Union[ElementType, str], data: SourceData, encoding: Optional[str] = None
    ) -> "PrintJobElement":
        element_type = ElementType.resolve(element_type)
        if element_type not in (ElementType.PDF, ElementType.RTF):
            raise InvalidConfiguration(f"{element_type.name} is not a document type")
        return cls(element_type, data, encoding)

    # --- preparation -------------------------------------------------------

    def prepare(
        self,
        hook: Optional[PreparationHook] = None,
        cancel_token: Optional[CancelToken] = None,
        timeout: Optional[float] = None,
        decoders: Optional[Mapping[ElementType, Any]] = None,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> ElementPreparer:
        """
        Start preparing this element on a new thread and return immediately.

        Raises:
            SchedulingFailure if prepare() was already called or the preparer
            cannot be built or started.
            InvalidConfiguration if the preparation settings are unusable.

        Either failure leaves the element unprepared and schedulable again.
        """
        with self._lock:
            if self._started:
                raise SchedulingFailure(f"Element {self.id} has already been scheduled for preparation")
            self._started = True
            self._state = _State.PREPARING

        try:
            preparer = ElementPreparer(
                self, hook=hook, cancel_token=cancel_token, timeout=timeout, decoders=decoders, settings=settings
            )
            preparer.start()
        except Exception as e:
            with self._lock:
                self._started = False
                self._state = _State.UNPREPARED
            if isinstance(e, PrintElementError):
                raise
            raise SchedulingFailure(f"Cannot start preparer for element {self.id}: {e}") from e
        return preparer

    def on_prepared(self, output: PreparedOutput) -> bool:
        """
        Completion callback, invoked once by the preparer.

        Installs `output` and flips is_prepared() when the element is being
        prepared and the output fills this element's slot. Any other call is
        logged as a contract violation and the output is discarded.
        Returns True when the output was installed.
        """
        with self._lock:
            if self._state is not _State.PREPARING:
                problem = f"on_prepared called on {self._state.value} element {self.id}"
            elif not output_matches(self._type, output):
                problem = f"{type(output).__name__} does not fit {self._type.name} element {self.id}"
            else:
                problem = None
                self._output = output
                self._state = _State.PREPARED
                # Published after the slot write
                self._prepared.set()
        if problem:
            logger.warning("%s; result discarded", ContractViolation(problem))
            return False
        self._settle(result=output)
        logger.debug("Done preparing %s element %s", self._type.name, self.id)
        return True

    def on_failed(self, error: BaseException) -> bool:
        """
        Failure callback. Records `error` while the element is preparing; the
        element goes back to unprepared with every output slot empty.
        Returns True when the error was recorded.
        """
        with self._lock:
            if self._state is not _State.PREPARING:
                return False
            self._state = _State.UNPREPARED
            self._error = error
        self._settle(error=error)
        return True

    def _settle(self, result: Optional[PreparedOutput] = None, error: Optional[BaseException] = None) -> None:
        try:
            if error is not None:
                self._future.set_exception(error)
            else:
                self._future.set_result(result)  # type: ignore[arg-type]
        except InvalidStateError:
            logger.warning("Completion future for element %s was already resolved or cancelled", self.id)

    def is_prepared(self) -> bool:
        return self._prepared.is_set()

    def done(self) -> bool:
        """True once preparation has either succeeded or failed."""
        return self._future.done()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until preparation finishes.

        Returns True when prepared, False if `timeout` elapsed first.
        Re-raises the preparation error when preparation failed. Waiting
        without a timeout on an element that was never scheduled raises
        ContractViolation.
        """
        if timeout is None and not self._started:
            raise ContractViolation(f"Element {self.id} was never scheduled for preparation")
        try:
            self._future.result(timeout)
        except FutureTimeout:
            return False
        return True

    def exception(self) -> Optional[BaseException]:
        """The preparation error, or None."""
        return self._error

    @property
    def future(self) -> "Future[PreparedOutput]":
        return self._future

    def release(self) -> None:
        """Release native handles held by the prepared output."""
        if self._output is not None:
            self._output.close()

    # --- configuration accessors ------------------------------------------

    @property
    def element_type(self) -> ElementType:
        return self._type

    @property
    def source(self) -> SourceData:
        return self._data

    @property
    def encoding(self) -> str:
        return self._encoding

    @property
    def options(self) -> VariantOptions:
        return self._options

    @property
    def lang(self) -> Optional[LanguageType]:
        return self._options.language if isinstance(self._options, RawOptions) else None

    @property
    def dot_density(self) -> int:
        return self._options.dot_density if isinstance(self._options, RawOptions) else 32

    @property
    def image_x(self) -> int:
        return self._options.x if isinstance(self._options, ImageOptions) else 0

    @property
    def image_y(self) -> int:
        return self._options.y if isinstance(self._options, ImageOptions) else 0

    @property
    def xml_tag(self) -> Optional[str]:
        return self._options.tag if isinstance(self._options, XmlOptions) else None

    # --- output accessors (empty until prepared) ---------------------------

    def _slot(self, kind: type) -> Any:
        if not self._prepared.is_set():
            return None
        return self._output if isinstance(self._output, kind) else None

    @property
    def output(self) -> Optional[PreparedOutput]:
        return self._output if self._prepared.is_set() else None

    @property
    def data(self) -> Optional[bytes]:
        out = self._slot(PreparedBytes)
        return out.data if out else None

    @property
    def buffered_image(self) -> Optional[Image.Image]:
        out = self._slot(RasterImage)
        return out.image if out else None

    @property
    def rtf_surface(self) -> Optional[RenderedSurface]:
        return self._slot(RenderedSurface)

    @property
    def rtf_width(self) -> int:
        out = self._slot(RenderedSurface)
        return out.width if out else 0

    @property
    def rtf_height(self) -> int:
        out = self._slot(RenderedSurface)
        return out.height if out else 0

    @property
    def pdf_document(self) -> Optional[ParsedDocument]:
        return self._slot(ParsedDocument)

    def __repr__(self) -> str:
        return (
            f"<PrintJobElement id={self.id} type={self._type.name} sequence={self.sequence} "
            f"prepared={self.is_prepared()}>"
        )


__all__ = ["PrintJobElement"]
