"""
print-elements package

Prepares heterogeneous print payloads (raw printer commands, images, PDF
documents, RTF documents, XML-embedded commands) into ready-to-emit elements.
Preparation runs asynchronously, one thread per element; jobs reassemble the
results by sequence number.
"""

from __future__ import annotations

from .core.errors import (
    ContractViolation,
    InvalidConfiguration,
    InvalidSourceData,
    PreparationCancelled,
    PreparationTimeout,
    PrintElementError,
    SchedulingFailure,
)
from .core.logging import configure_logging
from .printing.element import PrintJobElement
from .printing.job import PrintJob
from .printing.preparer import CancelToken, ElementPreparer, LoggingHook
from .printing.types import ElementType, LanguageType

__version__ = "0.1.0"

__all__ = [
    "CancelToken",
    "ContractViolation",
    "ElementPreparer",
    "ElementType",
    "InvalidConfiguration",
    "InvalidSourceData",
    "LanguageType",
    "LoggingHook",
    "PreparationCancelled",
    "PreparationTimeout",
    "PrintElementError",
    "PrintJob",
    "PrintJobElement",
    "SchedulingFailure",
    "configure_logging",
]
