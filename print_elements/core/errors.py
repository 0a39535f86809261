"""Print element preparation exceptions."""


class PrintElementError(RuntimeError):
    """Base error for element preparation."""


class InvalidConfiguration(PrintElementError, ValueError):
    """Raised when variant options do not match the element's type."""


class InvalidSourceData(PrintElementError):
    """Raised when a transform cannot interpret the element's source data."""


class SchedulingFailure(PrintElementError):
    """Raised when preparation cannot be started for an element."""


class ContractViolation(PrintElementError):
    """Raised (or logged) when the completion contract is broken."""


class PreparationTimeout(PrintElementError):
    """Raised when a preparation misses its deadline."""


class PreparationCancelled(PrintElementError):
    """Raised when a preparation is cancelled before delivering its result."""


__all__ = [
    "ContractViolation",
    "InvalidConfiguration",
    "InvalidSourceData",
    "PreparationCancelled",
    "PreparationTimeout",
    "PrintElementError",
    "SchedulingFailure",
]
