"""Error taxonomy shared by the conversion pipeline."""

from __future__ import annotations


class ConversionError(RuntimeError):
    code = "ERROR"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        if code is not None:
            self.code = code


class TransientEncodeError(ConversionError):
    """The image engine could not open or save a file."""

    code = "ENCODE"


class ValidationError(ConversionError):
    """The engine produced an empty or non-beneficial artifact."""

    code = "VALIDATION"


class ConfigurationError(ConversionError):
    code = "CONFIG"


__all__ = [
    "ConversionError",
    "TransientEncodeError",
    "ValidationError",
    "ConfigurationError",
]
