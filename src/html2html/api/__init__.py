"""Conversion API for html2html."""

from .converter import (
    ConversionResult,
    Converter,
    InputType,
    convert,
    convert_file,
    parse,
)

__all__ = [
    "ConversionResult",
    "Converter",
    "InputType",
    "convert",
    "convert_file",
    "parse",
]
