"""Upload decoding and starter template generation."""

from .decoder import (
    DecodeError,
    FileDecodeError,
    UnsupportedFormatError,
    decode,
    extension_of,
    normalize_header,
)
from .template import render_csv_template, render_template, render_xlsx_template

__all__ = [
    "DecodeError",
    "FileDecodeError",
    "UnsupportedFormatError",
    "decode",
    "extension_of",
    "normalize_header",
    "render_csv_template",
    "render_template",
    "render_xlsx_template",
]
