"""Terminal previews of stashed file content.

Decodes stored bytes, neutralizes terminal control bytes, and highlights
source with Pygments based on the file name.
"""

from __future__ import annotations

import re

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_BINARY_SNIFF_BYTES = 8000

DEFAULT_STYLE = "monokai"

_FORMATTERS: dict[str, TerminalFormatter] = {}


def decode_content(content: bytes, encoding: str = "utf-8") -> str:
    """Decode with the configured encoding, then BOM-aware UTF-8, then latin-1."""
    for candidate in (encoding, "utf-8-sig", "latin-1"):
        try:
            return content.decode(candidate)
        except (UnicodeDecodeError, LookupError):
            continue
    return content.decode("utf-8", errors="replace")


def looks_binary(content: bytes) -> bool:
    return b"\0" in content[:_BINARY_SNIFF_BYTES]


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source

    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def _normalize_style(style: str) -> str:
    try:
        get_style_by_name(style)
    except ClassNotFound:
        return DEFAULT_STYLE
    return style


def _formatter_for_style(style: str) -> TerminalFormatter:
    formatter = _FORMATTERS.get(style)
    if formatter is None:
        formatter = TerminalFormatter(style=style)
        _FORMATTERS[style] = formatter
    return formatter


def colorize_source(source: str, filename: str, style: str = DEFAULT_STYLE) -> str:
    """Highlight ``source`` using a lexer picked from ``filename``."""
    try:
        lexer = get_lexer_for_filename(filename, source)
    except ClassNotFound:
        lexer = TextLexer()
    return highlight(source, lexer, _formatter_for_style(_normalize_style(style)))


def render_content(
    content: bytes,
    filename: str,
    *,
    colorize: bool = True,
    style: str = DEFAULT_STYLE,
    encoding: str = "utf-8",
) -> str:
    """Printable preview of stored file bytes."""
    if looks_binary(content):
        return f"<binary content, {len(content)} bytes>\n"
    source = sanitize_terminal_text(decode_content(content, encoding))
    if colorize and source:
        return colorize_source(source, filename, style)
    if source and not source.endswith("\n"):
        source += "\n"
    return source


__all__ = [
    "colorize_source",
    "decode_content",
    "looks_binary",
    "render_content",
    "sanitize_terminal_text",
]
