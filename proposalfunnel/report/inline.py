from __future__ import annotations

import re
from dataclasses import dataclass
from xml.sax.saxutils import escape


_BOLD_MARKER = '**'
_BOLD_SPLIT_PATTERN = re.compile(r'(\*\*.*?\*\*)')


@dataclass(frozen=True)
class InlineSegment:
    text: str
    emphasized: bool = False


def format_inline(text: str) -> tuple[InlineSegment, ...]:
    """Split ``text`` into plain and bold segments.

    Only the ``**bold**`` marker pair is recognised; italics, links and nesting
    are left as literal text.
    """
    value = str(text or '')
    if _BOLD_MARKER not in value:
        return (InlineSegment(value),)

    segments: list[InlineSegment] = []
    for index, part in enumerate(_BOLD_SPLIT_PATTERN.split(value)):
        if index % 2 == 1:
            segments.append(InlineSegment(part[2:-2], emphasized=True))
        elif part:
            segments.append(InlineSegment(part))
    return tuple(segments)


def segments_to_markup(segments: tuple[InlineSegment, ...]) -> str:
    parts: list[str] = []
    for segment in segments:
        text = escape(segment.text)
        parts.append(f'<b>{text}</b>' if segment.emphasized else text)
    return ''.join(parts)


def inline_markup(text: str) -> str:
    return segments_to_markup(format_inline(text))
