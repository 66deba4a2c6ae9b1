from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


_NEWLINE_PATTERN = re.compile(r'\r?\n|\\n')
_HEADER_PREFIX_PATTERN = re.compile(r'^#+\s*')
_NUMBERED_PATTERN = re.compile(r'^\d+\.')
_BULLET_PREFIX_PATTERN = re.compile(r'^[-•*]\s*')

_BULLET_MARKERS = ('-', '•', '*')
_KEY_VALUE_MAX_LENGTH = 100


class LineKind(str, Enum):
    header = 'header'
    key_value = 'key_value'
    numbered_item = 'numbered_item'
    bullet_item = 'bullet_item'
    paragraph = 'paragraph'
    blank = 'blank'


@dataclass(frozen=True)
class LineBlock:
    kind: LineKind
    raw_text: str
    render_index: int
    text: str = ''
    label: str | None = None
    value: str | None = None
    number: str | None = None


def split_lines(text: str | None) -> list[str]:
    """Split AI text on real line breaks and on escaped ``\\n`` sequences."""
    if not text:
        return []
    return _NEWLINE_PATTERN.split(str(text))


def _is_numbered(trimmed: str) -> bool:
    return bool(_NUMBERED_PATTERN.match(trimmed))


def _is_bullet(trimmed: str) -> bool:
    return trimmed.startswith(_BULLET_MARKERS)


def _is_key_value(trimmed: str) -> bool:
    return (
        ':' in trimmed
        and len(trimmed) < _KEY_VALUE_MAX_LENGTH
        and not _is_bullet(trimmed)
        and not _is_numbered(trimmed)
        and '**' not in trimmed
    )


def classify(line: str | None, index: int = 0) -> LineBlock:
    raw = str(line or '')
    trimmed = raw.strip()

    if not trimmed:
        return LineBlock(LineKind.blank, raw, index)

    if trimmed.startswith('#'):
        return LineBlock(LineKind.header, raw, index, text=_HEADER_PREFIX_PATTERN.sub('', trimmed))

    if _is_key_value(trimmed):
        label, _, value = trimmed.partition(':')
        return LineBlock(LineKind.key_value, raw, index, text=trimmed, label=label, value=value)

    if _is_numbered(trimmed):
        number, _, rest = trimmed.partition('.')
        return LineBlock(LineKind.numbered_item, raw, index, text=rest.strip(), number=number)

    if _is_bullet(trimmed):
        return LineBlock(LineKind.bullet_item, raw, index, text=_BULLET_PREFIX_PATTERN.sub('', trimmed, count=1))

    return LineBlock(LineKind.paragraph, raw, index, text=trimmed)
