from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from .inline import InlineSegment, format_inline
from .lines import LineBlock, LineKind, classify, split_lines


BULLET_GLYPH = '•'

_ITEM_MARKER_PATTERN = re.compile(r'^\s*[-•*]\s+')


@dataclass(frozen=True)
class RenderedBlock:
    kind: LineKind
    index: int
    segments: tuple[InlineSegment, ...] = ()
    marker: str | None = None
    lettered: bool = False
    label: str | None = None
    value: str | None = None

    @property
    def plain_text(self) -> str:
        return ''.join(segment.text for segment in self.segments)

    @property
    def display_marker(self) -> str | None:
        if self.marker is None:
            return None
        if self.lettered:
            return f'{self.marker})'
        if self.kind == LineKind.numbered_item:
            return f'{self.marker}.'
        return self.marker


def render_line(block: LineBlock) -> RenderedBlock:
    if block.kind == LineKind.blank:
        return RenderedBlock(LineKind.blank, block.render_index)
    if block.kind == LineKind.header:
        return RenderedBlock(LineKind.header, block.render_index, segments=(InlineSegment(block.text),))
    if block.kind == LineKind.key_value:
        return RenderedBlock(
            LineKind.key_value,
            block.render_index,
            segments=(InlineSegment(f'{block.label}:', emphasized=True), InlineSegment(block.value or '')),
            label=block.label,
            value=block.value,
        )
    if block.kind == LineKind.numbered_item:
        return RenderedBlock(
            LineKind.numbered_item,
            block.render_index,
            segments=format_inline(block.text),
            marker=block.number,
        )
    if block.kind == LineKind.bullet_item:
        return RenderedBlock(
            LineKind.bullet_item,
            block.render_index,
            segments=format_inline(block.text),
            marker=BULLET_GLYPH,
        )
    return RenderedBlock(LineKind.paragraph, block.render_index, segments=format_inline(block.text))


def render_field(text: str | None) -> tuple[RenderedBlock, ...]:
    return tuple(render_line(classify(line, index)) for index, line in enumerate(split_lines(text)))


def _resets_letters(block: LineBlock) -> bool:
    if block.kind == LineKind.header:
        return True
    return block.raw_text.strip().lower().startswith('module')


def render_lettered_line(counter: int, block: LineBlock) -> tuple[int, RenderedBlock]:
    """Render one line of a lettered list; returns the next counter and the block."""
    if _resets_letters(block):
        return 0, render_line(block)
    if block.kind == LineKind.bullet_item:
        rendered = RenderedBlock(
            LineKind.bullet_item,
            block.render_index,
            segments=format_inline(block.text),
            marker=chr(97 + counter),
            lettered=True,
        )
        return counter + 1, rendered
    return counter, render_line(block)


def render_lettered_field(lines: Iterable[str]) -> tuple[RenderedBlock, ...]:
    counter = 0
    rendered: list[RenderedBlock] = []
    for index, line in enumerate(lines):
        counter, block = render_lettered_line(counter, classify(line, index))
        rendered.append(block)
    return tuple(rendered)


def bullet_list(items: Iterable[str]) -> tuple[RenderedBlock, ...]:
    # Items may already carry their own list marker.
    texts = (_ITEM_MARKER_PATTERN.sub('', str(item or ''), count=1).strip() for item in items)
    lines = [f'- {text}' for text in texts if text]
    return render_field('\n'.join(lines))
