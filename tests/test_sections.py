"""Tests for field rendering (plain and lettered)."""

from __future__ import annotations

from proposalfunnel.report.inline import InlineSegment
from proposalfunnel.report.lines import LineKind, classify
from proposalfunnel.report.sections import (
    BULLET_GLYPH,
    bullet_list,
    render_field,
    render_lettered_field,
    render_lettered_line,
)


RISKS = '### Risks\n- Scope creep\n- Timeline slip\n\nMitigation: weekly reviews'


def _markers(blocks):
    return [block.marker for block in blocks if block.kind == LineKind.bullet_item]


# ---------------------------------------------------------------------------
# render_field
# ---------------------------------------------------------------------------

class TestRenderField:
    def test_empty(self):
        assert render_field('') == ()
        assert render_field(None) == ()

    def test_risks_scenario(self):
        blocks = render_field(RISKS)
        assert [block.kind for block in blocks] == [
            LineKind.header,
            LineKind.bullet_item,
            LineKind.bullet_item,
            LineKind.blank,
            LineKind.key_value,
        ]
        assert blocks[0].plain_text == 'Risks'
        assert blocks[1].display_marker == BULLET_GLYPH
        assert blocks[1].plain_text == 'Scope creep'
        assert blocks[2].plain_text == 'Timeline slip'
        assert blocks[4].segments == (
            InlineSegment('Mitigation:', emphasized=True),
            InlineSegment(' weekly reviews'),
        )

    def test_indices_follow_line_positions(self):
        blocks = render_field('a\n\nb')
        assert [block.index for block in blocks] == [0, 1, 2]

    def test_numbered_item_marker(self):
        (block,) = render_field('3. **Admin Dashboard** for staff')
        assert block.display_marker == '3.'
        assert block.segments[0] == InlineSegment('Admin Dashboard', emphasized=True)

    def test_paragraph_is_formatted(self):
        (block,) = render_field('We deliver **on time**.')
        assert block.kind == LineKind.paragraph
        assert block.segments[1] == InlineSegment('on time', emphasized=True)


# ---------------------------------------------------------------------------
# render_lettered_field
# ---------------------------------------------------------------------------

class TestRenderLetteredField:
    def test_risks_scenario_letters(self):
        blocks = render_lettered_field(RISKS.split('\n'))
        assert _markers(blocks) == ['a', 'b']
        assert blocks[1].display_marker == 'a)'
        assert blocks[4].kind == LineKind.key_value

    def test_header_resets_counter(self):
        blocks = render_lettered_field(['- one', '- two', '### Next', '- three'])
        assert _markers(blocks) == ['a', 'b', 'a']

    def test_module_line_resets_counter(self):
        blocks = render_lettered_field(['- one', '- two', 'Module 2: Payments', '- three'])
        assert _markers(blocks) == ['a', 'b', 'a']

    def test_other_kinds_do_not_advance_counter(self):
        blocks = render_lettered_field(['- one', 'A note', '', '1. numbered', '- two'])
        assert _markers(blocks) == ['a', 'b']
        assert blocks[3].display_marker == '1.'

    def test_counter_is_threaded_explicitly(self):
        counter, block = render_lettered_line(2, classify('- third'))
        assert (counter, block.marker, block.lettered) == (3, 'c', True)
        counter, block = render_lettered_line(counter, classify('## Reset'))
        assert counter == 0
        assert block.kind == LineKind.header

    def test_empty(self):
        assert render_lettered_field([]) == ()


class TestBulletList:
    def test_skips_blank_items(self):
        blocks = bullet_list(['Encryption at rest', '', '  ', 'SSO'])
        assert [block.plain_text for block in blocks] == ['Encryption at rest', 'SSO']
        assert all(block.kind == LineKind.bullet_item for block in blocks)

    def test_empty_list(self):
        assert bullet_list([]) == ()

    def test_existing_markers_are_not_doubled(self):
        blocks = bullet_list(['- Rate limiting', '• Audit logs', '* SSO', '**MFA** for admins'])
        assert [block.plain_text for block in blocks] == ['Rate limiting', 'Audit logs', 'SSO', 'MFA for admins']
        assert all(block.kind == LineKind.bullet_item for block in blocks)
