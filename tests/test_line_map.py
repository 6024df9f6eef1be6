"""Tests for dts_tool.line_map module."""
from __future__ import annotations

import pytest

from dts_tool.errors import InvalidRange
from dts_tool.line_map import (
    LineNumbering,
    OffsetIndex,
    Position,
    compute_line_starts,
    offset_for_utf16_column,
    utf16_column,
)


class TestComputeLineStarts:
    def test_empty_text(self) -> None:
        assert compute_line_starts("") == [0]

    def test_leading_terminator(self) -> None:
        assert compute_line_starts("\nx") == [0, 1]

    def test_lf_and_cr(self) -> None:
        assert compute_line_starts("a\nb\rc") == [0, 2, 4]

    def test_crlf_is_one_terminator(self) -> None:
        assert compute_line_starts("a\r\nb") == [0, 3]

    def test_lfcr_is_two_terminators(self) -> None:
        assert compute_line_starts("a\n\rb") == [0, 2, 3]

    def test_trailing_terminator_opens_empty_line(self) -> None:
        assert compute_line_starts("a\n") == [0, 2]


class TestPositionForOffset:
    def test_zero_based_default(self) -> None:
        index = OffsetIndex("ab\ncd")
        assert index.position_for_offset(0) == Position(0, 0)
        assert index.position_for_offset(2) == Position(0, 2)
        assert index.position_for_offset(3) == Position(1, 0)
        assert index.position_for_offset(5) == Position(1, 2)

    def test_line_start_belongs_to_its_line(self) -> None:
        index = OffsetIndex("ab\r\ncd", line_base=1)
        assert index.position_for_offset(4) == Position(2, 0)
        assert index.position_for_offset(3) == Position(1, 3)

    def test_one_based_lines(self) -> None:
        index = OffsetIndex("ab\ncd", line_base=1)
        assert index.position_for_offset(3) == Position(2, 0)

    def test_column_base(self) -> None:
        index = OffsetIndex("ab\ncd", numbering=LineNumbering(line_base=1, column_base=1))
        assert index.position_for_offset(4) == Position(2, 2)

    def test_keyword_overrides_numbering(self) -> None:
        index = OffsetIndex("x", LineNumbering(line_base=1, column_base=1), column_base=0)
        assert index.numbering == LineNumbering(line_base=1, column_base=0)

    def test_past_end_overflows_last_line(self) -> None:
        index = OffsetIndex("ab\ncd")
        assert index.position_for_offset(9) == Position(1, 6)

    def test_negative_offset_rejected(self) -> None:
        with pytest.raises(InvalidRange):
            OffsetIndex("abc").position_for_offset(-1)


class TestOffsetForPosition:
    def test_basic(self) -> None:
        index = OffsetIndex("ab\ncd")
        assert index.offset_for_position(0, 1) == 1
        assert index.offset_for_position(1, 0) == 3

    def test_one_based(self) -> None:
        index = OffsetIndex("ab\ncd", line_base=1)
        assert index.offset_for_position(2, 1) == 4

    def test_line_past_end_clamps_to_length(self) -> None:
        index = OffsetIndex("ab\ncd")
        assert index.offset_for_position(2, 0) == 5
        assert index.offset_for_position(40, 3) == 5

    def test_column_past_end_clamps_to_length(self) -> None:
        index = OffsetIndex("ab\ncd")
        assert index.offset_for_position(1, 99) == 5

    def test_before_start_clamps_to_zero(self) -> None:
        index = OffsetIndex("ab\ncd", line_base=1)
        assert index.offset_for_position(0, 0) == 0
        assert index.offset_for_position(1, -5) == 0


class TestRoundTrip:
    TEXT = "one\ntwo\r\nthree\rfour\n\rfive\n"

    def test_every_offset(self) -> None:
        index = OffsetIndex(self.TEXT, line_base=1)
        for offset in range(len(self.TEXT) + 1):
            pos = index.position_for_offset(offset)
            assert index.offset_for_position(pos.line, pos.column) == offset

    def test_every_line_start(self) -> None:
        index = OffsetIndex(self.TEXT, line_base=1)
        assert index.line_count == 7
        for line in range(1, index.line_count + 1):
            offset = index.offset_for_position(line, 0)
            assert index.position_for_offset(offset) == Position(line, 0)

    def test_line_starts_strictly_increasing(self) -> None:
        starts = OffsetIndex(self.TEXT).line_starts
        assert starts[0] == 0
        assert all(a < b for a, b in zip(starts, starts[1:]))
        assert OffsetIndex(self.TEXT).total_length == len(self.TEXT)


class TestUtf16Columns:
    TEXT = "a\n\U0001F600 x\U0001F600y\n"

    def test_bmp_text_counts_code_points(self) -> None:
        assert utf16_column("abc", 0, 2) == 2
        assert offset_for_utf16_column("abc", 0, 2) == 2

    def test_astral_characters_count_twice(self) -> None:
        assert utf16_column(self.TEXT, 2, 4) == 3
        assert utf16_column(self.TEXT, 2, 6) == 6

    def test_inverse(self) -> None:
        for offset in range(2, 8):
            units = utf16_column(self.TEXT, 2, offset)
            assert offset_for_utf16_column(self.TEXT, 2, units) == offset

    def test_column_inside_surrogate_pair_ends_after_character(self) -> None:
        assert offset_for_utf16_column(self.TEXT, 2, 1) == 3

    def test_units_past_end_carry_over(self) -> None:
        assert offset_for_utf16_column("ab", 0, 5) == 5
