"""Unit tests for terminal string metrics."""

from __future__ import annotations

import pytest

from status_table.exceptions import InvalidArgumentError
from status_table.strings import Align, align, ellipsis, truncate, width

BOLD = "\x1b[1m"
RESET = "\x1b[0m"
RED = "\x1b[31m"


@pytest.mark.unit
class TestWidth:
    """Tests for width()."""

    def test_ascii_width_equals_length(self) -> None:
        """ASCII strings are one column per character."""
        for text in ("", "a", "hello world", "x" * 37):
            assert width(text) == len(text)

    def test_emoji_and_cjk(self) -> None:
        """Han and emoji clusters are two columns; a ZWJ sequence is one cluster."""
        assert width("中👨‍⚕️A中") == 7

    def test_escape_sequences_have_no_width(self) -> None:
        """Escapes are skipped; a combining accent joins its base letter."""
        assert width(f"{BOLD}Olólo{RESET}") == 5

    def test_inserting_escapes_does_not_change_width(self) -> None:
        """Width is unaffected by escapes inserted anywhere."""
        text = "中ABC"
        for idx in range(len(text) + 1):
            assert width(text[:idx] + RED + text[idx:] + RESET) == width(text)

    def test_east_asian_scripts(self) -> None:
        """Hiragana, Katakana and Hangul are wide."""
        assert width("ひ") == 2
        assert width("カ") == 2
        assert width("한") == 2

    def test_emoji_presentation(self) -> None:
        """Emoji presentation characters are wide."""
        assert width("🚀") == 2


@pytest.mark.unit
class TestTruncate:
    """Tests for truncate()."""

    def test_zero_and_negative(self) -> None:
        """Non-positive widths give an empty string."""
        assert truncate("test", 0) == ""
        assert truncate("test", -1) == ""

    def test_zero_width_string_fits_any_width(self) -> None:
        """A string of escapes only already fits, even a zero width."""
        assert truncate(BOLD, 0) == BOLD
        assert truncate("", -1) == ""

    def test_fitting_string_unchanged(self) -> None:
        """Strings that already fit are returned as-is."""
        assert truncate("test", 4) == "test"
        assert truncate("中", 2) == "中"

    def test_cuts_at_cluster_boundary(self) -> None:
        """A wide cluster crossing the limit is dropped."""
        assert truncate("中ABC", 2) == "中"
        assert truncate("中ABC", 1) == ""
        assert truncate("A中B", 2) == "A"

    def test_preserves_escapes_before_cut(self) -> None:
        """Escapes before the cut point stay in the result."""
        assert truncate(f"{RED}Hello{RESET}", 3) == f"{RED}Hel"

    def test_idempotent(self) -> None:
        """Truncating twice is the same as truncating once."""
        for text in ("hello", "中👨‍⚕️A中", f"{BOLD}Olólo{RESET}"):
            for limit in range(-1, 9):
                once = truncate(text, limit)
                assert truncate(once, limit) == once


@pytest.mark.unit
class TestEllipsis:
    """Tests for ellipsis()."""

    def test_truncates_with_marker(self) -> None:
        """Cut strings end with the marker within the width."""
        assert ellipsis("中ABC", 3) == "中…"

    def test_short_string_unchanged(self) -> None:
        """Strings that fit get no marker."""
        assert ellipsis("short", 10) == "short"

    def test_raises_on_oversized_marker(self) -> None:
        """A marker wider than the width is rejected."""
        with pytest.raises(InvalidArgumentError):
            ellipsis("A", 1, "中")
        with pytest.raises(InvalidArgumentError):
            ellipsis("anything", 2, "...")

    def test_custom_marker(self) -> None:
        """Custom markers are counted by display width."""
        assert ellipsis("abcdefgh", 5, "..") == "abc.."

    def test_result_fits(self) -> None:
        """Result width never exceeds the requested width."""
        for limit in range(1, 8):
            assert width(ellipsis("中👨‍⚕️A中xyz", limit)) <= limit


@pytest.mark.unit
class TestAlign:
    """Tests for align()."""

    def test_left(self) -> None:
        assert align("hi", 6) == "hi    "

    def test_right(self) -> None:
        assert align("hi", 6, Align.RIGHT) == "    hi"

    def test_center_gives_smaller_half_to_left(self) -> None:
        """Odd padding puts the extra space on the right."""
        assert align("hi", 6, "center") == "  hi  "
        assert align("hi", 5, "center") == " hi  "

    def test_never_truncates(self) -> None:
        """Wider strings are returned unchanged."""
        assert align("hello", 3, "right") == "hello"

    def test_result_width(self) -> None:
        """Aligned width is max(width(s), w) for every mode."""
        for text in ("", "a", "中", f"{RED}ab{RESET}", "中👨‍⚕️"):
            for target in range(0, 8):
                for mode in Align:
                    assert width(align(text, target, mode)) == max(width(text), target)

    def test_invalid_mode(self) -> None:
        """Unknown modes are rejected."""
        with pytest.raises(InvalidArgumentError):
            align("hi", 6, "justify")
