"""
Tests para el formateo de respuestas generativas.

Cubre limpieza de markdown, recorte con marcador y división en segmentos.
"""

import math

import pytest

from campusbot.utils.formatters import (
    TRUNCATION_MARKER,
    format_answer,
    split_reply,
    strip_markdown_emphasis,
    truncate_reply,
)


class TestStripMarkdownEmphasis:
    """Tests para strip_markdown_emphasis."""

    @pytest.mark.parametrize("raw, expected", [
        ("The **library** opens at 8 AM.", "The library opens at 8 AM."),
        ("The __library__ opens at 8 AM.", "The library opens at 8 AM."),
        ("The *library* opens at 8 AM.", "The library opens at 8 AM."),
        ("The _library_ opens at 8 AM.", "The library opens at 8 AM."),
        ("***Both*** styles", "Both styles"),
    ])
    def test_removes_emphasis_markers(self, raw, expected):
        """Test que se eliminan negritas e itálicas."""
        assert strip_markdown_emphasis(raw) == expected

    def test_keeps_list_bullets(self):
        """Test que las viñetas '* item' se conservan."""

        # Arrange
        raw = "Timings:\n* Library: 8 AM\n* Canteen: 9 AM"

        # Act
        result = strip_markdown_emphasis(raw)

        # Assert
        assert result == raw

    def test_keeps_snake_case_identifiers(self):
        """Test que los guiones bajos dentro de palabras no se tocan."""
        assert strip_markdown_emphasis("Login at erp_portal_v2 today") == "Login at erp_portal_v2 today"

    def test_keeps_arithmetic(self):
        assert strip_markdown_emphasis("2 * 3 * 4 = 24") == "2 * 3 * 4 = 24"

    def test_collapses_blank_lines_and_trims(self):
        assert strip_markdown_emphasis("  Hello\n\n\n\nWorld  ") == "Hello\n\nWorld"


class TestTruncateReply:
    """Tests para truncate_reply."""

    def test_short_text_unchanged(self):
        assert truncate_reply("The library opens at 8 AM.", 1500) == "The library opens at 8 AM."

    def test_exact_length_unchanged(self):
        text = "a" * 1500
        assert truncate_reply(text, 1500) == text

    def test_long_text_truncated_with_marker(self):
        """Test que un texto de 5000 caracteres queda en <= 1500 con marcador."""

        # Arrange
        text = "x" * 5000

        # Act
        result = truncate_reply(text, 1500)

        # Assert
        assert len(result) <= 1500
        assert result.endswith(TRUNCATION_MARKER)
        assert result[:-len(TRUNCATION_MARKER)] == "x" * (1500 - len(TRUNCATION_MARKER))

    def test_trailing_whitespace_dropped_before_marker(self):
        text = "word " * 400

        result = truncate_reply(text, 100)

        assert result.endswith("word" + TRUNCATION_MARKER)
        assert len(result) <= 100


class TestSplitReply:
    """Tests para split_reply."""

    def test_split_count_matches_ceiling(self):
        """Test que 5000 caracteres producen ceil(5000/1500) segmentos."""

        # Arrange
        text = "".join(chr(ord("a") + i % 26) for i in range(5000))

        # Act
        segments = split_reply(text, 1500)

        # Assert
        assert len(segments) == math.ceil(5000 / 1500)
        assert all(len(segment) <= 1500 for segment in segments)
        assert "".join(segments) == text

    def test_short_text_single_segment(self):
        assert split_reply("hello", 1500) == ["hello"]

    def test_empty_text_no_segments(self):
        assert split_reply("", 1500) == []

    def test_invalid_length_raises(self):
        with pytest.raises(ValueError):
            split_reply("hello", 0)


class TestFormatAnswer:
    """Tests para el pipeline format_answer."""

    def test_plain_answer_single_segment(self):
        assert format_answer("The library opens at 8 AM.", 1500) == ["The library opens at 8 AM."]

    def test_strips_then_truncates(self):
        """Test que la limpieza ocurre antes del recorte."""

        # Arrange
        text = "**Bold** " + "y" * 3000

        # Act
        segments = format_answer(text, 1500, policy="truncate")

        # Assert
        assert len(segments) == 1
        assert segments[0].startswith("Bold y")
        assert segments[0].endswith(TRUNCATION_MARKER)
        assert len(segments[0]) <= 1500

    def test_split_policy(self):
        segments = format_answer("z" * 5000, 1500, policy="split")

        assert len(segments) == 4
        assert all(TRUNCATION_MARKER not in segment for segment in segments)

    def test_blank_after_cleanup_returns_empty(self):
        assert format_answer("   \n  ", 1500) == []

    def test_unknown_policy_raises(self):
        with pytest.raises(ValueError):
            format_answer("hello", 1500, policy="drop")


class TestLinksPreserved:
    """Tests para URLs y paths dentro de respuestas con markdown."""

    @pytest.mark.parametrize("text", [
        "Apply at https://college.edu/_admissions_/form today",
        "Portal: http://erp.college.edu/student_login/_main_",
        "See www.college.edu/_notices_ for updates",
        "Files are in /srv/_shared_/docs",
    ])
    def test_urls_and_paths_unchanged(self, text):
        """Test que los '_' dentro de links y paths no se tratan como énfasis."""
        assert strip_markdown_emphasis(text) == text

    def test_emphasis_around_url_removed(self):
        """Test que el énfasis alrededor de un link se quita sin tocar el link."""

        # Arrange
        raw = "Apply at **https://college.edu/_admissions_/form**"

        # Act
        result = strip_markdown_emphasis(raw)

        # Assert
        assert result == "Apply at https://college.edu/_admissions_/form"

    def test_emphasis_next_to_url_still_removed(self):
        result = strip_markdown_emphasis("The _library_ page is https://college.edu/_library_")

        assert result == "The library page is https://college.edu/_library_"
