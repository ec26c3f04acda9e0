"""
Unit Tests for Text Helpers

Tests HTML-to-text conversion and truncation of tool content.
"""

from utils import strip_html, truncate


class TestStripHtml:
    """Test strip_html function."""

    def test_blocks_become_lines(self):
        """Test paragraphs split into lines while inline tags are dropped."""
        assert strip_html("<p>Read <b>chapter 3</b></p><p>Due Friday</p>") == "Read chapter 3\nDue Friday"

    def test_quoted_angle_bracket_in_attribute(self):
        """Test a '>' inside an attribute value leaves no markup behind."""
        assert strip_html('<p><a title="a>b" href="x">Chapter 3</a></p>') == "Chapter 3"

    def test_pre_and_line_breaks(self):
        """Test <pre> is a block and <br> is a line break."""
        html = "<p>Intro</p><pre>x = 1</pre><p>one<br>two</p>"

        assert strip_html(html) == "Intro\nx = 1\none\ntwo"

    def test_scripts_and_entities(self):
        """Test script bodies are removed and entities unescaped."""
        html = "<script>alert('hi')</script><p>Fish &amp; chips &lt;3</p>"

        assert strip_html(html) == "Fish & chips <3"

    def test_empty(self):
        """Test empty input gives an empty string."""
        assert strip_html(None) == ""
        assert strip_html("") == ""


class TestTruncate:
    """Test truncate function."""

    def test_short_text_unchanged(self):
        assert truncate("Lab report", limit=20) == "Lab report"

    def test_long_text_marked(self):
        """Test cut text ends with the marker."""
        assert truncate("abcdefghij", limit=4) == "abcd…"
