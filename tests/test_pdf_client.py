"""
Unit Tests for PDF Client

Tests PDF byte validation, text extraction and cleanup.
"""

import pytest
from unittest.mock import Mock, patch, MagicMock

from clients.pdf_client import (
    extract_text_from_bytes,
    clean_extracted_text,
)

PDF_BYTES = b"%PDF-1.4\n% fake body"


def mock_pdf(*page_texts):
    """pdfplumber.open() stand-in yielding pages with the given text."""
    pages = []
    for text in page_texts:
        page = Mock()
        page.extract_text.return_value = text
        pages.append(page)

    pdf = MagicMock()
    pdf.pages = pages
    pdf.__enter__.return_value = pdf
    return pdf


class TestPDFExtraction:
    """Test PDF text extraction functionality."""

    def test_empty_bytes(self):
        """Test error handling for empty content."""
        with pytest.raises(ValueError, match="empty"):
            extract_text_from_bytes(b"")

    def test_not_a_pdf(self):
        """Test error handling for non-PDF content."""
        with pytest.raises(ValueError, match="not a PDF"):
            extract_text_from_bytes(b"<html>hello</html>", name="page.html")

    @patch('clients.pdf_client.MAX_PDF_BYTES', 16)
    def test_too_large(self):
        """Test the size limit."""
        with pytest.raises(ValueError, match="too large"):
            extract_text_from_bytes(PDF_BYTES + b"0" * 16)

    @patch('clients.pdf_client.pdfplumber.open')
    def test_multi_page(self, mock_open):
        """Test pages are joined with page separators."""
        mock_open.return_value = mock_pdf("Chapter 1", "Chapter 2")

        text = extract_text_from_bytes(PDF_BYTES)

        assert text.startswith("Chapter 1")
        assert "--- Page 2 ---" in text
        assert text.endswith("Chapter 2")

    @patch('clients.pdf_client.pdfplumber.open')
    def test_no_pages(self, mock_open):
        """Test handling of PDF with no pages."""
        mock_open.return_value = mock_pdf()

        assert extract_text_from_bytes(PDF_BYTES) == ""

    @patch('clients.pdf_client.pdfplumber.open')
    def test_scanned_pdf(self, mock_open):
        """Test image-only pages yield empty text."""
        mock_open.return_value = mock_pdf(None, "")

        assert extract_text_from_bytes(PDF_BYTES) == ""

    @patch('clients.pdf_client.pdfplumber.open')
    def test_failing_page_skipped(self, mock_open):
        """Test one unreadable page does not fail the document."""
        pdf = mock_pdf("Intro", "Body")
        pdf.pages[0].extract_text.side_effect = RuntimeError("bad font")
        mock_open.return_value = pdf

        text = extract_text_from_bytes(PDF_BYTES)

        assert "Body" in text
        assert "Intro" not in text

    @patch('clients.pdf_client.pdfplumber.open')
    def test_corrupt_pdf(self, mock_open):
        """Test parser failures surface as ValueError."""
        mock_open.side_effect = Exception("Unexpected EOF")

        with pytest.raises(ValueError, match="Failed to extract text"):
            extract_text_from_bytes(PDF_BYTES)


class TestCleanExtractedText:
    """Test clean_extracted_text function."""

    def test_collapses_whitespace(self):
        """Test blank lines and runs of spaces are collapsed."""
        assert clean_extracted_text("Title\n\n\n\nBody  text   here") == "Title\n\nBody text here"

    def test_removes_page_numbers(self):
        """Test lone page numbers are removed."""
        assert "12" not in clean_extracted_text("Intro\n12\nMore")

    def test_empty(self):
        """Test empty input."""
        assert clean_extracted_text("") == ""
