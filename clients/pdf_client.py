"""
PDF Client - PDF Text Extraction Utility

Handles PDF documents downloaded from an integration (Google Drive files,
course handouts) using pdfplumber. Works on in-memory bytes; nothing is
written to disk.
"""

import io
import re
import logging

import pdfplumber

logger = logging.getLogger(__name__)

MAX_PDF_BYTES = 50 * 1024 * 1024  # 50MB


# ============================================================================
# PDF TEXT EXTRACTION
# ============================================================================

def extract_text_from_bytes(data: bytes, name: str = "document.pdf") -> str:
    """
    Extract all text content from PDF bytes.

    Uses pdfplumber to extract text from all pages and concatenates
    them with page separators.

    Args:
        data: Raw PDF file content
        name: Display name used in log messages

    Returns:
        Extracted text as a single string ("" for image-only PDFs)

    Raises:
        ValueError: If the bytes are empty, too large or not a PDF
    """
    if not data:
        raise ValueError("PDF content is empty")

    if len(data) > MAX_PDF_BYTES:
        raise ValueError("PDF file is too large (max 50MB)")

    if not data.lstrip()[:5].startswith(b"%PDF"):
        raise ValueError(f"File is not a PDF: {name}")

    logger.info(f"📄 Extracting text from PDF: {name}")

    all_text = []

    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            if len(pdf.pages) == 0:
                logger.warning("⚠️  PDF has no pages")
                return ""

            logger.debug(f"PDF has {len(pdf.pages)} page(s)")

            for page_num, page in enumerate(pdf.pages, start=1):
                try:
                    page_text = page.extract_text()
                except Exception as e:
                    logger.warning(f"⚠️  Failed to extract text from page {page_num}: {e}")
                    continue

                if page_text:
                    if page_num > 1:
                        all_text.append(f"\n--- Page {page_num} ---\n")
                    all_text.append(page_text)
                else:
                    logger.debug(f"Page {page_num} has no extractable text")

    except Exception as e:
        logger.error(f"❌ PDF extraction failed: {e}", exc_info=True)
        raise ValueError(f"Failed to extract text from PDF: {str(e)}") from e

    full_text = "\n".join(all_text)

    if not full_text.strip():
        logger.warning("⚠️  No text extracted from PDF (might be scanned images)")
        return ""

    logger.info(f"✅ Extracted {len(full_text)} characters from PDF")
    return full_text


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def clean_extracted_text(text: str) -> str:
    """
    Clean up extracted PDF text by removing extra whitespace and artifacts.

    Args:
        text: Raw extracted text

    Returns:
        Cleaned text
    """
    if not text:
        return ""

    # Remove multiple consecutive newlines
    text = re.sub(r'\n{3,}', '\n\n', text)

    # Remove excessive spaces
    text = re.sub(r' {2,}', ' ', text)

    # Remove page numbers that appear alone on lines
    text = re.sub(r'^\d+$', '', text, flags=re.MULTILINE)

    return text.strip()
