"""
Text extraction for knowledge-base uploads (PDF, DOCX, TXT).

Dispatches on the content type to PyMuPDF, python-docx or a plain read and
returns an ExtractedText with the full text plus metadata (page_count,
detected_language, word_count, reading_time_minutes, title, author ...).
Image-only PDF pages fall back to Tesseract OCR.
"""
from __future__ import annotations

import io
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

import aiofiles
import fitz  # PyMuPDF
import pytesseract
from docx import Document as DocxDocument
from langdetect import detect as detect_language
from langdetect.lang_detect_exception import LangDetectException
from PIL import Image

from app.config import settings

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".txt": "txt",
}


def get_content_type(filename: str) -> str:
    """Map a filename to ``pdf`` / ``docx`` / ``txt``, or ``unknown``."""
    ext = os.path.splitext(filename)[1].lower()
    return _CONTENT_TYPES.get(ext, "unknown")


@dataclass
class ExtractedText:
    """Output of the DocumentParser."""

    full_text: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class DocumentParser:
    """Extracts plain text from PDF, DOCX and TXT files."""

    def __init__(self) -> None:
        if settings.TESSERACT_CMD:
            pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_CMD

    async def extract_text(self, file_path: str, content_type: str) -> ExtractedText:
        """
        Extract the text of a file on disk.

        Args:
            file_path:    Path to the stored upload.
            content_type: ``pdf``, ``docx`` or ``txt``.

        Raises:
            ValueError:   Unsupported content type.
            RuntimeError: Password-protected or unreadable file.
        """
        if content_type == "pdf":
            extracted = self._parse_pdf(file_path)
        elif content_type == "docx":
            extracted = self._parse_docx(file_path)
        elif content_type == "txt":
            extracted = await self._read_txt(file_path)
        else:
            raise ValueError(f"Unsupported file type: {content_type!r}")

        word_count = len(extracted.full_text.split())
        extracted.metadata.update(
            {
                "file_type": content_type,
                "word_count": word_count,
                "reading_time_minutes": round(word_count / 200, 1),
                "detected_language": _detect_language(extracted.full_text[:3000]),
            }
        )
        return extracted

    # ------------------------------------------------------------------
    # PDF
    # ------------------------------------------------------------------

    def _parse_pdf(self, file_path: str) -> ExtractedText:
        """Extract PDF text in reading order, dropping running headers/footers."""
        try:
            doc = fitz.open(file_path)
        except Exception as exc:
            raise RuntimeError(f"Cannot open PDF file: {exc}") from exc

        if doc.needs_pass:
            doc.close()
            raise RuntimeError(
                "PDF is password-protected. Please provide an unlocked copy."
            )

        raw_meta = doc.metadata or {}
        page_texts: List[str] = []
        ocr_pages = 0

        for page_num, page in enumerate(doc, start=1):
            page_height = page.rect.height
            # Zones to discard: top 8 % (running header) and bottom 8 % (footer)
            header_cutoff = page_height * 0.08
            footer_cutoff = page_height * 0.92

            lines = []
            for block in page.get_text("dict")["blocks"]:
                if block.get("type") != 0:
                    continue
                x0, y0 = block["bbox"][0], block["bbox"][1]
                if y0 < header_cutoff or y0 > footer_cutoff:
                    continue
                for line in block.get("lines", []):
                    line_text = " ".join(
                        span.get("text", "") for span in line.get("spans", [])
                    ).strip()
                    # Skip isolated page numbers
                    if not line_text or re.match(r"^\d{1,4}$", line_text):
                        continue
                    lines.append((y0, x0, line_text))

            if not lines:
                ocr = self._ocr_page(page)
                if ocr.strip():
                    ocr_pages += 1
                    page_texts.append(ocr.strip())
                continue

            lines.sort(key=lambda item: (item[0], item[1]))
            page_texts.append("\n".join(text for _y, _x, text in lines))
            logger.debug("PDF page %d: %d lines", page_num, len(lines))

        page_count = doc.page_count
        doc.close()

        return ExtractedText(
            full_text="\n\n".join(page_texts),
            metadata={
                "page_count": page_count,
                "ocr_pages": ocr_pages,
                "title": raw_meta.get("title", ""),
                "author": raw_meta.get("author", ""),
            },
        )

    def _ocr_page(self, page: fitz.Page) -> str:
        """Render an entire page at 2x scale and run Tesseract OCR."""
        try:
            pix = page.get_pixmap(matrix=fitz.Matrix(2, 2))
            img = Image.open(io.BytesIO(pix.tobytes("png")))
            return pytesseract.image_to_string(img)
        except Exception as exc:
            logger.warning("Full-page OCR failed on page %d: %s", page.number + 1, exc)
            return ""

    # ------------------------------------------------------------------
    # DOCX
    # ------------------------------------------------------------------

    def _parse_docx(self, file_path: str) -> ExtractedText:
        """Extract DOCX paragraphs followed by table rows."""
        try:
            doc = DocxDocument(file_path)
        except Exception as exc:
            raise RuntimeError(f"Cannot open DOCX file: {exc}") from exc

        parts = [p.text.strip() for p in doc.paragraphs if p.text.strip()]

        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        core = doc.core_properties
        return ExtractedText(
            full_text="\n".join(parts),
            metadata={
                "page_count": None,   # python-docx cannot report rendered page count
                "title": core.title or "",
                "author": core.author or "",
            },
        )

    # ------------------------------------------------------------------
    # TXT
    # ------------------------------------------------------------------

    async def _read_txt(self, file_path: str) -> ExtractedText:
        async with aiofiles.open(file_path, "rb") as fh:
            raw = await fh.read()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            text = raw.decode("latin-1")
        return ExtractedText(full_text=text.strip(), metadata={"page_count": None})


def _detect_language(sample: str) -> str:
    """Detect the language of a text sample; returns an ISO 639-1 code or 'unknown'."""
    if len(sample.split()) < 20:
        return "unknown"
    try:
        return detect_language(sample)
    except LangDetectException:
        return "unknown"
