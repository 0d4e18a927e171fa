from __future__ import annotations

import hashlib
import logging
from io import BytesIO
from typing import Callable

from docx import Document
from pypdf import PdfReader

from .file_security import RESUME_FORMATS, content_matches_format, declared_format
from .models import ParsedDoc, ParsedPage

logger = logging.getLogger(__name__)

_FORMAT_LABELS = {"pdf": "a PDF", "docx": "a DOCX document", "txt": "plain text", "md": "plain text"}

Extraction = tuple[str, list[ParsedPage], list[str]]


class UnsupportedDocumentError(ValueError):
    pass


def _content_hash(text: str, file_name: str) -> str:
    seed = text if text.strip() else file_name
    return hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()[:16]


def _extract_plain(content: bytes) -> Extraction:
    return content.decode("utf-8", errors="replace"), [], []


def _extract_pdf(content: bytes) -> Extraction:
    pages: list[ParsedPage] = []
    try:
        reader = PdfReader(BytesIO(content))
        for number, page in enumerate(reader.pages, start=1):
            page_text = (page.extract_text() or "").strip()
            if page_text:
                pages.append(ParsedPage(number=number, text=page_text))
    except Exception as exc:  # noqa: BLE001 - pypdf raises many error types on bad input
        logger.info("resume_pdf_unreadable error=%s", exc)
        return "", [], [f"PDF parsing failed: {exc}"]
    if not pages:
        return "", [], ["No extractable text found in PDF. Scanned resumes need OCR first."]
    return "\n".join(page.text for page in pages), pages, []


def _extract_docx(content: bytes) -> Extraction:
    try:
        document = Document(BytesIO(content))
    except Exception as exc:  # noqa: BLE001 - python-docx raises many error types on bad input
        logger.info("resume_docx_unreadable error=%s", exc)
        return "", [], [f"DOCX parsing failed: {exc}"]
    paragraphs = [paragraph.text.strip() for paragraph in document.paragraphs if paragraph.text.strip()]
    if not paragraphs:
        return "", [], ["No extractable text found in DOCX."]
    # A DOCX has no reliable page boundaries, so the body is a single page.
    text = "\n".join(paragraphs)
    return text, [ParsedPage(number=None, text=text)], []


_EXTRACTORS: dict[str, Callable[[bytes], Extraction]] = {
    "pdf": _extract_pdf,
    "docx": _extract_docx,
    "txt": _extract_plain,
    "md": _extract_plain,
}


def parse_document_bytes(content: bytes, file_name: str, content_type: str | None = None) -> ParsedDoc:
    """Extract resume text after checking that the bytes match the declared format."""
    resume_format = declared_format(file_name, content_type)
    if resume_format not in RESUME_FORMATS:
        supported = ", ".join(f".{item}" for item in RESUME_FORMATS)
        raise UnsupportedDocumentError(
            f"Unsupported file type '.{resume_format or '?'}'. Supported types: {supported}"
        )
    if not content_matches_format(content, resume_format):
        raise UnsupportedDocumentError(f"File content does not look like {_FORMAT_LABELS[resume_format]}.")

    text, pages, warnings = _EXTRACTORS[resume_format](content)
    return ParsedDoc(
        content_hash=_content_hash(text, file_name),
        file_name=file_name,
        source_type=resume_format,
        text=text,
        pages=pages,
        parsing_warnings=warnings,
    )


def parse_text(text: str, file_name: str = "pasted-resume.txt") -> ParsedDoc:
    return ParsedDoc(
        content_hash=_content_hash(text, file_name),
        file_name=file_name,
        source_type="text",
        text=text,
    )
