from __future__ import annotations

from io import BytesIO
from zipfile import BadZipFile, ZipFile

RESUME_FORMATS = ("pdf", "docx", "txt", "md")

_PDF_MAGIC = b"%PDF-"
_ZIP_MAGIC = b"PK\x03\x04"
_DOCX_MAIN_PART = "word/document.xml"
_TEXT_SAMPLE_BYTES = 4096
_MIN_READABLE_RATIO = 0.75

_CONTENT_TYPE_FORMATS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
    "text/markdown": "md",
}


def declared_format(file_name: str, content_type: str | None) -> str:
    """Format named by the file extension, else by the declared content type."""
    name = (file_name or "").strip().lower()
    if "." in name:
        return name.rsplit(".", 1)[-1]
    declared = (content_type or "").split(";", 1)[0].strip().lower()
    return _CONTENT_TYPE_FORMATS.get(declared, "")


def looks_like_pdf(content: bytes) -> bool:
    return content.startswith(_PDF_MAGIC)


def looks_like_docx(content: bytes) -> bool:
    if not content.startswith(_ZIP_MAGIC):
        return False
    try:
        with ZipFile(BytesIO(content)) as archive:
            return _DOCX_MAIN_PART in archive.namelist()
    except BadZipFile:
        return False


def looks_like_text(content: bytes) -> bool:
    sample = content[:_TEXT_SAMPLE_BYTES]
    if not sample or b"\x00" in sample:
        return False
    decoded = sample.decode("utf-8", errors="replace")
    readable = sum(1 for char in decoded if char.isprintable() or char in "\t\r\n")
    return readable / len(decoded) >= _MIN_READABLE_RATIO


_SIGNATURE_CHECKS = {
    "pdf": looks_like_pdf,
    "docx": looks_like_docx,
    "txt": looks_like_text,
    "md": looks_like_text,
}


def content_matches_format(content: bytes, resume_format: str) -> bool:
    check = _SIGNATURE_CHECKS.get(resume_format)
    return bool(check and check(content))
