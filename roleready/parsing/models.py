from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ResumeSourceType = Literal["pdf", "docx", "txt", "md", "text"]


class ParsedPage(BaseModel):
    number: int | None = None
    text: str


class ParsedDoc(BaseModel):
    """Text extracted from one resume upload or paste."""

    content_hash: str
    file_name: str
    source_type: ResumeSourceType
    text: str
    pages: list[ParsedPage] = Field(default_factory=list)
    parsing_warnings: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    @property
    def word_count(self) -> int:
        return len(self.text.split())
