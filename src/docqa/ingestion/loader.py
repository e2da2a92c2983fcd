"""Document loaders — turn staged uploads into plain text."""

from __future__ import annotations

import logging
from pathlib import Path

from langchain_community.document_loaders import PyPDFLoader

from docqa.errors import InvalidInput

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n"


def load_pdf(path: str | Path) -> str:
    """Extract the text of every page, joined in page order with a newline."""
    try:
        pages = PyPDFLoader(str(path)).load()
    except Exception as exc:
        raise InvalidInput("Could not read PDF file") from exc
    logger.info("Loaded %d page(s) from %s", len(pages), path)
    return PAGE_SEPARATOR.join(page.page_content for page in pages)


def decode_text(data: bytes, encoding: str = "utf-8") -> str:
    """Decode an uploaded plain-text file, replacing undecodable bytes."""
    return data.decode(encoding, errors="replace")
