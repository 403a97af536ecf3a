"""
Result parser for Co-Refactorer.

The LLM answers in markdown: a level-3 heading with the file path followed by
a fenced code block with the new content, repeated per file. The markdown is
rendered to HTML and headings and code blocks are paired by position.
"""

import logging
from typing import List

from lxml import etree, html as lxml_html
from markdown_it import MarkdownIt

from .errors import ResultParseError, StructureMismatchError
from .models import TargetFile


logger = logging.getLogger(__name__)

HEADING_XPATH = "//h3/text()"
CODE_XPATH = "//pre/code/text()"


def markdown_to_html(content: str) -> str:
    """Render CommonMark to HTML.

    Raw HTML in the answer is escaped rather than passed through, so only
    markdown headings and fences count. Fenced code is kept byte for byte.
    """
    return MarkdownIt("commonmark", {"html": False}).render(content)


def parse_markdown_content(content: str) -> List[TargetFile]:
    """Extract (path, content) pairs from the LLM's markdown answer.

    The i-th level-3 heading is paired with the i-th code block. No check is
    made on the heading text itself, so absolute or relative paths escaping
    the working directory are returned as-is.

    Raises:
        StructureMismatchError: If heading and code block counts differ.
        ResultParseError: If the rendered HTML cannot be parsed.
    """
    rendered = markdown_to_html(content)
    if not rendered.strip():
        logger.debug("Empty markdown content, no files to apply")
        return []

    try:
        document = lxml_html.document_fromstring(rendered)
    except (etree.ParserError, ValueError) as e:
        raise ResultParseError(f"Failed to parse rendered markdown content: {e}") from e

    headings = [str(text) for text in document.xpath(HEADING_XPATH)]
    codes = [str(text) for text in document.xpath(CODE_XPATH)]
    logger.debug(f"Found {len(headings)} headings and {len(codes)} code blocks")

    if len(headings) != len(codes):
        raise StructureMismatchError(
            "Failed to parse markdown content: number of headings and codes are not matched "
            f"({len(headings)} headings, {len(codes)} code blocks)"
        )

    return [TargetFile(path=heading, content=code) for heading, code in zip(headings, codes)]
