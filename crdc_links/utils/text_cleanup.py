"""Plain-text rendering of the HTML descriptions served by IDC."""
from __future__ import annotations

import re
from typing import Optional

from bs4 import BeautifulSoup, Comment, NavigableString

from .corrections import correction_for

_BLOCK_TAGS = [
    "p",
    "div",
    "section",
    "article",
    "blockquote",
    "pre",
    "table",
    "ul",
    "ol",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
]
_HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
_WHITESPACE_RUN = re.compile(r"\s+")
_EXCESS_BREAKS = re.compile(r"\n{3,}")


def html_to_text(raw_html: Optional[str]) -> str:
    """Convert an HTML fragment into unwrapped plain text.

    Blocks are separated by a blank line, ``<br>`` becomes a newline, list
    items are bulleted with ``* ``, headings are upper-cased and links render
    as ``text [href]``. Input without any tags is taken as already converted
    and only has its lines trimmed, so converting twice changes nothing.
    """

    if not raw_html:
        return ""

    soup = BeautifulSoup(raw_html, "html.parser")

    # Already plain text: its line breaks are the block layout, keep them.
    if soup.find() is None:
        return _tidy_lines(soup.get_text())

    for node in list(soup.find_all(string=True)):
        if isinstance(node, Comment):
            node.extract()
            continue
        if node.find_parent("pre") is not None:
            continue
        node.replace_with(_WHITESPACE_RUN.sub(" ", str(node)))

    for anchor in soup.find_all("a"):
        href = (anchor.get("href") or "").strip()
        if href and href != anchor.get_text().strip():
            anchor.append(f" [{href}]")

    for heading in soup.find_all(_HEADING_TAGS):
        heading.string = heading.get_text().upper()

    for item in soup.find_all("li"):
        item.insert(0, NavigableString("* "))
        item.append(NavigableString("\n"))

    for cell in soup.find_all(["td", "th"]):
        cell.append(NavigableString(" "))

    for row in soup.find_all("tr"):
        row.append(NavigableString("\n"))

    for line_break in soup.find_all("br"):
        line_break.replace_with("\n")

    for block in soup.find_all(_BLOCK_TAGS):
        block.insert_before(NavigableString("\n\n"))
        block.insert_after(NavigableString("\n\n"))

    return _tidy_lines(soup.get_text())


def _tidy_lines(text: str) -> str:
    lines = [line.strip() for line in text.split("\n")]
    return _EXCESS_BREAKS.sub("\n\n", "\n".join(lines)).strip()


def normalize_description(raw_html: Optional[str], study_designation: Optional[str]) -> str:
    """Render an IDC description and apply any correction registered for the study."""

    text = html_to_text(raw_html)
    correction = correction_for(study_designation)
    if correction is None or correction.description_fixer is None:
        return text
    return correction.description_fixer(text)


__all__ = ["html_to_text", "normalize_description"]
