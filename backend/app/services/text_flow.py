"""
Text flow — breaking prose into lines that fit a given width.

Every prose field on every document (descriptions, objectives, legal
clauses, table designations) goes through `wrap_text`. It is a greedy
word wrapper: explicit newlines start new paragraphs, blank paragraphs
are kept as empty lines, and a word wider than the whole line gets a
line of its own rather than being hyphenated.
"""

import re

from reportlab.pdfbase import pdfmetrics

_PARAGRAPH_BREAK = re.compile(r"\r?\n")


def wrap_text(text: str, font_name: str, size: float, max_width: float) -> list[str]:
    """Wrap `text` into lines no wider than `max_width` points.

    Example:
        >>> wrap_text("Première ligne\\n\\nTroisième", "Helvetica", 9, 500)
        ['Première ligne', '', 'Troisième']
    """
    lines: list[str] = []

    for paragraph in _PARAGRAPH_BREAK.split(text):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if pdfmetrics.stringWidth(candidate, font_name, size) <= max_width:
                current = candidate
            else:
                if current:
                    lines.append(current)
                current = word
        lines.append(current)

    return lines


# ------------------------------------------------------------------
# RICH TEXT
# ------------------------------------------------------------------

# The programme editor only emits paragraphs, line breaks and bullet
# lists, so these few tags are the whole mapping. Anything else is dropped.
_TAG_REPLACEMENTS = (
    (re.compile(r"<br\s*/?>", re.IGNORECASE), "\n"),
    (re.compile(r"</p>", re.IGNORECASE), "\n"),
    (re.compile(r"</li>", re.IGNORECASE), "\n"),
    (re.compile(r"<li[^>]*>", re.IGNORECASE), "• "),
    (re.compile(r"<[^>]+>"), ""),
)

_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)

_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


def strip_rich_text(html: str) -> str:
    """Convert the editor's HTML fragment into plain text with bullets.

    Example:
        >>> strip_rich_text("<ul><li>Accueil</li><li>Tour de table</li></ul>")
        '• Accueil\\n• Tour de table'
    """
    text = html
    for pattern, replacement in _TAG_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return _EXTRA_BLANK_LINES.sub("\n\n", text).strip()
