"""
Text cleanup shared by every export parser.

Exports arrive with all kinds of damage: UTF-8 that was decoded as Latin-1
("Ã©" instead of "é"), HTML entities, decomposed accents, zero-width
characters and hard-wrapped whitespace. normalize_extracted_text() undoes
all of it in a fixed order:

    1. mojibake repair (only when it measurably helps)
    2. HTML/XML entity decoding
    3. NFC composition
    4. zero-width / control character removal
    5. whitespace collapse + trim
"""

from __future__ import annotations

import html
import re
import unicodedata
from typing import List


WHITESPACE_RE = re.compile(r"\s+")
ZERO_WIDTH_RE = re.compile("[\u200B-\u200D\u2060\uFEFF]")
# C0 (keeping tab, LF, CR), DEL and C1
CONTROL_CHAR_RE = re.compile("[\u0000-\u0008\u000B\u000C\u000E-\u001F\u007F-\u009F]")
ENTITY_RE = re.compile(r"&(?:#\d+|#x[\da-fA-F]+|[a-zA-Z][a-zA-Z0-9]+);")
LIKELY_MOJIBAKE_RE = re.compile("(?:Ã.|Â.|â.)")
MOJIBAKE_ARTIFACT_RE = re.compile("[ÃÂâ]")
TRAILING_FULL_STOP_RE = re.compile(r"\.\s*$")


def mojibake_score(value: str) -> int:
    """
    Lower is better: replacement chars weigh 4, leftover Ã/Â/â weigh 1.
    """
    return value.count("\ufffd") * 4 + len(MOJIBAKE_ARTIFACT_RE.findall(value))


def repair_likely_mojibake(value: str) -> str:
    """
    Re-read Latin-1-decoded UTF-8 as UTF-8, but keep the result only if it scores better.
    """
    if not LIKELY_MOJIBAKE_RE.search(value):
        return value
    if any(ord(ch) > 255 for ch in value):
        return value

    repaired = value.encode("latin-1").decode("utf-8", errors="replace")
    return repaired if mojibake_score(repaired) < mojibake_score(value) else value


def decode_entities(value: str) -> str:
    if not value or not ENTITY_RE.search(value):
        return value
    return html.unescape(value)


def _normalize_once(value: str) -> str:
    text = repair_likely_mojibake(value)
    text = decode_entities(text)
    text = unicodedata.normalize("NFC", text)
    text = ZERO_WIDTH_RE.sub("", text)
    text = CONTROL_CHAR_RE.sub("", text)
    return WHITESPACE_RE.sub(" ", text).strip()


def normalize_extracted_text(value: str | None) -> str:
    """
    Repeat the cleanup until nothing changes, so the result is a fixed point.

    One pass can uncover work for the next (an entity that decodes to mojibake,
    a zero-width char between a letter and its accent, nested &amp;amp;lt;).
    Every change shortens the text or strictly lowers its mojibake score.
    """
    text = _normalize_once(value or "")
    while True:
        again = _normalize_once(text)
        if again == text:
            return text
        text = again


def trim_trailing_full_stop(value: str | None) -> str:
    """
    Normalize, then drop one trailing '.' (used for titles in MEDLINE / MDPI exports).
    """
    return TRAILING_FULL_STOP_RE.sub("", normalize_extracted_text(value)).strip()


def split_lines(content: str | None) -> List[str]:
    """
    Drop BOMs, unify CRLF / CR line endings, split.
    """
    text = (content or "").replace("\ufeff", "")
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
